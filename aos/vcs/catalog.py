"""
Pre-cataloged repositories

There is no outbound network access from the sandbox, so `clone` can only
hydrate repositories listed here from their fixed file manifests.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class CatalogEntry:
    """A repository that can be cloned offline"""
    name: str
    urls: Tuple[str, ...]
    files: Dict[str, str] = field(default_factory=dict)
    message: str = 'Initial clone from GitHub'


def normalize_url(url: str) -> str:
    url = url.strip().rstrip('/')
    if url.endswith('.git'):
        url = url[:-4]
    for prefix in ('https://', 'http://', 'git://'):
        if url.startswith(prefix):
            url = url[len(prefix):]
            break
    if url.startswith('git@'):
        url = url[4:].replace(':', '/', 1)
    return url.lower()


GEMINI_FLOW_FILES: Dict[str, str] = {
    "README.md": """# Gemini-Flow: Production-Ready AI Orchestration Platform

![Version](https://img.shields.io/badge/version-1.3.3-blue)

**Gemini-Flow** is the AI orchestration platform for deploying, managing and
scaling AI systems with agent-optimized architecture.

## Complete Google AI Services Ecosystem Integration
- **Veo3**: Video creation
- **Imagen4**: Image generation
- **Lyria**: Music composition
- **Chirp**: Speech synthesis
- **Co-Scientist**: Automated research
- **Mariner**: Project automation
- **AgentSpace**: Swarm coordination

## Jules Tools Autonomous Development

```bash
gemini-flow jules remote create "Implement OAuth 2.0 authentication" \\
  --type feature --priority high --quantum --consensus

gemini-flow jules local execute "Refactor monolith to microservices" \\
  --type refactor --topology hierarchical --quantum
```

## Agent Coordination (A2A + MCP)

```bash
gemini-flow hive-mind spawn \\
  --objective "enterprise digital transformation" \\
  --agents "architect,coder,analyst,strategist" \\
  --protocols a2a,mcp
```

## Quick Start

```bash
npm install -g @clduab11/gemini-flow
gemini-flow init --protocols a2a,mcp --topology hierarchical
```
""",
    "package.json": """{
  "name": "@clduab11/gemini-flow",
  "version": "1.3.3",
  "description": "AI orchestration platform with 9 MCP servers",
  "bin": {
    "gemini-flow": "./bin/gemini-flow.js"
  },
  "scripts": {
    "start": "node dist/index.js",
    "build": "tsc",
    "test": "jest"
  },
  "dependencies": {
    "@google/genai": "^1.30.0",
    "isomorphic-git": "^1.25.0",
    "commander": "^11.0.0",
    "chalk": "^5.0.0"
  }
}
""",
    ".env.example": """GOOGLE_API_KEY=your_key_here
GITHUB_TOKEN=your_token_here
GEMINI_FLOW_ENV=production
A2A_PROTOCOL_ENABLED=true
MCP_PROTOCOL_ENABLED=true
JULES_QUANTUM_MODE=enabled
""",
    "gemini-extension.json": """{
  "name": "gemini-flow",
  "version": "1.3.3",
  "description": "AI orchestration platform with 9 MCP servers",
  "entryPoint": "extensions/gemini-cli/extension-loader.js",
  "mcpServers": {
    "redis": true,
    "git": true,
    "puppeteer": true,
    "filesystem": true,
    "github": true
  },
  "customCommands": {
    "hive-mind": "Spawn intelligent agent swarm",
    "jules": "Autonomous coding tasks",
    "veo3": "Generate video content"
  },
  "contextFiles": ["GEMINI.md", "gemini-flow.md"]
}
""",
    "src/index.ts": """import { GoogleAIOrchestrator } from './core/orchestrator';
export * from './core/jules';
export * from './core/swarm';
export * from './core/github-a2a-integration-manager';

export const flow = new GoogleAIOrchestrator({
  services: ['veo3', 'imagen4', 'lyria', 'chirp', 'co-scientist', 'mariner', 'agentspace', 'streaming'],
  optimization: 'cost-performance',
  protocols: ['a2a', 'mcp']
});
""",
    "src/core/orchestrator.ts": """/**
 * Google AI Orchestrator
 * Manages multi-modal content creation and service coordination.
 */
export class GoogleAIOrchestrator {
    private config: any;

    constructor(config: any) {
        this.config = config;
    }

    async createWorkflow(params: any) {
        return {
            status: 'created',
            id: Math.random().toString(36).substr(2, 9),
            steps: Object.keys(params).length
        };
    }
}
""",
    "src/core/jules.ts": """/**
 * Jules Tools Integration
 */
export class Jules {
    static async remoteCreate(task: string, options: any) {
        return { taskId: 'jules-' + Date.now(), status: 'queued', mode: 'remote-vm' };
    }

    static async localExecute(task: string, options: any) {
        return { taskId: 'jules-local-' + Date.now(), status: 'optimizing', topology: options.topology };
    }
}
""",
    "src/core/swarm.ts": """/**
 * Agent Swarm Orchestrator
 * Manages specialized agents via A2A + MCP protocols.
 */
export class HiveMind {
    static async spawn(objective: string, config: any) {
        const agents = config.agents ? config.agents.split(',') : ['generalist'];
        return {
            swarmId: 'swarm-' + Date.now(),
            agentCount: agents.length,
            specializations: agents,
            status: 'active',
            coordination: 'A2A + MCP'
        };
    }
}
""",
    "src/core/github-a2a-integration-manager.ts": """/**
 * GitHub A2A Integration Manager
 * Handles PRs, Issues, and CI/CD pipelines with Agent Coordination.
 */
export class GitHubA2AIntegrationManager {
    constructor(private config: any) {}

    async initialize() {
        console.log('Integration system initialized successfully');
    }

    async processGitHubOperation(params: any) {
        return 'op-' + Math.random().toString(36).substr(2, 9);
    }
}
""",
    "bin/gemini-flow.js": """#!/usr/bin/env node
const args = process.argv.slice(2);
console.log("Gemini Flow CLI v1.3.3");

if (args.length === 0) {
    console.log("Usage: gemini-flow <command> [options]");
    console.log("Commands: jules, hive-mind, swarm, veo3, imagen4");
    process.exit(1);
}
""",
}

CATALOG: Tuple[CatalogEntry, ...] = (
    CatalogEntry(
        name='gemini-flow',
        urls=('github.com/clduab11/gemini-flow',),
        files=GEMINI_FLOW_FILES,
    ),
)


def lookup(url: str, catalog: Tuple[CatalogEntry, ...] = CATALOG) -> Optional[CatalogEntry]:
    """Catalog entry for a clone URL, or None"""
    normalized = normalize_url(url)
    for entry in catalog:
        if normalized in entry.urls:
            return entry
    return None
