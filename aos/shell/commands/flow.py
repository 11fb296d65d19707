"""
gemini-flow commands for AOS Shell

The agent swarm and the media services are injected capabilities; this
module only maps the command line onto them.
"""

import types
from typing import List, Optional

from ..parser import ShellResult

FLOW_USAGE = 'Usage: gemini-flow <jules|hive-mind|veo3|imagen4|init> ...'
MEDIA_SERVICES = ('veo3', 'imagen4', 'lyria')


def option_value(args: List[str], flag: str) -> Optional[str]:
    """Token following flag, if any"""
    for i, arg in enumerate(args[:-1]):
        if arg == flag:
            return args[i + 1]
    return None


def register_commands(shell):
    """Register the gemini-flow command with shell"""

    def flow_jules(self, args: List[str]) -> ShellResult:
        if self.executor is None:
            return ShellResult.error('gemini-flow: no objective executor configured')
        # gemini-flow jules <verb> <target> <task words...> [--flags]
        task = ' '.join(a for a in args[3:] if not a.startswith('--'))
        quantum = '--quantum' in args
        outcome = self.executor.execute(task or 'General Task', 'feature',
                                        {'enableQuantum': quantum})
        if outcome.ok:
            return ShellResult.success(f"{outcome.message}\n{outcome.details}")
        return ShellResult.error(outcome.message)

    def flow_swarm(self, args: List[str]) -> ShellResult:
        if self.executor is None:
            return ShellResult.error('gemini-flow: no objective executor configured')
        objective = option_value(args, '--objective') or 'General objective'
        outcome = self.executor.execute(objective, 'swarm-op', {'topology': 'hierarchical'})
        return ShellResult.success(f"[HiveMind] Swarm Spawned.\n{outcome.message}")

    def flow_media(self, args: List[str]) -> ShellResult:
        if self.media is None:
            return ShellResult.error('gemini-flow: no media generator configured')
        prompt = option_value(args, '--prompt') or 'Demo content'
        outcome = self.media.generate(args[0], prompt, {})
        if outcome.ok:
            return ShellResult.success(f"Generated: {outcome.file}")
        return ShellResult.error(outcome.error or f"{args[0]} generation failed")

    def do_gemini_flow(self, args: List[str]) -> ShellResult:
        """Agent swarm and media front end
        Usage:
            gemini-flow jules <verb> <target> <task> [--quantum]  - Run a feature task
            gemini-flow hive-mind --objective <text>              - Spawn a swarm
            gemini-flow veo3|imagen4|lyria --prompt <text>        - Generate media
            gemini-flow init                                      - Initialize protocols
        """
        sub = args[0] if args else ''
        try:
            if sub == 'jules':
                return flow_jules(self, args)
            if sub in ('hive-mind', 'swarm'):
                return flow_swarm(self, args)
            if sub in MEDIA_SERVICES:
                return flow_media(self, args)
        except Exception as e:
            return ShellResult.error(str(e))
        if sub == 'init':
            return ShellResult.success('Initialized gemini-flow with protocols: A2A, MCP')
        return ShellResult.error(FLOW_USAGE)

    shell.register('gemini-flow', types.MethodType(do_gemini_flow, shell))
