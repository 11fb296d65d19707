"""
Capabilities supplied by layers above the core

The agent loop and media services live outside this package. The shell's
`gemini-flow` command and the scheduler only need something that can carry
out an objective or produce a media file and report back in text.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass
class ObjectiveOutcome:
    """Result of an agent objective"""
    status: str  # 'success' or 'failure'
    message: str = ''
    details: str = ''

    @property
    def ok(self) -> bool:
        return self.status == 'success'

    def summary(self) -> str:
        return f"{self.message}\n{self.details}" if self.details else self.message


@dataclass
class MediaOutcome:
    """Result of a media generation request"""
    status: str
    file: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == 'success'


class ObjectiveExecutor(Protocol):
    def execute(self, objective: str, kind: str,
                options: Optional[Dict[str, Any]] = None) -> ObjectiveOutcome:
        ...


class MediaGenerator(Protocol):
    def generate(self, service: str, prompt: str,
                 options: Optional[Dict[str, Any]] = None) -> MediaOutcome:
        ...
