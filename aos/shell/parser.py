"""
Command line tokenizing and the shell result contract
"""

from dataclasses import dataclass
from typing import List

QUOTES = ('"', "'")


@dataclass
class ShellResult:
    """stdout/stderr/exit code of one shell invocation"""
    stdout: str = ''
    stderr: str = ''
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @classmethod
    def success(cls, stdout: str = '') -> 'ShellResult':
        return cls(stdout, '', 0)

    @classmethod
    def error(cls, stderr: str, exit_code: int = 1, stdout: str = '') -> 'ShellResult':
        return cls(stdout, stderr, exit_code)


def tokenize(line: str) -> List[str]:
    """Split on spaces outside quotes.

    Either quote character toggles the in-quote state and is dropped from
    the token, so `echo "it's"` does not nest quotes.
    """
    args = []
    current = ''
    in_quote = False
    for char in line:
        if char in QUOTES:
            in_quote = not in_quote
        elif char.isspace() and not in_quote:
            if current:
                args.append(current)
            current = ''
        else:
            current += char
    if current:
        args.append(current)
    return args
