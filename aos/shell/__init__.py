"""
AOS Shell - command interpreter over the virtual filesystem
"""

from .parser import ShellResult, tokenize
from .interpreter import ShellInterpreter, DEFAULT_ENV
from .runtime import ModuleResolver, ScriptRuntime, EventEmitter

__all__ = [
    'ShellResult', 'tokenize', 'ShellInterpreter', 'DEFAULT_ENV',
    'ModuleResolver', 'ScriptRuntime', 'EventEmitter',
]
