"""
Script commands for AOS Shell
"""

import types
from typing import List

from ...exceptions import FileSystemError
from ..parser import ShellResult
from ..runtime import ModuleResolver, ScriptRuntime

SCRIPT_EXTENSIONS = ('.js', '.py')


def register_commands(shell):
    """Register node, js and python with shell"""

    shell.resolver = ModuleResolver(shell, ttl=shell.resolver_cache_ttl)
    shell.runtime = ScriptRuntime(shell, shell.resolver)

    def do_node(self, args: List[str]) -> ShellResult:
        """Run a script file or inline code
        Usage: node <file.js|file.py>  or  node <code>

        Scripts may require() path, os, fs, events, child_process and util,
        plus any package installed with apm."""
        if not args:
            return ShellResult.error('usage: node <file> or js <code>')

        if args[0].endswith(SCRIPT_EXTENSIONS):
            path = self.resolve_path(args[0])
            try:
                code = self.vfs.read_text(path)
            except FileSystemError:
                return ShellResult.error(f"File not found: {args[0]}")
            return self.runtime.run(code, args, filename=path)

        return self.runtime.run(' '.join(args), args)

    run = types.MethodType(do_node, shell)
    for name in ('node', 'js', 'python'):
        shell.register(name, run)
