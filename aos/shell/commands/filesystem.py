"""
Filesystem commands for AOS Shell
"""

import types
from typing import List

from ...exceptions import FileSystemError
from ..parser import ShellResult


def register_commands(shell):
    """Register filesystem commands with shell"""

    def do_pwd(self, args: List[str]) -> ShellResult:
        """Print working directory"""
        return ShellResult.success(self.cwd)

    def do_cd(self, args: List[str]) -> ShellResult:
        """Change directory
        Usage: cd [directory]"""
        target = self.resolve_path(args[0]) if args else self.home_dir
        if not self.vfs.is_dir(target):
            return ShellResult.error(f"cd: no such directory: {args[0] if args else target}")
        self.cwd = target
        return ShellResult.success()

    def do_ls(self, args: List[str]) -> ShellResult:
        """List directory contents
        Usage: ls [directory]"""
        target = self.resolve_path(args[0]) if args else self.cwd
        try:
            entries = self.vfs.read_dir(target)
        except FileSystemError:
            return ShellResult.error(f"ls: cannot access '{target}'")
        return ShellResult.success('\n'.join(
            f"{e.name}/" if e.is_dir else e.name for e in entries))

    def do_cat(self, args: List[str]) -> ShellResult:
        """Display file contents
        Usage: cat <file>"""
        if not args:
            return ShellResult.error('usage: cat <file>')
        try:
            return ShellResult.success(self.vfs.read_text(self.resolve_path(args[0])))
        except FileSystemError as e:
            return ShellResult.error(f"cat: {e}")

    def do_echo(self, args: List[str]) -> ShellResult:
        """Print text, or write it to a file
        Usage: echo <text> [> file | >> file]"""
        for op in ('>', '>>'):
            if op in args:
                idx = args.index(op)
                text = ' '.join(args[:idx])
                if idx + 1 < len(args):
                    try:
                        self.vfs.write_file(self.resolve_path(args[idx + 1]), text,
                                            append=(op == '>>'))
                    except FileSystemError as e:
                        return ShellResult.error(f"echo: {e}")
                    return ShellResult.success()
                return ShellResult.success(text)
        return ShellResult.success(' '.join(args))

    def do_mkdir(self, args: List[str]) -> ShellResult:
        """Create directory (and missing parents)
        Usage: mkdir <directory>"""
        paths = [a for a in args if not a.startswith('-')]
        if not paths:
            return ShellResult.error('usage: mkdir <path>')
        try:
            for path in paths:
                self.vfs.mkdir(self.resolve_path(path))
        except FileSystemError as e:
            return ShellResult.error(f"mkdir: {e}")
        return ShellResult.success()

    def do_rm(self, args: List[str]) -> ShellResult:
        """Remove file or directory (always recursive, missing paths are fine)
        Usage: rm [-rf] <path>"""
        paths = [a for a in args if not a.startswith('-')]
        if not paths:
            return ShellResult.error('usage: rm <path>')
        try:
            for path in paths:
                self.vfs.delete(self.resolve_path(path))
        except FileSystemError as e:
            return ShellResult.error(f"rm: {e}")
        return ShellResult.success()

    for name, func in (('pwd', do_pwd), ('cd', do_cd), ('ls', do_ls), ('cat', do_cat),
                       ('echo', do_echo), ('mkdir', do_mkdir), ('rm', do_rm)):
        shell.register(name, types.MethodType(func, shell))
