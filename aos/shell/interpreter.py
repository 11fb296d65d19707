"""
AOS Shell Interpreter

Request/response shell over the VFS: one command line in, one ShellResult
out. The only state carried between calls is the working directory.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from ..capabilities import MediaGenerator, ObjectiveExecutor
from ..exceptions import AOSError
from ..packages import PackageManager
from ..vcs import VcsBridge
from ..vfs import VirtualFileSystem
from .parser import ShellResult, tokenize

logger = logging.getLogger('AOS.shell')

DEFAULT_ENV = {
    'PATH': '/usr/bin:/bin',
    'HOME': '/home/aussie',
    'USER': 'aussie',
    'SHELL': '/bin/vsh',
    'TERM': 'xterm-256color',
    'LANG': 'en_US.UTF-8',
    'NODE_ENV': 'production',
}

Handler = Callable[[List[str]], ShellResult]


class ShellInterpreter:
    """Tokenize, dispatch to a built-in, convert every failure to a result"""

    def __init__(self, vfs: VirtualFileSystem, vcs: Optional[VcsBridge] = None,
                 packages: Optional[PackageManager] = None,
                 executor: Optional[ObjectiveExecutor] = None,
                 media: Optional[MediaGenerator] = None,
                 cwd: str = '/workspace', env: Optional[Dict[str, str]] = None,
                 resolver_cache_ttl: float = 5.0):
        self.vfs = vfs
        self.vcs = vcs or VcsBridge(vfs)
        self.packages = packages
        self.executor = executor
        self.media = media
        self.home_dir = cwd
        self.cwd = cwd
        self.env: Dict[str, str] = dict(env or DEFAULT_ENV)
        self.resolver_cache_ttl = resolver_cache_ttl
        self.commands: Dict[str, Handler] = {}
        # one command at a time across the console and scheduler threads
        self.lock = threading.RLock()

        self._load_commands()

    def _load_commands(self):
        from .commands import register_all

        register_all(self)
        self.register('help', self.do_help)

    def register(self, name: str, handler: Handler):
        self.commands[name] = handler

    def get_cwd(self) -> str:
        return self.cwd

    def resolve_path(self, path: str) -> str:
        """Absolute paths ignore cwd; relative ones walk from it"""
        if not path:
            return self.cwd

        parts = [] if path.startswith('/') else [p for p in self.cwd.split('/') if p]
        for part in path.split('/'):
            if not part or part == '.':
                continue
            if part == '..':
                if parts:
                    parts.pop()
            else:
                parts.append(part)
        return '/' + '/'.join(parts)

    def execute(self, line: str) -> ShellResult:
        args = tokenize(line)
        if not args:
            return ShellResult()

        name, params = args[0], args[1:]
        handler = self.commands.get(name)
        if handler is None:
            return ShellResult.error(f"vsh: command not found: {name}", 127)

        logger.debug(f"exec {name} {params}")
        with self.lock:
            try:
                return handler(params)
            except AOSError as e:
                return ShellResult.error(f"{name}: {e}")
            except Exception as e:
                logger.exception(f"Unhandled error in '{name}'")
                return ShellResult.error(f"{name}: {e}")

    def do_help(self, args: List[str]) -> ShellResult:
        """Show available commands
        Usage: help [command]"""
        if args:
            handler = self.commands.get(args[0])
            if handler is None:
                return ShellResult.error(f"help: no such command: {args[0]}")
            return ShellResult.success(handler.__doc__ or f"No help available for '{args[0]}'")

        return ShellResult.success(
            'Aussie OS v2.1 Commands:\n'
            '  ls, cd, pwd, cat, echo, mkdir, rm\n'
            '  apm <install|list|uninstall> <pkg>\n'
            '  git <clone|init|status|add|rm|commit|log>\n'
            '  gemini-flow <jules|hive-mind|veo3|imagen4|lyria|init>\n'
            '  node|js|python <file-or-code>\n'
            "Type 'help <command>' for detailed help")

    def short_help(self, name: str) -> str:
        handler = self.commands.get(name)
        doc = (handler.__doc__ or '') if handler else ''
        return doc.strip().split('\n')[0]
