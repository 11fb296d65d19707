"""
Script runtime for the node/js/python built-ins

Scripts are Python source run against a restricted set of builtins. The only
way to reach other code is `require(name)` or an `import` statement, and both
go through the ModuleResolver: core names get in-shell polyfills bound to the
VFS and this shell, a few harmless standard modules are passed through, and
everything else is looked up in the package manager. Modules reach scripts
as namespaces of their public members, and source that names a dunder or
frame attribute is rejected before it runs.
"""

import ast
import logging
import builtins
import importlib
import posixpath
import threading
from types import ModuleType, SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

from cachetools import TTLCache

from ..exceptions import PackageError, ScriptError, ToolFailure
from .parser import ShellResult

logger = logging.getLogger('AOS.shell.runtime')

PASSTHROUGH_MODULES = (
    'json', 'math', 'random', 'time', 'datetime',
    'collections', 'itertools', 'functools', 're'
)

SAFE_BUILTINS = (
    'len', 'str', 'int', 'float', 'bool', 'list', 'dict', 'tuple', 'bytes',
    'set', 'frozenset', 'range', 'enumerate', 'zip', 'map', 'filter',
    'min', 'max', 'sum', 'abs', 'round', 'sorted', 'reversed', 'any', 'all',
    'isinstance', 'issubclass', 'getattr', 'hasattr', 'setattr', 'repr',
    'format', 'iter', 'next', 'chr', 'ord', 'hex', 'divmod', 'callable',
    'object', 'super', 'property', 'staticmethod', 'classmethod', 'type',
    'Exception', 'ValueError', 'TypeError', 'KeyError', 'IndexError',
    'RuntimeError', 'AttributeError', 'StopIteration', 'NotImplementedError',
    '__build_class__'
)

# frame, code and generator internals lead back to host globals
BLOCKED_ATTRIBUTES = frozenset({
    'f_back', 'f_globals', 'f_locals', 'f_builtins', 'f_code',
    'gi_frame', 'gi_code', 'gi_yieldfrom', 'cr_frame', 'cr_code', 'cr_await',
    'ag_frame', 'ag_code', 'tb_frame', 'tb_next', 'co_code', 'mro',
})


# protocol names a script may call on its own objects
ALLOWED_DUNDERS = frozenset({'__init__', '__name__', '__doc__', '__str__', '__repr__'})


def is_blocked_attribute(name: str) -> bool:
    return (name.startswith('__') and name not in ALLOWED_DUNDERS) or name in BLOCKED_ATTRIBUTES


class AttributeGuard(ast.NodeVisitor):
    """Rejects scripts that spell out a blocked attribute"""

    def visit_Attribute(self, node: ast.Attribute):
        if is_blocked_attribute(node.attr):
            raise ScriptError(f"access to attribute '{node.attr}' is not allowed")
        self.generic_visit(node)


def guarded_getattr(obj, name, *default):
    if is_blocked_attribute(name):
        raise ScriptError(f"access to attribute '{name}' is not allowed")
    return getattr(obj, name, *default)


def guarded_hasattr(obj, name) -> bool:
    return not is_blocked_attribute(name) and hasattr(obj, name)


def guarded_setattr(obj, name, value):
    if is_blocked_attribute(name):
        raise ScriptError(f"access to attribute '{name}' is not allowed")
    setattr(obj, name, value)


def public_namespace(module) -> SimpleNamespace:
    """Public, non-module members of a host module"""
    names = getattr(module, '__all__', None) or [n for n in dir(module) if not n.startswith('_')]
    members = {}
    for name in names:
        value = getattr(module, name, None)
        if value is not None and not isinstance(value, ModuleType):
            members[name] = value
    return SimpleNamespace(**members)


class ScriptExit(BaseException):
    """Raised by process.exit() to end a script"""

    def __init__(self, code: int = 0):
        super().__init__(f"Process exited with code {code}")
        self.code = code


def _join(values) -> str:
    return ' '.join(str(v) for v in values)


def path_module(shell) -> SimpleNamespace:
    def resolve(*segments):
        return shell.resolve_path(posixpath.join(shell.cwd, *segments))

    return SimpleNamespace(
        sep='/',
        delimiter=':',
        join=posixpath.join,
        resolve=resolve,
        normalize=posixpath.normpath,
        basename=posixpath.basename,
        dirname=posixpath.dirname,
        extname=lambda p: posixpath.splitext(p)[1],
        isAbsolute=posixpath.isabs,
    )


def os_module(shell) -> SimpleNamespace:
    return SimpleNamespace(
        EOL='\n',
        platform=lambda: 'linux',
        type=lambda: 'Linux',
        release=lambda: '5.4.0-aussie-os',
        arch=lambda: 'x64',
        totalmem=lambda: 8 * 1024 * 1024 * 1024,
        freemem=lambda: 4 * 1024 * 1024 * 1024,
        homedir=lambda: shell.env.get('HOME', shell.home_dir),
        tmpdir=lambda: '/tmp',
        hostname=lambda: 'aussie-os',
    )


def fs_module(shell) -> SimpleNamespace:
    """Node-style fs over the VCS storage adapter; relative paths use cwd"""
    adapter = shell.vcs.fs
    resolve = shell.resolve_path

    def read_file_sync(path, encoding='utf-8'):
        return adapter.read_file(resolve(path), encoding)

    def append_file_sync(path, data):
        shell.vfs.write_file(resolve(path), data, append=True)

    promises = SimpleNamespace(
        readFile=lambda path, encoding=None: adapter.read_file(resolve(path), encoding),
        writeFile=lambda path, data: adapter.write_file(resolve(path), data),
        unlink=lambda path: adapter.unlink(resolve(path)),
        readdir=lambda path: adapter.readdir(resolve(path)),
        mkdir=lambda path: adapter.mkdir(resolve(path)),
        rmdir=lambda path: adapter.rmdir(resolve(path)),
        stat=lambda path: adapter.stat(resolve(path)),
        lstat=lambda path: adapter.lstat(resolve(path)),
    )

    return SimpleNamespace(
        readFileSync=read_file_sync,
        writeFileSync=lambda path, data: adapter.write_file(resolve(path), data),
        appendFileSync=append_file_sync,
        existsSync=lambda path: adapter.exists(resolve(path)),
        mkdirSync=lambda path: adapter.mkdir(resolve(path)),
        readdirSync=lambda path='.': adapter.readdir(resolve(path)),
        unlinkSync=lambda path: adapter.unlink(resolve(path)),
        statSync=lambda path: adapter.stat(resolve(path)),
        promises=promises,
    )


class EventEmitter:
    """Minimal listener registry"""

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, handler: Callable) -> 'EventEmitter':
        self.listeners.setdefault(event, []).append(handler)
        return self

    def emit(self, event: str, *args) -> bool:
        handlers = list(self.listeners.get(event, []))
        for handler in handlers:
            handler(*args)
        return bool(handlers)

    def remove_listener(self, event: str, handler: Callable) -> 'EventEmitter':
        if handler in self.listeners.get(event, []):
            self.listeners[event].remove(handler)
        return self

    removeListener = remove_listener


def child_process_module(shell) -> SimpleNamespace:
    def exec_(command: str, callback: Optional[Callable] = None) -> ShellResult:
        result = shell.execute(command)
        if callback is not None:
            error = None if result.ok else ToolFailure(result.stderr)
            callback(error, result.stdout, result.stderr)
        return result

    def exec_sync(command: str) -> str:
        result = shell.execute(command)
        if not result.ok:
            raise ToolFailure(f"Command failed: {command}\n{result.stderr}")
        return result.stdout

    return SimpleNamespace(exec=exec_, execSync=exec_sync)


def util_module(shell) -> SimpleNamespace:
    def promisify(fn: Callable) -> Callable:
        """Call a callback-style function and return its result directly"""
        def call(*args):
            outcome = {}

            def callback(err, result=None, *rest):
                outcome['err'] = err
                outcome['result'] = result

            fn(*args, callback)
            err = outcome.get('err')
            if err:
                raise err if isinstance(err, BaseException) else ScriptError(str(err))
            return outcome.get('result')
        return call

    return SimpleNamespace(
        promisify=promisify,
        format=lambda *values: _join(values),
        inspect=repr,
    )


CORE_MODULES = {
    'path': path_module,
    'os': os_module,
    'fs': fs_module,
    'events': lambda shell: SimpleNamespace(EventEmitter=EventEmitter),
    'child_process': child_process_module,
    'util': util_module,
}


class ModuleResolver:
    """Maps a module name to a module object for one interpreter"""

    def __init__(self, shell, ttl: float = 5.0, maxsize: int = 128):
        self.shell = shell
        self.factories: Dict[str, Callable[[], Any]] = {}
        self.cache = TTLCache(maxsize=maxsize, ttl=ttl)
        self.lock = threading.RLock()

        for name, factory in CORE_MODULES.items():
            self.register(name, lambda factory=factory: factory(self.shell))
        self.register('fs/promises', lambda: fs_module(self.shell).promises)
        for name in PASSTHROUGH_MODULES:
            self.register(name, lambda name=name: public_namespace(importlib.import_module(name)))

    def register(self, name: str, factory: Callable[[], Any]):
        """Register (or replace) a module factory"""
        with self.lock:
            self.factories[name] = factory
            self.cache.pop(name, None)

    def resolve(self, name: str):
        with self.lock:
            if name in self.cache:
                return self.cache[name]

            factory = self.factories.get(name)
            module = factory() if factory else self._resolve_package(name)
            self.cache[name] = module
            return module

    def _resolve_package(self, name: str):
        packages = self.shell.packages
        if packages is None:
            raise ScriptError(f"Package '{name}' not found. Run 'apm install {name}' first.")

        if packages.get(name) is None:
            try:
                packages.install(name)
            except PackageError as e:
                logger.debug(f"Auto-install of {name} failed: {e}")
                raise ScriptError(
                    f"Package '{name}' not found. Run 'apm install {name}' first.") from e

        try:
            return public_namespace(packages.load(name))
        except PackageError as e:
            raise ScriptError(str(e)) from e


class ScriptRuntime:
    """Runs one script with captured console output"""

    def __init__(self, shell, resolver: ModuleResolver):
        self.shell = shell
        self.resolver = resolver

    def _globals(self, logs: List[str], argv: List[str]) -> Dict[str, Any]:
        def log_with(prefix: str):
            return lambda *values: logs.append(prefix + _join(values))

        def capture_print(*values, sep=' ', end='\n', file=None, flush=False):
            logs.append(sep.join(str(v) for v in values))

        def sandbox_import(name, globals=None, locals=None, fromlist=(), level=0):
            if level:
                raise ScriptError('relative imports are not supported')
            return self.resolver.resolve(name)

        def exit_(code: int = 0):
            raise ScriptExit(code)

        safe = {name: getattr(builtins, name) for name in SAFE_BUILTINS}
        safe['print'] = capture_print
        safe['getattr'] = guarded_getattr
        safe['hasattr'] = guarded_hasattr
        safe['setattr'] = guarded_setattr
        safe['__import__'] = sandbox_import

        module = SimpleNamespace(exports={})
        return {
            '__builtins__': safe,
            '__name__': '__main__',
            'console': SimpleNamespace(
                log=log_with(''),
                error=log_with('[ERR] '),
                warn=log_with('[WARN] '),
                info=log_with('[INFO] '),
            ),
            'process': SimpleNamespace(
                env=dict(self.shell.env),
                cwd=lambda: self.shell.cwd,
                argv=['node'] + list(argv),
                exit=exit_,
                platform='linux',
                version='v20.11.0',
            ),
            'require': self.resolver.resolve,
            'module': module,
            'exports': module.exports,
        }

    def run(self, code: str, argv: List[str], filename: str = '<script>') -> ShellResult:
        logs: List[str] = []
        scope = self._globals(logs, argv)
        try:
            tree = ast.parse(code, filename)
            AttributeGuard().visit(tree)
            exec(compile(tree, filename, 'exec'), scope)
        except ScriptExit as e:
            if e.code == 0:
                return ShellResult.success('\n'.join(logs))
            return ShellResult.error(f"Runtime Error: {e}", e.code, stdout='\n'.join(logs))
        except Exception as e:
            logger.debug(f"Script {filename} failed: {e}")
            return ShellResult.error(f"Runtime Error: {e}", 1, stdout='\n'.join(logs))
        return ShellResult.success('\n'.join(logs))
