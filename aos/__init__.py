"""
AOS - Aussie OS kernel

The core beneath the desktop UI: a persistent hierarchical virtual
filesystem, a command shell over it, a version control bridge that lets an
embedded git engine store its objects in the filesystem, and a task
scheduler that re-runs shell commands or agent objectives.

Example Usage:

    from aos.context import AppContext

    context = AppContext.create()
    context.shell.execute('mkdir /workspace/demo')
    context.shell.execute('echo hello > /workspace/demo/hi.txt')
    print(context.vfs.read_text('/workspace/demo/hi.txt'))
"""

__version__ = '2.1.0'
__author__ = 'Aussie OS'

from .exceptions import AOSError
from .events import EventBus
from .vfs import VirtualFileSystem
from .shell import ShellInterpreter, ShellResult
from .vcs import VcsBridge
from .scheduler import TaskScheduler

__all__ = [
    'AOSError',
    'EventBus',
    'VirtualFileSystem',
    'ShellInterpreter',
    'ShellResult',
    'VcsBridge',
    'TaskScheduler',
    '__version__',
]
