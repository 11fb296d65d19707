"""
Version control bridge

Result-typed façade over GitEngine. Nothing raised by the engine or the
filesystem crosses this boundary: every operation returns a VcsResult that
callers (the shell's git command, UI panels) turn into their own error
reporting.
"""

import time
import logging
import posixpath
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ..events import EventBus, SHELL_OUTPUT
from ..exceptions import AOSError
from ..vfs import VirtualFileSystem
from . import catalog
from .adapter import GitFsAdapter
from .engine import GitEngine

logger = logging.getLogger('AOS.vcs')

NEW = 'new'
MODIFIED = 'modified'
DELETED = 'deleted'
UNMODIFIED = 'unmodified'


@dataclass
class VcsResult:
    """Outcome of a bridge operation"""
    ok: bool
    value: Any = None
    error: Optional[str] = None
    # unrecoverable (e.g. reading history of a repository without commits)
    fatal: bool = False

    @classmethod
    def success(cls, value: Any = None) -> 'VcsResult':
        return cls(True, value)

    @classmethod
    def failure(cls, error: str, fatal: bool = False) -> 'VcsResult':
        return cls(False, None, error, fatal)


@dataclass(frozen=True)
class StatusEntry:
    """One row of the status matrix with its human label"""
    path: str
    label: str
    head: int
    workdir: int
    stage: int


@dataclass(frozen=True)
class GitStatusItem:
    path: str
    status: str
    staged: bool


@dataclass(frozen=True)
class LogEntry:
    oid: str
    author: str
    email: str
    timestamp: int
    message: str


def status_label(head: int, workdir: int, stage: int) -> str:
    """Human state for a (head, workdir, stage) triple"""
    if head == 0 and workdir == 2:
        return 'New'
    if head == 1 and workdir == 2:
        return 'Modified'
    if head == 1 and workdir == 0:
        return 'Deleted'
    if head == 1 and workdir == 1 and stage == 1:
        return 'Unmodified'
    return f"Unknown ({head},{workdir},{stage})"


class VcsBridge:
    """Repository operations against the VFS"""

    def __init__(self, vfs: VirtualFileSystem, event_bus: Optional[EventBus] = None,
                 author_name: str = 'Aussie Agent', author_email: str = 'agent@aussie.os',
                 default_branch: str = 'main', log_depth: int = 10,
                 clock: Callable[[], float] = time.time):
        self.vfs = vfs
        self.events = event_bus or vfs.events
        self.fs = GitFsAdapter(vfs)
        self.engine = GitEngine(self.fs, default_branch=default_branch, clock=clock)
        self.author_name = author_name
        self.author_email = author_email
        self.log_depth = log_depth

    def _output(self, line: str):
        self.events.emit(SHELL_OUTPUT, line)

    def find_root(self, start: str) -> Optional[str]:
        try:
            return self.engine.find_root(start)
        except AOSError as e:
            logger.debug(f"find_root({start}) failed: {e}")
            return None

    def init(self, dir: str) -> VcsResult:
        try:
            created = self.engine.init(dir)
        except (AOSError, ValueError) as e:
            logger.error(f"git init {dir} failed: {e}")
            return VcsResult.failure(str(e))
        if created:
            self._output(f"Initialized empty Git repository in {dir}/.git/")
        else:
            self._output(f"Reinitialized existing Git repository in {dir}/.git/")
        return VcsResult.success(created)

    def clone(self, url: str, dir: str) -> VcsResult:
        """Hydrate dir from the catalog; no network fetch ever happens"""
        entry = catalog.lookup(url)
        if entry is None:
            logger.warning(f"Refusing to clone uncached repository {url}")
            return VcsResult.failure(
                f"No proxy available for external git clone: '{url}' is not cached "
                f"(only {', '.join(e.name for e in catalog.CATALOG)} is pre-cached)")

        if self.vfs.exists(dir) and (not self.vfs.is_dir(dir) or self.vfs.read_dir(dir)):
            return VcsResult.failure(
                f"destination path '{dir}' already exists and is not an empty directory")

        self._output(f"Cloning into '{dir}'...")
        try:
            self.engine.init(dir)
            for filepath, content in entry.files.items():
                self.fs.write_file(posixpath.join(dir, filepath), content)
            self.engine.add(dir, '.')
            oid = self.engine.commit(dir, entry.message, self.author_name, self.author_email)
        except (AOSError, ValueError) as e:
            logger.error(f"git clone {url} failed: {e}")
            return VcsResult.failure(str(e))

        count = len(entry.files)
        self._output(f"remote: Enumerating objects: {count}, done.")
        self._output(f"remote: Total {count} (delta 0), reused 0 (delta 0), pack-reused {count}")
        self._output(f"Unpacking objects: 100% ({count}/{count}), done.")
        logger.info(f"Cloned {url} into {dir} at {oid[:7]}")
        return VcsResult.success(oid)

    def status(self, dir: str, include_unmodified: bool = False) -> VcsResult:
        """Labelled status rows; unmodified paths are dropped by default"""
        try:
            rows = self.engine.status_matrix(dir)
        except (AOSError, ValueError) as e:
            return VcsResult.failure(str(e))
        entries = [StatusEntry(path, status_label(h, w, s), h, w, s) for path, h, w, s in rows]
        if not include_unmodified:
            entries = [e for e in entries if e.label != 'Unmodified']
        return VcsResult.success(entries)

    def status_items(self, dir: str) -> VcsResult:
        """Changed paths as GitStatusItem records"""
        try:
            rows = self.engine.status_matrix(dir)
        except (AOSError, ValueError) as e:
            return VcsResult.failure(str(e))

        items: List[GitStatusItem] = []
        for path, h, w, s in rows:
            if h == 1 and w == 1 and s == 1:
                continue
            kind = UNMODIFIED
            if h == 0 and w == 2:
                kind = NEW
            elif h == 1 and w == 2:
                kind = MODIFIED
            elif h == 1 and w == 0:
                kind = DELETED
            # approximation: a path staged and then edited again (stage 3) reads as unstaged
            items.append(GitStatusItem(path, kind, s == 2))
        return VcsResult.success(items)

    def add(self, dir: str, filepath: str = '.') -> VcsResult:
        try:
            return VcsResult.success(self.engine.add(dir, filepath))
        except (AOSError, ValueError) as e:
            return VcsResult.failure(str(e))

    def remove(self, dir: str, filepath: str) -> VcsResult:
        try:
            self.engine.remove(dir, filepath)
            return VcsResult.success(filepath)
        except (AOSError, ValueError) as e:
            return VcsResult.failure(str(e))

    def commit(self, dir: str, message: str) -> VcsResult:
        try:
            oid = self.engine.commit(dir, message, self.author_name, self.author_email)
            branch = self.engine.current_branch(dir)
        except (AOSError, ValueError) as e:
            return VcsResult.failure(str(e))
        return VcsResult.success({'oid': oid, 'branch': branch, 'message': message})

    def log(self, dir: str, depth: Optional[int] = None) -> VcsResult:
        try:
            commits = self.engine.log(dir, depth or self.log_depth)
        except (AOSError, ValueError) as e:
            return VcsResult.failure(str(e), fatal=True)
        return VcsResult.success([
            LogEntry(c.oid, c.author_name, c.author_email, c.timestamp, c.message)
            for c in commits
        ])
