"""
VirtualFileSystem - the in-memory node tree and its persisted image
"""

import time
import logging
import threading
from typing import Callable, Iterator, List, Optional, Union

from ..events import EventBus, FILE_CHANGE
from ..exceptions import (
    CorruptImage, FileSystemError, InvalidPath, IsADirectory,
    NotADirectory, PathNotFound
)
from . import serialization
from .nodes import DirectoryNode, FileNode, FileStat, NodeArena, join_path
from .storage import BlobStore, MemoryBlobStore

logger = logging.getLogger('AOS.vfs')

DEFAULT_STORAGE_KEY = 'aussie_os_fs_v2'

DESKTOP_SHORTCUTS = [
    ('My Projects.lnk', 'app:projects'),
    ('Browser.lnk', 'app:browser'),
    ('Jules Flow.lnk', 'app:flow'),
    ('Terminal.lnk', 'app:code'),
    ('GitHub.lnk', 'app:github'),
    ('Deploy.lnk', 'app:deploy'),
    ('README.txt', 'Welcome to Aussie OS.\nThis is your desktop environment.'),
]

Content = Union[bytes, bytearray, str]


def split_path(path: str) -> List[str]:
    """Split an absolute VFS path into its segments"""
    if not isinstance(path, str):
        raise InvalidPath(f"Path must be a string, got {type(path).__name__}")
    if not path.startswith('/'):
        raise InvalidPath(f"Path must be absolute: {path!r}")
    if '\x00' in path:
        raise InvalidPath(f"Path contains a NUL byte: {path!r}")
    parts = [p for p in path.split('/') if p]
    for part in parts:
        if part in ('.', '..'):
            raise InvalidPath(f"Path is not normalized: {path!r}")
    return parts


def _to_bytes(content: Content) -> bytes:
    if isinstance(content, str):
        return content.encode('utf-8')
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    raise TypeError(f"File content must be str or bytes, got {type(content).__name__}")


class VirtualFileSystem:
    """
    Hierarchical file store persisted as a single blob.

    Every mutating call rewrites the whole image before returning and emits a
    'file-change' event with the affected path.
    """

    def __init__(self, store: Optional[BlobStore] = None,
                 storage_key: str = DEFAULT_STORAGE_KEY,
                 event_bus: Optional[EventBus] = None,
                 home: str = '/home/aussie',
                 clock: Callable[[], float] = time.time):
        self.store = store or MemoryBlobStore()
        self.storage_key = storage_key
        self.events = event_bus or EventBus()
        self.home = home
        self.clock = clock
        self.lock = threading.RLock()

        self.arena: NodeArena = None
        self.root: int = None

        self._load_or_create()
        self._ensure_desktop_environment()
        logger.info(f"VFS ready ({len(self.arena)} nodes)")

    # === Image lifecycle ===

    def _load_or_create(self):
        raw = self.store.load(self.storage_key)
        if raw is None:
            self._create_default_structure()
            return

        try:
            self.arena, self.root = serialization.loads(raw)
            logger.info("Loaded existing VFS image")
        except CorruptImage as e:
            backup_key = f"{self.storage_key}.corrupt"
            logger.error(f"Could not decode VFS image ({e}); saved it as '{backup_key}' and starting fresh")
            self.store.save(backup_key, raw)
            self._create_default_structure()
            self._persist()

    def _create_default_structure(self):
        now = self.clock()
        self.arena = NodeArena()
        self.root = self.arena.alloc(DirectoryNode('root', now))
        self._ensure_dirs(split_path('/workspace'), now)
        self._ensure_dirs(split_path(self.home) + ['Desktop'], now)
        logger.info("Created new VFS")

    def _ensure_desktop_environment(self):
        desktop = join_path(self.home, 'Desktop')
        if not self.exists(desktop):
            self.mkdir(desktop)
        for name, content in DESKTOP_SHORTCUTS:
            path = join_path(desktop, name)
            if not self.exists(path):
                self.write_file(path, content)

    def _persist(self):
        blob = serialization.dumps(self.arena, self.root)
        try:
            self.store.save(self.storage_key, blob)
        except (OSError, ValueError) as e:
            raise FileSystemError(f"Failed to persist filesystem: {e}") from e

    def _changed(self, path: str):
        self._persist()
        self.events.emit(FILE_CHANGE, {'path': path})

    # === Tree helpers ===

    def _resolve(self, parts: List[str]) -> Optional[int]:
        handle = self.root
        for part in parts:
            node = self.arena.get(handle)
            if not isinstance(node, DirectoryNode):
                return None
            handle = node.child(part)
            if handle is None:
                return None
        return handle

    def _node(self, path: str):
        handle = self._resolve(split_path(path))
        return None if handle is None else self.arena.get(handle)

    def _ensure_dirs(self, parts: List[str], now: float) -> int:
        """Walk parts from the root creating missing directories"""
        handle = self.root
        walked = ''
        for part in parts:
            walked += '/' + part
            directory = self.arena.get(handle)
            child = directory.child(part)
            if child is None:
                child = self.arena.alloc(DirectoryNode(part, now))
                directory.add_child(part, child)
                directory.last_modified = now
            elif not isinstance(self.arena.get(child), DirectoryNode):
                raise NotADirectory(f"Path component is not a directory: {walked}")
            handle = child
        return handle

    # === Public API ===

    def exists(self, path: str) -> bool:
        with self.lock:
            return self._node(path) is not None

    def is_dir(self, path: str) -> bool:
        with self.lock:
            return isinstance(self._node(path), DirectoryNode)

    def is_file(self, path: str) -> bool:
        with self.lock:
            return isinstance(self._node(path), FileNode)

    def read_file(self, path: str) -> bytes:
        with self.lock:
            node = self._node(path)
            if node is None:
                raise PathNotFound(f"File not found: {path}")
            if isinstance(node, DirectoryNode):
                raise IsADirectory(f"Is a directory: {path}")
            return node.content

    def read_text(self, path: str) -> str:
        return self.read_file(path).decode('utf-8', errors='replace')

    def write_file(self, path: str, content: Content, append: bool = False):
        """Write a file, creating missing parent directories"""
        parts = split_path(path)
        if not parts:
            raise InvalidPath(f"Invalid path: {path}")
        data = _to_bytes(content)

        with self.lock:
            now = self.clock()
            directory = self.arena.get(self._ensure_dirs(parts[:-1], now))
            name = parts[-1]
            existing = directory.child(name)

            if existing is None:
                directory.add_child(name, self.arena.alloc(FileNode(name, data, now)))
                directory.last_modified = now
            else:
                node = self.arena.get(existing)
                if isinstance(node, DirectoryNode):
                    raise IsADirectory(f"Is a directory: {path}")
                node.content = node.content + data if append else data
                node.last_modified = now

            logger.debug(f"Wrote {len(data)} bytes to {path}")
            self._changed(path)

    def mkdir(self, path: str):
        """Create a directory and any missing parents; existing is fine"""
        parts = split_path(path)
        with self.lock:
            before = len(self.arena)
            self._ensure_dirs(parts, self.clock())
            if len(self.arena) != before:
                logger.debug(f"Created directory: {path}")
                self._changed(path)

    def read_dir(self, path: str) -> List[FileStat]:
        with self.lock:
            node = self._node(path)
            if node is None:
                raise PathNotFound(f"Path not found: {path}")
            if not isinstance(node, DirectoryNode):
                raise NotADirectory(f"Not a directory: {path}")
            base = '/' + '/'.join(split_path(path))
            return [FileStat.from_node(self.arena.get(handle), join_path(base, name))
                    for name, handle in node.children()]

    def stat(self, path: str) -> FileStat:
        with self.lock:
            node = self._node(path)
            if node is None:
                raise PathNotFound(f"Path not found: {path}")
            return FileStat.from_node(node, '/' + '/'.join(split_path(path)))

    def delete(self, path: str) -> bool:
        """Remove a node and its subtree. Returns False when nothing existed."""
        parts = split_path(path)
        if not parts:
            raise InvalidPath("Cannot delete the root directory")

        with self.lock:
            parent_handle = self._resolve(parts[:-1])
            if parent_handle is None:
                return False
            parent = self.arena.get(parent_handle)
            if not isinstance(parent, DirectoryNode) or parent.child(parts[-1]) is None:
                return False

            self.arena.release(parent.remove_child(parts[-1]))
            parent.last_modified = self.clock()
            logger.debug(f"Deleted {path}")
            self._changed(path)
            return True

    def rmdir(self, path: str) -> bool:
        return self.delete(path)

    def walk(self, path: str = '/') -> Iterator[str]:
        """Yield every file path below path, depth first in child order"""
        with self.lock:
            parts = split_path(path)
            handle = self._resolve(parts)
            if handle is None:
                raise PathNotFound(f"Path not found: {path}")
            pending = [('/' + '/'.join(parts), handle)]
            files = []
            while pending:
                current, h = pending.pop()
                node = self.arena.get(h)
                if isinstance(node, FileNode):
                    files.append(current)
                    continue
                for name, child in reversed(list(node.children())):
                    pending.append((join_path(current, name), child))
        return iter(files)

    def serialize(self) -> str:
        """The persisted image of the current tree"""
        with self.lock:
            return serialization.dumps(self.arena, self.root)

    def subscribe(self, handler: Callable) -> Callable[[], None]:
        """Subscribe to 'file-change' notifications"""
        return self.events.subscribe(FILE_CHANGE, handler)
