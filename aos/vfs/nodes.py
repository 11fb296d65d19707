"""
VFS node types and the node arena

Every node lives in a slot of a NodeArena and is addressed by an integer
handle. A directory keeps the insertion order of its children as a list of
names next to a name -> handle index, so iteration order never depends on
object identity and a node is reachable only through its parent.
"""

import time
import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Union

FILE = 'file'
DIRECTORY = 'directory'

LANGUAGES = {
    'ts': 'typescript', 'tsx': 'typescript',
    'js': 'javascript', 'jsx': 'javascript',
    'py': 'python',
    'md': 'markdown',
    'json': 'json',
    'html': 'html',
    'css': 'css',
    'rs': 'rust',
}


def infer_language(name: str) -> str:
    """Map a file name to an editor language id"""
    ext = name.rsplit('.', 1)[-1].lower() if '.' in name else ''
    return LANGUAGES.get(ext, 'plaintext')


@dataclass
class FileNode:
    """A file in the VFS"""
    name: str
    content: bytes = b''
    last_modified: float = field(default_factory=time.time)

    kind = FILE

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class DirectoryNode:
    """A directory in the VFS"""
    name: str
    last_modified: float = field(default_factory=time.time)
    child_keys: List[str] = field(default_factory=list)
    child_handles: Dict[str, int] = field(default_factory=dict)

    kind = DIRECTORY

    @property
    def size(self) -> int:
        return 0

    def child(self, name: str) -> Optional[int]:
        return self.child_handles.get(name)

    def add_child(self, name: str, handle: int):
        if name in self.child_handles:
            raise KeyError(f"duplicate child name: {name}")
        self.child_keys.append(name)
        self.child_handles[name] = handle

    def remove_child(self, name: str) -> int:
        handle = self.child_handles.pop(name)
        self.child_keys.remove(name)
        return handle

    def children(self) -> Iterator[Tuple[str, int]]:
        for name in self.child_keys:
            yield name, self.child_handles[name]

    def __len__(self):
        return len(self.child_keys)


Node = Union[FileNode, DirectoryNode]


class NodeArena:
    """Slot storage for nodes, addressed by integer handles"""

    def __init__(self):
        self.slots: List[Optional[Node]] = []
        self.free: List[int] = []

    def alloc(self, node: Node) -> int:
        if self.free:
            handle = self.free.pop()
            self.slots[handle] = node
        else:
            handle = len(self.slots)
            self.slots.append(node)
        return handle

    def get(self, handle: int) -> Node:
        node = self.slots[handle]
        if node is None:
            raise KeyError(f"stale node handle: {handle}")
        return node

    def release(self, handle: int):
        """Free a node and, for directories, its entire subtree"""
        pending = [handle]
        while pending:
            current = pending.pop()
            node = self.slots[current]
            if isinstance(node, DirectoryNode):
                pending.extend(h for _, h in node.children())
            self.slots[current] = None
            self.free.append(current)

    def __len__(self):
        return len(self.slots) - len(self.free)


@dataclass(frozen=True)
class FileStat:
    """Read-only projection of a node, computed at query time"""
    name: str
    path: str
    kind: str
    size: int
    last_modified: float
    language: Optional[str] = None

    @property
    def is_dir(self) -> bool:
        return self.kind == DIRECTORY

    @classmethod
    def from_node(cls, node: Node, path: str) -> 'FileStat':
        return cls(
            name=node.name,
            path=path,
            kind=node.kind,
            size=node.size,
            last_modified=node.last_modified,
            language=infer_language(node.name) if node.kind == FILE else None,
        )


def join_path(parent: str, name: str) -> str:
    return posixpath.join(parent, name) if parent != '/' else '/' + name
