"""
Embedded version control engine

A small git-compatible object store that reaches storage only through
GitFsAdapter. Objects are real git loose objects (zlib-compressed
"<type> <len>\\0<body>", addressed by SHA-1), so commit ids match what git
would compute for the same trees. The stage is kept as a JSON document at
.git/index.

Status rows follow the (head, workdir, stage) encoding:

    head:    0 absent, 1 present
    workdir: 0 absent, 1 identical to HEAD, 2 different from HEAD
    stage:   0 absent, 1 identical to HEAD, 2 identical to workdir,
             3 different from both
"""

import json
import zlib
import hashlib
import logging
import posixpath
import time
import functools
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..exceptions import VcsEnoent, VcsError
from .adapter import GitFsAdapter

logger = logging.getLogger('AOS.vcs.engine')

GIT_DIR = '.git'
FILE_MODE = b'100644'
TREE_MODE = b'40000'


@dataclass(frozen=True)
class CommitInfo:
    """A decoded commit object"""
    oid: str
    tree: str
    parents: Tuple[str, ...]
    author_name: str
    author_email: str
    timestamp: int
    message: str


StatusRow = Tuple[str, int, int, int]


def locked(method):
    """Run a multi-step repository operation under the filesystem lock"""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.lock:
            return method(self, *args, **kwargs)
    return wrapper


def hash_object(obj_type: str, body: bytes) -> Tuple[str, bytes]:
    store = f"{obj_type} {len(body)}\0".encode('ascii') + body
    return hashlib.sha1(store).hexdigest(), store


class GitEngine:
    """Repository operations over a POSIX-style adapter"""

    def __init__(self, fs: GitFsAdapter, default_branch: str = 'main',
                 clock: Callable[[], float] = time.time):
        self.fs = fs
        self.default_branch = default_branch
        self.clock = clock
        # shared with the VFS so no other tree mutation interleaves
        self.lock = fs.vfs.lock

    # === Layout ===

    def _git(self, dir: str, *parts: str) -> str:
        return posixpath.join(dir, GIT_DIR, *parts)

    def _read_text(self, path: str) -> Optional[str]:
        try:
            return self.fs.read_file(path, 'utf-8')
        except VcsEnoent:
            return None

    def is_repository(self, dir: str) -> bool:
        return self.fs.exists(self._git(dir, 'HEAD'))

    def find_root(self, start: str) -> Optional[str]:
        """Nearest directory at or above start holding a repository"""
        current = posixpath.normpath(start)
        while True:
            if self.is_repository(current):
                return current
            if current == '/':
                return None
            current = posixpath.dirname(current)

    def _require_repository(self, dir: str):
        if not self.is_repository(dir):
            raise VcsError(f"not a git repository: {dir}")

    # === Init ===

    @locked
    def init(self, dir: str) -> bool:
        """Create repository metadata. Returns False if it already existed."""
        if self.fs.exists(self._git(dir, 'config')):
            return False
        for sub in ('objects', 'refs/heads', 'refs/tags'):
            self.fs.mkdir(self._git(dir, sub))
        self.fs.write_file(self._git(dir, 'config'),
                           '[core]\n\trepositoryformatversion = 0\n'
                           '\tfilemode = false\n\tbare = false\n')
        self.fs.write_file(self._git(dir, 'HEAD'), f"ref: refs/heads/{self.default_branch}\n")
        logger.info(f"Initialized repository in {dir}")
        return True

    # === Objects ===

    def _object_path(self, dir: str, oid: str) -> str:
        return self._git(dir, 'objects', oid[:2], oid[2:])

    def write_object(self, dir: str, obj_type: str, body: bytes) -> str:
        oid, store = hash_object(obj_type, body)
        path = self._object_path(dir, oid)
        if not self.fs.exists(path):
            self.fs.write_file(path, zlib.compress(store))
        return oid

    def read_object(self, dir: str, oid: str) -> Tuple[str, bytes]:
        try:
            raw = zlib.decompress(self.fs.read_file(self._object_path(dir, oid)))
        except VcsEnoent:
            raise VcsError(f"Could not find object {oid}")
        except zlib.error as e:
            raise VcsError(f"Corrupt object {oid}: {e}")
        header, _, body = raw.partition(b'\0')
        obj_type, _, _ = header.decode('ascii').partition(' ')
        return obj_type, body

    # === Refs ===

    def _head_ref(self, dir: str) -> str:
        head = self._read_text(self._git(dir, 'HEAD'))
        if head is None:
            raise VcsError(f"not a git repository: {dir}")
        head = head.strip()
        if not head.startswith('ref: '):
            raise VcsError("detached HEAD is not supported")
        return head[5:]

    def resolve_head(self, dir: str) -> Optional[str]:
        """Commit id HEAD points at, or None before the first commit"""
        oid = self._read_text(self._git(dir, self._head_ref(dir)))
        return oid.strip() if oid else None

    def current_branch(self, dir: str) -> str:
        return self._head_ref(dir).rsplit('/', 1)[-1]

    # === Index ===

    def read_index(self, dir: str) -> Dict[str, str]:
        text = self._read_text(self._git(dir, 'index'))
        if text is None:
            return {}
        try:
            return dict(json.loads(text)['entries'])
        except (ValueError, KeyError, TypeError) as e:
            raise VcsError(f"Corrupt index in {dir}: {e}")

    def write_index(self, dir: str, entries: Dict[str, str]):
        doc = {'version': 1, 'entries': dict(sorted(entries.items()))}
        self.fs.write_file(self._git(dir, 'index'), json.dumps(doc, indent=2))

    # === Worktree ===

    def list_worktree(self, dir: str, sub: str = '') -> List[str]:
        """Repository-relative paths of every file under dir/sub"""
        files = []
        base = posixpath.join(dir, sub) if sub else dir
        for name in self.fs.readdir(base):
            if name == GIT_DIR:
                continue
            rel = posixpath.join(sub, name) if sub else name
            if self.fs.stat(posixpath.join(dir, rel)).is_directory():
                files.extend(self.list_worktree(dir, rel))
            else:
                files.append(rel)
        return files

    def _worktree_oids(self, dir: str) -> Dict[str, str]:
        oids = {}
        for rel in self.list_worktree(dir):
            content = self.fs.read_file(posixpath.join(dir, rel))
            oids[rel] = hash_object('blob', content)[0]
        return oids

    # === Trees ===

    def write_tree(self, dir: str, entries: Dict[str, str]) -> str:
        root: Dict = {}
        for path, oid in entries.items():
            node = root
            parts = path.split('/')
            for part in parts[:-1]:
                node = node.setdefault(part, {})
            node[parts[-1]] = oid
        return self._write_tree_node(dir, root)

    def _write_tree_node(self, dir: str, node: Dict) -> str:
        items = []
        for name, value in node.items():
            if isinstance(value, dict):
                items.append((name + '/', TREE_MODE, name, self._write_tree_node(dir, value)))
            else:
                items.append((name, FILE_MODE, name, value))
        # git orders tree entries with directories compared as "name/"
        items.sort(key=lambda item: item[0].encode('utf-8'))
        body = b''.join(mode + b' ' + name.encode('utf-8') + b'\0' + bytes.fromhex(oid)
                        for _, mode, name, oid in items)
        return self.write_object(dir, 'tree', body)

    def read_tree(self, dir: str, oid: str, prefix: str = '') -> Dict[str, str]:
        """Flatten a tree into {path: blob oid}"""
        obj_type, body = self.read_object(dir, oid)
        if obj_type != 'tree':
            raise VcsError(f"Object {oid} is a {obj_type}, not a tree")
        files = {}
        pos = 0
        while pos < len(body):
            space = body.index(b' ', pos)
            nul = body.index(b'\0', space)
            mode = body[pos:space]
            name = body[space + 1:nul].decode('utf-8')
            child = body[nul + 1:nul + 21].hex()
            pos = nul + 21
            path = f"{prefix}{name}"
            if mode == TREE_MODE:
                files.update(self.read_tree(dir, child, path + '/'))
            else:
                files[path] = child
        return files

    def head_files(self, dir: str) -> Dict[str, str]:
        head = self.resolve_head(dir)
        if head is None:
            return {}
        return self.read_tree(dir, self.read_commit(dir, head).tree)

    # === Commits ===

    def read_commit(self, dir: str, oid: str) -> CommitInfo:
        obj_type, body = self.read_object(dir, oid)
        if obj_type != 'commit':
            raise VcsError(f"Object {oid} is a {obj_type}, not a commit")
        headers, _, message = body.decode('utf-8').partition('\n\n')
        tree = ''
        parents = []
        name, email, timestamp = '', '', 0
        for line in headers.split('\n'):
            key, _, value = line.partition(' ')
            if key == 'tree':
                tree = value
            elif key == 'parent':
                parents.append(value)
            elif key == 'author':
                ident, _, rest = value.rpartition('> ')
                name, _, email = ident.partition(' <')
                timestamp = int(rest.split(' ')[0])
        return CommitInfo(oid, tree, tuple(parents), name, email, timestamp, message.rstrip('\n'))

    @locked
    def commit(self, dir: str, message: str, author_name: str, author_email: str) -> str:
        self._require_repository(dir)
        ref = self._head_ref(dir)
        parent = self.resolve_head(dir)
        tree = self.write_tree(dir, self.read_index(dir))

        timestamp = int(self.clock())
        ident = f"{author_name} <{author_email}> {timestamp} +0000"
        lines = [f"tree {tree}"]
        if parent:
            lines.append(f"parent {parent}")
        lines.append(f"author {ident}")
        lines.append(f"committer {ident}")
        body = '\n'.join(lines) + '\n\n' + message.rstrip('\n') + '\n'

        oid = self.write_object(dir, 'commit', body.encode('utf-8'))
        self.fs.write_file(self._git(dir, ref), oid + '\n')
        logger.info(f"Committed {oid[:7]} on {ref}")
        return oid

    @locked
    def log(self, dir: str, depth: int = 10) -> List[CommitInfo]:
        """Commits reachable from HEAD through first parents, newest first"""
        self._require_repository(dir)
        oid = self.resolve_head(dir)
        if oid is None:
            raise VcsError(f"Could not find {self._head_ref(dir)}.")
        entries = []
        while oid and len(entries) < depth:
            info = self.read_commit(dir, oid)
            entries.append(info)
            oid = info.parents[0] if info.parents else None
        return entries

    # === Stage ===

    @locked
    def add(self, dir: str, filepath: str = '.') -> List[str]:
        """Stage files; '.' stages the whole worktree. Returns staged paths."""
        self._require_repository(dir)
        rel = posixpath.normpath(filepath).lstrip('/') if filepath else '.'
        if rel in ('.', ''):
            paths = self.list_worktree(dir)
        else:
            info = self.fs.stat(posixpath.join(dir, rel))
            paths = self.list_worktree(dir, rel) if info.is_directory() else [rel]

        index = self.read_index(dir)
        for path in paths:
            content = self.fs.read_file(posixpath.join(dir, path))
            index[path] = self.write_object(dir, 'blob', content)
        self.write_index(dir, index)
        return paths

    @locked
    def remove(self, dir: str, filepath: str):
        """Drop a path from the stage and the worktree"""
        self._require_repository(dir)
        rel = posixpath.normpath(filepath).lstrip('/')
        index = self.read_index(dir)
        if rel not in index:
            raise VcsError(f"pathspec '{filepath}' did not match any files")
        del index[rel]
        self.write_index(dir, index)
        target = posixpath.join(dir, rel)
        if self.fs.exists(target):
            self.fs.unlink(target)

    @locked
    def status_matrix(self, dir: str) -> List[StatusRow]:
        self._require_repository(dir)
        head = self.head_files(dir)
        work = self._worktree_oids(dir)
        stage = self.read_index(dir)

        rows = []
        for path in sorted(set(head) | set(work) | set(stage)):
            h_oid, w_oid, s_oid = head.get(path), work.get(path), stage.get(path)

            h = 1 if h_oid else 0
            if w_oid is None:
                w = 0
            else:
                w = 1 if w_oid == h_oid else 2
            if s_oid is None:
                s = 0
            elif s_oid == h_oid:
                s = 1
            elif s_oid == w_oid:
                s = 2
            else:
                s = 3
            rows.append((path, h, w, s))
        return rows
