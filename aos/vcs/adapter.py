"""
POSIX-style storage adapter over the VFS

The version control engine only ever touches storage through this object.
Missing paths surface as VcsEnoent so the engine can tell "does not exist
yet" apart from a hard failure.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from ..exceptions import (
    FileSystemError, InvalidPath, IsADirectory, NotADirectory,
    PathNotFound, VcsEnoent, VcsFsError
)
from ..vfs import VirtualFileSystem, DIRECTORY, FILE

logger = logging.getLogger('AOS.vcs.adapter')

S_IFREG_644 = 0o100644
S_IFDIR_755 = 0o40755


@dataclass(frozen=True)
class GitStat:
    """stat()/lstat() descriptor"""
    kind: str
    size: int
    mtime_ms: float
    ctime_ms: float
    mode: int
    uid: int = 0
    gid: int = 0
    ino: int = 0

    @property
    def type(self) -> int:
        return 1 if self.kind == FILE else 2

    def is_file(self) -> bool:
        return self.kind == FILE

    def is_directory(self) -> bool:
        return self.kind == DIRECTORY

    def is_symbolic_link(self) -> bool:
        return False


def _enoent(op: str, path: str) -> VcsEnoent:
    return VcsEnoent(f"ENOENT: no such file or directory, {op} '{path}'", path=path)


class GitFsAdapter:
    """readFile/writeFile/unlink/readdir/mkdir/rmdir/stat/lstat over a VFS"""

    def __init__(self, vfs: VirtualFileSystem):
        self.vfs = vfs

    def read_file(self, path: str, encoding: Optional[str] = None) -> Union[bytes, str]:
        try:
            data = self.vfs.read_file(path)
        except (PathNotFound, InvalidPath):
            raise _enoent('open', path)
        except IsADirectory:
            raise VcsFsError(f"EISDIR: illegal operation on a directory, read '{path}'",
                             code='EISDIR', path=path)
        return data.decode(encoding) if encoding else data

    def write_file(self, path: str, data: Union[bytes, str]):
        try:
            self.vfs.write_file(path, data)
        except NotADirectory as e:
            raise VcsFsError(f"ENOTDIR: {e}", code='ENOTDIR', path=path)
        except IsADirectory as e:
            raise VcsFsError(f"EISDIR: {e}", code='EISDIR', path=path)
        except FileSystemError as e:
            raise VcsFsError(str(e), path=path)

    def unlink(self, path: str):
        if not self.vfs.exists(path):
            raise _enoent('unlink', path)
        self.vfs.delete(path)

    def readdir(self, path: str) -> List[str]:
        try:
            return [entry.name for entry in self.vfs.read_dir(path)]
        except (PathNotFound, InvalidPath):
            raise _enoent('scandir', path)
        except NotADirectory:
            raise VcsFsError(f"ENOTDIR: not a directory, scandir '{path}'",
                             code='ENOTDIR', path=path)

    def mkdir(self, path: str):
        try:
            self.vfs.mkdir(path)
        except NotADirectory as e:
            raise VcsFsError(f"ENOTDIR: {e}", code='ENOTDIR', path=path)

    def rmdir(self, path: str):
        if not self.vfs.exists(path):
            raise _enoent('rmdir', path)
        if not self.vfs.is_dir(path):
            raise VcsFsError(f"ENOTDIR: not a directory, rmdir '{path}'",
                             code='ENOTDIR', path=path)
        self.vfs.rmdir(path)

    def stat(self, path: str) -> GitStat:
        try:
            info = self.vfs.stat(path)
        except (PathNotFound, InvalidPath):
            raise _enoent('stat', path)
        return GitStat(
            kind=info.kind,
            size=info.size,
            mtime_ms=info.last_modified * 1000,
            ctime_ms=info.last_modified * 1000,
            mode=S_IFREG_644 if info.kind == FILE else S_IFDIR_755,
        )

    def lstat(self, path: str) -> GitStat:
        # no symbolic links in the VFS
        return self.stat(path)

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
            return True
        except VcsEnoent:
            return False
