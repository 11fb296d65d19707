"""
AOS Virtual File System
"""

from .filesystem import VirtualFileSystem, split_path, DEFAULT_STORAGE_KEY
from .nodes import FileStat, FileNode, DirectoryNode, NodeArena, FILE, DIRECTORY, infer_language
from .storage import BlobStore, MemoryBlobStore, FileBlobStore

__all__ = [
    'VirtualFileSystem',
    'FileStat',
    'FileNode',
    'DirectoryNode',
    'NodeArena',
    'BlobStore',
    'MemoryBlobStore',
    'FileBlobStore',
    'split_path',
    'infer_language',
    'DEFAULT_STORAGE_KEY',
    'FILE',
    'DIRECTORY',
]
