"""
Keyed blob storage for persisted images
"""

import os
import logging
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

logger = logging.getLogger('AOS.vfs.storage')


class BlobStore(ABC):
    """A keyed record store holding whole serialized documents"""

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """Return the record for key, or None when absent"""

    @abstractmethod
    def save(self, key: str, data: str) -> None:
        """Replace the record for key"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the record for key if present"""


class MemoryBlobStore(BlobStore):
    """Process-local store, used for tests and ephemeral sessions"""

    def __init__(self):
        self.records: Dict[str, str] = {}
        self.lock = threading.Lock()

    def load(self, key: str) -> Optional[str]:
        with self.lock:
            return self.records.get(key)

    def save(self, key: str, data: str) -> None:
        with self.lock:
            self.records[key] = data

    def delete(self, key: str) -> None:
        with self.lock:
            self.records.pop(key, None)


class FileBlobStore(BlobStore):
    """One JSON file per key inside a host directory.

    Writes go to a temporary file in the same directory that is then renamed
    over the record, so a record on disk is always either the old or the new
    document.
    """

    def __init__(self, directory: str):
        self.directory = os.path.abspath(os.path.expanduser(directory))

    def _path(self, key: str) -> str:
        if not key or '/' in key or os.sep in key or key.startswith('.'):
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self.directory, f"{key}.json")

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def save(self, key: str, data: str) -> None:
        path = self._path(key)
        os.makedirs(self.directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{key}.", dir=self.directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Saved record {key} ({len(data)} bytes)")

    def delete(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.unlink(path)
