"""
AOS version control: VFS storage adapter, embedded engine and bridge
"""

from .adapter import GitFsAdapter, GitStat
from .engine import GitEngine, CommitInfo
from .bridge import (
    VcsBridge, VcsResult, StatusEntry, GitStatusItem, LogEntry, status_label
)
from .catalog import CATALOG, CatalogEntry, GEMINI_FLOW_FILES

__all__ = [
    'GitFsAdapter',
    'GitStat',
    'GitEngine',
    'CommitInfo',
    'VcsBridge',
    'VcsResult',
    'StatusEntry',
    'GitStatusItem',
    'LogEntry',
    'status_label',
    'CATALOG',
    'CatalogEntry',
    'GEMINI_FLOW_FILES',
]
