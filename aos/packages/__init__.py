"""
AOS package management (apm)
"""

from .manager import PackageManager, InstalledPackage, default_import_name

__all__ = ['PackageManager', 'InstalledPackage', 'default_import_name']
