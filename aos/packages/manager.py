"""
APM - Aussie Package Manager

Installs packages by resolving them against a package index and recording
the mapping so scripts can `require` them later. The registry of installed
packages lives inside the VFS.
"""

import re
import json
import time
import logging
import importlib
from typing import Callable, Dict, Iterable, List, Optional

import requests
from pydantic import BaseModel, ValidationError

from ..exceptions import (
    FileSystemError, PackageError, PackageInstallError, PackageNotFound
)
from ..vfs import VirtualFileSystem

logger = logging.getLogger('AOS.apm')

PACKAGE_NAME = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._-]*$')


class InstalledPackage(BaseModel):
    """Registry record for an installed package"""
    name: str
    version: str = 'latest'
    source_url: str
    import_name: str
    installed_at: float = 0.0


def default_import_name(name: str) -> str:
    return name.replace('-', '_').replace('.', '_').lower()


class PackageManager:
    """Package installation side-channel"""

    def __init__(self, vfs: VirtualFileSystem,
                 index_url: str = 'https://pypi.org/pypi',
                 request_timeout: float = 10.0,
                 registry_file: str = '/var/lib/apm/packages.json',
                 session: Optional[requests.Session] = None,
                 importer: Callable = importlib.import_module,
                 allowed_imports: Iterable[str] = (),
                 clock: Callable[[], float] = time.time):
        self.vfs = vfs
        self.index_url = index_url.rstrip('/')
        self.request_timeout = request_timeout
        self.registry_file = registry_file
        self.session = session or requests.Session()
        self.importer = importer
        # host modules scripts may load; nothing by default
        self.allowed_imports = frozenset(allowed_imports)
        self.clock = clock
        self.packages: Dict[str, InstalledPackage] = {}

        self._load_registry()

    def _load_registry(self):
        if not self.vfs.exists(self.registry_file):
            return
        try:
            data = json.loads(self.vfs.read_text(self.registry_file))
            for pkg_data in data.get('packages', []):
                pkg = InstalledPackage(**pkg_data)
                self.packages[pkg.name] = pkg
            logger.debug(f"Loaded {len(self.packages)} installed packages")
        except (ValueError, TypeError, AttributeError, ValidationError, FileSystemError) as e:
            logger.error(f"Could not read package registry {self.registry_file}: {e}")

    def _save_registry(self):
        data = {
            'version': '1.0',
            'updated': self.clock(),
            'packages': [pkg.model_dump() for pkg in self.packages.values()]
        }
        self.vfs.write_file(self.registry_file, json.dumps(data, indent=2))

    def package_url(self, name: str) -> str:
        return f"{self.index_url}/{name}/json"

    def install(self, name: str, import_name: Optional[str] = None) -> str:
        """Resolve name on the index and record it. Returns a status line."""
        if not PACKAGE_NAME.match(name or ''):
            raise PackageInstallError(f"Failed to install {name}: invalid package name")

        url = self.package_url(name)
        try:
            response = self.session.get(url, timeout=self.request_timeout)
        except requests.RequestException as e:
            raise PackageInstallError(f"Failed to install {name}: {e}") from e

        if response.status_code == 404:
            raise PackageNotFound(f"Failed to install {name}: package not found")
        if not response.ok:
            raise PackageInstallError(
                f"Failed to install {name}: {response.status_code} {response.reason}")

        try:
            version = response.json().get('info', {}).get('version') or 'latest'
        except ValueError:
            version = 'latest'

        self.packages[name] = InstalledPackage(
            name=name,
            version=version,
            source_url=url,
            import_name=import_name or default_import_name(name),
            installed_at=self.clock(),
        )
        self._save_registry()
        logger.info(f"Installed {name} {version}")
        return f"Package {name} installed from {url}"

    def uninstall(self, name: str) -> str:
        if name not in self.packages:
            raise PackageNotFound(f"Package {name} is not installed")
        del self.packages[name]
        self._save_registry()
        return f"Package {name} removed"

    def get(self, name: str) -> Optional[InstalledPackage]:
        return self.packages.get(name)

    def get_package_url(self, name: str) -> Optional[str]:
        pkg = self.packages.get(name)
        return pkg.source_url if pkg else None

    def list_installed(self) -> List[InstalledPackage]:
        return list(self.packages.values())

    def load(self, name: str):
        """Import the module registered for an installed package"""
        pkg = self.packages.get(name)
        if pkg is None:
            raise PackageNotFound(f"Package '{name}' is not installed")
        if pkg.import_name not in self.allowed_imports:
            raise PackageError(
                f"Package '{name}' is installed but module '{pkg.import_name}' "
                f"is not in packages.allowed_imports")
        try:
            return self.importer(pkg.import_name)
        except ImportError as e:
            raise PackageError(
                f"Package '{name}' is installed but module '{pkg.import_name}' cannot be loaded: {e}") from e
