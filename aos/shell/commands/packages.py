"""
Package commands for AOS Shell
"""

import types
from typing import List

from ...exceptions import PackageError
from ..parser import ShellResult

APM_USAGE = 'Usage: apm <install|list|uninstall> <package>'


def register_commands(shell):
    """Register the apm command with shell"""

    def do_apm(self, args: List[str]) -> ShellResult:
        """Aussie Package Manager
        Usage:
            apm install <package>    - Resolve a package on the index and record it
            apm uninstall <package>  - Forget an installed package
            apm list                 - Show installed packages
        """
        if self.packages is None:
            return ShellResult.error('apm: package manager unavailable')
        if not args:
            return ShellResult.error(APM_USAGE)

        sub = args[0]
        try:
            if sub == 'install' and len(args) > 1:
                return ShellResult.success(self.packages.install(args[1]))
            if sub == 'uninstall' and len(args) > 1:
                return ShellResult.success(self.packages.uninstall(args[1]))
            if sub == 'list':
                installed = self.packages.list_installed()
                if not installed:
                    return ShellResult.success('No packages installed')
                return ShellResult.success('\n'.join(
                    f"{pkg.name}@{pkg.version}" for pkg in installed))
        except PackageError as e:
            return ShellResult.error(str(e))

        return ShellResult.error(APM_USAGE)

    shell.register('apm', types.MethodType(do_apm, shell))
