"""
AOS Shell Commands

This package contains the built-in commands of the AOS shell. Each module
exposes register_commands(shell).
"""

from .filesystem import register_commands as register_filesystem_commands
from .vcs import register_commands as register_vcs_commands
from .packages import register_commands as register_package_commands
from .flow import register_commands as register_flow_commands
from .script import register_commands as register_script_commands


def register_all(shell):
    """Register all built-in commands with the shell"""
    register_filesystem_commands(shell)
    register_vcs_commands(shell)
    register_package_commands(shell)
    register_flow_commands(shell)
    register_script_commands(shell)
