"""
AOS Exception Hierarchy
"""


class AOSError(Exception):
    """Base exception for all AOS errors"""
    pass


# Filesystem

class FileSystemError(AOSError):
    """Base exception for filesystem operations"""
    pass


class PathNotFound(FileSystemError):
    """Raised when a path does not resolve to any node"""
    pass


class NotADirectory(FileSystemError):
    """Raised when path is not a directory"""
    pass


class IsADirectory(FileSystemError):
    """Raised when path is a directory but file operation is attempted"""
    pass


class InvalidPath(FileSystemError):
    """Raised when a path is malformed"""
    pass


class CorruptImage(FileSystemError):
    """Raised when a persisted filesystem image cannot be decoded"""
    pass


# Shell

class ShellError(AOSError):
    """Shell command errors"""
    pass


class CommandNotFound(ShellError):
    """Raised when no built-in matches the command name"""
    pass


class ToolFailure(ShellError):
    """Raised when a built-in's sub-operation fails"""
    pass


class ScriptError(ShellError):
    """Raised for fatal script runtime errors (e.g. unresolved modules)"""
    pass


# Version control

class VcsError(AOSError):
    """Base exception for version control operations"""
    pass


class VcsFsError(VcsError):
    """POSIX-style storage error raised by the VCS filesystem adapter"""
    code = 'EIO'

    def __init__(self, message: str, code: str = None, path: str = None):
        super().__init__(message)
        if code:
            self.code = code
        self.path = path


class VcsEnoent(VcsFsError):
    """Raised by the adapter when a path does not exist"""
    code = 'ENOENT'


# Packages

class PackageError(AOSError):
    """Base exception for package management related errors"""
    pass


class PackageNotFound(PackageError):
    """Raised when package is not found"""
    pass


class PackageInstallError(PackageError):
    """Raised when package installation fails"""
    pass


# Scheduler

class SchedulerError(AOSError):
    """Base exception for scheduler errors"""
    pass


class SchedulerTaskError(SchedulerError):
    """Raised when a scheduled task fails to execute"""
    pass


class TaskNotFound(SchedulerError):
    """Raised when a task id is unknown"""
    pass


# Configuration

class ConfigError(AOSError):
    """Raised when configuration cannot be loaded or validated"""
    pass
