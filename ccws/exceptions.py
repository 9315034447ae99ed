"""
Exception types for ccws.

Validation errors are raised before any subprocess or filesystem call
and are never retried. MountFailure is fatal to a single repository
only; the orchestrator catches it. NoRepositoriesMountedError is the only
error that aborts workspace creation as a whole.
"""

from typing import Optional

from .exit_codes import CommandError, DATA_ERROR, NO_REPOS_MOUNTED


class CcwsError(Exception):
    """Base class for ccws errors."""
    pass


class ValidationError(CcwsError, ValueError):
    """An externally supplied path or name was rejected."""
    exit_code = DATA_ERROR


class PathTraversalError(ValidationError):
    """Raised when a path contains a parent-directory segment."""

    def __init__(self, path: str, message: str = "Path traversal detected"):
        self.path = path
        super().__init__(message)


class InvalidBranchNameError(ValidationError):
    """Raised when a branch name fails validation."""

    def __init__(self, branch: str, reason: str):
        self.branch = branch
        self.reason = reason
        super().__init__(f"Invalid branch name: {reason}")


class InvalidAliasError(ValidationError):
    """Raised when a repository alias is not a filesystem-safe token."""

    def __init__(self, alias: str, reason: str):
        self.alias = alias
        self.reason = reason
        super().__init__(f"Invalid alias: {reason}")


class MountFailure(CcwsError):
    """Raised when a working copy cannot be created for a repository."""

    def __init__(self, alias: str, message: str):
        self.alias = alias
        super().__init__(message)


class NoRepositoriesMountedError(CommandError):
    """Raised when every selected repository failed to mount."""

    def __init__(self, root_path: Optional[str] = None, failed: int = 0):
        super().__init__("No repositories were successfully mounted", NO_REPOS_MOUNTED)
        self.root_path = root_path
        self.failed = failed


class UserCancelledError(CcwsError):
    """Raised when the user aborts the interactive selection flow."""

    def __init__(self, message: str = "Operation cancelled by user"):
        super().__init__(message)
