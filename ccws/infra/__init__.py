"""
Infrastructure layer for ccws.

Contains abstractions for external programs:
- GitClient: Git command execution
- CopyClient: cp/rsync execution for dependency priming

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, CommandResult, run_command
from .copy_client import CopyClient

__all__ = [
    'GitClient',
    'CommandResult',
    'CopyClient',
    'run_command',
]
