"""
Domain layer for ccws.

Contains pure domain objects with no I/O or side effects:
- RepositorySelection: A repository the user picked
- MountedRepository: A selection whose working copy exists
- Workspace: The created workspace root and its repositories
- PrimingOutcome: How a dependency cache was copied
- OperationSummary: Per-repository outcomes with counts
"""

from .workspace import (
    PackageManager,
    PrimingMethod,
    PrimingOutcome,
    RepositorySelection,
    RepositoryState,
    MountedRepository,
    Workspace,
)
from .operation import OperationStatus, OperationDetail, OperationSummary

__all__ = [
    'PackageManager',
    'PrimingMethod',
    'PrimingOutcome',
    'RepositorySelection',
    'RepositoryState',
    'MountedRepository',
    'Workspace',
    'OperationStatus',
    'OperationDetail',
    'OperationSummary',
]
