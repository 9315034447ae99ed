"""
ccws - Multi-repository workspaces for parallel development.

ccws assembles a disposable workspace from several local git repositories:
each one is checked out as a git worktree on a chosen branch, dependency
caches and .env files are carried over, and a root package.json plus a
CLAUDE.md guide tie the repositories together.

Quick Start:
    from ccws import WorkspaceService, RepositorySelection

    service = WorkspaceService()
    result = service.create_workspace([
        RepositorySelection("web", "~/code/web", "feature/login"),
        RepositorySelection("api", "~/code/api", "feature/login"),
    ])
    print(result.workspace.root_path)

Domain Objects:
    RepositorySelection - A repository picked for the workspace
    MountedRepository - A selection whose working copy exists
    Workspace - The created root and its mounted repositories

Services:
    DiscoveryService - Find git repositories under a directory
    WorkspaceService - Create a workspace and mount repositories concurrently
    ManifestService - Write the root package.json
    DocsService - Write factpacks and CLAUDE.md
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    RepositorySelection,
    MountedRepository,
    Workspace,
    PackageManager,
    PrimingMethod,
    PrimingOutcome,
)

# Services
from .services import (
    DiscoveryService,
    WorkspaceService,
    ManifestService,
    DocsService,
)

# Errors
from .exceptions import (
    CcwsError,
    ValidationError,
    PathTraversalError,
    InvalidBranchNameError,
    MountFailure,
    NoRepositoriesMountedError,
)

__all__ = [
    '__version__',
    'RepositorySelection',
    'MountedRepository',
    'Workspace',
    'PackageManager',
    'PrimingMethod',
    'PrimingOutcome',
    'DiscoveryService',
    'WorkspaceService',
    'ManifestService',
    'DocsService',
    'CcwsError',
    'ValidationError',
    'PathTraversalError',
    'InvalidBranchNameError',
    'MountFailure',
    'NoRepositoriesMountedError',
]
