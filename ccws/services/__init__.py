"""
Service layer for ccws.

Contains the workspace pipeline, built on the domain and infra layers:
- DiscoveryService: Find git repositories, with a TTL cache
- MountService: Create a git worktree for a selection
- DependencyPrimer: Copy the dependency directory into a working copy
- EnvFilePropagator: Copy .env* files into a working copy
- WorkspaceService: Create a workspace and mount selections concurrently
- ManifestService: Root package.json with aggregated scripts
- DocsService: Factpacks and CLAUDE.md

Services are the primary API for commands to use.
"""

from .discovery_service import DiscoveryService, DiscoveryCache
from .mount_service import MountService
from .priming_service import DependencyPrimer
from .env_files_service import EnvFilePropagator, PropagationResult
from .package_manager import detect_package_manager, script_command
from .workspace_service import WorkspaceService, WorkspaceResult, RepositoryOutcome
from .manifest_service import ManifestService
from .docs_service import DocsService, DocsResult

__all__ = [
    'DiscoveryService',
    'DiscoveryCache',
    'MountService',
    'DependencyPrimer',
    'EnvFilePropagator',
    'PropagationResult',
    'detect_package_manager',
    'script_command',
    'WorkspaceService',
    'WorkspaceResult',
    'RepositoryOutcome',
    'ManifestService',
    'DocsService',
    'DocsResult',
]
