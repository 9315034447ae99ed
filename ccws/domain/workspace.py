"""
Workspace domain objects for ccws.

These are the values that flow through workspace creation: the user's
selections, the repositories that mounted, and the finished workspace.
They are frozen dataclasses and serialize to plain dicts for JSONL output.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

REPOS_DIRNAME = "repos"


class PackageManager(Enum):
    """Dependency manager a repository uses, detected from its lockfile."""
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"


class PrimingMethod(Enum):
    """How a working copy's dependency cache was populated."""
    LINKED = "linked"      # hardlink clone, same volume
    MIRRORED = "mirrored"  # full mirroring copy
    SKIPPED = "skipped"    # nothing copied


class RepositoryState(Enum):
    """Stages of a single repository's mount pipeline."""
    PENDING = "pending"
    MOUNTING = "mounting"
    PRIMING = "priming"
    PROPAGATING = "propagating"
    DETECTING = "detecting"
    MOUNTED = "mounted"
    FAILED = "failed"


@dataclass(frozen=True)
class RepositorySelection:
    """A repository the user picked, with the alias and branch to use."""
    alias: str
    source_path: str
    branch: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alias': self.alias,
            'source_path': self.source_path,
            'branch': self.branch,
        }


@dataclass(frozen=True)
class MountedRepository:
    """A selection whose working copy exists and is ready to use."""
    alias: str
    source_path: str
    branch: str
    working_copy_path: str
    package_manager: PackageManager

    @classmethod
    def from_selection(
        cls,
        selection: RepositorySelection,
        working_copy_path: str,
        package_manager: PackageManager
    ) -> 'MountedRepository':
        return cls(
            alias=selection.alias,
            source_path=selection.source_path,
            branch=selection.branch,
            working_copy_path=working_copy_path,
            package_manager=package_manager,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alias': self.alias,
            'source_path': self.source_path,
            'branch': self.branch,
            'working_copy_path': self.working_copy_path,
            'package_manager': self.package_manager.value,
        }


@dataclass(frozen=True)
class PrimingOutcome:
    """Result of priming one working copy. Informational only."""
    method: PrimingMethod
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        """True when priming was attempted and failed."""
        return self.method == PrimingMethod.SKIPPED and self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'method': self.method.value}
        if self.error:
            result['error'] = self.error
        return result


@dataclass(frozen=True)
class Workspace:
    """
    A created workspace: its root directory and the repositories in it.

    ``mounted`` is never empty; the orchestrator raises instead of
    building a Workspace with no repositories.
    """
    root_path: str
    mounted: Tuple[MountedRepository, ...]

    def __post_init__(self):
        if not self.mounted:
            raise ValueError("A workspace needs at least one mounted repository")

    @property
    def repos_path(self) -> str:
        return os.path.join(self.root_path, REPOS_DIRNAME)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'root_path': self.root_path,
            'mounted': [repo.to_dict() for repo in self.mounted],
        }
