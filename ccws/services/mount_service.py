"""
Mount service for ccws.

Creates one isolated git worktree per selected repository. Remote refresh
is best-effort so mounting works fully offline; creating the worktree
itself must succeed or the repository fails with MountFailure.
"""

import logging
import os
from typing import Any, Dict, Optional

from ..domain import RepositorySelection
from ..exceptions import MountFailure
from ..infra import GitClient
from ..security import validate_branch_name, validate_path

logger = logging.getLogger(__name__)


class MountService:
    """
    Service for creating branch-specific working copies.

    Example:
        service = MountService()
        selection = RepositorySelection("api", "/code/api", "feature/x")
        service.mount(selection, "/tmp/ccws-abc/repos/api")
    """

    def __init__(self, git_client: Optional[GitClient] = None, remote: str = "origin"):
        """
        Initialize MountService.

        Args:
            git_client: Git client instance (creates default if None)
            remote: Remote refreshed before mounting
        """
        self.git = git_client or GitClient()
        self.remote = remote

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MountService':
        git = config.get('git', {})
        return cls(
            git_client=GitClient(fetch_timeout=git.get('fetch_timeout_seconds', 30)),
            remote=git.get('remote', 'origin'),
        )

    def mount(self, selection: RepositorySelection, target_path: str) -> None:
        """
        Create the working copy for ``selection`` at ``target_path``.

        Raises:
            ValidationError: If a path or the branch name is unsafe
            MountFailure: If the target exists, the source is not a
                repository, or the branch cannot be resolved or created
        """
        source = validate_path(selection.source_path)
        target = validate_path(target_path)
        branch = validate_branch_name(selection.branch)

        if not os.path.isdir(source):
            raise MountFailure(selection.alias, f"Source repository not found: {source}")
        if not self.git.is_git_repo(source):
            raise MountFailure(selection.alias, f"Not a git repository: {source}")
        if os.path.lexists(target):
            raise MountFailure(selection.alias, f"Target path already exists: {target}")

        if not self.git.fetch(source, self.remote):
            logger.info(f"Could not fetch {self.remote} for {selection.alias}; using local branches")

        if self.git.local_branch_exists(source, branch):
            result = self.git.add_worktree(source, target, branch)
        elif self.git.remote_branch_exists(source, branch, self.remote):
            result = self.git.add_worktree(
                source, target, branch,
                create_branch=True,
                start_point=f"{self.remote}/{branch}",
            )
        else:
            start_point = self.git.default_branch(source, self.remote)
            logger.info(f"Creating branch {branch} for {selection.alias} from {start_point}")
            result = self.git.add_worktree(
                source, target, branch,
                create_branch=True,
                start_point=start_point,
            )

        if not result.ok:
            raise MountFailure(
                selection.alias,
                f"git worktree add failed for {selection.alias} ({branch}): {result.error_message}",
            )
        logger.debug(f"Mounted {selection.alias} at {target}")
