"""
Workspace service for ccws.

Creates a workspace directory and mounts every selected repository into
it concurrently. Each repository runs its own pipeline:

    pending -> mounting -> priming -> propagating -> detecting -> mounted

and moves to ``failed`` from any stage on error. A failed repository is
reported and left out; it never cancels its siblings. Creation as a whole
fails only when no repository mounts.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence

from ..config import load_config
from ..domain import (
    MountedRepository,
    OperationDetail,
    OperationStatus,
    OperationSummary,
    PrimingMethod,
    PrimingOutcome,
    RepositorySelection,
    RepositoryState,
    Workspace,
)
from ..domain.workspace import REPOS_DIRNAME
from ..exceptions import NoRepositoriesMountedError, ValidationError
from ..security import validate_alias, validate_branch_name, validate_path
from .env_files_service import EnvFilePropagator, PropagationResult
from .mount_service import MountService
from .package_manager import detect_package_manager
from .priming_service import DependencyPrimer

logger = logging.getLogger(__name__)

GITIGNORE_FILENAME = '.gitignore'
GITIGNORE_CONTENT = "repos/\nnode_modules/\n.env*\n"

# Up to this many selections get one worker each
UNBOUNDED_WORKER_LIMIT = 8

_BASE36 = '0123456789abcdefghijklmnopqrstuvwxyz'


def _base36(value: int) -> str:
    if value == 0:
        return '0'
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return ''.join(reversed(digits))


def _normalize(selection: RepositorySelection) -> RepositorySelection:
    """Selection with the validated (trimmed) alias and branch."""
    return replace(
        selection,
        alias=validate_alias(selection.alias),
        branch=validate_branch_name(selection.branch),
    )


@dataclass
class RepositoryOutcome:
    """What happened to one selection. Written once by its worker."""
    selection: RepositorySelection
    state: RepositoryState = RepositoryState.PENDING
    mounted: Optional[MountedRepository] = None
    priming: Optional[PrimingOutcome] = None
    env_files: Optional[PropagationResult] = None
    error: Optional[str] = None

    def to_detail(self) -> OperationDetail:
        if self.mounted is not None:
            metadata: Dict[str, Any] = {'alias': self.selection.alias, **self.mounted.to_dict()}
            if self.priming is not None:
                metadata['priming'] = self.priming.to_dict()
            if self.env_files is not None:
                metadata['env_files'] = list(self.env_files.copied)
            return OperationDetail(
                repo_path=self.selection.source_path,
                repo_name=self.selection.alias,
                status=OperationStatus.SUCCESS,
                action="mounted",
                metadata=metadata,
            )
        return OperationDetail(
            repo_path=self.selection.source_path,
            repo_name=self.selection.alias,
            status=OperationStatus.FAILED,
            action="mount_failed",
            error=self.error or "unknown error",
            metadata={'alias': self.selection.alias, 'branch': self.selection.branch},
        )


@dataclass
class WorkspaceResult:
    """Result of workspace creation."""
    root_path: str
    summary: OperationSummary
    workspace: Optional[Workspace] = None
    outcomes: List[RepositoryOutcome] = field(default_factory=list)

    @property
    def mounted_count(self) -> int:
        return self.summary.successful

    @property
    def failed_count(self) -> int:
        return self.summary.failed

    @property
    def success(self) -> bool:
        return self.workspace is not None and self.summary.failed == 0


class WorkspaceService:
    """
    Service for creating multi-repository workspaces.

    Example:
        service = WorkspaceService()
        selections = [
            RepositorySelection("web", "/code/web", "feature/login"),
            RepositorySelection("api", "/code/api", "feature/login"),
        ]

        for progress in service.create(selections):
            print(progress)  # "✓ web mounted (pnpm, dependencies linked)"

        result = service.last_result
        print(f"{result.mounted_count} mounted, {result.failed_count} failed")
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        mount_service: Optional[MountService] = None,
        primer: Optional[DependencyPrimer] = None,
        env_propagator: Optional[EnvFilePropagator] = None,
        parent_dir: Optional[str] = None,
        max_concurrent: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize WorkspaceService.

        Args:
            config: Configuration dict (loads default if None)
            mount_service: Mounter (built from config if None)
            primer: Dependency primer (built from config if None)
            env_propagator: Env file propagator (default if None)
            parent_dir: Directory the workspace root is created in
            max_concurrent: Worker cap used above 8 selections
            clock: Time source for the workspace name
        """
        self.config = config if config is not None else load_config()
        general = self.config.get('general', {})

        self.mounter = mount_service or MountService.from_config(self.config)
        self.primer = primer or DependencyPrimer.from_config(self.config)
        self.env_propagator = env_propagator or EnvFilePropagator()
        self.parent_dir = parent_dir or general.get('workspace_parent', '.')
        self.prefix = general.get('workspace_prefix', 'ccws')
        self.max_concurrent = max_concurrent or int(general.get('max_concurrent_mounts', UNBOUNDED_WORKER_LIMIT))
        self._clock = clock
        self.last_result: Optional[WorkspaceResult] = None

    def prepare_root(self) -> str:
        """
        Create a uniquely named workspace root with ``repos/`` and a .gitignore.

        Returns:
            Absolute path of the new root
        """
        parent = validate_path(self.parent_dir)
        os.makedirs(parent, exist_ok=True)

        base_name = f"{self.prefix}-{_base36(int(self._clock() * 1000))}"
        name = base_name
        suffix = 0
        while True:
            root = os.path.join(parent, name)
            try:
                os.mkdir(root)
                break
            except FileExistsError:
                suffix += 1
                name = f"{base_name}-{suffix}"

        os.makedirs(os.path.join(root, REPOS_DIRNAME), exist_ok=True)
        with open(os.path.join(root, GITIGNORE_FILENAME), 'w') as f:
            f.write(GITIGNORE_CONTENT)

        logger.debug(f"Created workspace root {root}")
        return root

    def _worker_count(self, total: int) -> int:
        if total <= UNBOUNDED_WORKER_LIMIT:
            return max(total, 1)
        return max(1, min(total, self.max_concurrent))

    def _mount_one(self, outcome: RepositoryOutcome, root: str) -> RepositoryOutcome:
        """Run one repository's pipeline. Records failure instead of raising."""
        selection = outcome.selection

        def advance(state: RepositoryState) -> None:
            outcome.state = state
            logger.debug(f"{selection.alias}: {state.value}")

        try:
            alias = selection.alias
            target = os.path.join(root, REPOS_DIRNAME, alias)

            advance(RepositoryState.MOUNTING)
            self.mounter.mount(selection, target)

            advance(RepositoryState.PRIMING)
            outcome.priming = self.primer.prime(selection.source_path, target)

            advance(RepositoryState.PROPAGATING)
            outcome.env_files = self.env_propagator.propagate(selection.source_path, target)
            for error in outcome.env_files.errors:
                logger.warning(f"{alias}: failed to copy env file {error}")

            advance(RepositoryState.DETECTING)
            package_manager = detect_package_manager(target)

            outcome.mounted = MountedRepository.from_selection(selection, target, package_manager)
            advance(RepositoryState.MOUNTED)
        except Exception as e:
            outcome.error = str(e) or e.__class__.__name__
            logger.warning(f"Failed to mount {selection.alias} during {outcome.state.value}: {outcome.error}")
            advance(RepositoryState.FAILED)
        return outcome

    def _describe(self, outcome: RepositoryOutcome) -> List[str]:
        alias = outcome.selection.alias
        if outcome.mounted is None:
            return [f"✗ {alias}: {outcome.error}"]

        messages = []
        priming = outcome.priming
        if priming is None or priming.method == PrimingMethod.SKIPPED:
            deps = "no dependencies copied"
        else:
            deps = f"dependencies {priming.method.value}"
        messages.append(f"✓ {alias} mounted ({outcome.mounted.package_manager.value}, {deps})")
        if priming is not None and priming.degraded:
            messages.append(f"⚠ {alias}: dependency priming failed: {priming.error}")
        return messages

    def create(
        self,
        selections: Sequence[RepositorySelection]
    ) -> Generator[str, None, WorkspaceResult]:
        """
        Create a workspace and mount ``selections`` into it.

        Yields progress messages, returns WorkspaceResult.

        Raises:
            NoRepositoriesMountedError: If no repository mounted (after all
                pipelines finished). The root directory is left in place.
        """
        selections = list(selections)
        summary = OperationSummary(operation="create_workspace")

        root = self.prepare_root()
        result = WorkspaceResult(root_path=root, summary=summary)
        self.last_result = result
        yield f"Created workspace {root}"

        # fixed slots, filled by index exactly once
        outcomes: List[RepositoryOutcome] = [RepositoryOutcome(selection=s) for s in selections]
        pending: List[int] = []
        seen_aliases = set()
        for index, outcome in enumerate(outcomes):
            try:
                outcome.selection = _normalize(outcome.selection)
            except ValidationError as e:
                outcome.error = str(e)
                outcome.state = RepositoryState.FAILED
                logger.warning(f"Rejected selection {outcome.selection.alias!r}: {e}")
                yield f"✗ {outcome.selection.alias}: {outcome.error}"
                continue

            alias = outcome.selection.alias
            if alias in seen_aliases:
                outcome.error = f"Duplicate alias: {alias}"
                outcome.state = RepositoryState.FAILED
                yield f"✗ {alias}: {outcome.error}"
            else:
                seen_aliases.add(alias)
                pending.append(index)

        if pending:
            workers = self._worker_count(len(pending))
            yield f"Mounting {len(pending)} repositories ({workers} at a time)..."
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self._mount_one, outcomes[index], root): index
                    for index in pending
                }
                for future in as_completed(futures):
                    index = futures[future]
                    outcomes[index] = future.result()
                    for message in self._describe(outcomes[index]):
                        yield message

        for outcome in outcomes:
            summary.add_detail(outcome.to_detail())
        result.outcomes = outcomes

        mounted = tuple(o.mounted for o in outcomes if o.mounted is not None)
        if not mounted:
            raise NoRepositoriesMountedError(root_path=root, failed=summary.failed)

        result.workspace = Workspace(root_path=root, mounted=mounted)
        if summary.failed:
            yield f"⚠ {summary.failed} of {summary.total} repositories failed to mount"
        return result

    def create_workspace(self, selections: Sequence[RepositorySelection]) -> WorkspaceResult:
        """Create a workspace without progress output."""
        for _ in self.create(selections):
            pass
        return self.last_result
