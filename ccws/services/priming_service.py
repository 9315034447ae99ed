"""
Dependency priming service for ccws.

Seeds a new working copy with the source repository's dependency cache
(node_modules) so the workspace is usable without a fresh install.
Priming never raises: every outcome, including failure, is returned as
a PrimingOutcome for the caller to report.
"""

import logging
import os
from typing import Any, Dict, Optional

from ..domain import PrimingMethod, PrimingOutcome
from ..exceptions import ValidationError
from ..infra import CopyClient
from ..security import validate_path

logger = logging.getLogger(__name__)

DEFAULT_DEPENDENCY_DIR = 'node_modules'


class DependencyPrimer:
    """
    Copies a dependency cache directory using the cheapest strategy that works.

    1. Hardlink clone (``cp -al``): metadata only, same volume.
    2. Mirroring copy (``rsync -a --delete``): full content, any volume.
    3. Give up and report ``skipped`` with the error.

    Example:
        primer = DependencyPrimer()
        outcome = primer.prime("/code/web", "/tmp/ccws-abc/repos/web")
        print(outcome.method.value)  # "linked"
    """

    def __init__(
        self,
        copy_client: Optional[CopyClient] = None,
        dependency_dir: str = DEFAULT_DEPENDENCY_DIR
    ):
        """
        Initialize DependencyPrimer.

        Args:
            copy_client: Copy client instance (creates default if None)
            dependency_dir: Name of the dependency cache directory
        """
        self.copier = copy_client or CopyClient()
        self.dependency_dir = dependency_dir

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'DependencyPrimer':
        priming = config.get('priming', {})
        return cls(
            copy_client=CopyClient(mirror_timeout=priming.get('mirror_timeout_seconds', 600)),
            dependency_dir=priming.get('dependency_dir', DEFAULT_DEPENDENCY_DIR),
        )

    def prime(self, source_root: str, target_root: str) -> PrimingOutcome:
        """
        Copy ``<source_root>/<dependency_dir>`` into ``target_root``.

        Args:
            source_root: Source repository root
            target_root: Working copy root

        Returns:
            PrimingOutcome; ``skipped`` without error when there is nothing to copy
        """
        try:
            source = os.path.join(validate_path(source_root), self.dependency_dir)
            target = os.path.join(validate_path(target_root), self.dependency_dir)
        except ValidationError as e:
            return PrimingOutcome(PrimingMethod.SKIPPED, error=str(e))

        if not os.path.isdir(source):
            return PrimingOutcome(PrimingMethod.SKIPPED)

        # cp -al into an existing directory would nest the copy inside it
        if os.path.lexists(target):
            logger.info(f"Target {self.dependency_dir} exists, falling back to rsync: {target}")
        else:
            result = self.copier.hardlink_tree(source, target)
            if result.ok:
                return PrimingOutcome(PrimingMethod.LINKED)

            message = result.error_message
            if 'cross-device' in message or 'Operation not permitted' in message:
                logger.info(f"Hardlink failed across filesystems, falling back to rsync: {target}")
            else:
                logger.info(f"Hardlink failed ({message}), falling back to rsync: {target}")

        result = self.copier.mirror_tree(source, target)
        if result.ok:
            return PrimingOutcome(PrimingMethod.MIRRORED)

        logger.warning(f"Failed to prime {self.dependency_dir} for {target_root}: {result.error_message}")
        return PrimingOutcome(PrimingMethod.SKIPPED, error=result.error_message)
