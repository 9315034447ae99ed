"""
Environment file propagation for ccws.

Copies local configuration dotfiles (``.env``, ``.env.local``, ...) that
are never committed from a source repository into its working copy.
Symbolic links are skipped so a link cannot pull in files from outside
the repository.
"""

import logging
import os
import shutil
import stat
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..exceptions import ValidationError
from ..security import validate_path

logger = logging.getLogger(__name__)

ENV_FILE_PREFIX = '.env'


@dataclass
class PropagationResult:
    """Result of copying env files for one repository."""
    copied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


class EnvFilePropagator:
    """
    Copies ``.env*`` regular files from a repository root to a working copy.

    Only the top level of the source is considered. Failures are
    collected in the result, never raised.

    Example:
        result = EnvFilePropagator().propagate("/code/api", "/tmp/ws/repos/api")
        print(result.copied)  # ['.env', '.env.local']
    """

    def __init__(self, prefix: str = ENV_FILE_PREFIX):
        self.prefix = prefix

    def propagate(self, source_root: str, target_root: str) -> PropagationResult:
        result = PropagationResult()

        try:
            source = validate_path(source_root)
            target = validate_path(target_root)
        except ValidationError as e:
            result.errors.append(str(e))
            return result

        if not os.path.isdir(source):
            result.errors.append("Invalid source directory")
            return result
        if not os.path.isdir(target):
            result.errors.append("Invalid destination directory")
            return result

        try:
            names = sorted(os.listdir(source))
        except OSError as e:
            result.errors.append(f"Cannot list source directory: {e.strerror or e}")
            return result

        for name in names:
            if not name.startswith(self.prefix):
                continue
            status, error = self._copy_one(os.path.join(source, name), os.path.join(target, name))
            if status == 'copied':
                result.copied.append(name)
            elif status == 'skipped':
                result.skipped.append(name)
            else:
                result.errors.append(f"{name}: {error}")

        return result

    def _copy_one(self, source_file: str, target_file: str) -> Tuple[str, Optional[str]]:
        """Copy one file without following links. Returns (status, error)."""
        try:
            mode = os.lstat(source_file).st_mode
        except OSError as e:
            return 'error', str(e.strerror or e)

        if not stat.S_ISREG(mode):
            logger.debug(f"Skipping non-regular file {source_file}")
            return 'skipped', None

        try:
            if os.path.islink(target_file):
                os.unlink(target_file)
            shutil.copyfile(source_file, target_file, follow_symlinks=False)
            shutil.copymode(source_file, target_file, follow_symlinks=False)
        except OSError as e:
            logger.warning(f"Failed to copy {os.path.basename(source_file)}: {e}")
            return 'error', str(e.strerror or e)

        logger.debug(f"Copied environment file {os.path.basename(source_file)}")
        return 'copied', None
