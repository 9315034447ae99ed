"""
Copy tool infrastructure for ccws.

Wraps the two external copy mechanisms dependency priming relies on:
- ``cp -al``: recursive hardlink clone (same volume only, fails if the
  target exists)
- ``rsync -a --delete``: full mirroring copy

Both return a CommandResult instead of raising, so callers decide what a
failure means.
"""

import logging
from typing import Optional

from .git_client import CommandResult, run_command

logger = logging.getLogger(__name__)


class CopyClient:
    """
    Abstraction over the cp and rsync commands.

    Example:
        client = CopyClient(mirror_timeout=600)
        result = client.hardlink_tree("/src/node_modules", "/dst/node_modules")
        if not result.ok:
            result = client.mirror_tree("/src/node_modules", "/dst/node_modules")
    """

    def __init__(
        self,
        mirror_timeout: Optional[float] = 600,
        cp_binary: str = "cp",
        rsync_binary: str = "rsync"
    ):
        """
        Initialize CopyClient.

        Args:
            mirror_timeout: Timeout in seconds for rsync (None = no limit)
            cp_binary: Name or path of cp
            rsync_binary: Name or path of rsync
        """
        self.mirror_timeout = mirror_timeout
        self.cp_binary = cp_binary
        self.rsync_binary = rsync_binary

    def hardlink_tree(self, source: str, target: str) -> CommandResult:
        """Hardlink-clone the ``source`` directory tree to ``target``."""
        return run_command([self.cp_binary, '-al', source, target])

    def mirror_tree(self, source: str, target: str) -> CommandResult:
        """Mirror ``source`` into ``target``, deleting extras at the target."""
        return run_command(
            [self.rsync_binary, '-a', '--delete', f"{source.rstrip('/')}/", f"{target.rstrip('/')}/"],
            timeout=self.mirror_timeout,
        )
