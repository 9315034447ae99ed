"""
Discovery service for ccws.

Finds git repositories under a base directory so the user has something
to pick from. Discovery is advisory: it never raises, and an empty list
is a valid answer.
"""

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..exceptions import ValidationError
from ..infra import GitClient
from ..security import validate_path

logger = logging.getLogger(__name__)

GIT_MARKER = '.git'
DEFAULT_MAX_DEPTH = 3
DEFAULT_CACHE_TTL = 300.0


@dataclass(frozen=True)
class DiscoveryCacheEntry:
    """Cached discovery result for one base directory."""
    result_paths: Tuple[str, ...]
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl


class DiscoveryCache:
    """
    Time-boxed in-memory cache of discovery results.

    Keyed by resolved base directory and expired by age only. There is no
    invalidation hook: a repository created after an entry was stored stays
    invisible until that entry expires.

    Example:
        cache = DiscoveryCache(ttl=60)
        service = DiscoveryService(cache=cache)
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        """
        Initialize DiscoveryCache.

        Args:
            ttl: Entry lifetime in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, DiscoveryCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[str]]:
        """Return cached paths for ``key``, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return list(entry.result_paths)

    def put(self, key: str, paths: List[str]) -> None:
        """Store ``paths`` for ``key``. Last writer wins."""
        entry = DiscoveryCacheEntry(
            result_paths=tuple(paths),
            created_at=self._clock(),
            ttl=self.ttl,
        )
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class DiscoveryService:
    """
    Service for locating git repositories under a base directory.

    The search is depth-bounded and stops at the first repository on each
    branch of the tree; nested repositories and worktrees inside a
    repository are never visited.

    Example:
        service = DiscoveryService()
        for path in service.discover("~/code"):
            print(path, service.current_branch(path))
    """

    def __init__(
        self,
        cache: Optional[DiscoveryCache] = None,
        git_client: Optional[GitClient] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Initialize DiscoveryService.

        Args:
            cache: Result cache (a fresh one is created if None)
            git_client: Git client for branch lookups
            max_depth: Deepest directory level examined (base dir = 0)
        """
        self.cache = cache if cache is not None else DiscoveryCache()
        self.git = git_client or GitClient()
        self.max_depth = max_depth

    @classmethod
    def from_config(cls, config: Dict, cache: Optional[DiscoveryCache] = None) -> 'DiscoveryService':
        discovery = config.get('discovery', {})
        git = config.get('git', {})
        return cls(
            cache=cache or DiscoveryCache(ttl=float(discovery.get('cache_ttl_seconds', DEFAULT_CACHE_TTL))),
            git_client=GitClient(fetch_timeout=git.get('fetch_timeout_seconds', 30)),
            max_depth=int(discovery.get('max_depth', DEFAULT_MAX_DEPTH)),
        )

    def discover(self, base_dir: str) -> List[str]:
        """
        Find git repositories under ``base_dir``.

        Args:
            base_dir: Directory to search

        Returns:
            Sorted, de-duplicated paths under the resolved base directory;
            empty on any error
        """
        try:
            root = validate_path(base_dir)
            if not os.path.isdir(root):
                logger.warning(f"Not a directory: {root}")
                return []

            key = os.path.realpath(root)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Discovery cache hit for {key}")
                return cached

            repos = self._scan(key)
            self.cache.put(key, repos)
            return repos
        except ValidationError as e:
            logger.warning(f"Failed to discover repos: {e}")
            return []
        except Exception as e:
            logger.error(f"Failed to discover repos in {base_dir}: {e}")
            return []

    def _scan(self, root: str) -> List[str]:
        """Depth-first walk; the stack only ever holds the unvisited frontier."""
        found = set()
        stack: List[Tuple[str, int]] = [(root, 0)]

        while stack:
            directory, depth = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = list(it)
            except OSError as e:
                logger.debug(f"Skipping unreadable directory {directory}: {e}")
                continue

            if any(e.name == GIT_MARKER and e.is_dir(follow_symlinks=False) for e in entries):
                found.add(directory)
                continue

            if depth >= self.max_depth:
                continue

            for entry in entries:
                if entry.name.startswith('.'):
                    continue
                try:
                    if entry.is_dir(follow_symlinks=False):
                        stack.append((entry.path, depth + 1))
                except OSError:
                    continue

        return sorted(found)

    def current_branch(self, path: str) -> str:
        """Checked-out branch of ``path``, 'main' if it cannot be determined."""
        try:
            return self.git.current_branch(validate_path(path))
        except ValidationError:
            return "main"
