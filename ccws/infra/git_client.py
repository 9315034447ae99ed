"""
Git client infrastructure for ccws.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Commands are always passed as argument lists; no shell is involved.
"""

import os
import subprocess
from dataclasses import dataclass
from typing import List, Optional
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"


@dataclass
class CommandResult:
    """Outcome of one external command."""
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def error_message(self) -> str:
        """Best available one-line description of a failure."""
        if self.timed_out:
            return "command timed out"
        text = (self.stderr or self.stdout or "").strip()
        if text:
            return text.splitlines()[-1]
        return f"exit code {self.returncode}"


def run_command(
    cmd: List[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
    env: Optional[dict] = None
) -> CommandResult:
    """
    Run an external command without a shell.

    Never raises for command failures; a missing executable, a timeout
    and a non-zero exit all come back as a CommandResult.
    """
    logger.debug(f"Running command in '{cwd or os.getcwd()}': {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            shell=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        return CommandResult(returncode=-1, timed_out=True)
    except OSError as e:
        logger.debug(f"Command could not start: {cmd[0]} - {e}")
        return CommandResult(stderr=str(e), returncode=-1)

    if result.returncode != 0 and result.stderr:
        logger.debug(result.stderr.strip())
    return CommandResult(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


class GitClient:
    """
    Abstraction over git commands.

    Provides methods for the git operations workspace creation needs
    with consistent error handling and return types.

    Example:
        client = GitClient()
        branch = client.current_branch("/path/to/repo")
        client.add_worktree("/path/to/repo", "/tmp/ws/repos/app", branch)
    """

    def __init__(self, timeout: int = 30, fetch_timeout: int = 30, git_binary: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Timeout in seconds for quick queries (default: 30)
            fetch_timeout: Timeout in seconds for remote refresh (default: 30)
            git_binary: Name or path of the git executable
        """
        self.timeout = timeout
        self.fetch_timeout = fetch_timeout
        self.git_binary = git_binary

    def _run(self, path: str, args: List[str], timeout: Optional[float] = None, env=None) -> CommandResult:
        """Run ``git -C <path> <args...>``."""
        return run_command([self.git_binary, '-C', path, *args], timeout=timeout, env=env)

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository (a .git directory or worktree file)."""
        return (Path(path) / ".git").exists()

    def current_branch(self, path: str, default: str = DEFAULT_BRANCH) -> str:
        """
        Get the checked-out branch name.

        Returns ``default`` on any failure. A detached HEAD reports 'HEAD'.
        """
        result = self._run(path, ['rev-parse', '--abbrev-ref', 'HEAD'], timeout=self.timeout)
        if result.ok and result.stdout.strip():
            return result.stdout.strip()
        return default

    def fetch(self, path: str, remote: str = "origin") -> bool:
        """
        Refresh remote-tracking state, bounded by ``fetch_timeout``.

        Returns True on success. Failure is normal when offline.
        """
        env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
        result = self._run(path, ['fetch', remote], timeout=self.fetch_timeout, env=env)
        if not result.ok:
            logger.debug(f"Fetch from {remote} failed in {path}: {result.error_message}")
        return result.ok

    def ref_exists(self, path: str, ref: str) -> bool:
        """Check whether ``ref`` (e.g. 'refs/heads/main') resolves to a commit."""
        result = self._run(
            path, ['rev-parse', '--verify', '--quiet', f"{ref}^{{commit}}"], timeout=self.timeout
        )
        return result.ok

    def local_branch_exists(self, path: str, branch: str) -> bool:
        return self.ref_exists(path, f"refs/heads/{branch}")

    def remote_branch_exists(self, path: str, branch: str, remote: str = "origin") -> bool:
        return self.ref_exists(path, f"refs/remotes/{remote}/{branch}")

    def default_branch(self, path: str, remote: str = "origin") -> str:
        """
        Get the start point for new branches.

        Uses the remote's HEAD (e.g. 'origin/main') when it is known,
        otherwise the repository's own HEAD.
        """
        result = self._run(
            path, ['symbolic-ref', '--quiet', '--short', f"refs/remotes/{remote}/HEAD"],
            timeout=self.timeout
        )
        if result.ok and result.stdout.strip():
            return result.stdout.strip()
        return "HEAD"

    def add_worktree(
        self,
        repo_path: str,
        target_path: str,
        branch: str,
        create_branch: bool = False,
        start_point: Optional[str] = None
    ) -> CommandResult:
        """
        Create a worktree of ``repo_path`` at ``target_path``.

        Args:
            repo_path: Source repository
            target_path: Where the worktree is created (must not exist)
            branch: Branch to check out
            create_branch: Create ``branch`` instead of checking out an existing one
            start_point: Commit-ish the new branch starts from

        Returns:
            CommandResult of ``git worktree add``
        """
        args = ['worktree', 'add']
        if create_branch:
            args += ['-b', branch, target_path]
            if start_point:
                args.append(start_point)
        else:
            args += [target_path, branch]
        # no timeout: checkout time scales with repository size
        return self._run(repo_path, args)
