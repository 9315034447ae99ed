"""
Workspace documentation for ccws.

Writes a short ``.factpack.txt`` into each mounted repository, then asks
an external generative CLI (``claude -p``) for a CLAUDE.md guide at the
workspace root. Streaming JSON output is tried first, plain print mode
second. Whenever the generator is missing, times out or fails, a
template guide is written instead, so this step never fails the run.
"""

import json
import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..domain import Workspace
from ..security import sanitize_argument_list, sanitize_error_message
from .package_manager import read_package_json

logger = logging.getLogger(__name__)

DOCS_FILENAME = 'CLAUDE.md'
FACTPACK_FILENAME = '.factpack.txt'
DEFAULT_TIMEOUT = 300

_RETRYABLE_MARKERS = ('unknown option', 'unrecognized option')


class GeneratorError(Exception):
    """The external documentation generator failed."""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


@dataclass
class DocsResult:
    """Result of documentation generation."""
    path: str
    generated: bool  # False when the fallback template was written
    factpacks: int = 0
    error: Optional[str] = None


def extract_text(event: Any) -> str:
    """Pull the text payload out of one stream-json event."""
    if not isinstance(event, dict):
        return ''
    for key in ('text', 'delta', 'content'):
        value = event.get(key)
        if isinstance(value, str):
            return value
    message = event.get('message')
    if isinstance(message, dict) and isinstance(message.get('content'), list):
        return ''.join(
            block.get('text', '') for block in message['content']
            if isinstance(block, dict) and block.get('type') == 'text'
        )
    return ''


class StreamPipe:
    """
    Owns a generator process and its stdout for the life of one read.

    Lines are consumed as they arrive, so the child blocks when the reader
    falls behind. On every exit path the process is killed if still
    running, its pipes are closed and it is reaped.

    Example:
        with StreamPipe(["claude", "-p", "--output-format", "stream-json", prompt], 60) as pipe:
            for line in pipe.lines():
                handle(line)
    """

    def __init__(self, cmd: List[str], timeout: Optional[float] = None, cwd: Optional[str] = None):
        self.cmd = cmd
        self.timeout = timeout
        self.cwd = cwd
        self.timed_out = False
        self.process: Optional[subprocess.Popen] = None
        self._timer: Optional[threading.Timer] = None
        self._stderr_chunks: List[str] = []
        self._stderr_thread: Optional[threading.Thread] = None

    def __enter__(self) -> 'StreamPipe':
        self.process = subprocess.Popen(
            self.cmd,
            cwd=self.cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            shell=False,
        )
        # drain stderr separately so a chatty child cannot deadlock us
        self._stderr_thread = threading.Thread(target=self._drain_stderr, daemon=True)
        self._stderr_thread.start()
        if self.timeout:
            self._timer = threading.Timer(self.timeout, self._expire)
            self._timer.daemon = True
            self._timer.start()
        return self

    def _drain_stderr(self) -> None:
        assert self.process is not None and self.process.stderr is not None
        try:
            for chunk in self.process.stderr:
                self._stderr_chunks.append(chunk)
        except (OSError, ValueError):
            # pipe closed underneath us during teardown
            return

    def _expire(self) -> None:
        self.timed_out = True
        if self.process is not None and self.process.poll() is None:
            self.process.kill()

    def lines(self) -> Iterator[str]:
        assert self.process is not None and self.process.stdout is not None
        for line in self.process.stdout:
            yield line

    def wait(self) -> int:
        assert self.process is not None
        returncode = self.process.wait()
        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=1)
        if self.timed_out:
            raise GeneratorError("generator timed out", timed_out=True)
        if returncode != 0:
            raise GeneratorError(self.stderr.strip() or f"exit code {returncode}")
        return returncode

    @property
    def stderr(self) -> str:
        return ''.join(self._stderr_chunks)

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._timer is not None:
            self._timer.cancel()
        if self.process is None:
            return
        if self.process.poll() is None:
            self.process.kill()
        self.process.wait()
        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=1)
        for stream in (self.process.stdout, self.process.stderr):
            if stream is not None:
                stream.close()


class DocsService:
    """
    Service for generating workspace documentation.

    Example:
        service = DocsService(config)
        result = service.generate(workspace, echo=sys.stdout.write)
        print(result.path, "generated" if result.generated else "template")
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        command: Optional[str] = None,
        cli_args: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        docs = (config or {}).get('docs', {})
        self.command = command or docs.get('command', 'claude')
        raw_args = cli_args if cli_args is not None else docs.get('cli_args', '')
        self.extra_args = sanitize_argument_list(raw_args)
        self.timeout = timeout or docs.get('timeout_seconds', DEFAULT_TIMEOUT)

    def write_factpacks(self, workspace: Workspace) -> int:
        """Write .factpack.txt into each repository. Returns how many were written."""
        written = 0
        for repo in workspace.mounted:
            pkg = read_package_json(repo.working_copy_path)
            if pkg is None:
                logger.warning(f"Failed to create factpack for {repo.alias}: no readable package.json")
                continue

            scripts = pkg.get('scripts') if isinstance(pkg.get('scripts'), dict) else {}
            facts = [
                f"Alias: {repo.alias}",
                f"Package: {pkg.get('name') or 'unknown'}",
                f"Branch: {repo.branch}",
                f"PM: {repo.package_manager.value}",
                "Scripts:",
                *[f"  - {name}" for name in scripts],
            ]
            try:
                with open(os.path.join(repo.working_copy_path, FACTPACK_FILENAME), 'w') as f:
                    f.write('\n'.join(facts))
            except OSError as e:
                logger.warning(f"Failed to create factpack for {repo.alias}: {e}")
                continue
            written += 1
        return written

    def build_prompt(self, workspace: Workspace) -> str:
        repos = '\n'.join(f"- {r.alias}: {r.branch}" for r in workspace.mounted)
        return (
            "Generate a CLAUDE.md workspace guide.\n\n"
            f"Repos:\n{repos}\n\n"
            "Include:\n"
            "- Available commands (npm run <alias>:*)\n"
            "- How to start dev mode\n"
            "- Repo responsibilities\n\n"
            "Keep it under 100 lines."
        )

    def fallback_template(self, workspace: Workspace) -> str:
        repos = workspace.mounted
        lines = ["# Workspace", "", "## Repositories"]
        lines += [f"- **{r.alias}**: {r.branch}" for r in repos]
        lines += ["", "## Commands", "Run from workspace root:",
                  "- `npm run dev` - Start all repos in dev mode"]
        lines += [f"- `npm run {r.alias}:dev` - Start {r.alias} only" for r in repos]
        lines += ["", "## Getting Started", "1. `npm install`", "2. `npm run dev`", "",
                  "## Repository Details"]
        for r in repos:
            lines += [
                f"### {r.alias}",
                f"- **Branch**: {r.branch}",
                f"- **Package Manager**: {r.package_manager.value}",
                f"- **Location**: repos/{r.alias}/",
                "",
            ]
        lines.append("*Generated from a template because the documentation generator was unavailable.*")
        return '\n'.join(lines) + '\n'

    def _variants(self, prompt: str) -> List[List[str]]:
        args = self.extra_args
        if '--output-format' in args:
            stream = [self.command, '-p', *args, prompt]
        else:
            stream = [self.command, '-p', '--output-format', 'stream-json', '--verbose', *args, prompt]
        plain = [self.command, '-p', *args, prompt]
        return [stream, plain]

    def _run_streaming(self, cmd: List[str], cwd: str, echo: Optional[Callable[[str], Any]]) -> str:
        collected: List[str] = []
        with StreamPipe(cmd, timeout=self.timeout, cwd=cwd) as pipe:
            for line in pipe.lines():
                line = line.strip()
                if not line:
                    continue
                try:
                    event = json.loads(line)
                except ValueError:
                    continue
                if isinstance(event, dict) and event.get('type') == 'result':
                    # final event repeats the whole answer
                    if not collected and isinstance(event.get('result'), str):
                        collected.append(event['result'])
                    continue
                text = extract_text(event)
                if text:
                    collected.append(text)
                    if echo:
                        echo(text)
            pipe.wait()
        return ''.join(collected)

    def _run_plain(self, cmd: List[str], cwd: str) -> str:
        try:
            result = subprocess.run(
                cmd, cwd=cwd, capture_output=True, text=True,
                timeout=self.timeout, shell=False,
            )
        except subprocess.TimeoutExpired:
            raise GeneratorError("generator timed out", timed_out=True)
        if result.returncode != 0:
            raise GeneratorError((result.stderr or '').strip() or f"exit code {result.returncode}")
        return result.stdout

    def _try_generator(self, workspace: Workspace, echo: Optional[Callable[[str], Any]]) -> Optional[str]:
        """Return generated markdown, or None if every variant failed."""
        prompt = self.build_prompt(workspace)
        for cmd in self._variants(prompt):
            streaming = 'stream-json' in cmd
            try:
                if streaming:
                    text = self._run_streaming(cmd, workspace.root_path, echo)
                else:
                    text = self._run_plain(cmd, workspace.root_path)
            except FileNotFoundError:
                logger.info(f"Documentation generator '{self.command}' not found")
                return None
            except GeneratorError as e:
                message = str(e).lower()
                if any(marker in message for marker in _RETRYABLE_MARKERS):
                    continue
                if e.timed_out:
                    logger.warning("Documentation generator timed out; using template")
                else:
                    logger.warning(f"Documentation generator failed: {sanitize_error_message(e)}")
                return None
            except OSError as e:
                logger.warning(f"Documentation generator could not run: {sanitize_error_message(e)}")
                return None

            if text.strip():
                return text
            logger.debug(f"Generator returned no text for {'stream' if streaming else 'print'} mode")
        return None

    def generate(self, workspace: Workspace, echo: Optional[Callable[[str], Any]] = None) -> DocsResult:
        """
        Write factpacks and CLAUDE.md for ``workspace``.

        Args:
            workspace: Created workspace
            echo: Called with each streamed text chunk

        Returns:
            DocsResult; ``generated`` is False when the template was used
        """
        factpacks = self.write_factpacks(workspace)
        path = os.path.join(workspace.root_path, DOCS_FILENAME)

        text = self._try_generator(workspace, echo)
        generated = text is not None
        if text is None:
            text = self.fallback_template(workspace)

        with open(path, 'w') as f:
            f.write(text)
        return DocsResult(
            path=path,
            generated=generated,
            factpacks=factpacks,
            error=None if generated else "generator unavailable",
        )
