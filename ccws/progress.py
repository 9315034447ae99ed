"""
Progress reporting utilities for ccws.

Provides consistent progress reporting that respects piping and redirection.
Messages go to stderr so stdout stays clean for JSONL data.

Two reporters exist: RichReporter (colors and styles through rich) and
PlainReporter (bare text). get_reporter() picks one once, at startup.
"""

import os
import sys
from enum import Enum
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape


class LogLevel(Enum):
    """Levels for progress messages."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    SUCCESS = 4


class Reporter:
    """Interface every reporter implements."""

    def __call__(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        raise NotImplementedError

    def header(self, message: str) -> None:
        self(message)

    def info(self, message: str) -> None:
        self(message, level=LogLevel.INFO)

    def success(self, message: str) -> None:
        self(message, level=LogLevel.SUCCESS)

    def warning(self, message: str) -> None:
        self(message, level=LogLevel.WARNING)

    def error(self, message: str) -> None:
        self(message, level=LogLevel.ERROR)

    def progress(self, message: str) -> None:
        """Report a message yielded by a service, styled by its leading marker."""
        if message.startswith('✓'):
            self.success(message)
        elif message.startswith('✗'):
            self.error(message)
        elif message.startswith('⚠'):
            self.warning(message)
        else:
            self.info(message)

    def stream(self, text: str) -> None:
        """Echo streamed generator text as-is."""
        raise NotImplementedError


class PlainReporter(Reporter):
    """Unstyled output, for pipes, dumb terminals and NO_COLOR."""

    PREFIXES = {
        LogLevel.WARNING: "WARNING: ",
        LogLevel.ERROR: "ERROR: ",
    }

    def __init__(self, stream: Optional[TextIO] = None, quiet: bool = False):
        self._stream = stream
        self.quiet = quiet

    @property
    def out(self) -> TextIO:
        return self._stream or sys.stderr

    def __call__(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        if self.quiet and level not in (LogLevel.WARNING, LogLevel.ERROR):
            return
        if level in self.PREFIXES and not message.startswith(('✗', '⚠')):
            message = self.PREFIXES[level] + message
        print(message, file=self.out, flush=True)

    def stream(self, text: str) -> None:
        if not self.quiet:
            self.out.write(text)
            self.out.flush()


class RichReporter(Reporter):
    """Styled output through a rich Console on stderr."""

    STYLES = {
        LogLevel.DEBUG: "dim",
        LogLevel.INFO: "",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
        LogLevel.SUCCESS: "green",
    }

    def __init__(self, console: Optional[Console] = None, quiet: bool = False):
        self.console = console or Console(stderr=True)
        self.quiet = quiet

    def __call__(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        if self.quiet and level not in (LogLevel.WARNING, LogLevel.ERROR):
            return
        style = self.STYLES[level]
        text = escape(message)
        self.console.print(f"[{style}]{text}[/{style}]" if style else text)

    def header(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[bold cyan]{escape(message)}[/bold cyan]")

    def stream(self, text: str) -> None:
        if not self.quiet:
            self.console.print(text, end='', markup=False, highlight=False)


def supports_rich(stream: Optional[TextIO] = None) -> bool:
    """Feasibility probe: styled output only on a terminal without NO_COLOR."""
    stream = stream or sys.stderr
    if os.environ.get('NO_COLOR') is not None:
        return False
    if os.environ.get('TERM') == 'dumb':
        return False
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def get_reporter(plain: Optional[bool] = None, quiet: bool = False) -> Reporter:
    """
    Choose a reporter once.

    Args:
        plain: Force plain (True) or rich (False) output; None = probe
        quiet: Only show warnings and errors
    """
    if plain is None:
        plain = not supports_rich()
    if plain:
        return PlainReporter(quiet=quiet)
    return RichReporter(quiet=quiet)
