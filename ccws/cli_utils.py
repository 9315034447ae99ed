"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
from functools import wraps
from typing import Any, Generator

import click

from .config import configure_logging, load_config
from .exceptions import UserCancelledError
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .progress import get_reporter
from .security import sanitize_error_message


def emit_json(item: Any) -> None:
    """Print one JSONL record on stdout."""
    print(json.dumps(item, ensure_ascii=False), flush=True)


def output_result(result: Any) -> None:
    """
    Standard output handler for results.

    Args:
        result: The result to output (dict, list, or generator)
    """
    if isinstance(result, Generator):
        for item in result:
            emit_json(item)
    elif isinstance(result, (list, tuple)):
        for item in result:
            emit_json(item)
    elif isinstance(result, dict):
        emit_json(result)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Configuration loaded once and logging configured from it
    - A reporter for progress on stderr, injected as ``reporter``
    - The loaded configuration, injected as ``config``
    - Clean JSONL on stdout with --json, including error records
    - Consistent exit codes from ccws.exit_codes

    The wrapped command must accept the ``json``, ``plain``, ``quiet`` and
    ``debug`` options (see add_common_options).
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        output_json = kwargs.get('output_json', False)
        quiet = kwargs.get('quiet', False)
        plain = kwargs.get('plain', False)
        debug = kwargs.get('debug', False)

        reporter = get_reporter(plain=True if plain else None, quiet=quiet)

        try:
            config = load_config()
            configure_logging(config, debug=debug)
            kwargs['reporter'] = reporter
            kwargs['config'] = config

            result = func(*args, **kwargs)
            if output_json and result is not None:
                output_result(result)
            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            reporter.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except UserCancelledError as e:
            reporter.warning(str(e))
            sys.exit(SUCCESS)
        except CommandError as e:
            reporter.error(str(e))
            if output_json:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": e.exit_code
                }
                # Add extra fields for PartialSuccessError
                if hasattr(e, 'succeeded'):
                    error_obj['succeeded'] = e.succeeded
                    error_obj['failed'] = e.failed
                emit_json(error_obj)
            sys.exit(e.exit_code)
        except Exception as e:
            message = str(e) if debug else sanitize_error_message(e)
            reporter.error(f"Command failed: {message}")
            if output_json:
                emit_json({"error": message, "type": type(e).__name__})
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that commands share
common_options = {
    'json': click.option('--json', 'output_json', is_flag=True,
                         help='Output JSONL records on stdout'),
    'plain': click.option('--plain', is_flag=True,
                          help='Plain progress output without colors'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                          help='Only show warnings and errors on stderr'),
    'debug': click.option('--debug', is_flag=True,
                          help='Enable debug logging'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('json', 'debug')
        def my_command(output_json, debug):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            func = common_options[name](func)
        return func
    return decorator


__all__ = [
    'add_common_options',
    'emit_json',
    'output_result',
    'standard_command',
]
