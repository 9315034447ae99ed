"""
Path and name validation for ccws.

Every path, branch name or alias that reaches a subprocess or the
filesystem goes through this module first. The functions are pure:
they either return the cleaned value or raise a ValidationError
subclass, and they never touch the disk.
"""

import os
import re
from typing import List, Optional

from .exceptions import (
    InvalidAliasError,
    InvalidBranchNameError,
    PathTraversalError,
    ValidationError,
)

MAX_BRANCH_LENGTH = 255
MAX_ARGUMENTS = 10
MAX_ERROR_MESSAGE_LENGTH = 200

# (pattern, reason) pairs checked against the trimmed branch name
DANGEROUS_BRANCH_PATTERNS = [
    (re.compile(r'\.\.'), "contains a parent-directory sequence"),
    (re.compile(r'^-'), "starts with a hyphen"),
    (re.compile(r'[\x00-\x1f\x7f]'), "contains control characters"),
    (re.compile(r'[;&|`$(){}]'), "contains shell metacharacters"),
    (re.compile(r'\s'), "contains whitespace"),
    (re.compile(r'@\{'), "contains reflog syntax"),
]

BRANCH_NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9/_.-]*[A-Za-z0-9]$')
ALIAS_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
SAFE_ARGUMENT_PATTERN = re.compile(r'^[a-zA-Z0-9._-]+$')

# Flags that may be forwarded to the docs generator process
ALLOWED_CLI_FLAGS = (
    '--model', '--temperature', '--max-tokens', '--format',
    '--timeout', '--verbose', '--quiet', '--help', '--version',
)

_SEPARATORS = re.compile(r'[\\/]+')
_PATH_IN_MESSAGE = re.compile(r'/[^\s]+')
_IP_IN_MESSAGE = re.compile(r'\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b')


def _has_parent_segment(path: str) -> bool:
    return '..' in _SEPARATORS.split(path)


def validate_path(raw) -> str:
    """
    Resolve ``raw`` to an absolute, normalized path.

    Args:
        raw: Path string or Path object

    Returns:
        Absolute path string

    Raises:
        PathTraversalError: If the raw or resolved form has a '..' segment
        ValidationError: If the path is empty or contains a null byte
    """
    raw = os.fspath(raw)
    if not raw or not raw.strip():
        raise ValidationError("Path must not be empty")
    if '\x00' in raw:
        raise ValidationError("Path contains a null byte")
    if _has_parent_segment(raw):
        raise PathTraversalError(raw)

    resolved = os.path.abspath(os.path.expanduser(raw))
    if _has_parent_segment(resolved):
        raise PathTraversalError(raw)
    return resolved


def validate_branch_name(raw: str) -> str:
    """
    Validate a git branch name and return it trimmed.

    Trimming happens first; the trimmed value is what gets checked and
    returned.

    Raises:
        InvalidBranchNameError: On any dangerous pattern, a bad format,
            or a name longer than 255 characters
    """
    if not isinstance(raw, str):
        raise InvalidBranchNameError(repr(raw), "must be a string")

    branch = raw.strip()
    if not branch:
        raise InvalidBranchNameError(branch, "must not be empty")

    for pattern, reason in DANGEROUS_BRANCH_PATTERNS:
        if pattern.search(branch):
            raise InvalidBranchNameError(branch, reason)

    if not BRANCH_NAME_PATTERN.match(branch):
        raise InvalidBranchNameError(
            branch, "must start and end with a letter or digit"
        )

    if len(branch) > MAX_BRANCH_LENGTH:
        raise InvalidBranchNameError(branch, "too long")

    return branch


def validate_alias(raw: str) -> str:
    """Validate a repository alias (letters, digits, '-' and '_')."""
    if not isinstance(raw, str):
        raise InvalidAliasError(repr(raw), "must be a string")

    alias = raw.strip()
    if not alias:
        raise InvalidAliasError(alias, "must not be empty")
    if not ALIAS_PATTERN.match(alias):
        raise InvalidAliasError(
            alias, "can only contain letters, numbers, hyphens, and underscores"
        )
    return alias


def sanitize_argument_list(raw: Optional[str] = None) -> List[str]:
    """
    Turn a user-configured argument string into a safe argument list.

    Keeps tokens that start with an allowed flag or consist only of
    conservative characters, and caps the result at 10 tokens.
    """
    if not raw or not isinstance(raw, str):
        return []

    kept = [token for token in raw.split() if _is_safe_argument(token)]
    return kept[:MAX_ARGUMENTS]


def _is_safe_argument(token: str) -> bool:
    if SAFE_ARGUMENT_PATTERN.match(token):
        return True
    flag, sep, value = token.partition('=')
    if flag not in ALLOWED_CLI_FLAGS:
        return False
    # --flag=value is only allowed with a conservative value
    return not sep or bool(SAFE_ARGUMENT_PATTERN.match(value))


def sanitize_error_message(error) -> str:
    """
    Strip file paths and IP addresses from an error before showing it.

    Returns 'Unknown error' for anything that is not an exception.
    """
    if not isinstance(error, BaseException):
        return "Unknown error"

    message = _PATH_IN_MESSAGE.sub('<path>', str(error))
    message = _IP_IN_MESSAGE.sub('<ip>', message)
    return message[:MAX_ERROR_MESSAGE_LENGTH]
