"""
Repository selection for ccws.

Builds the list of RepositorySelection objects a workspace is created
from, either interactively (click prompts on stderr) or from
``--repo alias=path[@branch]`` options.
"""

import logging
import os
from typing import Callable, Iterable, List, Optional, Sequence

import click

from .domain import RepositorySelection
from .exceptions import UserCancelledError, ValidationError
from .exit_codes import NoReposFoundError
from .progress import Reporter, get_reporter
from .render import render_discovered_table
from .security import validate_alias, validate_branch_name, validate_path
from .services.discovery_service import DiscoveryService

logger = logging.getLogger(__name__)


def parse_repo_option(value: str, branch_lookup: Optional[Callable[[str], str]] = None) -> RepositorySelection:
    """
    Parse ``alias=path[@branch]`` into a selection.

    Without ``@branch`` the source's current branch is used.

    Raises:
        click.BadParameter: If the value is malformed or fails validation
    """
    alias, sep, rest = value.partition('=')
    if not sep or not alias.strip() or not rest.strip():
        raise click.BadParameter(f"expected alias=path[@branch], got {value!r}")

    path, branch = rest, ''
    if '@' in rest:
        path, _, branch = rest.rpartition('@')

    try:
        alias = validate_alias(alias)
        source = validate_path(path.strip())
        if not branch.strip():
            lookup = branch_lookup or DiscoveryService().current_branch
            branch = lookup(source)
        branch = validate_branch_name(branch)
    except ValidationError as e:
        raise click.BadParameter(f"{value}: {e}")

    return RepositorySelection(alias=alias, source_path=source, branch=branch)


def parse_repo_options(values: Iterable[str], branch_lookup: Optional[Callable[[str], str]] = None) -> List[RepositorySelection]:
    """Parse every ``--repo`` value; aliases must be unique."""
    selections: List[RepositorySelection] = []
    for value in values:
        selection = parse_repo_option(value, branch_lookup=branch_lookup)
        if any(s.alias == selection.alias for s in selections):
            raise click.BadParameter(f"alias '{selection.alias}' is used more than once")
        selections.append(selection)
    return selections


def parse_index_list(text: str, count: int) -> List[int]:
    """
    Parse a selection like ``1,3-4`` or ``all`` into zero-based indices.

    Raises:
        click.BadParameter: On anything outside 1..count, or an empty pick
    """
    text = text.strip().lower()
    if text in ('all', '*'):
        return list(range(count))

    picked: List[int] = []
    for part in text.replace(' ', ',').split(','):
        if not part:
            continue
        try:
            if '-' in part:
                start, end = (int(p) for p in part.split('-', 1))
                numbers = range(start, end + 1)
            else:
                numbers = range(int(part), int(part) + 1)
        except ValueError:
            raise click.BadParameter(f"'{part}' is not a number or range")
        for number in numbers:
            if not 1 <= number <= count:
                raise click.BadParameter(f"{number} is out of range (1-{count})")
            if number - 1 not in picked:
                picked.append(number - 1)

    if not picked:
        raise click.BadParameter("Please select at least one repository")
    return picked


def _alias_validator(taken: Sequence[str]) -> Callable[[str], str]:
    def check(value: str) -> str:
        try:
            alias = validate_alias(value)
        except ValidationError as e:
            raise click.BadParameter(str(e))
        if alias in taken:
            raise click.BadParameter("This alias is already in use, please choose a different one")
        return alias
    return check


def _branch_validator(value: str) -> str:
    try:
        return validate_branch_name(value)
    except ValidationError as e:
        raise click.BadParameter(str(e))


def select_repositories(
    discovery: Optional[DiscoveryService] = None,
    base_dir: Optional[str] = None,
    reporter: Optional[Reporter] = None,
) -> List[RepositorySelection]:
    """
    Walk the user through picking repositories for a workspace.

    Args:
        discovery: Locator to search with (default DiscoveryService)
        base_dir: Directory to search; prompted for when None
        reporter: Progress reporter for status lines

    Returns:
        Confirmed selections in the order they were configured

    Raises:
        NoReposFoundError: If the base directory holds no repositories
        UserCancelledError: On Ctrl+C, EOF or a declined confirmation
    """
    discovery = discovery or DiscoveryService()
    reporter = reporter or get_reporter()

    try:
        if base_dir is None:
            base_dir = click.prompt(
                "Base directory to search for repositories",
                default=os.getcwd(),
                err=True,
            )

        reporter.info(f"Searching for git repositories in {base_dir}...")
        paths = discovery.discover(base_dir)
        if not paths:
            raise NoReposFoundError(f"No git repositories found in {base_dir}")

        repos = [
            {'name': os.path.basename(p), 'path': p, 'branch': discovery.current_branch(p)}
            for p in paths
        ]
        reporter.success(f"Found {len(repos)} repositories")
        render_discovered_table(repos)

        indices = click.prompt(
            "Select repositories (e.g. 1,3-4 or all)",
            value_proc=lambda text: parse_index_list(text, len(repos)),
            err=True,
        )

        selections: List[RepositorySelection] = []
        for position, index in enumerate(indices, 1):
            repo = repos[index]
            reporter.header(f"[{position}/{len(indices)}] {repo['name']}")

            alias = click.prompt(
                f"Alias for {repo['name']}",
                default=repo['name'],
                value_proc=_alias_validator([s.alias for s in selections]),
                err=True,
            )
            branch = click.prompt(
                f"Branch for {alias}",
                default=repo['branch'],
                value_proc=_branch_validator,
                err=True,
            )
            selections.append(RepositorySelection(alias=alias, source_path=repo['path'], branch=branch))

        reporter.header("Configuration summary")
        for number, selection in enumerate(selections, 1):
            reporter.info(f"  {number}. {selection.alias} -> {selection.branch} ({selection.source_path})")

        if not click.confirm("Proceed with this configuration?", default=True, err=True):
            raise UserCancelledError("Configuration cancelled by user")
    except click.Abort:
        raise UserCancelledError("Operation cancelled by user (Ctrl+C)")

    logger.debug(f"Selected {len(selections)} repositories")
    return selections
