"""
Discover command for ccws.

Lists the git repositories a workspace can be built from.
"""

import os
from typing import Any, Dict, Optional

import click

from ..cli_utils import add_common_options, standard_command
from ..exit_codes import NoReposFoundError
from ..progress import Reporter
from ..render import render_discovered_table
from ..services.discovery_service import DiscoveryService


@click.command('discover')
@click.argument('base_dir', type=click.Path(file_okay=False), default='.')
@click.option('--max-depth', type=click.IntRange(min=0),
              help='Deepest directory level to search (default: discovery.max_depth)')
@add_common_options('json', 'plain', 'quiet', 'debug')
@standard_command
def discover_handler(
    base_dir: str,
    max_depth: Optional[int],
    output_json: bool,
    plain: bool,
    quiet: bool,
    debug: bool,
    reporter: Reporter,
    config: Dict[str, Any],
):
    """
    Find git repositories under BASE_DIR.

    Examples:

        ccws discover ~/code
        ccws discover ~/code --max-depth 1 --json
    """
    service = DiscoveryService.from_config(config)
    if max_depth is not None:
        service.max_depth = max_depth

    paths = service.discover(base_dir)
    if not paths:
        raise NoReposFoundError(f"No git repositories found in {base_dir}")

    repos = [
        {'name': os.path.basename(p), 'path': p, 'branch': service.current_branch(p)}
        for p in paths
    ]
    if output_json:
        return repos
    if not quiet:
        render_discovered_table(repos)
    return None
