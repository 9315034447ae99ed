#!/usr/bin/env python3

import click

from ccws import __version__

from ccws.commands.config import config_cmd
from ccws.commands.create import create_handler
from ccws.commands.discover import discover_handler


@click.group()
@click.version_option(version=__version__, prog_name='ccws')
def cli():
    """ccws - Multi-repository workspaces for parallel development.

    Mounts several git repositories as worktrees in one disposable
    workspace, with dependencies and .env files carried over and a root
    package.json that runs them together.
    """
    pass


cli.add_command(create_handler, name='create')
cli.add_command(discover_handler, name='discover')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
