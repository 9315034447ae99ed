import json
import os

import click
import toml
import yaml

from ..config import get_config_path, get_default_config, load_config, save_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted output instead of single-line JSON")
@click.option("--format", "fmt", type=click.Choice(["json", "toml", "yaml"]), default="json",
              help="Serialization format (default: json)")
def show_config(pretty, fmt):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    """
    config = load_config()

    if fmt == "toml":
        click.echo(toml.dumps(config), nl=False)
    elif fmt == "yaml":
        click.echo(yaml.safe_dump(config, default_flow_style=False), nl=False)
    elif pretty:
        click.echo(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        click.echo(json.dumps(config, ensure_ascii=False))


@config_cmd.command("path")
def config_path():
    """Show the config file path being used."""
    path = get_config_path()
    click.echo(json.dumps({"config_path": str(path), "exists": path.exists()}))


@config_cmd.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
def init_config(force):
    """Write the default configuration to the config file path."""
    path = get_config_path()
    if path.exists() and os.path.getsize(path) > 0 and not force:
        click.echo(f"Configuration already exists at {path} (use --force to overwrite)", err=True)
        return
    written = save_config(get_default_config())
    click.echo(f"Default configuration written to {written}", err=True)
