#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import toml
import yaml

logger = logging.getLogger("ccws")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']
DEFAULT_LOG_FORMAT = "%(levelname)s: %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. CCWS_CONFIG environment variable
    2. ~/.ccws/config.{json,toml,yaml,yml}
    """
    if 'CCWS_CONFIG' in os.environ:
        path = Path(os.environ['CCWS_CONFIG']).expanduser()
        if path.exists():
            return path

    ccws_dir = Path.home() / '.ccws'
    for filename in CONFIG_FILENAMES:
        path = ccws_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return ccws_dir / 'config.json'


def _read_config_file(config_path: Path) -> dict:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
            if not isinstance(file_config, dict):
                raise ValueError("top-level value must be a mapping")
            config = merge_configs(config, file_config)
        except Exception as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    return apply_env_overrides(config)


def save_config(config):
    """Save configuration to file."""
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        suffix = config_path.suffix.lower()
        with open(config_path, 'w') as f:
            if suffix == '.toml':
                toml.dump(config, f)
            elif suffix in ('.yaml', '.yml'):
                yaml.safe_dump(config, f, default_flow_style=False)
            else:
                json.dump(config, f, indent=2)

        logger.info(f"Configuration saved to {config_path}")
    except OSError as e:
        logger.error(f"Error saving config to {config_path}: {e}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "workspace_parent": ".",
            "workspace_prefix": "ccws",
            "max_concurrent_mounts": 8
        },
        "discovery": {
            "max_depth": 3,
            "cache_ttl_seconds": 300
        },
        "git": {
            "remote": "origin",
            "fetch_timeout_seconds": 30
        },
        "priming": {
            "dependency_dir": "node_modules",
            "mirror_timeout_seconds": 600
        },
        "docs": {
            "enabled": True,
            "command": "claude",
            "cli_args": "",
            "timeout_seconds": 300
        },
        "manifest": {
            "enabled": True,
            "scripts": ["dev", "build", "test", "lint", "start"]
        },
        "logging": {
            "level": "WARNING",
            "format": DEFAULT_LOG_FORMAT
        }
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: CCWS_SECTION_KEY
    For example: CCWS_GIT_FETCH_TIMEOUT_SECONDS=10
    """
    env_prefix = "CCWS_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'CCWS_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # env var is longer than the config path it matched
                break

    return config


def configure_logging(config=None, debug=False):
    """Configure the root logger from the ``logging`` config section."""
    settings = (config or {}).get('logging', {})
    if debug:
        level = logging.DEBUG
        fmt = DEBUG_LOG_FORMAT
    else:
        level = getattr(logging, str(settings.get('level', 'WARNING')).upper(), logging.WARNING)
        fmt = settings.get('format', DEFAULT_LOG_FORMAT)

    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
