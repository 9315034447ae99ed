"""
Package manager detection for ccws.

A working copy's package manager is inferred from its lockfile, checked
from the most specific format to the least, then from the
``packageManager`` field of package.json, defaulting to npm.
"""

import json
import logging
import os
from typing import Optional

from ..domain import PackageManager

logger = logging.getLogger(__name__)

# Checked in order; first match wins
LOCKFILES = [
    ('pnpm-lock.yaml', PackageManager.PNPM),
    ('yarn.lock', PackageManager.YARN),
    ('package-lock.json', PackageManager.NPM),
]

DEFAULT_PACKAGE_MANAGER = PackageManager.NPM


def _from_manifest_field(value: str) -> Optional[PackageManager]:
    # "pnpm@8.6.0" style first, then any mention of the name
    for pm in (PackageManager.PNPM, PackageManager.YARN, PackageManager.NPM):
        if value.startswith(f"{pm.value}@"):
            return pm
    for pm in (PackageManager.PNPM, PackageManager.YARN, PackageManager.NPM):
        if pm.value in value:
            return pm
    return None


def read_package_json(directory: str) -> Optional[dict]:
    """Load ``package.json`` from ``directory``; None if missing or invalid."""
    path = os.path.join(directory, 'package.json')
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def detect_package_manager(directory: str) -> PackageManager:
    """Detect which package manager the project in ``directory`` uses."""
    for filename, pm in LOCKFILES:
        if os.path.exists(os.path.join(directory, filename)):
            return pm

    pkg = read_package_json(directory)
    if pkg is not None:
        field_value = pkg.get('packageManager')
        if isinstance(field_value, str):
            pm = _from_manifest_field(field_value)
            if pm is not None:
                return pm

    return DEFAULT_PACKAGE_MANAGER


def script_command(pm: PackageManager, alias: str, script: str) -> str:
    """
    Command line that runs ``script`` in ``repos/<alias>`` from the workspace root.
    """
    if pm == PackageManager.YARN:
        return f"yarn --cwd ./repos/{alias} {script}"
    if pm == PackageManager.PNPM:
        return f"pnpm -C ./repos/{alias} {script}"
    return f"npm --prefix ./repos/{alias} run {script}"
