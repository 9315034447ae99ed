"""
Shared fixtures for ccws tests.
"""

import json
import os
import subprocess
from pathlib import Path

import pytest

from ccws.config import get_default_config


def git(path, *args):
    """Run git in ``path`` with a fixed identity; raise on failure."""
    return subprocess.run(
        ['git', '-c', 'user.name=Test', '-c', 'user.email=test@example.com',
         '-c', 'init.defaultBranch=main', '-C', str(path), *args],
        check=True, capture_output=True, text=True,
    )


def make_repo(path: Path, package_json=None, files=None) -> Path:
    """Create a git repository at ``path`` with one commit on 'main'."""
    path.mkdir(parents=True, exist_ok=True)
    git(path, 'init', '-q')
    git(path, 'symbolic-ref', 'HEAD', 'refs/heads/main')
    (path / 'README.md').write_text(f"# {path.name}\n")
    if package_json is not None:
        (path / 'package.json').write_text(json.dumps(package_json))
    for name, content in (files or {}).items():
        (path / name).write_text(content)
    git(path, 'add', '-A')
    git(path, 'commit', '-q', '-m', 'initial')
    return path


@pytest.fixture
def repo_factory(tmp_path):
    """Build git repositories under ``tmp_path / 'src'``."""
    def factory(name, **kwargs):
        return make_repo(tmp_path / 'src' / name, **kwargs)
    return factory


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at a temp dir and clear CCWS_* variables."""
    home = tmp_path / 'home'
    home.mkdir()
    monkeypatch.setenv('HOME', str(home))
    monkeypatch.delenv('CCWS_CONFIG', raising=False)
    for key in list(os.environ):
        if key.startswith('CCWS_'):
            monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def config(tmp_path):
    """Default configuration with workspaces created under tmp_path/ws."""
    cfg = get_default_config()
    cfg['general']['workspace_parent'] = str(tmp_path / 'ws')
    cfg['git']['fetch_timeout_seconds'] = 5
    cfg['docs']['enabled'] = False
    return cfg


@pytest.fixture
def run_git():
    """The ``git`` helper, for tests that need extra repository setup."""
    return git
