"""
Tests for package manager detection and script commands.
"""

import json

import pytest

from ccws.domain import PackageManager
from ccws.services.package_manager import (
    detect_package_manager,
    read_package_json,
    script_command,
)


class TestDetectPackageManager:
    """Tests for detect_package_manager."""

    @pytest.mark.parametrize('lockfile, expected', [
        ('pnpm-lock.yaml', PackageManager.PNPM),
        ('yarn.lock', PackageManager.YARN),
        ('package-lock.json', PackageManager.NPM),
    ])
    def test_lockfiles(self, tmp_path, lockfile, expected):
        (tmp_path / lockfile).write_text('')
        assert detect_package_manager(str(tmp_path)) == expected

    def test_lockfile_precedence(self, tmp_path):
        for name in ('package-lock.json', 'yarn.lock', 'pnpm-lock.yaml'):
            (tmp_path / name).write_text('')
        assert detect_package_manager(str(tmp_path)) == PackageManager.PNPM

    def test_lockfile_beats_package_manager_field(self, tmp_path):
        (tmp_path / 'yarn.lock').write_text('')
        (tmp_path / 'package.json').write_text(json.dumps({'packageManager': 'pnpm@8.6.0'}))
        assert detect_package_manager(str(tmp_path)) == PackageManager.YARN

    @pytest.mark.parametrize('field, expected', [
        ('pnpm@8.6.0', PackageManager.PNPM),
        ('yarn@4.0.2', PackageManager.YARN),
        ('npm@10.1.0', PackageManager.NPM),
        ('corepack:yarn', PackageManager.YARN),
    ])
    def test_package_manager_field(self, tmp_path, field, expected):
        (tmp_path / 'package.json').write_text(json.dumps({'packageManager': field}))
        assert detect_package_manager(str(tmp_path)) == expected

    def test_defaults_to_npm(self, tmp_path):
        assert detect_package_manager(str(tmp_path)) == PackageManager.NPM

    def test_invalid_package_json_defaults_to_npm(self, tmp_path):
        (tmp_path / 'package.json').write_text('{not json')
        assert detect_package_manager(str(tmp_path)) == PackageManager.NPM

    def test_unknown_field_defaults_to_npm(self, tmp_path):
        (tmp_path / 'package.json').write_text(json.dumps({'packageManager': 'bun@1.0'}))
        assert detect_package_manager(str(tmp_path)) == PackageManager.NPM


class TestReadPackageJson:
    """Tests for read_package_json."""

    def test_missing(self, tmp_path):
        assert read_package_json(str(tmp_path)) is None

    def test_non_object(self, tmp_path):
        (tmp_path / 'package.json').write_text('[1, 2]')
        assert read_package_json(str(tmp_path)) is None

    def test_valid(self, tmp_path):
        (tmp_path / 'package.json').write_text(json.dumps({'name': 'web'}))
        assert read_package_json(str(tmp_path)) == {'name': 'web'}


class TestScriptCommand:
    """Tests for script_command."""

    def test_npm(self):
        assert script_command(PackageManager.NPM, 'web', 'dev') == 'npm --prefix ./repos/web run dev'

    def test_yarn(self):
        assert script_command(PackageManager.YARN, 'web', 'dev') == 'yarn --cwd ./repos/web dev'

    def test_pnpm(self):
        assert script_command(PackageManager.PNPM, 'web', 'dev') == 'pnpm -C ./repos/web dev'
