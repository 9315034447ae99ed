"""
CLI tests for ccws using click's CliRunner.
"""

import json
import os
import shutil

import pytest
from click.testing import CliRunner

from ccws import __version__
from ccws.cli import cli
from ccws.exceptions import InvalidAliasError, NoRepositoriesMountedError
from ccws.exit_codes import NoReposFoundError, PartialSuccessError, get_exit_code_for_exception

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def json_lines(output):
    """JSONL records from mixed CliRunner output."""
    return [json.loads(line) for line in output.splitlines() if line.startswith('{')]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_env(isolated_home, tmp_path, monkeypatch):
    """Isolated config with workspaces under tmp_path/ws and docs disabled."""
    monkeypatch.setenv('CCWS_GENERAL_WORKSPACE_PARENT', str(tmp_path / 'ws'))
    monkeypatch.setenv('CCWS_DOCS_ENABLED', 'false')
    monkeypatch.setenv('CCWS_GIT_FETCH_TIMEOUT_SECONDS', '5')
    monkeypatch.setenv('NO_COLOR', '1')
    return tmp_path / 'ws'


class TestGroup:
    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert f"ccws, version {__version__}" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        for name in ('create', 'discover', 'config'):
            assert name in result.output


class TestConfigCommand:
    def test_show_defaults(self, runner, isolated_home):
        result = runner.invoke(cli, ['config', 'show'])
        assert result.exit_code == 0
        config = json.loads(result.output)
        assert config['discovery']['max_depth'] == 3

    def test_show_yaml(self, runner, isolated_home):
        result = runner.invoke(cli, ['config', 'show', '--format', 'yaml'])
        assert result.exit_code == 0
        assert 'max_depth: 3' in result.output

    def test_path_and_init(self, runner, isolated_home):
        result = runner.invoke(cli, ['config', 'path'])
        info = json.loads(result.output)
        assert info == {'config_path': str(isolated_home / '.ccws' / 'config.json'), 'exists': False}

        result = runner.invoke(cli, ['config', 'init'])
        assert result.exit_code == 0
        assert (isolated_home / '.ccws' / 'config.json').exists()

        result = runner.invoke(cli, ['config', 'init'])
        assert result.exit_code == 0
        assert 'already exists' in result.output


class TestDiscoverCommand:
    def test_json(self, runner, cli_env, tmp_path):
        for name in ('web', 'api'):
            (tmp_path / 'code' / name / '.git').mkdir(parents=True)

        result = runner.invoke(cli, ['discover', str(tmp_path / 'code'), '--json'])

        assert result.exit_code == 0
        records = json_lines(result.output)
        assert sorted(r['name'] for r in records) == ['api', 'web']
        assert all(os.path.isabs(r['path']) for r in records)

    def test_max_depth(self, runner, cli_env, tmp_path):
        (tmp_path / 'code' / 'group' / 'web' / '.git').mkdir(parents=True)

        result = runner.invoke(cli, ['discover', str(tmp_path / 'code'), '--max-depth', '1', '--json'])
        assert result.exit_code == 65

        result = runner.invoke(cli, ['discover', str(tmp_path / 'code'), '--max-depth', '2', '--json'])
        assert result.exit_code == 0

    def test_nothing_found(self, runner, cli_env, tmp_path):
        (tmp_path / 'empty').mkdir()
        result = runner.invoke(cli, ['discover', str(tmp_path / 'empty'), '--json'])

        assert result.exit_code == 65
        error = json_lines(result.output)[-1]
        assert error['type'] == 'NoReposFoundError'
        assert error['exit_code'] == 65

    def test_table_output(self, runner, cli_env, tmp_path):
        (tmp_path / 'code' / 'web' / '.git').mkdir(parents=True)
        result = runner.invoke(cli, ['discover', str(tmp_path / 'code')])
        assert result.exit_code == 0
        assert 'web' in result.output


class TestCreateCommand:
    def test_malformed_repo_option(self, runner, cli_env):
        result = runner.invoke(cli, ['create', '--repo', 'nonsense'])
        assert result.exit_code == 2

    def test_every_repository_missing(self, runner, cli_env):
        result = runner.invoke(cli, [
            'create', '--repo', 'b=/does/not/exist@main', '--json',
        ])

        assert result.exit_code == 64
        records = json_lines(result.output)
        assert records[0]['name'] == 'b'
        assert records[0]['status'] == 'failed'
        assert records[-1]['type'] == 'NoRepositoriesMountedError'
        # the empty workspace root is removed
        assert os.listdir(cli_env) == []

    @requires_git
    def test_partial_success(self, runner, cli_env, repo_factory):
        repo = repo_factory('a', package_json={'name': 'a', 'scripts': {'dev': 'vite'}})

        result = runner.invoke(cli, [
            'create',
            '--repo', f"a={repo}@feature/x",
            '--repo', 'b=/does/not/exist@feature/x',
            '--json',
        ])

        assert result.exit_code == 0, result.output
        records = json_lines(result.output)
        details = [r for r in records if 'status' in r]
        assert [(d['name'], d['status']) for d in details] == [('a', 'success'), ('b', 'failed')]

        summary = records[-1]
        assert summary['type'] == 'summary'
        assert summary['successful'] == 1
        assert summary['failed'] == 1
        assert summary['docs'] is None

        root = summary['root_path']
        assert os.path.isfile(os.path.join(root, 'repos', 'a', 'package.json'))
        with open(os.path.join(root, 'package.json')) as f:
            manifest = json.load(f)
        assert manifest['scripts']['a:dev'] == 'npm --prefix ./repos/a run dev'

    @requires_git
    def test_strict_partial_success(self, runner, cli_env, repo_factory):
        repo = repo_factory('a')

        result = runner.invoke(cli, [
            'create', '--strict', '--json',
            '--repo', f"a={repo}@feature/x",
            '--repo', 'b=/does/not/exist@feature/x',
        ])

        assert result.exit_code == 71
        error = json_lines(result.output)[-1]
        assert error['type'] == 'PartialSuccessError'
        assert (error['succeeded'], error['failed']) == (1, 1)

    @requires_git
    def test_no_manifest(self, runner, cli_env, repo_factory):
        repo = repo_factory('a')

        result = runner.invoke(cli, ['create', '--no-manifest', '--json', '--repo', f"a={repo}@feature/x"])

        assert result.exit_code == 0, result.output
        summary = json_lines(result.output)[-1]
        assert summary['manifest'] is None
        assert not os.path.exists(os.path.join(summary['root_path'], 'package.json'))

    @requires_git
    def test_branch_defaults_to_current(self, runner, cli_env, repo_factory):
        repo = repo_factory('a')

        result = runner.invoke(cli, ['create', '--json', '--repo', f"a={repo}"])

        # main is checked out in the source, so the worktree cannot take it
        assert result.exit_code == 64
        assert 'already' in json_lines(result.output)[0]['error']

    @requires_git
    def test_interactive(self, runner, cli_env, repo_factory, tmp_path):
        repo_factory('web')

        result = runner.invoke(
            cli,
            ['create', '--base-dir', str(tmp_path / 'src'), '--plain'],
            input='1\nfront\nfeature/x\ny\n',
        )

        assert result.exit_code == 0, result.output
        assert 'Workspace ready' in result.output
        [root] = os.listdir(cli_env)
        assert os.path.isdir(os.path.join(cli_env, root, 'repos', 'front'))

    @requires_git
    def test_interactive_declined(self, runner, cli_env, repo_factory, tmp_path):
        repo_factory('web')

        result = runner.invoke(
            cli,
            ['create', '--base-dir', str(tmp_path / 'src'), '--plain'],
            input='1\n\nfeature/x\nn\n',
        )

        assert result.exit_code == 0
        assert 'cancelled' in result.output
        assert not cli_env.exists()

    def test_interactive_nothing_found(self, runner, cli_env, tmp_path):
        (tmp_path / 'empty').mkdir()
        result = runner.invoke(cli, ['create', '--base-dir', str(tmp_path / 'empty')])
        assert result.exit_code == 65


class TestExitCodes:
    @pytest.mark.parametrize('exc, code', [
        (PartialSuccessError('1 of 2 failed', succeeded=1, failed=1), 71),
        (NoRepositoriesMountedError(root_path='/ws', failed=2), 64),
        (NoReposFoundError(), 65),
        (InvalidAliasError('../x', 'bad'), 70),
        (PermissionError('denied'), 67),
        (RuntimeError('boom'), 1),
    ])
    def test_exception_mapping(self, exc, code):
        assert get_exit_code_for_exception(exc) == code
