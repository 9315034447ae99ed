"""
Tests for .env file propagation.
"""

import os
import stat

import pytest

from ccws.services.env_files_service import EnvFilePropagator


@pytest.fixture
def roots(tmp_path):
    source = tmp_path / 'src'
    target = tmp_path / 'dst'
    source.mkdir()
    target.mkdir()
    return source, target


class TestEnvFilePropagator:
    """Tests for EnvFilePropagator.propagate."""

    def test_copies_env_files_only(self, roots):
        source, target = roots
        (source / '.env').write_text('A=1\n')
        (source / '.env.local').write_text('B=2\n')
        (source / '.envrc').write_text('use nix\n')
        (source / 'README.md').write_text('# hi\n')

        result = EnvFilePropagator().propagate(str(source), str(target))

        assert result.copied == ['.env', '.env.local', '.envrc']
        assert result.success
        assert (target / '.env').read_text() == 'A=1\n'
        assert not (target / 'README.md').exists()

    def test_overwrites_existing_target(self, roots):
        source, target = roots
        (source / '.env').write_text('NEW=1\n')
        (target / '.env').write_text('OLD=1\n')

        EnvFilePropagator().propagate(str(source), str(target))

        assert (target / '.env').read_text() == 'NEW=1\n'

    def test_preserves_mode(self, roots):
        source, target = roots
        env = source / '.env'
        env.write_text('SECRET=1\n')
        os.chmod(env, 0o600)

        EnvFilePropagator().propagate(str(source), str(target))

        assert stat.S_IMODE(os.stat(target / '.env').st_mode) == 0o600

    def test_symlinks_are_skipped(self, roots, tmp_path):
        source, target = roots
        secret = tmp_path / 'outside-secret'
        secret.write_text('TOP=secret\n')
        os.symlink(secret, source / '.env')

        result = EnvFilePropagator().propagate(str(source), str(target))

        assert result.skipped == ['.env']
        assert result.copied == []
        assert not os.path.lexists(target / '.env')

    def test_directories_are_skipped(self, roots):
        source, target = roots
        (source / '.env.d').mkdir()

        result = EnvFilePropagator().propagate(str(source), str(target))

        assert result.skipped == ['.env.d']

    def test_symlink_at_target_replaced_not_followed(self, roots, tmp_path):
        source, target = roots
        (source / '.env').write_text('A=1\n')
        victim = tmp_path / 'victim'
        victim.write_text('untouched\n')
        os.symlink(victim, target / '.env')

        result = EnvFilePropagator().propagate(str(source), str(target))

        assert result.copied == ['.env']
        assert victim.read_text() == 'untouched\n'
        assert not os.path.islink(target / '.env')

    def test_no_env_files(self, roots):
        source, target = roots
        result = EnvFilePropagator().propagate(str(source), str(target))
        assert result.copied == [] and result.errors == []

    def test_missing_source_is_an_error(self, tmp_path):
        target = tmp_path / 'dst'
        target.mkdir()
        result = EnvFilePropagator().propagate(str(tmp_path / 'missing'), str(target))
        assert result.errors == ["Invalid source directory"]

    def test_missing_target_is_an_error(self, roots, tmp_path):
        source, _ = roots
        result = EnvFilePropagator().propagate(str(source), str(tmp_path / 'missing'))
        assert result.errors == ["Invalid destination directory"]

    def test_traversal_is_an_error(self, roots):
        _, target = roots
        result = EnvFilePropagator().propagate('../up', str(target))
        assert not result.success
