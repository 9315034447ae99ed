"""
Tests for progress reporters and rendering.
"""

import io

import pytest
from rich.console import Console

from ccws.domain import (
    MountedRepository,
    OperationDetail,
    OperationStatus,
    OperationSummary,
    PackageManager,
    PrimingMethod,
    PrimingOutcome,
    RepositorySelection,
    Workspace,
)
from ccws.progress import (
    LogLevel,
    PlainReporter,
    RichReporter,
    get_reporter,
    supports_rich,
)
from ccws.render import render_discovered_table, render_workspace_summary
from ccws.services.workspace_service import RepositoryOutcome, WorkspaceResult


class TestPlainReporter:
    def test_levels(self):
        out = io.StringIO()
        reporter = PlainReporter(stream=out)

        reporter.info("hello")
        reporter.warning("careful")
        reporter.error("broken")

        assert out.getvalue().splitlines() == ["hello", "WARNING: careful", "ERROR: broken"]

    def test_quiet_keeps_warnings_and_errors(self):
        out = io.StringIO()
        reporter = PlainReporter(stream=out, quiet=True)

        reporter.info("hello")
        reporter.success("done")
        reporter.stream("text")
        reporter.warning("careful")

        assert out.getvalue() == "WARNING: careful\n"

    def test_progress_routes_by_marker(self):
        out = io.StringIO()
        reporter = PlainReporter(stream=out, quiet=True)

        reporter.progress("✓ web mounted")
        reporter.progress("✗ api: boom")
        reporter.progress("⚠ 1 of 2 repositories failed to mount")
        reporter.progress("Mounting 2 repositories")

        # markers are kept as-is, without a level prefix
        assert out.getvalue().splitlines() == [
            "✗ api: boom",
            "⚠ 1 of 2 repositories failed to mount",
        ]

    def test_stream_writes_verbatim(self):
        out = io.StringIO()
        reporter = PlainReporter(stream=out)
        reporter.stream("# Work")
        reporter.stream("space")
        assert out.getvalue() == "# Workspace"


class TestRichReporter:
    def test_markup_is_escaped(self):
        out = io.StringIO()
        reporter = RichReporter(console=Console(file=out, no_color=True, width=120))

        reporter("branch [feature/x]", level=LogLevel.SUCCESS)

        assert "branch [feature/x]" in out.getvalue()


class TestGetReporter:
    def test_no_color_means_plain(self, monkeypatch):
        monkeypatch.setenv('NO_COLOR', '1')
        assert supports_rich() is False
        assert isinstance(get_reporter(), PlainReporter)

    def test_dumb_terminal(self, monkeypatch):
        monkeypatch.delenv('NO_COLOR', raising=False)
        monkeypatch.setenv('TERM', 'dumb')
        assert supports_rich() is False

    def test_non_tty_stream(self, monkeypatch):
        monkeypatch.delenv('NO_COLOR', raising=False)
        monkeypatch.setenv('TERM', 'xterm')
        assert supports_rich(io.StringIO()) is False

    @pytest.mark.parametrize('plain, expected', [(True, PlainReporter), (False, RichReporter)])
    def test_forced(self, plain, expected):
        assert isinstance(get_reporter(plain=plain), expected)


class TestRender:
    def make_console(self):
        out = io.StringIO()
        return Console(file=out, no_color=True, width=200), out

    def test_discovered_table(self):
        console, out = self.make_console()
        render_discovered_table(
            [{'name': 'web', 'path': '/code/web', 'branch': 'main'}],
            target=console,
        )
        text = out.getvalue()
        assert 'Discovered Repositories' in text
        assert 'web' in text
        assert '/code/web' in text

    def test_empty_table(self):
        console, out = self.make_console()
        render_discovered_table([], target=console)
        assert 'No repositories found' in out.getvalue()

    def test_workspace_summary(self):
        web = RepositorySelection('web', '/code/web', 'feature/x')
        api = RepositorySelection('api', '/code/api', 'feature/x')
        mounted = MountedRepository.from_selection(web, '/ws/repos/web', PackageManager.PNPM)
        summary = OperationSummary(operation='create_workspace')
        summary.add_detail(OperationDetail('/code/web', 'web', OperationStatus.SUCCESS, 'mounted'))
        summary.add_detail(OperationDetail('/code/api', 'api', OperationStatus.FAILED, 'mount_failed', error='gone'))

        result = WorkspaceResult(
            root_path='/ws',
            outcomes=[
                RepositoryOutcome(web, mounted=mounted, priming=PrimingOutcome(PrimingMethod.LINKED)),
                RepositoryOutcome(api, error='gone'),
            ],
            summary=summary,
            workspace=Workspace(root_path='/ws', mounted=(mounted,)),
        )

        console, out = self.make_console()
        render_workspace_summary(result, target=console)
        text = out.getvalue()

        assert 'pnpm' in text
        assert 'mounted' in text
        assert 'failed' in text
        assert 'gone' in text
        assert '1 mounted, 1 failed' in text
