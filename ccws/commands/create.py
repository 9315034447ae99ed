"""
Create command for ccws.

Builds a workspace from repositories picked interactively or passed with
``--repo alias=path[@branch]``, then writes the root package.json and
CLAUDE.md.
"""

import logging
import shutil
from typing import Any, Dict, List, Optional

import click

from ..cli_utils import add_common_options, emit_json, standard_command
from ..domain import RepositorySelection, Workspace
from ..exceptions import NoRepositoriesMountedError
from ..exit_codes import PartialSuccessError
from ..progress import Reporter
from ..prompts import parse_repo_options, select_repositories
from ..render import render_workspace_summary
from ..services.discovery_service import DiscoveryService
from ..services.docs_service import DocsService
from ..services.manifest_service import ManifestService
from ..services.workspace_service import WorkspaceResult, WorkspaceService

logger = logging.getLogger(__name__)


def _remove_empty_root(root: Optional[str], reporter: Reporter) -> None:
    if not root:
        return
    reporter.info("Cleaning up empty workspace...")
    try:
        shutil.rmtree(root)
    except OSError as e:
        reporter.warning(f"Failed to clean up workspace {root}: {e}")
        return
    reporter.info(f"Removed {root}")


def _write_manifest(workspace: Workspace, config: Dict[str, Any], reporter: Reporter) -> Optional[str]:
    scripts = config.get('manifest', {}).get('scripts')
    try:
        path = ManifestService(scripts=scripts).write(workspace)
    except OSError as e:
        reporter.warning(f"Failed to generate package.json: {e}")
        reporter.info("You can create package.json manually later")
        return None
    reporter.success(f"✓ Wrote {path}")
    return path


def _write_docs(workspace: Workspace, config: Dict[str, Any], reporter: Reporter, echo: bool) -> Optional[str]:
    reporter.info("Generating CLAUDE.md...")
    try:
        result = DocsService(config).generate(workspace, echo=reporter.stream if echo else None)
    except OSError as e:
        reporter.warning(f"Failed to generate CLAUDE.md: {e}")
        reporter.info("You can create CLAUDE.md manually later")
        return None
    if echo and result.generated:
        reporter.stream("\n")
    if result.generated:
        reporter.success(f"✓ Wrote {result.path}")
    else:
        reporter.warning(f"Documentation generator unavailable; wrote template {result.path}")
    return result.path


def _show_next_steps(result: WorkspaceResult, reporter: Reporter) -> None:
    workspace = result.workspace
    reporter.success(f"Workspace ready: {workspace.root_path}")
    reporter.header("Next steps:")
    reporter.info(f"  cd {workspace.root_path}")
    reporter.info("  npm install")
    reporter.info("  npm run dev")
    reporter.header("Available commands:")
    reporter.info("  npm run dev         - Start all repos in dev mode")
    reporter.info("  npm run build:all   - Build all repos")
    reporter.info("  npm run test:all    - Test all repos")
    for repo in workspace.mounted:
        reporter.info(f"  npm run {repo.alias}:dev    - Start {repo.alias} only")


@click.command('create')
@click.option('--repo', 'repos', multiple=True, metavar='ALIAS=PATH[@BRANCH]',
              help='Repository to mount (repeatable); skips the interactive prompts')
@click.option('--base-dir', type=click.Path(file_okay=False),
              help='Directory to search for repositories in interactive mode')
@click.option('--parent', type=click.Path(file_okay=False),
              help='Directory the workspace is created in (default: general.workspace_parent)')
@click.option('--no-docs', is_flag=True, help='Skip factpacks and CLAUDE.md')
@click.option('--no-manifest', is_flag=True, help='Skip the root package.json')
@click.option('--strict', is_flag=True, help='Exit with code 71 if any repository failed to mount')
@add_common_options('json', 'plain', 'quiet', 'debug')
@standard_command
def create_handler(
    repos: tuple,
    base_dir: Optional[str],
    parent: Optional[str],
    no_docs: bool,
    no_manifest: bool,
    strict: bool,
    output_json: bool,
    plain: bool,
    quiet: bool,
    debug: bool,
    reporter: Reporter,
    config: Dict[str, Any],
):
    """
    Create a workspace from several repositories.

    Each repository is checked out as a git worktree under
    <workspace>/repos/<alias>, with node_modules and .env files copied
    from the source.

    Examples:

        # Pick repositories interactively
        ccws create

        # Non-interactive
        ccws create --repo web=~/code/web@feature/login --repo api=~/code/api@feature/login

        # Current branch of each source, machine-readable output
        ccws create --repo web=~/code/web --repo api=~/code/api --json
    """
    if repos:
        selections: List[RepositorySelection] = parse_repo_options(repos)
    else:
        reporter.header("ccws - Repository Setup")
        selections = select_repositories(
            discovery=DiscoveryService.from_config(config),
            base_dir=base_dir,
            reporter=reporter,
        )

    service = WorkspaceService(config=config, parent_dir=parent)
    try:
        for message in service.create(selections):
            reporter.progress(message)
    except NoRepositoriesMountedError as e:
        if output_json and service.last_result is not None:
            for detail in service.last_result.summary.details:
                emit_json(detail.to_dict())
        _remove_empty_root(e.root_path, reporter)
        raise

    result = service.last_result
    workspace = result.workspace

    manifest_path = None
    if not no_manifest and config.get('manifest', {}).get('enabled', True):
        manifest_path = _write_manifest(workspace, config, reporter)

    docs_path = None
    if not no_docs and config.get('docs', {}).get('enabled', True):
        docs_path = _write_docs(workspace, config, reporter, echo=not output_json and not quiet)

    if output_json:
        for detail in result.summary.details:
            emit_json(detail.to_dict())
        summary = result.summary.to_dict()
        summary.update({
            'root_path': workspace.root_path,
            'manifest': manifest_path,
            'docs': docs_path,
        })
        emit_json(summary)
    elif not quiet:
        render_workspace_summary(result)
        _show_next_steps(result, reporter)

    if strict and result.failed_count:
        raise PartialSuccessError(
            f"{result.failed_count} of {result.summary.total} repositories failed to mount",
            succeeded=result.mounted_count,
            failed=result.failed_count,
        )
    return None
