"""
Run-script manifest for ccws.

Writes a package.json at the workspace root with one script per
repository and common task, plus combined scripts that run every
repository at once through ``concurrently``.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .. import __version__
from ..domain import Workspace
from .package_manager import script_command

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = 'package.json'
DEFAULT_SCRIPTS = ['dev', 'build', 'test', 'lint', 'start']
CONCURRENTLY_VERSION = '^9.0.0'


class ManifestService:
    """
    Service for generating the workspace package.json.

    Example:
        service = ManifestService()
        path = service.write(workspace)
        # scripts: "web:dev", "api:dev", ..., "dev", "build:all", "test:all"
    """

    def __init__(self, scripts: Optional[List[str]] = None, clock=None):
        """
        Initialize ManifestService.

        Args:
            scripts: Per-repository script names (default: dev, build, test, lint, start)
            clock: Callable returning the creation time (for tests)
        """
        self.scripts = list(scripts or DEFAULT_SCRIPTS)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_scripts(self, workspace: Workspace) -> Dict[str, str]:
        scripts: Dict[str, str] = {}
        for repo in workspace.mounted:
            for name in self.scripts:
                scripts[f"{repo.alias}:{name}"] = script_command(repo.package_manager, repo.alias, name)

        names = ','.join(repo.alias.upper() for repo in workspace.mounted)

        def combined(name: str) -> str:
            return ' '.join(f'"npm run {repo.alias}:{name}"' for repo in workspace.mounted)

        if 'dev' in self.scripts:
            scripts['dev'] = f"concurrently -n {names} {combined('dev')}"
        if 'build' in self.scripts:
            scripts['build:all'] = f"concurrently {combined('build')}"
        if 'test' in self.scripts:
            scripts['test:all'] = f"concurrently {combined('test')}"
        return scripts

    def build(self, workspace: Workspace) -> Dict[str, Any]:
        """Build the package.json document for ``workspace``."""
        return {
            'name': 'ccws-workspace',
            'version': '1.0.0',
            'private': True,
            'description': 'Multi-repository workspace',
            'scripts': self.build_scripts(workspace),
            'devDependencies': {
                'concurrently': CONCURRENTLY_VERSION,
            },
            'ccws': {
                'version': __version__,
                'created': self._clock().isoformat(),
                'repositories': [
                    {
                        'alias': repo.alias,
                        'branch': repo.branch,
                        'packageManager': repo.package_manager.value,
                        'sourcePath': repo.source_path,
                    }
                    for repo in workspace.mounted
                ],
            },
        }

    def write(self, workspace: Workspace) -> str:
        """Write package.json to the workspace root and return its path."""
        document = self.build(workspace)
        path = os.path.join(workspace.root_path, MANIFEST_FILENAME)
        with open(path, 'w') as f:
            json.dump(document, f, indent=2)
            f.write('\n')
        logger.info(f"Wrote {path} with {len(document['scripts'])} scripts")
        return path
