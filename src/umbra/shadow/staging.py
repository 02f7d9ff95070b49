"""Stage the workspace's trackable files into the shadow repository."""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import REPOSITORY_DEFAULTS, RepositoryDefaults
from ..git import GitRunnerError
from ..git.utils import split_nul
from ..storage import CheckpointAddResult, RepositoryLocation
from ..workspace import WorkspaceHooks
from .errors import StagingFailure
from .initializer import RunnerFactory
from .nested import NestedRepositorySuppressor

logger = logging.getLogger(__name__)


class StagingPreparer:
    """Refreshes exclusions and stages tracked plus untracked, non-ignored files."""

    def __init__(
        self,
        runner_factory: RunnerFactory,
        hooks: WorkspaceHooks,
        *,
        defaults: RepositoryDefaults = REPOSITORY_DEFAULTS,
        batch_size: int = 500,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._runner_factory = runner_factory
        self._hooks = hooks
        self._defaults = defaults
        self._batch_size = batch_size

    async def add_checkpoint_files(self, location: RepositoryLocation, workspace: Path) -> CheckpointAddResult:
        workspace = Path(workspace)
        try:
            patterns = self._hooks.get_exclusion_patterns(workspace)
            self._hooks.write_exclusion_file(location.metadata_path, list(patterns))
        except Exception as exc:
            raise StagingFailure(f"Failed to refresh exclusion patterns: {exc}") from exc

        git = self._runner_factory(location.checkpoints_dir)
        suppressor = NestedRepositorySuppressor(workspace, self._defaults)

        with suppressor.suppressed():
            try:
                for key, value in self._defaults.path_settings():
                    await git.set_config(key, value)
                output = await git.raw("ls-files", "-z", "--others", "--exclude-standard", "--cached")
            except GitRunnerError as exc:
                raise StagingFailure(f"Failed to list checkpoint files: {exc}") from exc

            files = split_nul(output)
            if not files:
                logger.info("No files to add to checkpoint")
                return CheckpointAddResult(success=True, file_count=0)

            logger.info("Adding files to checkpoint", extra={"count": len(files)})
            try:
                for start in range(0, len(files), self._batch_size):
                    await git.add(files[start : start + self._batch_size])
            except GitRunnerError as exc:
                logger.error("Checkpoint add operation failed", extra={"error": str(exc)})
                raise StagingFailure(f"Failed to stage {len(files)} checkpoint files: {exc}") from exc

        logger.info("Checkpoint add operation completed", extra={"count": len(files)})
        return CheckpointAddResult(success=True, file_count=len(files))


__all__ = ["StagingPreparer"]
