"""Create or verify a shadow repository bound to a workspace."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable

from ..config import REPOSITORY_DEFAULTS, RepositoryDefaults
from ..git import GitClient, GitRunnerError
from ..storage import RepositoryLocation
from ..workspace import WorkspaceHooks
from .errors import ConfigurationMismatch, RepositoryInitializationFailure

logger = logging.getLogger(__name__)

RunnerFactory = Callable[[Path], GitClient]


class RepositoryInitializer:
    """Creates shadow repositories on first use and verifies them afterwards."""

    def __init__(
        self,
        runner_factory: RunnerFactory,
        hooks: WorkspaceHooks,
        defaults: RepositoryDefaults = REPOSITORY_DEFAULTS,
    ) -> None:
        self._runner_factory = runner_factory
        self._hooks = hooks
        self._defaults = defaults

    async def initialize(self, location: RepositoryLocation, workspace: Path) -> Path:
        """Return the metadata path of a repository whose worktree is ``workspace``.

        An existing repository is only verified: a worktree binding that differs
        from ``workspace`` raises :class:`ConfigurationMismatch` and nothing is
        written. A missing repository is created, configured, given the current
        exclusion patterns and an empty root commit.
        """

        metadata_path = location.metadata_path
        expected = str(Path(workspace))

        if self._hooks.path_exists(metadata_path):
            return await self._verify(location, expected)

        logger.info(
            "Creating shadow repository",
            extra={"layout": location.kind, "path": str(location.checkpoints_dir)},
        )
        try:
            await self._create(location, Path(expected))
        except Exception as exc:
            self._discard_partial(metadata_path)
            raise RepositoryInitializationFailure(
                f"Failed to initialize {location.kind} shadow repository at {metadata_path}: {exc}"
            ) from exc

        logger.info(
            "Shadow repository initialized",
            extra={"layout": location.kind, "path": str(metadata_path)},
        )
        return metadata_path

    async def _verify(self, location: RepositoryLocation, expected: str) -> Path:
        git = self._runner_factory(location.checkpoints_dir)
        try:
            worktree = await git.get_config("core.worktree")
        except GitRunnerError as exc:
            raise RepositoryInitializationFailure(
                f"Unable to read worktree of shadow repository at {location.metadata_path}: {exc}"
            ) from exc

        if worktree != expected:
            raise ConfigurationMismatch(location.metadata_path, expected, worktree)

        logger.info(
            "Using existing shadow repository",
            extra={"layout": location.kind, "path": str(location.metadata_path)},
        )
        return location.metadata_path

    async def _create(self, location: RepositoryLocation, workspace: Path) -> None:
        location.checkpoints_dir.mkdir(parents=True, exist_ok=True)
        git = self._runner_factory(location.checkpoints_dir)
        await git.init(initial_branch=self._defaults.initial_branch)

        for key, value in self._defaults.repository_config(workspace):
            await git.set_config(key, value)

        patterns = self._hooks.get_exclusion_patterns(workspace)
        self._hooks.write_exclusion_file(location.metadata_path, list(patterns))

        await git.commit(self._defaults.initial_commit_message, allow_empty=True)

    def _discard_partial(self, metadata_path: Path) -> None:
        if not metadata_path.is_dir():
            return
        try:
            shutil.rmtree(metadata_path)
        except OSError as exc:
            logger.error(
                "Failed to remove partially initialized shadow repository",
                extra={"path": str(metadata_path), "error": str(exc)},
            )


__all__ = ["RepositoryInitializer", "RunnerFactory"]
