"""Facade tying locator, initializer, branches and staging together."""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import REPOSITORY_DEFAULTS, RepositoryDefaults, UmbraSettings
from ..git import GitClient, GitRunner
from ..storage import CheckpointAddResult, RepositoryLocation, RepositoryLocator
from ..workspace import DefaultWorkspaceHooks, WorkspaceHooks
from .branches import BranchManager
from .initializer import RepositoryInitializer, RunnerFactory
from .staging import StagingPreparer

logger = logging.getLogger(__name__)


def git_runner_factory(settings: UmbraSettings) -> RunnerFactory:
    """Return a factory binding :class:`GitRunner` to the configured executable."""

    executable = Path(settings.git_path) if settings.git_path else None

    def factory(cwd: Path) -> GitClient:
        return GitRunner(cwd, executable)

    return factory


class ShadowRepositoryManager:
    """Entry point orchestrators use to checkpoint a task's workspace.

    The manager keeps no state about repositories between calls and takes no
    locks; callers serialize work per repository (see :class:`RepositoryQueue`).
    """

    def __init__(
        self,
        settings: UmbraSettings,
        *,
        runner_factory: RunnerFactory | None = None,
        hooks: WorkspaceHooks | None = None,
        defaults: RepositoryDefaults = REPOSITORY_DEFAULTS,
    ) -> None:
        self._settings = settings
        self._runner_factory = runner_factory or git_runner_factory(settings)
        self._hooks = hooks or DefaultWorkspaceHooks()
        self._defaults = defaults
        self.locator = RepositoryLocator(settings.storage_root, self._hooks, defaults)
        self.initializer = RepositoryInitializer(self._runner_factory, self._hooks, defaults)
        self.branches = BranchManager(
            self._runner_factory,
            defaults=defaults,
            verify_attempts=settings.verify_attempts,
            verify_delay=settings.verify_delay,
            strict_verification=settings.strict_branch_verification,
        )
        self.staging = StagingPreparer(
            self._runner_factory,
            self._hooks,
            defaults=defaults,
            batch_size=settings.add_batch_size,
        )

    def git_for(self, location: RepositoryLocation) -> GitClient:
        return self._runner_factory(location.checkpoints_dir)

    def does_shadow_repository_exist(self, task_id: str, workspace: Path | None = None) -> bool:
        return self.locator.does_shadow_repository_exist(task_id, workspace)

    async def initialize(self, location: RepositoryLocation, workspace: Path) -> Path:
        return await self.initializer.initialize(location, workspace)

    async def switch_to_task_branch(self, task_id: str, location: RepositoryLocation) -> str | None:
        return await self.branches.switch_to_task_branch(task_id, location)

    async def add_checkpoint_files(self, location: RepositoryLocation, workspace: Path) -> CheckpointAddResult:
        return await self.staging.add_checkpoint_files(location, workspace)

    async def delete_branch(self, branch: str, location: RepositoryLocation) -> None:
        await self.branches.delete_branch(branch, location.checkpoints_dir)

    async def delete_task_branch(
        self,
        task_id: str,
        worktree_hint: Path | str | None = None,
        storage_root: Path | None = None,
    ) -> bool:
        locator = self.locator
        if storage_root is not None:
            locator = RepositoryLocator(storage_root, self._hooks, self._defaults)
        return await self.branches.delete_task_branch(task_id, locator, worktree_hint=worktree_hint)

    async def open_task(self, task_id: str, workspace: Path) -> RepositoryLocation:
        """Resolve, initialize and switch to the repository a task checkpoints into."""

        location = self.locator.resolve(task_id, workspace)
        logger.info(
            "Opening task checkpoints",
            extra={"task_id": task_id, "layout": location.kind, "path": str(location.metadata_path)},
        )
        await self.initialize(location, workspace)
        await self.switch_to_task_branch(task_id, location)
        return location


__all__ = ["ShadowRepositoryManager", "git_runner_factory"]
