"""Resolve on-disk locations of shadow repositories."""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import REPOSITORY_DEFAULTS, RepositoryDefaults
from ..workspace import WorkspaceHooks
from .models import LegacyLocation, RepositoryLocation, WorkspaceLocation

logger = logging.getLogger(__name__)


class RepositoryLocator:
    """Computes legacy and branch-per-task repository paths under a storage root.

    Legacy repositories live at ``{root}/tasks/{task_id}/checkpoints`` and
    branch-per-task repositories at ``{root}/checkpoints/{hash(workspace)}``.
    A legacy repository always takes precedence for its task.
    """

    def __init__(
        self,
        storage_root: Path,
        hooks: WorkspaceHooks,
        defaults: RepositoryDefaults = REPOSITORY_DEFAULTS,
    ) -> None:
        if not str(storage_root).strip() or Path(storage_root) == Path(""):
            raise ValueError("Storage root must not be empty")
        self._storage_root = Path(storage_root)
        self._hooks = hooks
        self._defaults = defaults

    @property
    def storage_root(self) -> Path:
        return self._storage_root

    @property
    def hooks(self) -> WorkspaceHooks:
        return self._hooks

    def legacy(self, task_id: str) -> LegacyLocation:
        _require_task_id(task_id)
        return LegacyLocation(
            task_id=task_id,
            checkpoints_dir=self._storage_root / "tasks" / task_id / "checkpoints",
            metadata_dirname=self._defaults.metadata_dirname,
        )

    def branch_per_task(self, workspace: Path) -> WorkspaceLocation:
        workspace_hash = self._hooks.hash_workspace(Path(workspace))
        return WorkspaceLocation(
            workspace_hash=workspace_hash,
            checkpoints_dir=self._storage_root / "checkpoints" / workspace_hash,
            metadata_dirname=self._defaults.metadata_dirname,
        )

    def exists(self, location: RepositoryLocation) -> bool:
        return self._hooks.path_exists(location.metadata_path)

    def does_shadow_repository_exist(self, task_id: str, workspace: Path | None = None) -> bool:
        """Return True if either layout holds a repository for the task.

        The working directory is only looked up when no legacy repository exists.
        """

        legacy = self.legacy(task_id)
        if self.exists(legacy):
            logger.info("Found legacy shadow repository", extra={"task_id": task_id})
            return True

        target = Path(workspace) if workspace is not None else self._hooks.working_directory()
        found = self.exists(self.branch_per_task(target))
        if found:
            logger.info(
                "Found branch-per-task shadow repository",
                extra={"task_id": task_id, "workspace": str(target)},
            )
        return found

    def resolve(self, task_id: str, workspace: Path) -> RepositoryLocation:
        """Pick the layout a task should use: its legacy repository if present, else the shared one."""

        legacy = self.legacy(task_id)
        if self.exists(legacy):
            return legacy
        return self.branch_per_task(workspace)


def _require_task_id(task_id: str) -> None:
    if not task_id or not task_id.strip():
        raise ValueError("Task id must not be empty")


__all__ = ["RepositoryLocator"]
