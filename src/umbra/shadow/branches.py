"""Task branch management inside branch-per-task shadow repositories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ..config import REPOSITORY_DEFAULTS, RepositoryDefaults
from ..git import GitClient, GitRunnerError
from ..storage import LegacyLocation, RepositoryLocation, RepositoryLocator
from .errors import BranchDeletionFailure, BranchSwitchFailure, LegacyDirectoryRemovalFailure
from .initializer import RunnerFactory
from .retry import poll_until

logger = logging.getLogger(__name__)

FALLBACK_BRANCHES = ("main", "master")


class BranchManager:
    """Creates, switches to and deletes ``task-<id>`` branches."""

    def __init__(
        self,
        runner_factory: RunnerFactory,
        *,
        defaults: RepositoryDefaults = REPOSITORY_DEFAULTS,
        verify_attempts: int = 3,
        verify_delay: float = 0.0,
        strict_verification: bool = True,
    ) -> None:
        self._runner_factory = runner_factory
        self._defaults = defaults
        self._verify_attempts = verify_attempts
        self._verify_delay = verify_delay
        self._strict_verification = strict_verification

    def branch_name(self, task_id: str) -> str:
        return self._defaults.branch_name(task_id)

    async def switch_to_task_branch(self, task_id: str, location: RepositoryLocation) -> str | None:
        """Check out the task's branch, creating it from the current HEAD on first use.

        Legacy repositories belong to a single task and are left untouched;
        ``None`` is returned for them. Otherwise the branch name is returned.
        """

        if location.is_legacy:
            return None

        git = self._runner_factory(location.checkpoints_dir)
        branch = self.branch_name(task_id)

        branches = await git.branch_local()
        if branch not in branches:
            logger.info("Creating new task branch", extra={"branch": branch})
            await git.checkout_local_branch(branch)
        else:
            logger.info("Switching to existing task branch", extra={"branch": branch})
            await git.checkout(branch)

        outcome = await poll_until(
            lambda: _current_branch(git),
            lambda current: current == branch,
            attempts=self._verify_attempts,
            delay=self._verify_delay,
            tolerate_errors=True,
        )
        if outcome.satisfied:
            logger.info("Checkpoint branch after switch", extra={"branch": outcome.value})
            return branch

        if outcome.error is not None:
            logger.warning(
                "Unable to confirm checkpoint branch after switch",
                extra={"branch": branch, "error": str(outcome.error)},
            )
            return branch

        logger.error(
            "Checkpoint branch mismatch after switch",
            extra={"expected": branch, "actual": outcome.value, "attempts": outcome.attempts},
        )
        if self._strict_verification:
            raise BranchSwitchFailure(branch, outcome.value, outcome.attempts)
        return branch

    async def delete_branch(self, branch: str, checkpoints_dir: Path) -> None:
        """Force-delete ``branch``, moving HEAD to main/master first if it is checked out.

        While HEAD is moved the worktree binding is unset so the reset, clean and
        checkout never touch the real workspace; the captured binding is written
        back on every exit path.
        """

        git = self._runner_factory(Path(checkpoints_dir))

        try:
            branches = await git.branch_local()
        except GitRunnerError as exc:
            raise BranchDeletionFailure(f"Unable to list branches before deleting {branch}: {exc}") from exc

        if branch not in branches:
            logger.info("Task branch does not exist, nothing to delete", extra={"branch": branch})
            return

        try:
            current = await _current_branch(git)
        except GitRunnerError as exc:
            raise BranchDeletionFailure(f"Unable to read HEAD before deleting {branch}: {exc}") from exc
        logger.info("Preparing branch deletion", extra={"current": current, "target": branch})

        if current != branch:
            await self._force_delete(git, branch)
            return

        try:
            worktree = await git.get_config("core.worktree")
        except GitRunnerError as exc:
            raise BranchDeletionFailure(f"Unable to read worktree before deleting {branch}: {exc}") from exc
        logger.debug("Saved worktree binding", extra={"worktree": worktree})

        try:
            await self._leave_branch(git, branches)
            await self._force_delete(git, branch)
        finally:
            if worktree:
                await _restore_worktree(git, worktree)

    async def _leave_branch(self, git: GitClient, branches: list[str]) -> None:
        fallback = FALLBACK_BRANCHES[0] if FALLBACK_BRANCHES[0] in branches else FALLBACK_BRANCHES[1]
        try:
            await git.raw("config", "--local", "--unset", "core.worktree")
            await git.reset(hard=True)
            await git.clean(force=True, directories=True)
            logger.debug("Force switching to fallback branch", extra={"branch": fallback})
            await git.checkout(fallback, force=True)
        except GitRunnerError as exc:
            raise BranchDeletionFailure(f"Unable to move HEAD to {fallback}: {exc}") from exc

        outcome = await poll_until(
            lambda: _current_branch(git),
            lambda current: current == fallback,
            attempts=self._verify_attempts,
            delay=self._verify_delay,
            tolerate_errors=True,
        )
        if not outcome.satisfied:
            raise BranchSwitchFailure(fallback, outcome.value, outcome.attempts) from outcome.error

    async def _force_delete(self, git: GitClient, branch: str) -> None:
        logger.info("Deleting task branch", extra={"branch": branch})
        try:
            await git.raw("branch", "-D", branch)
        except GitRunnerError as exc:
            raise BranchDeletionFailure(f"Failed to delete branch {branch}: {exc}") from exc

    async def delete_task_branch(
        self,
        task_id: str,
        locator: RepositoryLocator,
        *,
        worktree_hint: Path | str | None = None,
    ) -> bool:
        """Remove every checkpoint a task owns, whichever layout stores it.

        The shared repository of the task's workspace is tried first; if it has
        no branch for the task, a legacy checkpoint directory is removed instead.
        Returns False when the task has no checkpoints at all.
        """

        workspace = Path(worktree_hint) if worktree_hint else locator.hooks.working_directory()

        shared = locator.branch_per_task(workspace)
        if locator.exists(shared):
            git = self._runner_factory(shared.checkpoints_dir)
            branch = self.branch_name(task_id)
            try:
                branches = await git.branch_local()
            except GitRunnerError as exc:
                raise BranchDeletionFailure(f"Unable to list branches in {shared.metadata_path}: {exc}") from exc
            if branch in branches:
                await self.delete_branch(branch, shared.checkpoints_dir)
                return True
            logger.warning(
                "Branch not found in branch-per-task repository",
                extra={"branch": branch, "path": str(shared.metadata_path)},
            )

        legacy = locator.legacy(task_id)
        if locator.exists(legacy):
            remove_legacy_checkpoints(legacy)
            return True

        logger.info("No checkpoints found to delete", extra={"task_id": task_id})
        return False


async def _current_branch(git: GitClient) -> str:
    return await git.revparse("--abbrev-ref", "HEAD")


async def _restore_worktree(git: GitClient, worktree: str) -> None:
    logger.debug("Restoring worktree binding", extra={"worktree": worktree})
    try:
        await git.set_config("core.worktree", worktree)
    except GitRunnerError as exc:
        logger.error("Failed to restore worktree binding", extra={"worktree": worktree, "error": str(exc)})
        raise BranchDeletionFailure(f"Failed to restore worktree binding {worktree!r}: {exc}") from exc


def remove_legacy_checkpoints(location: LegacyLocation) -> None:
    """Recursively delete a legacy task's checkpoint directory."""

    logger.info("Deleting legacy checkpoint directory", extra={"path": str(location.checkpoints_dir)})
    try:
        shutil.rmtree(location.checkpoints_dir)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise LegacyDirectoryRemovalFailure(
            f"Failed to delete legacy checkpoint directory {location.checkpoints_dir}: {exc}"
        ) from exc


__all__ = ["BranchManager", "FALLBACK_BRANCHES", "remove_legacy_checkpoints"]
