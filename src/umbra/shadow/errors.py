"""Error taxonomy for shadow repository operations."""

from __future__ import annotations

from pathlib import Path


class ShadowRepositoryError(RuntimeError):
    """Base class for shadow repository failures."""


class ConfigurationMismatch(ShadowRepositoryError):
    """Raised when an existing repository is bound to a different workspace."""

    def __init__(self, metadata_path: Path, expected: str, actual: str | None) -> None:
        self.metadata_path = metadata_path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checkpoints can only be used in the original workspace: {actual!r} "
            f"(repository {metadata_path}, requested {expected!r})"
        )


class RepositoryInitializationFailure(ShadowRepositoryError):
    """Raised when creating or configuring a new shadow repository fails."""


class BranchSwitchFailure(ShadowRepositoryError):
    """Raised when HEAD cannot be confirmed on the expected branch."""

    def __init__(self, expected: str, actual: str | None, attempts: int) -> None:
        self.expected = expected
        self.actual = actual
        self.attempts = attempts
        super().__init__(
            f"Failed to switch to {expected} branch after {attempts} attempts (HEAD is {actual!r})"
        )


class BranchDeletionFailure(ShadowRepositoryError):
    """Raised when deleting a task branch fails."""


class StagingFailure(ShadowRepositoryError):
    """Raised when files cannot be staged for a checkpoint."""


class LegacyDirectoryRemovalFailure(ShadowRepositoryError):
    """Raised when a legacy checkpoint directory cannot be removed."""


__all__ = [
    "BranchDeletionFailure",
    "BranchSwitchFailure",
    "ConfigurationMismatch",
    "LegacyDirectoryRemovalFailure",
    "RepositoryInitializationFailure",
    "ShadowRepositoryError",
    "StagingFailure",
]
