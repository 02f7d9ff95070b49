"""Shadow repository lifecycle: creation, task branches, nested repos and staging."""

from .branches import FALLBACK_BRANCHES, BranchManager, remove_legacy_checkpoints
from .errors import (
    BranchDeletionFailure,
    BranchSwitchFailure,
    ConfigurationMismatch,
    LegacyDirectoryRemovalFailure,
    RepositoryInitializationFailure,
    ShadowRepositoryError,
    StagingFailure,
)
from .initializer import RepositoryInitializer, RunnerFactory
from .manager import ShadowRepositoryManager, git_runner_factory
from .nested import NestedRepositorySuppressor, SuppressionReport
from .retry import PollOutcome, poll_until
from .serial import RepositoryQueue
from .staging import StagingPreparer

__all__ = [
    "BranchDeletionFailure",
    "BranchManager",
    "BranchSwitchFailure",
    "ConfigurationMismatch",
    "FALLBACK_BRANCHES",
    "LegacyDirectoryRemovalFailure",
    "NestedRepositorySuppressor",
    "PollOutcome",
    "RepositoryInitializationFailure",
    "RepositoryInitializer",
    "RepositoryQueue",
    "RunnerFactory",
    "ShadowRepositoryError",
    "ShadowRepositoryManager",
    "StagingFailure",
    "StagingPreparer",
    "SuppressionReport",
    "git_runner_factory",
    "poll_until",
]
