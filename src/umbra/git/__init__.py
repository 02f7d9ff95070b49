"""Git CLI adapter utilities."""

from .runner import (
    FakeGitRunner,
    GitClient,
    GitCommandError,
    GitExecutionResult,
    GitNotFoundError,
    GitRunner,
    GitRunnerError,
)

__all__ = [
    "FakeGitRunner",
    "GitClient",
    "GitCommandError",
    "GitExecutionResult",
    "GitNotFoundError",
    "GitRunner",
    "GitRunnerError",
]
