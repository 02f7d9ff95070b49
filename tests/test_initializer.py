from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import command_error
from umbra.shadow import ConfigurationMismatch, RepositoryInitializationFailure, RepositoryInitializer
from umbra.storage import RepositoryLocator


def test_creates_configures_and_commits_once(storage_root: Path, workspace: Path, hooks, git_registry) -> None:
    location = RepositoryLocator(storage_root, hooks).branch_per_task(workspace)
    initializer = RepositoryInitializer(git_registry.factory, hooks)

    result = asyncio.run(initializer.initialize(location, workspace))

    state = git_registry.state(location.checkpoints_dir)
    assert result == location.metadata_path
    assert state.initialized
    assert state.config["core.worktree"] == str(workspace)
    assert state.config["commit.gpgSign"] == "false"
    assert state.config["core.quotePath"] == "false"
    assert state.config["core.precomposeunicode"] == "true"
    assert state.config["user.name"] == "Umbra Checkpoint"
    assert hooks.written == [(location.metadata_path, ["node_modules/", "*.log"])]
    assert [call for call in state.calls if call[0] == "commit"] == [("commit", "initial commit")]


def test_second_call_only_verifies(storage_root: Path, workspace: Path, hooks, git_registry) -> None:
    location = RepositoryLocator(storage_root, hooks).legacy("t1")
    initializer = RepositoryInitializer(git_registry.factory, hooks)

    asyncio.run(initializer.initialize(location, workspace))
    state = git_registry.state(location.checkpoints_dir)
    calls_after_first = len(state.calls)

    asyncio.run(initializer.initialize(location, workspace))

    assert state.calls[calls_after_first:] == [("get_config", "core.worktree")]
    assert sum(len(commits) for commits in state.branches.values()) == 1
    assert len(hooks.written) == 1


def test_worktree_mismatch_is_fatal_and_untouched(storage_root: Path, workspace: Path, hooks, git_registry) -> None:
    location = RepositoryLocator(storage_root, hooks).branch_per_task(workspace)
    state = git_registry.seed(location.checkpoints_dir, worktree="/somewhere/else", branches=["master"], head="master")
    initializer = RepositoryInitializer(git_registry.factory, hooks)

    with pytest.raises(ConfigurationMismatch) as excinfo:
        asyncio.run(initializer.initialize(location, workspace))

    assert excinfo.value.actual == "/somewhere/else"
    assert excinfo.value.expected == str(workspace)
    assert state.config["core.worktree"] == "/somewhere/else"
    assert [call[0] for call in state.calls] == ["get_config"]
    assert hooks.written == []


def test_failure_wraps_cause_and_discards_partial_repo(
    storage_root: Path, workspace: Path, hooks, git_registry
) -> None:
    location = RepositoryLocator(storage_root, hooks).branch_per_task(workspace)
    state = git_registry.state(location.checkpoints_dir)
    state.failures["commit"] = command_error("commit")
    initializer = RepositoryInitializer(git_registry.factory, hooks)

    with pytest.raises(RepositoryInitializationFailure) as excinfo:
        asyncio.run(initializer.initialize(location, workspace))

    assert excinfo.value.__cause__ is state.failures["commit"]
    assert not location.metadata_path.exists()


def test_exclusion_write_failure_is_initialization_failure(
    storage_root: Path, workspace: Path, hooks, git_registry
) -> None:
    location = RepositoryLocator(storage_root, hooks).branch_per_task(workspace)
    hooks.fail_write = PermissionError("read-only storage")
    initializer = RepositoryInitializer(git_registry.factory, hooks)

    with pytest.raises(RepositoryInitializationFailure) as excinfo:
        asyncio.run(initializer.initialize(location, workspace))

    assert isinstance(excinfo.value.__cause__, PermissionError)


def test_new_repository_starts_on_main(storage_root: Path, workspace: Path, hooks, git_registry) -> None:
    location = RepositoryLocator(storage_root, hooks).branch_per_task(workspace)

    asyncio.run(RepositoryInitializer(git_registry.factory, hooks).initialize(location, workspace))

    state = git_registry.state(location.checkpoints_dir)
    assert ("init", "main") in state.calls
    assert state.branches == {"main": ["initial commit"]}
