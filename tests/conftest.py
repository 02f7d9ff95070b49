from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import pytest

from umbra.git import GitCommandError, GitExecutionResult


def command_error(*args: str, stderr: str = "simulated failure") -> GitCommandError:
    return GitCommandError(GitExecutionResult(args=("git", *args), returncode=128, stdout="", stderr=stderr))


@dataclass
class RepoState:
    cwd: Path
    initialized: bool = False
    config: dict[str, str] = field(default_factory=dict)
    branches: dict[str, list[str]] = field(default_factory=dict)
    head: str = "master"
    staged: list[str] = field(default_factory=list)
    trackable: list[str] = field(default_factory=list)
    calls: list[tuple[str, ...]] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)
    stale_head_reads: int = 0
    stale_head_value: str | None = None
    lag_after_checkout: int = 0
    worktree_during: dict[str, str | None] = field(default_factory=dict)


class InMemoryGit:
    """GitClient stub whose state is shared by every client bound to the same directory."""

    def __init__(self, state: RepoState) -> None:
        self.state = state

    def _record(self, name: str, *args: str) -> None:
        self.state.calls.append((name, *args))
        self.state.worktree_during[name] = self.state.config.get("core.worktree")
        if name in self.state.failures:
            raise self.state.failures[name]

    async def init(self, initial_branch: str | None = None) -> None:
        self._record("init", *([initial_branch] if initial_branch else []))
        self.state.initialized = True
        if initial_branch:
            self.state.head = initial_branch
        (self.state.cwd / ".git").mkdir(parents=True, exist_ok=True)

    async def get_config(self, key: str) -> str | None:
        self._record("get_config", key)
        return self.state.config.get(key)

    async def set_config(self, key: str, value: str) -> None:
        self._record("set_config", key, value)
        self.state.config[key] = value

    async def branch_local(self) -> list[str]:
        self._record("branch_local")
        return sorted(self.state.branches)

    async def checkout(self, target: str, *, force: bool = False) -> None:
        self._record("checkout", target, "force" if force else "")
        if target not in self.state.branches:
            raise command_error("checkout", target, stderr=f"pathspec '{target}' did not match")
        previous = self.state.head
        self.state.head = target
        if self.state.lag_after_checkout:
            self.state.stale_head_reads = self.state.lag_after_checkout
            self.state.stale_head_value = previous

    async def checkout_local_branch(self, name: str) -> None:
        self._record("checkout_local_branch", name)
        self.state.branches[name] = list(self.state.branches.get(self.state.head, []))
        self.state.head = name

    async def reset(self, *, hard: bool = False) -> None:
        self._record("reset", "hard" if hard else "")

    async def clean(self, *, force: bool = True, directories: bool = False) -> None:
        self._record("clean")

    async def revparse(self, *args: str) -> str:
        self._record("revparse", *args)
        if self.state.stale_head_reads > 0:
            self.state.stale_head_reads -= 1
            return self.state.stale_head_value or "stale"
        return self.state.head

    async def commit(self, message: str, *, allow_empty: bool = False) -> None:
        self._record("commit", message)
        self.state.branches.setdefault(self.state.head, []).append(message)

    async def add(self, paths: Sequence[str]) -> None:
        self._record("add", *paths)
        self.state.staged.extend(paths)

    async def raw(self, *args: str) -> str:
        self._record("raw", *args)
        if args[:3] == ("config", "--local", "--unset"):
            self.state.config.pop(args[3], None)
            return ""
        if args[:2] == ("branch", "-D"):
            self.state.branches.pop(args[2])
            return ""
        if args and args[0] == "ls-files":
            return "".join(f"{name}\0" for name in self.state.trackable)
        raise AssertionError(f"unexpected raw command {args}")


class GitRegistry:
    def __init__(self) -> None:
        self.states: dict[Path, RepoState] = {}

    def state(self, cwd: Path) -> RepoState:
        cwd = Path(cwd)
        if cwd not in self.states:
            self.states[cwd] = RepoState(cwd=cwd)
        return self.states[cwd]

    def factory(self, cwd: Path) -> InMemoryGit:
        return InMemoryGit(self.state(cwd))

    def seed(self, cwd: Path, *, worktree: str, branches: Sequence[str], head: str) -> RepoState:
        """Create an already-initialized repository with the given branches."""

        state = self.state(cwd)
        (Path(cwd) / ".git").mkdir(parents=True, exist_ok=True)
        state.initialized = True
        state.config["core.worktree"] = worktree
        state.branches = {name: ["initial commit"] for name in branches}
        state.head = head
        return state


class RecordingHooks:
    def __init__(self, workspace: Path, patterns: Sequence[str] = ("node_modules/", "*.log")) -> None:
        self.workspace = workspace
        self.patterns = list(patterns)
        self.written: list[tuple[Path, list[str]]] = []
        self.working_directory_calls = 0
        self.fail_write: Exception | None = None

    def get_exclusion_patterns(self, workspace: Path) -> list[str]:
        return list(self.patterns)

    def write_exclusion_file(self, metadata_path: Path, patterns: Sequence[str]) -> None:
        if self.fail_write is not None:
            raise self.fail_write
        self.written.append((Path(metadata_path), list(patterns)))

    def path_exists(self, path: Path) -> bool:
        return Path(path).exists()

    def hash_workspace(self, workspace: Path) -> str:
        return f"ws-{Path(workspace).name}"

    def working_directory(self) -> Path:
        self.working_directory_calls += 1
        return self.workspace


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    path = tmp_path / "storage"
    path.mkdir()
    return path


@pytest.fixture
def git_registry() -> GitRegistry:
    return GitRegistry()


@pytest.fixture
def hooks(workspace: Path) -> RecordingHooks:
    return RecordingHooks(workspace)
