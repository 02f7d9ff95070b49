"""Async runner for the git CLI."""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from .utils import sanitize_environment, split_lines


class GitRunnerError(RuntimeError):
    """Base class for git runner errors."""


class GitNotFoundError(GitRunnerError):
    """Raised when the git executable cannot be located."""


class GitCommandError(GitRunnerError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, result: GitExecutionResult) -> None:
        self.result = result
        detail = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
        super().__init__(f"git {' '.join(result.args[1:])} failed: {detail}")


@dataclass(slots=True)
class GitExecutionResult:
    """Holds the outcome of a git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitClient(Protocol):
    """The capability set the shadow repository manager needs from git."""

    async def init(self, initial_branch: str | None = None) -> None:
        ...

    async def get_config(self, key: str) -> str | None:
        ...

    async def set_config(self, key: str, value: str) -> None:
        ...

    async def branch_local(self) -> list[str]:
        ...

    async def checkout(self, target: str, *, force: bool = False) -> None:
        ...

    async def checkout_local_branch(self, name: str) -> None:
        ...

    async def reset(self, *, hard: bool = False) -> None:
        ...

    async def clean(self, *, force: bool = True, directories: bool = False) -> None:
        ...

    async def revparse(self, *args: str) -> str:
        ...

    async def commit(self, message: str, *, allow_empty: bool = False) -> None:
        ...

    async def add(self, paths: Sequence[str]) -> None:
        ...

    async def raw(self, *args: str) -> str:
        ...


class GitRunner:
    """Execute git commands asynchronously inside one repository directory."""

    def __init__(self, cwd: Path, executable: Path | None = None) -> None:
        self._cwd = Path(cwd)
        self._executable_path = self._resolve_executable(executable)

    @staticmethod
    def _resolve_executable(explicit: Path | None) -> Path:
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return candidate
            raise GitNotFoundError(f"git executable not found at {candidate}")

        binary = shutil.which("git")
        if binary is None:
            raise GitNotFoundError("git executable not found on PATH")
        return Path(binary)

    @property
    def executable(self) -> Path:
        return self._executable_path

    @property
    def cwd(self) -> Path:
        return self._cwd

    async def version(self) -> GitExecutionResult:
        return await self._invoke("--version")

    async def init(self, initial_branch: str | None = None) -> None:
        await self._run("init")
        if initial_branch:
            # pin the unborn branch regardless of the global init.defaultBranch
            await self._run("symbolic-ref", "HEAD", f"refs/heads/{initial_branch}")

    async def get_config(self, key: str) -> str | None:
        result = await self._invoke("config", "--local", "--get", key)
        if result.returncode == 1:
            return None
        if not result.ok:
            raise GitCommandError(result)
        return result.stdout.rstrip("\n")

    async def set_config(self, key: str, value: str) -> None:
        await self._run("config", "--local", key, value)

    async def branch_local(self) -> list[str]:
        output = await self._run("branch", "--list", "--format=%(refname:short)")
        return split_lines(output)

    async def checkout(self, target: str, *, force: bool = False) -> None:
        args = ["checkout"]
        if force:
            args.append("--force")
        await self._run(*args, target)

    async def checkout_local_branch(self, name: str) -> None:
        await self._run("checkout", "-b", name)

    async def reset(self, *, hard: bool = False) -> None:
        await self._run("reset", *(["--hard"] if hard else []))

    async def clean(self, *, force: bool = True, directories: bool = False) -> None:
        args = ["clean"]
        if force:
            args.append("-f")
        if directories:
            args.append("-d")
        await self._run(*args)

    async def revparse(self, *args: str) -> str:
        output = await self._run("rev-parse", *args)
        return output.strip()

    async def commit(self, message: str, *, allow_empty: bool = False) -> None:
        args = ["commit", "--no-verify"]
        if allow_empty:
            args.append("--allow-empty")
        await self._run(*args, "-m", message)

    async def add(self, paths: Sequence[str]) -> None:
        await self._run("add", "--", *paths)

    async def raw(self, *args: str) -> str:
        return await self._run(*args)

    async def _run(self, *args: str) -> str:
        result = await self._invoke(*args)
        if not result.ok:
            raise GitCommandError(result)
        return result.stdout

    async def _invoke(self, *args: str) -> GitExecutionResult:
        cmd = [str(self._executable_path), *args]
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(self._cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=sanitize_environment(),
        )
        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode("utf-8", errors="surrogateescape")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return GitExecutionResult(args=tuple(cmd), returncode=process.returncode, stdout=stdout, stderr=stderr)


class FakeGitRunner(GitRunner):
    """Test double that simulates git responses."""

    def __init__(  # type: ignore[override]
        self,
        responses: Iterable[GitExecutionResult] | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._responses = list(responses or [])
        self._invocations: list[tuple[str, ...]] = []
        self._cwd = Path(cwd) if cwd is not None else Path("/tmp/fake-shadow")
        self._executable_path = Path("/tmp/fake-git")

    async def _invoke(self, *args: str) -> GitExecutionResult:  # type: ignore[override]
        self._invocations.append(tuple(args))
        if self._responses:
            return self._responses.pop(0)
        return GitExecutionResult(args=("git", *args), returncode=0, stdout="", stderr="")

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations


__all__ = [
    "FakeGitRunner",
    "GitClient",
    "GitCommandError",
    "GitExecutionResult",
    "GitNotFoundError",
    "GitRunner",
    "GitRunnerError",
]
