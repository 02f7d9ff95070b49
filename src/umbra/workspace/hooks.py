"""Workspace-facing collaborators used by the shadow repository manager."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Protocol, Sequence

from .exclusions import get_exclusion_patterns, write_exclusion_file


class WorkspaceUnavailable(RuntimeError):
    """Raised when no usable workspace directory can be determined."""


class WorkspaceHooks(Protocol):
    """Operations on the workspace and filesystem that live outside the manager."""

    def get_exclusion_patterns(self, workspace: Path) -> Sequence[str]:
        ...

    def write_exclusion_file(self, metadata_path: Path, patterns: Sequence[str]) -> None:
        ...

    def path_exists(self, path: Path) -> bool:
        ...

    def hash_workspace(self, workspace: Path) -> str:
        ...

    def working_directory(self) -> Path:
        ...


def hash_workspace(workspace: Path | str) -> str:
    """Return a stable identifier for an absolute workspace path."""

    digest = hashlib.sha256(str(workspace).encode("utf-8", errors="surrogateescape"))
    return digest.hexdigest()[:16]


def protected_directories(home: Path | None = None) -> set[Path]:
    base = Path(home) if home is not None else Path.home()
    return {base, base / "Desktop", base / "Documents", base / "Downloads"}


class DefaultWorkspaceHooks:
    """Filesystem-backed hooks rooted at an optional fixed workspace."""

    def __init__(self, workspace: Path | None = None, *, home: Path | None = None) -> None:
        self._workspace = Path(workspace) if workspace is not None else None
        self._home = home

    def get_exclusion_patterns(self, workspace: Path) -> list[str]:
        return get_exclusion_patterns(Path(workspace))

    def write_exclusion_file(self, metadata_path: Path, patterns: Sequence[str]) -> None:
        write_exclusion_file(Path(metadata_path), patterns)

    def path_exists(self, path: Path) -> bool:
        return os.path.exists(path)

    def hash_workspace(self, workspace: Path) -> str:
        return hash_workspace(workspace)

    def working_directory(self) -> Path:
        """Return the workspace to checkpoint, refusing the user's profile folders."""

        candidate = self._workspace if self._workspace is not None else Path.cwd()
        candidate = candidate.expanduser().absolute()
        if candidate in protected_directories(self._home):
            raise WorkspaceUnavailable(f"Checkpoints cannot be used in {candidate}")
        return candidate


__all__ = [
    "DefaultWorkspaceHooks",
    "WorkspaceHooks",
    "WorkspaceUnavailable",
    "hash_workspace",
    "protected_directories",
]
