"""Data models describing where shadow repositories live."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union


@dataclass(frozen=True, slots=True)
class LegacyLocation:
    """A dedicated shadow repository owned by a single task."""

    task_id: str
    checkpoints_dir: Path
    metadata_dirname: str = ".git"

    kind: Literal["legacy"] = field(default="legacy", init=False)

    @property
    def metadata_path(self) -> Path:
        return self.checkpoints_dir / self.metadata_dirname

    @property
    def is_legacy(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class WorkspaceLocation:
    """A shadow repository shared by every task of one workspace, one branch per task."""

    workspace_hash: str
    checkpoints_dir: Path
    metadata_dirname: str = ".git"

    kind: Literal["branch-per-task"] = field(default="branch-per-task", init=False)

    @property
    def metadata_path(self) -> Path:
        return self.checkpoints_dir / self.metadata_dirname

    @property
    def is_legacy(self) -> bool:
        return False


RepositoryLocation = Union[LegacyLocation, WorkspaceLocation]


@dataclass(slots=True)
class CheckpointAddResult:
    success: bool
    file_count: int


__all__ = ["CheckpointAddResult", "LegacyLocation", "RepositoryLocation", "WorkspaceLocation"]
