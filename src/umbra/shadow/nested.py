"""Temporarily hide nested git repositories from the shadow repository."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from ..config import REPOSITORY_DEFAULTS, RepositoryDefaults

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SuppressionReport:
    """Outcome of one disable or enable pass."""

    disable: bool
    renamed: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class NestedRepositorySuppressor:
    """Renames nested metadata directories so git stages their files as plain content.

    Without this, git records any sub-directory holding its own ``.git`` as an
    embedded repository instead of adding its files.
    """

    def __init__(self, workspace_root: Path, defaults: RepositoryDefaults = REPOSITORY_DEFAULTS) -> None:
        self._root = Path(workspace_root)
        self._metadata_name = defaults.metadata_dirname
        self._suffix = defaults.disabled_suffix

    @property
    def disabled_name(self) -> str:
        return self._metadata_name + self._suffix

    def find(self, disable: bool) -> list[Path]:
        """Return nested metadata directories below the root, excluding the root's own."""

        target = self._metadata_name if disable else self.disabled_name
        root_names = {self._metadata_name, self.disabled_name}
        matches: list[Path] = []
        for current, dirnames, _ in os.walk(self._root):
            at_root = Path(current) == self._root
            keep: list[str] = []
            for name in sorted(dirnames):
                if at_root and name in root_names:
                    continue
                if name == self._metadata_name or name == self.disabled_name:
                    candidate = Path(current) / name
                    if name == target and candidate.is_dir():
                        matches.append(candidate)
                    continue
                keep.append(name)
            dirnames[:] = keep
        return matches

    def suppress(self, disable: bool) -> SuppressionReport:
        """Disable (append the suffix) or re-enable (strip it) every nested repository.

        A failed rename is logged and recorded on the report; the remaining
        entries are still processed.
        """

        report = SuppressionReport(disable=disable)
        for path in self.find(disable):
            relative = path.relative_to(self._root)
            if disable:
                renamed = path.with_name(self.disabled_name)
            else:
                renamed = path.with_name(self._metadata_name)
            try:
                os.rename(path, renamed)
            except OSError as exc:
                report.failed.append(path)
                if disable:
                    logger.warning(
                        "Failed to disable nested git repo",
                        extra={"path": str(relative), "error": str(exc)},
                    )
                else:
                    logger.error(
                        "Failed to enable nested git repo; it remains disabled",
                        extra={"path": str(relative), "disabled_path": str(path), "error": str(exc)},
                    )
                continue
            report.renamed.append(renamed)
            logger.info(
                "Disabled nested git repo" if disable else "Enabled nested git repo",
                extra={"path": str(relative)},
            )
        return report

    @contextmanager
    def suppressed(self) -> Iterator[SuppressionReport]:
        """Disable nested repositories for the duration of the block, re-enabling on any exit."""

        try:
            yield self.suppress(disable=True)
        finally:
            self.suppress(disable=False)


__all__ = ["NestedRepositorySuppressor", "SuppressionReport"]
