"""Utility helpers for the git runner."""

from __future__ import annotations

import os
from typing import Mapping

_SANITIZED_VARS = {
    "GIT_DIR",
    "GIT_WORK_TREE",
    "GIT_INDEX_FILE",
    "GIT_OBJECT_DIRECTORY",
    "GIT_ALTERNATE_OBJECT_DIRECTORIES",
    "GIT_COMMON_DIR",
}

_FORCED_VARS = {
    "GIT_TERMINAL_PROMPT": "0",
}


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return an environment that cannot redirect git away from the shadow repository."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    env.update(_FORCED_VARS)
    if additional:
        env.update(additional)
    return env


def split_nul(output: str) -> list[str]:
    """Split NUL-terminated git output, dropping empty entries."""

    return [entry for entry in output.split("\0") if entry]


def split_lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]
