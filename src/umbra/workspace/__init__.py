"""Workspace collaborators: exclusion patterns, hashing and working directory lookup."""

from .exclusions import DEFAULT_EXCLUDES, get_exclusion_patterns, read_lfs_patterns, write_exclusion_file
from .hooks import DefaultWorkspaceHooks, WorkspaceHooks, WorkspaceUnavailable, hash_workspace

__all__ = [
    "DEFAULT_EXCLUDES",
    "DefaultWorkspaceHooks",
    "WorkspaceHooks",
    "WorkspaceUnavailable",
    "get_exclusion_patterns",
    "hash_workspace",
    "read_lfs_patterns",
    "write_exclusion_file",
]
