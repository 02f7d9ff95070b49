"""Shadow repository locations and layout resolution."""

from .locator import RepositoryLocator
from .models import CheckpointAddResult, LegacyLocation, RepositoryLocation, WorkspaceLocation

__all__ = [
    "CheckpointAddResult",
    "LegacyLocation",
    "RepositoryLocation",
    "RepositoryLocator",
    "WorkspaceLocation",
]
