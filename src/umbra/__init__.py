"""Shadow repository checkpoints for agent-edited workspaces."""

__version__ = "0.1.0"

__all__ = ["__version__"]
