"""Exception hierarchy for graphlens."""

from .base import GraphLensError
from .config import ConfigurationError, InvalidConfigError
from .layout import LayoutError
from .snapshot import InvalidSnapshotError, SnapshotError

__all__ = [
    "GraphLensError",
    "SnapshotError",
    "InvalidSnapshotError",
    "ConfigurationError",
    "InvalidConfigError",
    "LayoutError",
]
