"""Snapshot exceptions: malformed graph input from the host."""

from pathlib import Path
from typing import Optional

from .base import GraphLensError


class SnapshotError(GraphLensError):
    """Base class for snapshot-related errors."""

    pass


class InvalidSnapshotError(SnapshotError):
    """Raised when a snapshot payload cannot be turned into a graph."""

    def __init__(self, reason: str, source: Optional[Path] = None):
        details = {"reason": reason}
        if source is not None:
            details["source"] = str(source)

        super().__init__(f"Invalid snapshot: {reason}", details=details)
        self.reason = reason
        self.source = source
