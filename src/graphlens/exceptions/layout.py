"""Layout exceptions.

Layout engines raise these; the orchestrator catches them and falls back
to pre-layout positions so a failed layout never reaches the renderer.
"""

from typing import Optional

from .base import GraphLensError


class LayoutError(GraphLensError):
    """Raised when a layout engine cannot position a graph."""

    def __init__(self, engine: str, reason: str, node_count: Optional[int] = None):
        details = {"engine": engine, "reason": reason}
        if node_count is not None:
            details["node_count"] = str(node_count)

        super().__init__(f"Layout failed in {engine}: {reason}", details=details)
        self.engine = engine
        self.reason = reason
