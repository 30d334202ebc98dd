"""Layout engines and the debounced orchestrator that schedules them."""

from .bfs import BfsTreeLayout
from .hierarchical import HierarchicalLayout
from .models import LayoutResult, Position, PositionedNode, Size
from .orchestrator import LayoutOrchestrator

__all__ = [
    "BfsTreeLayout",
    "HierarchicalLayout",
    "LayoutOrchestrator",
    "LayoutResult",
    "Position",
    "PositionedNode",
    "Size",
]
