"""
graphlens - View projection and layout for code dependency graphs

Computes coupling metrics, execution flows and change-impact sets over an
indexed code graph, then projects it through an analytical view mode
(architecture, flow, risk, impact, trace) and lays it out for a renderer.
"""

__version__ = "0.1.0"

from .config import GraphLensConfig, load_config
from .graph.models import Snapshot
from .graph.snapshot import load_snapshot, snapshot_from_dict
from .pipeline import ViewPipeline, serialize_layout
from .views.models import ViewMode, ViewParams

__all__ = [
    "ViewPipeline",  # Main entry point
    "ViewParams",
    "ViewMode",
    "Snapshot",
    "GraphLensConfig",
    "load_config",
    "load_snapshot",
    "snapshot_from_dict",
    "serialize_layout",
]
