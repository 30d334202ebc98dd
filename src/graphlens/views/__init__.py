"""View modes: projection builders, collapse redirection, visibility filter."""

from .collapse import CollapseRedirector
from .filter import apply_view_mode, calculate_node_risk
from .models import FilterContext, FilteredGraph, ViewMode, ViewParams

__all__ = [
    "CollapseRedirector",
    "FilterContext",
    "FilteredGraph",
    "ViewMode",
    "ViewParams",
    "apply_view_mode",
    "calculate_node_risk",
]
