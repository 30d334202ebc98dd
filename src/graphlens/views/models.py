"""View mode types: parameters, filter context, and visibility annotations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from ..config import DEFAULT_RISK_THRESHOLDS, RiskThresholds
from ..exceptions import InvalidConfigError
from ..graph.models import ExecutionFlow, GraphEdge, GraphNode

Importance = Literal["high", "medium", "low"]


class ViewMode(str, Enum):
    """Mutually exclusive analytical lenses over the same graph.

    Search is not a mode: a long enough query overlays any mode.
    """

    ARCHITECTURE = "architecture"
    FLOW = "flow"
    RISK = "risk"
    IMPACT = "impact"
    TRACE = "trace"

    @property
    def uses_tree_layout(self) -> bool:
        return self in (ViewMode.FLOW, ViewMode.TRACE)


@dataclass(frozen=True)
class ViewParams:
    """Everything the caller controls; pipeline output is a pure function of
    (snapshot, ViewParams)."""

    mode: ViewMode = ViewMode.ARCHITECTURE
    focused_node_id: Optional[str] = None
    search_query: str = ""
    collapsed_nodes: frozenset[str] = frozenset()
    max_depth: Literal[0, 1, 2] = 2

    def __post_init__(self) -> None:
        # Keep the bundle hashable so it can key the projection memo
        object.__setattr__(self, "collapsed_nodes", frozenset(self.collapsed_nodes))
        object.__setattr__(self, "mode", ViewMode(self.mode))
        if self.max_depth not in (0, 1, 2):
            raise InvalidConfigError("max_depth", self.max_depth, "must be 0, 1 or 2")


@dataclass(frozen=True)
class FilterContext:
    mode: ViewMode
    focused_node_id: Optional[str] = None
    related_node_ids: frozenset[str] = frozenset()
    risk_thresholds: RiskThresholds = DEFAULT_RISK_THRESHOLDS
    execution_flows: tuple[ExecutionFlow, ...] = ()
    search_query: str = ""


@dataclass(frozen=True)
class NodeVisibility:
    opacity: float = 1.0
    highlighted: bool = False
    glow_color: Optional[str] = None
    focused: bool = False
    risk_score: Optional[float] = None
    border_width: Optional[float] = None
    flow_node: bool = False


@dataclass(frozen=True)
class EdgeVisibility:
    opacity: float = 1.0
    stroke_width: float = 1.5
    importance: Importance = "low"
    label: Optional[str] = None
    animated: bool = False


@dataclass(frozen=True)
class VisibleNode:
    node: GraphNode
    visibility: NodeVisibility

    @property
    def id(self) -> str:
        return self.node.id


@dataclass(frozen=True)
class VisibleEdge:
    edge: GraphEdge
    visibility: EdgeVisibility

    @property
    def source(self) -> str:
        return self.edge.source

    @property
    def target(self) -> str:
        return self.edge.target


@dataclass(frozen=True)
class FilteredGraph:
    nodes: tuple[VisibleNode, ...] = ()
    edges: tuple[VisibleEdge, ...] = ()


@dataclass
class Projection:
    """Mode-specific nodes and edges before visibility filtering."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}
