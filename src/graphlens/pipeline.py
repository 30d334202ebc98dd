"""View pipeline: snapshot + ViewParams in, filtered and positioned graph out.

Per-snapshot work (coupling metrics, execution flows, the relationship
cache) runs once in ``set_snapshot``. Per-view work (projection,
redirection, filtering) is memoized on ``(snapshot version, ViewParams)``.
Layout runs through the orchestrator, either debounced (``update``) or
directly (``render``).
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Optional

from .config import DEFAULT_CONFIG, GraphLensConfig
from .graph.flows import detect_execution_flows
from .graph.impact import ImpactAnalyzer
from .graph.metrics import calculate_coupling_metrics
from .graph.models import (
    CouplingMetric,
    ExecutionFlow,
    ImpactAnalysis,
    NodeKind,
    RelatedNodes,
    Snapshot,
)
from .graph.relationships import RelationshipDetector
from .layout.models import LayoutResult
from .layout.orchestrator import LayoutOrchestrator, ResultCallback
from .views.filter import apply_view_mode
from .views.models import FilterContext, FilteredGraph, Projection, ViewMode, ViewParams
from .views.projection import (
    build_architecture_skeleton,
    build_containment_projection,
    build_trace_projection,
)

logger = logging.getLogger(__name__)

# Node kinds kept by the flow-mode depth filter, indexed by max_depth
_DEPTH_KINDS = (
    frozenset({NodeKind.DOMAIN}),
    frozenset({NodeKind.DOMAIN, NodeKind.FILE}),
    frozenset({NodeKind.DOMAIN, NodeKind.FILE, NodeKind.SYMBOL}),
)

MEMO_SIZE = 32


class ViewPipeline:
    """Wires analytics, view filtering, and layout for one graph view."""

    def __init__(
        self,
        config: GraphLensConfig = DEFAULT_CONFIG,
        on_layout: Optional[ResultCallback] = None,
    ) -> None:
        self.config = config
        self.detector = RelationshipDetector()
        self.orchestrator = LayoutOrchestrator(config.layout, on_result=on_layout)

        self._version = 0
        self._snapshot = Snapshot()
        self._metrics: dict[str, CouplingMetric] = {}
        self._flows: tuple[ExecutionFlow, ...] = ()
        self._impact = ImpactAnalyzer(self._snapshot, self.detector, hops=config.impact_hops)
        self._memo: OrderedDict[tuple[int, ViewParams], FilteredGraph] = OrderedDict()

    # ── Snapshot lifecycle ─────────────────────────────────────────

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def metrics(self) -> dict[str, CouplingMetric]:
        return self._metrics

    @property
    def flows(self) -> tuple[ExecutionFlow, ...]:
        return self._flows

    def set_snapshot(self, snapshot: Optional[Snapshot]) -> int:
        """Install a new snapshot and recompute per-snapshot analytics.

        Returns the version assigned to it. ``None`` installs an empty
        snapshot.
        """
        self._version += 1
        snapshot = snapshot if snapshot is not None else Snapshot()
        snapshot.version = self._version

        self._snapshot = snapshot
        self._memo.clear()
        self.detector.load(snapshot)
        self._metrics = calculate_coupling_metrics(snapshot)
        self._flows = tuple(detect_execution_flows(snapshot, self.detector.adjacency.outgoing))
        self._impact = ImpactAnalyzer(snapshot, self.detector, hops=self.config.impact_hops)

        logger.info(
            "Installed snapshot v%d: %d symbol(s), %d edge(s), %d flow(s)",
            self._version,
            len(snapshot.symbols),
            len(snapshot.edges),
            len(self._flows),
        )
        return self._version

    def related_nodes(self, node_id: str) -> RelatedNodes:
        """Direct neighborhood of *node_id* within ``related_hops``."""
        return self.detector.get_related_nodes(node_id, max_hops=self.config.related_hops)

    def analyze_impact(self, node_id: str) -> ImpactAnalysis:
        return self._impact.analyze(node_id)

    # ── Per-view stages ────────────────────────────────────────────

    def build_projection(self, params: ViewParams) -> Projection:
        """Mode-specific nodes and edges before filtering."""
        snapshot = self._snapshot
        if params.mode is ViewMode.ARCHITECTURE:
            return build_architecture_skeleton(snapshot, self._metrics, params.collapsed_nodes)
        if params.mode is ViewMode.TRACE:
            return build_trace_projection(
                snapshot, self._metrics, params.focused_node_id, self.config.trace_depth
            )
        return build_containment_projection(snapshot, self._metrics, params.collapsed_nodes)

    def filter_context(self, params: ViewParams) -> FilterContext:
        related: frozenset[str] = frozenset()
        if params.mode is ViewMode.IMPACT and params.focused_node_id is not None:
            related = self._impact.related_ids(params.focused_node_id)

        return FilterContext(
            mode=params.mode,
            focused_node_id=params.focused_node_id,
            related_node_ids=related,
            risk_thresholds=self.config.thresholds,
            execution_flows=self._flows,
            search_query=params.search_query,
        )

    def project(self, params: ViewParams) -> FilteredGraph:
        """Filtered view for *params*, memoized per snapshot version."""
        key = (self._version, params)
        cached = self._memo.get(key)
        if cached is not None:
            self._memo.move_to_end(key)
            return cached

        projection = self.build_projection(params)
        filtered = apply_view_mode(
            projection.nodes, projection.edges, self.filter_context(params), self.config
        )
        filtered = _dedupe(filtered)
        if params.mode is ViewMode.FLOW:
            filtered = _limit_depth(filtered, params.max_depth)

        self._memo[key] = filtered
        if len(self._memo) > MEMO_SIZE:
            self._memo.popitem(last=False)

        logger.debug(
            "Projected %s view: %d node(s), %d edge(s)",
            params.mode.value,
            len(filtered.nodes),
            len(filtered.edges),
        )
        return filtered

    # ── Layout ─────────────────────────────────────────────────────

    def _layout_args(self, params: ViewParams, filtered: FilteredGraph) -> dict[str, Any]:
        root_id = None
        if params.mode is ViewMode.FLOW:
            root_id = params.focused_node_id
        elif params.mode is ViewMode.TRACE and filtered.nodes:
            root_id = filtered.nodes[0].id
        return {
            "mode": params.mode,
            "root_id": root_id,
            "search_active": len(params.search_query) >= self.config.search_min_length,
        }

    def update(self, params: ViewParams) -> int:
        """Debounced layout for *params*; returns the layout generation.

        The result reaches ``on_layout`` (and ``orchestrator.latest``) once
        the debounce window passes and no newer update has superseded it.
        """
        filtered = self.project(params)
        return self.orchestrator.schedule(
            filtered.nodes, filtered.edges, **self._layout_args(params, filtered)
        )

    async def render(self, params: ViewParams) -> LayoutResult:
        """Project, filter, and lay out *params* immediately."""
        filtered = self.project(params)
        engine = self.orchestrator.engine_for(**self._layout_args(params, filtered))
        return await self.orchestrator.compute(filtered.nodes, filtered.edges, engine)


def _dedupe(filtered: FilteredGraph) -> FilteredGraph:
    """Drop repeated node ids, keeping the first occurrence."""
    seen: set[str] = set()
    nodes = []
    for visible in filtered.nodes:
        if visible.id in seen:
            continue
        seen.add(visible.id)
        nodes.append(visible)
    if len(nodes) == len(filtered.nodes):
        return filtered
    logger.debug("Dropped %d duplicate node(s)", len(filtered.nodes) - len(nodes))
    return FilteredGraph(nodes=tuple(nodes), edges=filtered.edges)


def _limit_depth(filtered: FilteredGraph, max_depth: int) -> FilteredGraph:
    kinds = _DEPTH_KINDS[max_depth]
    nodes = tuple(n for n in filtered.nodes if n.node.kind in kinds)
    kept = {n.id for n in nodes}
    edges = tuple(e for e in filtered.edges if e.source in kept and e.target in kept)
    return FilteredGraph(nodes=nodes, edges=edges)


def serialize_layout(result: LayoutResult) -> dict[str, Any]:
    """Renderer payload: camelCase nodes and edges with positions and styling."""
    nodes = []
    for positioned in result.nodes:
        visibility = positioned.node.visibility
        node_visibility: dict[str, Any] = {
            "opacity": visibility.opacity,
            "highlighted": visibility.highlighted,
        }
        if visibility.glow_color is not None:
            node_visibility["glowColor"] = visibility.glow_color
        if visibility.border_width is not None:
            node_visibility["borderWidth"] = visibility.border_width
        if visibility.risk_score is not None:
            node_visibility["riskScore"] = visibility.risk_score
        if visibility.focused:
            node_visibility["focused"] = True
        if visibility.flow_node:
            node_visibility["flowNode"] = True

        entry: dict[str, Any] = {
            "id": positioned.id,
            "kind": positioned.kind.value,
            "label": positioned.node.node.label,
            "position": {"x": positioned.position.x, "y": positioned.position.y},
            "size": {"width": positioned.size.width, "height": positioned.size.height},
            "visibility": node_visibility,
        }
        if positioned.parent_id is not None:
            entry["parentId"] = positioned.parent_id
        nodes.append(entry)

    edges = []
    for visible in result.edges:
        visibility = visible.visibility
        edge_visibility: dict[str, Any] = {
            "opacity": visibility.opacity,
            "strokeWidth": visibility.stroke_width,
            "importance": visibility.importance,
            "animated": visibility.animated,
        }
        if visibility.label is not None:
            edge_visibility["label"] = visibility.label
        edges.append(
            {
                "id": visible.edge.id,
                "source": visible.source,
                "target": visible.target,
                "kind": visible.edge.kind,
                "weight": visible.edge.weight,
                "visibility": edge_visibility,
            }
        )

    return {
        "generation": result.generation,
        "fallback": result.fallback,
        "nodes": nodes,
        "edges": edges,
    }
