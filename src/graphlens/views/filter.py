"""View mode filtering.

``apply_view_mode`` is the single entry point: it annotates every node and
edge of a projection with visibility state for the active mode. It is a
pure function of its arguments; nothing here reads or mutates shared state.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..config import DEFAULT_CONFIG, RISK_HIGH_COLOR, RISK_MEDIUM_COLOR, GraphLensConfig, RiskThresholds
from ..graph.flows import calculate_flow_importance
from ..graph.models import DomainPayload, GraphEdge, GraphNode, SymbolPayload
from .models import (
    EdgeVisibility,
    FilterContext,
    FilteredGraph,
    Importance,
    NodeVisibility,
    ViewMode,
    VisibleEdge,
    VisibleNode,
)

logger = logging.getLogger(__name__)

HIGH_RISK = 0.6
MEDIUM_RISK = 0.3
LOW_RISK_OPACITY = 0.3
RISK_EDGE_OPACITY = 0.4
SEARCH_EDGE_OPACITY = 0.1

FOCUS_BORDER = 3.0
SEARCH_BORDER = 2.0
FLOW_STROKE = 3.0
IMPACT_STROKE = 2.5
BASE_STROKE = 1.0

_DOMAIN_RISK = {"critical": 1.0, "warning": 0.5}
_HEALTHY_DOMAIN_RISK = 0.1


def apply_view_mode(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    context: FilterContext,
    config: GraphLensConfig = DEFAULT_CONFIG,
) -> FilteredGraph:
    """Annotate *nodes* and *edges* for the mode in *context*.

    A search query of at least ``config.search_min_length`` characters
    pre-empts the mode branch.
    """
    if len(context.search_query) >= config.search_min_length:
        return _filter_search(nodes, edges, context.search_query, config)

    mode = context.mode
    if mode is ViewMode.ARCHITECTURE:
        return _filter_architecture(nodes, edges)
    if mode is ViewMode.FLOW:
        return _filter_flow(nodes, edges, context, config)
    if mode is ViewMode.RISK:
        return _filter_risk(nodes, edges, context.risk_thresholds)
    if mode is ViewMode.IMPACT:
        return _filter_impact(nodes, edges, context, config)
    return _pass_through(nodes, edges)


def calculate_node_risk(node: GraphNode, thresholds: RiskThresholds) -> float:
    """Risk score in [0, 1]; domains by health status, symbols by thresholds,
    files always 0."""
    payload = node.payload
    if isinstance(payload, DomainPayload):
        status = payload.health.status if payload.health is not None else None
        return _DOMAIN_RISK.get(status, _HEALTHY_DOMAIN_RISK)

    if isinstance(payload, SymbolPayload):
        score = 0.0
        if payload.complexity > thresholds.complexity:
            score += 0.5
        if payload.coupling.normalized_score > thresholds.coupling:
            score += 0.5
        return min(score, 1.0)

    return 0.0


def classify_importance(score: float) -> Importance:
    if score >= 2:
        return "high"
    if score > 0:
        return "medium"
    return "low"


def _pass_through(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> FilteredGraph:
    return FilteredGraph(
        nodes=tuple(VisibleNode(n, NodeVisibility()) for n in nodes),
        edges=tuple(VisibleEdge(e, EdgeVisibility()) for e in edges),
    )


# ── Mode branches ──────────────────────────────────────────────────


def _filter_architecture(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> FilteredGraph:
    kept = [n for n in nodes if n.is_container]
    kept_ids = {n.id for n in kept}
    return FilteredGraph(
        nodes=tuple(VisibleNode(n, NodeVisibility(opacity=1.0)) for n in kept),
        edges=tuple(
            VisibleEdge(e, EdgeVisibility())
            for e in edges
            if e.source in kept_ids and e.target in kept_ids
        ),
    )


def _filter_flow(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    context: FilterContext,
    config: GraphLensConfig,
) -> FilteredGraph:
    flows = context.execution_flows
    on_path: set[str] = set()
    for flow in flows:
        on_path.update(flow.path)

    fade = config.fade_opacity
    visible_nodes = tuple(
        VisibleNode(
            n,
            NodeVisibility(opacity=1.0, highlighted=True, flow_node=True)
            if n.id in on_path
            else NodeVisibility(opacity=fade),
        )
        for n in nodes
    )

    visible_edges = []
    for edge in edges:
        if edge.source in on_path and edge.target in on_path:
            importance = calculate_flow_importance(edge.source, edge.target, flows)
            visibility = EdgeVisibility(
                opacity=1.0,
                stroke_width=FLOW_STROKE,
                importance=classify_importance(importance),
                animated=True,
            )
        else:
            visibility = EdgeVisibility(opacity=fade, stroke_width=BASE_STROKE)
        visible_edges.append(VisibleEdge(edge, visibility))

    return FilteredGraph(nodes=visible_nodes, edges=tuple(visible_edges))


def _filter_risk(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge], thresholds: RiskThresholds
) -> FilteredGraph:
    visible_nodes = []
    for node in nodes:
        risk = calculate_node_risk(node, thresholds)
        if risk > HIGH_RISK:
            visibility = NodeVisibility(
                opacity=1.0, highlighted=True, glow_color=RISK_HIGH_COLOR, risk_score=risk
            )
        elif risk > MEDIUM_RISK:
            visibility = NodeVisibility(
                opacity=1.0, highlighted=True, glow_color=RISK_MEDIUM_COLOR, risk_score=risk
            )
        else:
            visibility = NodeVisibility(opacity=LOW_RISK_OPACITY, risk_score=risk)
        visible_nodes.append(VisibleNode(node, visibility))

    return FilteredGraph(
        nodes=tuple(visible_nodes),
        edges=tuple(VisibleEdge(e, EdgeVisibility(opacity=RISK_EDGE_OPACITY)) for e in edges),
    )


def _impact_border(node: GraphNode) -> float | None:
    payload = node.payload
    if isinstance(payload, SymbolPayload) and payload.impact_depth:
        return min(1.0 + 0.5 * payload.impact_depth, FOCUS_BORDER)
    return None


def _filter_impact(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    context: FilterContext,
    config: GraphLensConfig,
) -> FilteredGraph:
    focus = context.focused_node_id
    if focus is None:
        dim = config.dim_opacity
        return FilteredGraph(
            nodes=tuple(VisibleNode(n, NodeVisibility(opacity=dim)) for n in nodes),
            edges=tuple(VisibleEdge(e, EdgeVisibility(opacity=dim)) for e in edges),
        )

    related = context.related_node_ids
    fade = config.fade_opacity

    visible_nodes = []
    for node in nodes:
        if node.id == focus:
            visibility = NodeVisibility(
                opacity=1.0, highlighted=True, focused=True, border_width=FOCUS_BORDER
            )
        elif node.id in related:
            visibility = NodeVisibility(
                opacity=1.0, highlighted=True, border_width=_impact_border(node)
            )
        else:
            visibility = NodeVisibility(opacity=fade)
        visible_nodes.append(VisibleNode(node, visibility))

    visible_edges = []
    for edge in edges:
        label = None
        if edge.source == focus and edge.target in related:
            label = "downstream"
        elif edge.target == focus and edge.source in related:
            label = "upstream"

        if label is not None:
            visibility = EdgeVisibility(opacity=1.0, stroke_width=IMPACT_STROKE, label=label)
        else:
            visibility = EdgeVisibility(opacity=fade, stroke_width=BASE_STROKE)
        visible_edges.append(VisibleEdge(edge, visibility))

    return FilteredGraph(nodes=tuple(visible_nodes), edges=tuple(visible_edges))


def _matches(node: GraphNode, needle: str) -> bool:
    if needle in node.label.casefold():
        return True
    if node.path is not None and needle in node.path.casefold():
        return True
    return any(needle in tag.casefold() for tag in node.tags)


def _filter_search(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    query: str,
    config: GraphLensConfig,
) -> FilteredGraph:
    needle = query.casefold()
    matched = {n.id for n in nodes if _matches(n, needle)}
    logger.debug("Search %r matched %d of %d node(s)", query, len(matched), len(nodes))

    fade = config.fade_opacity
    visible_nodes = tuple(
        VisibleNode(
            n,
            NodeVisibility(opacity=1.0, highlighted=True, border_width=SEARCH_BORDER)
            if n.id in matched
            else NodeVisibility(opacity=fade),
        )
        for n in nodes
    )
    visible_edges = tuple(
        VisibleEdge(
            e,
            EdgeVisibility(opacity=1.0)
            if e.source in matched and e.target in matched
            else EdgeVisibility(opacity=SEARCH_EDGE_OPACITY, stroke_width=BASE_STROKE),
        )
        for e in edges
    )
    return FilteredGraph(nodes=visible_nodes, edges=visible_edges)
