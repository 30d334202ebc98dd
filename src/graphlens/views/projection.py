"""Mode-specific projections of a snapshot into GraphNode / GraphEdge lists.

Three shapes exist:
  - containment: domain → file → symbol, collapsed containers hide their
    descendants and edges are redirected to them
  - architecture skeleton: domains and files only, symbol edges lifted to
    weighted file-level edges
  - function trace: the symbols reachable from one focused symbol
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from ..graph.flows import is_sink
from ..graph.models import (
    CouplingMetric,
    DomainPayload,
    FilePayload,
    GraphEdge,
    GraphNode,
    Snapshot,
    Symbol,
    SymbolPayload,
    domain_node_id,
    file_node_id,
)
from ..graph.relationships import bfs_within_hops, build_adjacency
from .collapse import CollapseRedirector
from .models import Projection

logger = logging.getLogger(__name__)


def symbol_node(
    symbol: Symbol,
    metrics: dict[str, CouplingMetric],
    parent_id: Optional[str] = None,
    mark_sink: bool = False,
) -> GraphNode:
    coupling = metrics.get(symbol.id) or CouplingMetric(node_id=symbol.id)
    return GraphNode(
        id=symbol.id,
        payload=SymbolPayload(
            label=symbol.name,
            symbol_type=symbol.type,
            file_path=symbol.file_path,
            line=symbol.start_line,
            complexity=symbol.complexity,
            coupling=coupling,
            search_tags=tuple(symbol.search_tags),
            impact_depth=symbol.impact_depth,
            is_sink=mark_sink and is_sink(symbol.name),
        ),
        parent_id=parent_id,
    )


def _group_symbols(snapshot: Snapshot) -> dict[str, dict[str, list[Symbol]]]:
    """domain -> file path -> symbols, in first-seen order."""
    grouped: dict[str, dict[str, list[Symbol]]] = defaultdict(lambda: defaultdict(list))
    for symbol in snapshot.symbol_map().values():
        grouped[symbol.domain_name][symbol.file_path].append(symbol)
    return grouped


def _domain_nodes(
    snapshot: Snapshot, grouped: dict[str, dict[str, list[Symbol]]], collapsed: frozenset[str]
) -> list[GraphNode]:
    """Domain nodes for every supplied domain plus any only symbols mention."""
    nodes: list[GraphNode] = []
    seen: set[str] = set()

    for domain in snapshot.domains:
        if domain.name in seen:
            continue
        seen.add(domain.name)
        node_id = domain_node_id(domain.name)
        nodes.append(
            GraphNode(
                id=node_id,
                payload=DomainPayload(
                    domain=domain.name, health=domain.health, collapsed=node_id in collapsed
                ),
            )
        )

    for name in grouped:
        if name in seen:
            continue
        seen.add(name)
        node_id = domain_node_id(name)
        nodes.append(
            GraphNode(id=node_id, payload=DomainPayload(domain=name, collapsed=node_id in collapsed))
        )

    return nodes


def _average_coupling(symbols: list[Symbol], metrics: dict[str, CouplingMetric]) -> float:
    scores = [m.normalized_score for s in symbols if (m := metrics.get(s.id)) is not None]
    scores = [score for score in scores if score > 0]
    return sum(scores) / len(scores) if scores else 0.0


def build_containment_projection(
    snapshot: Snapshot,
    metrics: dict[str, CouplingMetric],
    collapsed: frozenset[str] = frozenset(),
) -> Projection:
    """Full domain → file → symbol projection with collapse redirection."""
    grouped = _group_symbols(snapshot)
    domain_nodes = _domain_nodes(snapshot, grouped, collapsed)
    file_nodes: list[GraphNode] = []
    symbol_nodes: list[GraphNode] = []

    for domain, files in grouped.items():
        domain_id = domain_node_id(domain)
        if domain_id in collapsed:
            continue

        for file_path, symbols in files.items():
            file_id = file_node_id(domain, file_path)
            file_collapsed = file_id in collapsed
            file_nodes.append(
                GraphNode(
                    id=file_id,
                    payload=FilePayload(
                        file_path=file_path,
                        symbol_count=len(symbols),
                        avg_coupling=_average_coupling(symbols, metrics),
                        collapsed=file_collapsed,
                    ),
                    parent_id=domain_id,
                )
            )
            if file_collapsed:
                continue
            symbol_nodes.extend(symbol_node(s, metrics, parent_id=file_id) for s in symbols)

    nodes = domain_nodes + file_nodes + symbol_nodes
    redirector = CollapseRedirector(collapsed)
    redirection = redirector.build_redirection_map(snapshot.symbol_map().values())
    edges = redirector.redirect(snapshot.edges, redirection, {n.id for n in nodes})

    return Projection(nodes=nodes, edges=edges)


def build_architecture_skeleton(
    snapshot: Snapshot,
    metrics: dict[str, CouplingMetric],
    collapsed: frozenset[str] = frozenset(),
) -> Projection:
    """Domains and files, with symbol edges lifted to weighted file edges."""
    grouped = _group_symbols(snapshot)
    domain_nodes = _domain_nodes(snapshot, grouped, collapsed)
    file_nodes: list[GraphNode] = []
    file_ids: set[str] = set()

    for domain, files in grouped.items():
        domain_id = domain_node_id(domain)
        for file_path, symbols in files.items():
            file_id = file_node_id(domain, file_path)
            file_ids.add(file_id)
            if domain_id in collapsed:
                continue
            file_nodes.append(
                GraphNode(
                    id=file_id,
                    payload=FilePayload(
                        file_path=file_path,
                        symbol_count=len(symbols),
                        avg_coupling=_average_coupling(symbols, metrics),
                        collapsed=file_id in collapsed,
                        avg_fragility=_average_fragility(symbols),
                        total_blast_radius=sum(s.impact_depth or 0 for s in symbols),
                    ),
                    parent_id=domain_id,
                )
            )

    # Every file is folded, so symbol edges land on their files
    redirector = CollapseRedirector(collapsed | file_ids)
    redirection = redirector.build_redirection_map(snapshot.symbol_map().values())
    nodes = domain_nodes + file_nodes
    edges = redirector.redirect(snapshot.edges, redirection, {n.id for n in nodes})

    return Projection(nodes=nodes, edges=edges)


def build_trace_projection(
    snapshot: Snapshot,
    metrics: dict[str, CouplingMetric],
    focus_id: Optional[str],
    depth: int,
) -> Projection:
    """Symbols reachable from *focus_id* within *depth* outgoing hops.

    The focus comes first so tree layout can root on it. Reached symbols
    that look like sinks carry ``is_sink``. Without a known focus the
    projection is empty.
    """
    symbols = snapshot.symbol_map()
    if focus_id is None or focus_id not in symbols:
        return Projection()

    outgoing = build_adjacency(snapshot.edges).outgoing
    reached = [focus_id] + bfs_within_hops(focus_id, outgoing, depth)
    included = [node_id for node_id in reached if node_id in symbols]
    included_ids = set(included)

    nodes = [symbol_node(symbols[node_id], metrics, mark_sink=True) for node_id in included]

    edges: list[GraphEdge] = []
    seen: set[tuple[str, str]] = set()
    for edge in snapshot.edges:
        pair = (edge.source, edge.target)
        if pair in seen or edge.source == edge.target:
            continue
        if edge.source in included_ids and edge.target in included_ids:
            seen.add(pair)
            edges.append(
                GraphEdge(
                    id=f"trace-edge-{len(edges)}",
                    source=edge.source,
                    target=edge.target,
                    kind=edge.kind,
                )
            )

    logger.debug("Trace from %s: %d node(s), %d edge(s)", focus_id, len(nodes), len(edges))
    return Projection(nodes=nodes, edges=edges)


def _average_fragility(symbols: list[Symbol]) -> Optional[float]:
    """Mean of numeric fragility tags; None when no symbol carries one."""
    values = []
    for symbol in symbols:
        if symbol.fragility is None:
            continue
        try:
            values.append(float(symbol.fragility))
        except ValueError:
            continue
    return sum(values) / len(values) if values else None


__all__ = [
    "build_architecture_skeleton",
    "build_containment_projection",
    "build_trace_projection",
    "symbol_node",
]
