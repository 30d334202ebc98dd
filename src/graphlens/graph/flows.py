"""Execution flow detection: entry points traced to sinks.

Entry points and sinks are classified by name heuristics. For every entry
point a BFS over outgoing edges collects the sinks it reaches; a second
BFS records everything reachable, in discovery order, as the flow path.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .models import ExecutionFlow, FlowCategory, Snapshot, Symbol
from .relationships import build_adjacency

logger = logging.getLogger(__name__)

# Checked in this order; the first matching category wins
ENTRY_POINT_PATTERNS: tuple[tuple[FlowCategory, re.Pattern], ...] = (
    ("api", re.compile(r"^(handle|handler|route|endpoint|api|controller)", re.IGNORECASE)),
    ("main", re.compile(r"^(main|run|start|init|boot)", re.IGNORECASE)),
    ("event", re.compile(r"^(on|handle|listener|subscribe)", re.IGNORECASE)),
    ("route", re.compile(r"^(get|post|put|delete|patch|all|use)", re.IGNORECASE)),
)

# Path segments that mark a source boundary (request handlers and the like)
ENTRY_POINT_DIRECTORIES = ("/api/", "/routes/", "/handlers/", "/controllers/")

SINK_PATTERNS: dict[str, re.Pattern] = {
    "database": re.compile(
        r"(query|execute|find|save|update|delete|insert|select|transaction)", re.IGNORECASE
    ),
    "network": re.compile(r"(fetch|axios|request|get|post|http|https|send)", re.IGNORECASE),
    "io": re.compile(r"(write|read|log|print|console|file|stream)", re.IGNORECASE),
    "response": re.compile(r"(send|json|status|redirect|render)", re.IGNORECASE),
}

MAX_FLOW_IMPORTANCE = 3.0


@dataclass(frozen=True)
class EntryPoint:
    id: str
    category: FlowCategory


def classify_entry_point(symbol: Symbol) -> Optional[FlowCategory]:
    """Entry point category for a symbol, or None."""
    for category, pattern in ENTRY_POINT_PATTERNS:
        if pattern.match(symbol.name):
            return category
    path = symbol.file_path.replace("\\", "/")
    if any(segment in path for segment in ENTRY_POINT_DIRECTORIES):
        return "api"
    return None


def is_sink(name: str) -> bool:
    return any(pattern.search(name) for pattern in SINK_PATTERNS.values())


def find_entry_points(symbols: Iterable[Symbol]) -> list[EntryPoint]:
    entry_points: list[EntryPoint] = []
    seen: set[str] = set()
    for symbol in symbols:
        if symbol.id in seen:
            continue
        category = classify_entry_point(symbol)
        if category is not None:
            seen.add(symbol.id)
            entry_points.append(EntryPoint(id=symbol.id, category=category))
    return entry_points


def find_sinks(symbols: Iterable[Symbol]) -> set[str]:
    return {symbol.id for symbol in symbols if is_sink(symbol.name)}


def trace_sinks(entry_id: str, outgoing: dict[str, list[str]], sink_ids: set[str]) -> list[str]:
    """Sinks reachable from *entry_id*, in the order BFS first visits them."""
    found: list[str] = []
    visited = {entry_id}
    queue: deque[str] = deque([entry_id])

    while queue:
        current = queue.popleft()
        if current in sink_ids and current != entry_id:
            found.append(current)
        for neighbor in outgoing.get(current, []):
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)

    return found


def reachable_in_discovery_order(entry_id: str, outgoing: dict[str, list[str]]) -> list[str]:
    """Every node reachable from *entry_id*, entry first, in BFS discovery order."""
    order = [entry_id]
    visited = {entry_id}
    queue: deque[str] = deque([entry_id])

    while queue:
        current = queue.popleft()
        for neighbor in outgoing.get(current, []):
            if neighbor not in visited:
                visited.add(neighbor)
                order.append(neighbor)
                queue.append(neighbor)

    return order


def detect_execution_flows(
    snapshot: Snapshot, outgoing: Optional[dict[str, list[str]]] = None
) -> list[ExecutionFlow]:
    """Trace every entry point in the snapshot to the sinks it reaches.

    Args:
        snapshot: The graph snapshot
        outgoing: Prebuilt outgoing adjacency (built from the snapshot edges if omitted)

    Returns:
        One ExecutionFlow per entry point that reaches at least one sink
    """
    symbols = list(snapshot.symbol_map().values())
    if outgoing is None:
        outgoing = build_adjacency(snapshot.edges).outgoing

    sink_ids = find_sinks(symbols)
    flows: list[ExecutionFlow] = []

    for entry in find_entry_points(symbols):
        sinks = trace_sinks(entry.id, outgoing, sink_ids)
        if not sinks:
            continue
        flows.append(
            ExecutionFlow(
                entry_point=entry.id,
                sinks=tuple(sinks),
                path=tuple(reachable_in_discovery_order(entry.id, outgoing)),
                category=entry.category,
            )
        )

    logger.debug("Detected %d execution flow(s) from %d sink(s)", len(flows), len(sink_ids))
    return flows


def calculate_flow_importance(
    source_id: str, target_id: str, flows: Sequence[ExecutionFlow]
) -> float:
    """Importance of the edge source → target for highlighting.

    +1 for every flow whose path lists target right after source, +0.5
    more when that flow is an API flow; capped at 3.
    """
    score = 0.0
    for flow in flows:
        try:
            source_idx = flow.path.index(source_id)
        except ValueError:
            continue
        if source_idx + 1 < len(flow.path) and flow.path[source_idx + 1] == target_id:
            score += 1.0
            if flow.category == "api":
                score += 0.5
    return min(score, MAX_FLOW_IMPORTANCE)


def is_node_on_execution_path(node_id: str, flows: Sequence[ExecutionFlow]) -> bool:
    return any(node_id in flow.path for flow in flows)


def get_flows_for_node(node_id: str, flows: Sequence[ExecutionFlow]) -> list[ExecutionFlow]:
    return [flow for flow in flows if node_id in flow.path]
