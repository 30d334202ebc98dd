"""Relationship detection: cached adjacency and N-hop related-node queries."""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import Edge, RelatedNodes, Snapshot, domain_node_id, file_node_id

logger = logging.getLogger(__name__)


@dataclass
class Adjacency:
    """Directed adjacency in both directions.

    Neighbor lists keep first-seen edge order and hold no duplicates.
    """

    outgoing: dict[str, list[str]] = field(default_factory=dict)
    incoming: dict[str, list[str]] = field(default_factory=dict)


def build_adjacency(edges: Iterable[Edge]) -> Adjacency:
    outgoing: dict[str, list[str]] = defaultdict(list)
    incoming: dict[str, list[str]] = defaultdict(list)
    seen: set[tuple[str, str]] = set()

    for edge in edges:
        pair = (edge.source, edge.target)
        if pair in seen:
            continue
        seen.add(pair)
        outgoing[edge.source].append(edge.target)
        incoming[edge.target].append(edge.source)

    return Adjacency(outgoing=dict(outgoing), incoming=dict(incoming))


def bfs_within_hops(start: str, adjacency: dict[str, list[str]], max_hops: int) -> list[str]:
    """Nodes reachable from *start* in 1..max_hops steps, in discovery order.

    Each node is enqueued at most once, so cycles terminate. *start* is
    never part of the result, even when a cycle leads back to it.
    """
    visited = {start}
    found: list[str] = []
    queue: deque[tuple[str, int]] = deque([(start, 0)])

    while queue:
        node, depth = queue.popleft()
        if depth >= max_hops:
            continue
        for neighbor in adjacency.get(node, []):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            found.append(neighbor)
            queue.append((neighbor, depth + 1))

    return found


@dataclass
class _Containment:
    parent: dict[str, str] = field(default_factory=dict)
    children: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    file_of: dict[str, str] = field(default_factory=dict)
    symbols_in_file: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))


class RelationshipDetector:
    """Answers related-node queries against one snapshot at a time.

    Adjacency and the containment index are cached per snapshot version.
    ``load`` is a no-op for the version already cached; ``invalidate``
    drops the cache so the next ``load`` rebuilds. Version 0 means no
    generation was assigned, so an unversioned snapshot always rebuilds.
    """

    def __init__(self) -> None:
        self._version: Optional[int] = None
        self._adjacency = Adjacency()
        self._containment = _Containment()

    @property
    def version(self) -> Optional[int]:
        return self._version

    def load(self, snapshot: Snapshot) -> None:
        if snapshot.version and self._version == snapshot.version:
            return

        self._adjacency = build_adjacency(snapshot.edges)
        self._containment = _build_containment(snapshot)
        self._version = snapshot.version
        logger.debug(
            "Relationship cache rebuilt for snapshot v%d (%d sources, %d targets)",
            snapshot.version,
            len(self._adjacency.outgoing),
            len(self._adjacency.incoming),
        )

    def invalidate(self) -> None:
        self._version = None
        self._adjacency = Adjacency()
        self._containment = _Containment()

    @property
    def adjacency(self) -> Adjacency:
        return self._adjacency

    def file_of(self, node_id: str) -> Optional[str]:
        """File path of a symbol id, if the symbol is known."""
        return self._containment.file_of.get(node_id)

    def get_related_nodes(self, node_id: str, max_hops: int = 1) -> RelatedNodes:
        containment = self._containment

        parent = containment.parent.get(node_id)
        parents = frozenset({parent}) if parent else frozenset()
        children = frozenset(containment.children.get(node_id, ()))

        callers = frozenset(bfs_within_hops(node_id, self._adjacency.incoming, max_hops))
        callees = frozenset(bfs_within_hops(node_id, self._adjacency.outgoing, max_hops))

        file_path = containment.file_of.get(node_id)
        if file_path is not None:
            same_file = frozenset(containment.symbols_in_file[file_path] - {node_id})
        else:
            same_file = frozenset()

        return RelatedNodes(
            parents=parents,
            children=children,
            callers=callers,
            callees=callees,
            same_file=same_file,
        )


def _build_containment(snapshot: Snapshot) -> _Containment:
    containment = _Containment()

    for symbol in snapshot.symbol_map().values():
        domain_id = domain_node_id(symbol.domain)
        file_id = file_node_id(symbol.domain, symbol.file_path)

        containment.parent[symbol.id] = file_id
        containment.parent[file_id] = domain_id
        containment.children[file_id].add(symbol.id)
        containment.children[domain_id].add(file_id)
        containment.file_of[symbol.id] = symbol.file_path
        containment.symbols_in_file[symbol.file_path].add(symbol.id)

    return containment
