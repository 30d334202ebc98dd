"""Edge redirection around collapsed containers.

When a domain or file is collapsed its descendants are not projected, so
every edge touching them is rerouted to the nearest visible ancestor.
Redirection only ever points a node at one of its own ancestors.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from typing import Union

from ..graph.models import Edge, GraphEdge, Symbol, domain_node_id, file_node_id

logger = logging.getLogger(__name__)


class CollapseRedirector:
    """Rewrites edges for the current set of collapsed container ids."""

    def __init__(self, collapsed: Collection[str]) -> None:
        self.collapsed = frozenset(collapsed)

    def target_for(self, symbol: Symbol) -> str | None:
        """Container a symbol is folded into, or None if it stays visible.

        The domain check runs first, so a collapsed domain wins over a
        collapsed file inside it.
        """
        domain_id = domain_node_id(symbol.domain)
        if domain_id in self.collapsed:
            return domain_id
        file_id = file_node_id(symbol.domain, symbol.file_path)
        if file_id in self.collapsed:
            return file_id
        return None

    def build_redirection_map(self, symbols: Iterable[Symbol]) -> dict[str, str]:
        """Map hidden symbol ids (and file ids under a collapsed domain) to
        their visible ancestor."""
        redirection: dict[str, str] = {}
        if not self.collapsed:
            return redirection

        for symbol in symbols:
            target = self.target_for(symbol)
            if target is not None:
                redirection[symbol.id] = target

            domain_id = domain_node_id(symbol.domain)
            if domain_id in self.collapsed:
                redirection[file_node_id(symbol.domain, symbol.file_path)] = domain_id

        return redirection

    def redirect(
        self,
        edges: Iterable[Union[Edge, GraphEdge]],
        redirection: dict[str, str],
        visible_ids: Collection[str],
    ) -> list[GraphEdge]:
        """Substitute endpoints, drop self-loops and duplicates, keep visible.

        Raw edges get ids ``edge-<index>``; projected edges keep their id.
        Edges merged by (source, target, kind) add up their weights.
        """
        merged: dict[tuple[str, str, str], GraphEdge] = {}
        dropped = 0

        for index, edge in enumerate(edges):
            source = redirection.get(edge.source, edge.source)
            target = redirection.get(edge.target, edge.target)

            if source == target or source not in visible_ids or target not in visible_ids:
                dropped += 1
                continue

            key = (source, target, edge.kind)
            weight = edge.weight if isinstance(edge, GraphEdge) else 1
            existing = merged.get(key)
            if existing is not None:
                merged[key] = GraphEdge(
                    id=existing.id,
                    source=source,
                    target=target,
                    kind=edge.kind,
                    weight=existing.weight + weight,
                )
                continue

            edge_id = edge.id if isinstance(edge, GraphEdge) else f"edge-{index}"
            merged[key] = GraphEdge(
                id=edge_id, source=source, target=target, kind=edge.kind, weight=weight
            )

        if dropped:
            logger.debug("Redirection dropped %d edge(s) (self-loops or hidden endpoints)", dropped)
        return list(merged.values())
