"""Breadth-first tree layout with a grid fallback.

Used by the flow and trace modes. Depth from the root runs along the
mode's direction, nodes of the same depth spread along the other axis.
All nodes share one cell size, so no two boxes overlap.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict, deque
from typing import Optional, Sequence

from ..config import LayoutConfig, ModeLayout
from ..views.models import VisibleEdge, VisibleNode
from .models import Placement, Position, Size

logger = logging.getLogger(__name__)


def count_components(ids: Sequence[str], edges: Sequence[VisibleEdge]) -> int:
    """Weakly connected components among *ids*, ignoring dangling edges."""
    known = set(ids)
    neighbors: dict[str, set[str]] = defaultdict(set)
    for edge in edges:
        if edge.source in known and edge.target in known:
            neighbors[edge.source].add(edge.target)
            neighbors[edge.target].add(edge.source)

    seen: set[str] = set()
    components = 0
    for start in ids:
        if start in seen:
            continue
        components += 1
        seen.add(start)
        queue = deque([start])
        while queue:
            for neighbor in neighbors[queue.popleft()]:
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
    return components


def bfs_depths(root: str, ids: Sequence[str], edges: Sequence[VisibleEdge]) -> dict[str, int]:
    """Depth of every node reachable from *root* over outgoing edges."""
    known = set(ids)
    outgoing: dict[str, list[str]] = defaultdict(list)
    for edge in edges:
        if edge.source in known and edge.target in known:
            outgoing[edge.source].append(edge.target)

    depths = {root: 0}
    queue = deque([root])
    while queue:
        current = queue.popleft()
        for neighbor in outgoing[current]:
            if neighbor not in depths:
                depths[neighbor] = depths[current] + 1
                queue.append(neighbor)
    return depths


class BfsTreeLayout:
    """Tree layout rooted at one node, or a grid when no tree fits."""

    name = "bfs"

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        mode: Optional[ModeLayout] = None,
        root_id: Optional[str] = None,
    ):
        self.config = config or LayoutConfig()
        self.mode = mode or self.config.for_mode("flow")
        self.root_id = root_id

    @property
    def vertical(self) -> bool:
        return self.mode.direction in ("DOWN", "UP")

    def compute(
        self, nodes: Sequence[VisibleNode], edges: Sequence[VisibleEdge]
    ) -> dict[str, Placement]:
        sizes: dict[str, Size] = {}
        for visible in nodes:
            if visible.id not in sizes:
                sizes[visible.id] = Size(*self.config.size_for(visible.node.kind.value))
        if not sizes:
            return {}

        ids = list(sizes)
        cell = Size(max(s.width for s in sizes.values()), max(s.height for s in sizes.values()))

        root = self.root_id if self.root_id in sizes else None
        if root is None:
            logger.debug("No visible root; using grid layout for %d node(s)", len(ids))
            return self._grid(ids, sizes, cell, Position())

        components = count_components(ids, edges)
        if components > max(1, len(ids) // 2):
            logger.debug(
                "%d component(s) across %d node(s); using grid layout", components, len(ids)
            )
            return self._grid(ids, sizes, cell, Position())

        return self._tree(root, ids, edges, sizes, cell)

    def _tree(
        self,
        root: str,
        ids: list[str],
        edges: Sequence[VisibleEdge],
        sizes: dict[str, Size],
        cell: Size,
    ) -> dict[str, Placement]:
        depths = bfs_depths(root, ids, edges)
        levels: dict[int, list[str]] = defaultdict(list)
        for node_id in ids:
            if node_id in depths:
                levels[depths[node_id]].append(node_id)

        # Main axis follows depth, cross axis holds siblings
        if self.vertical:
            main_step = cell.height + self.mode.layer_spacing
            cross_step = cell.width + self.mode.node_spacing
        else:
            main_step = cell.width + self.mode.layer_spacing
            cross_step = cell.height + self.mode.node_spacing
        widest = max(len(level) for level in levels.values())

        placements: dict[str, Placement] = {}
        for depth, level in levels.items():
            start = (widest - len(level)) * cross_step / 2
            for i, node_id in enumerate(level):
                main = depth * main_step
                cross = start + i * cross_step
                position = Position(cross, main) if self.vertical else Position(main, cross)
                placements[node_id] = (position, sizes[node_id])

        unreached = [node_id for node_id in ids if node_id not in depths]
        if unreached:
            offset = (max(levels) + 1) * main_step
            origin = Position(0, offset) if self.vertical else Position(offset, 0)
            placements.update(self._grid(unreached, sizes, cell, origin))

        return placements

    def _grid(
        self, ids: list[str], sizes: dict[str, Size], cell: Size, origin: Position
    ) -> dict[str, Placement]:
        columns = math.ceil(math.sqrt(len(ids)))
        gap = self.config.grid_spacing
        return {
            node_id: (
                Position(
                    origin.x + (i % columns) * (cell.width + gap),
                    origin.y + (i // columns) * (cell.height + gap),
                ),
                sizes[node_id],
            )
            for i, node_id in enumerate(ids)
        }
