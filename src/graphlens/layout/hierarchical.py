"""Hierarchical containment layout.

Nodes nest by ``parent_id``. Each container lays out its direct children
as a layered graph: edges between descendants are lifted to the pair of
siblings that contain them, strongly connected siblings are condensed,
and topological generations of the condensation become layers. Weakly
connected components sit side by side and isolated siblings share a grid
block. Containers are sized bottom-up from their content, never smaller
than their size hint, and positions are resolved top-down, so every child
box lies inside its parent.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Optional, Sequence

import networkx as nx

from ..config import LayoutConfig, ModeLayout
from ..exceptions import LayoutError
from ..graph.models import GraphNode
from ..views.models import VisibleEdge, VisibleNode
from .models import Placement, Position, Size

logger = logging.getLogger(__name__)

# Relative offsets plus (width, height) of an arranged block
_Block = tuple[dict[str, tuple[float, float]], tuple[float, float]]


class HierarchicalLayout:
    """Layered layout that respects containment."""

    name = "hierarchical"

    def __init__(self, config: Optional[LayoutConfig] = None, mode: Optional[ModeLayout] = None):
        self.config = config or LayoutConfig()
        self.mode = mode or self.config.for_mode("architecture")

    @property
    def vertical(self) -> bool:
        return self.mode.direction in ("DOWN", "UP")

    @property
    def reversed(self) -> bool:
        return self.mode.direction in ("UP", "LEFT")

    def compute(
        self, nodes: Sequence[VisibleNode], edges: Sequence[VisibleEdge]
    ) -> dict[str, Placement]:
        graph_nodes: dict[str, GraphNode] = {}
        for visible in nodes:
            graph_nodes.setdefault(visible.id, visible.node)
        if not graph_nodes:
            return {}

        index = {node_id: i for i, node_id in enumerate(graph_nodes)}
        parent = {
            node_id: node.parent_id
            if node.parent_id in graph_nodes and node.parent_id != node_id
            else None
            for node_id, node in graph_nodes.items()
        }
        children: dict[Optional[str], list[str]] = defaultdict(list)
        for node_id in graph_nodes:
            children[parent[node_id]].append(node_id)

        paths = {node_id: self._path(node_id, parent) for node_id in graph_nodes}
        lifted = self._lift_edges(edges, paths)

        sizes: dict[str, Size] = {}
        offsets: dict[str, tuple[float, float]] = {}
        try:
            self._measure(None, -1, graph_nodes, children, lifted, index, sizes, offsets)
        except nx.NetworkXException as e:
            raise LayoutError(self.name, str(e), node_count=len(graph_nodes)) from e

        placements: dict[str, Placement] = {}
        stack = list(children[None])
        for root in stack:
            placements[root] = (Position(*offsets[root]), sizes[root])
        while stack:
            current = stack.pop()
            origin = placements[current][0]
            for child in children.get(current, []):
                dx, dy = offsets[child]
                placements[child] = (Position(origin.x + dx, origin.y + dy), sizes[child])
                stack.append(child)

        logger.debug(
            "Hierarchical layout placed %d node(s) in %d root container(s)",
            len(placements),
            len(children[None]),
        )
        return placements

    # ── Containment ────────────────────────────────────────────────

    def _path(self, node_id: str, parent: dict[str, Optional[str]]) -> list[str]:
        """Ancestor chain, outermost first, ending at *node_id*."""
        chain = [node_id]
        seen = {node_id}
        current = parent[node_id]
        while current is not None:
            if current in seen:
                raise LayoutError(
                    self.name, f"containment cycle through {current}", node_count=len(parent)
                )
            seen.add(current)
            chain.append(current)
            current = parent[current]
        chain.reverse()
        return chain

    @staticmethod
    def _lift_edges(
        edges: Sequence[VisibleEdge], paths: dict[str, list[str]]
    ) -> dict[Optional[str], list[tuple[str, str]]]:
        """Map every edge to the sibling pair under its lowest common container."""
        lifted: dict[Optional[str], dict[tuple[str, str], None]] = defaultdict(dict)
        for edge in edges:
            source_path = paths.get(edge.source)
            target_path = paths.get(edge.target)
            if source_path is None or target_path is None:
                continue

            common = 0
            for a, b in zip(source_path, target_path):
                if a != b:
                    break
                common += 1
            # One endpoint contains the other
            if common >= len(source_path) or common >= len(target_path):
                continue

            container = source_path[common - 1] if common else None
            lifted[container][(source_path[common], target_path[common])] = None

        return {container: list(pairs) for container, pairs in lifted.items()}

    def _measure(
        self,
        container: Optional[str],
        depth: int,
        graph_nodes: dict[str, GraphNode],
        children: dict[Optional[str], list[str]],
        lifted: dict[Optional[str], list[tuple[str, str]]],
        index: dict[str, int],
        sizes: dict[str, Size],
        offsets: dict[str, tuple[float, float]],
    ) -> None:
        """Size *container*'s subtree bottom-up and record child offsets."""
        kids = children.get(container, [])
        for child in kids:
            self._measure(child, depth + 1, graph_nodes, children, lifted, index, sizes, offsets)

        hint = self.config.size_for(graph_nodes[container].kind.value) if container else None
        if not kids:
            if hint is not None:
                sizes[container] = Size(*hint)
            return

        positions, (content_width, content_height) = self._arrange(
            kids, sizes, lifted.get(container, []), index
        )

        if container is None:
            offsets.update(positions)
            return

        pad = self.config.side_padding
        header = self.config.header_for_depth(depth)
        sizes[container] = Size(
            max(hint[0], content_width + 2 * pad),
            max(hint[1], content_height + header + pad),
        )
        for child, (x, y) in positions.items():
            offsets[child] = (x + pad, y + header)

    # ── Sibling placement ──────────────────────────────────────────

    def _arrange(
        self,
        ids: list[str],
        sizes: dict[str, Size],
        edges: list[tuple[str, str]],
        index: dict[str, int],
    ) -> _Block:
        graph = nx.DiGraph()
        graph.add_nodes_from(ids)
        graph.add_edges_from(edges)

        components = sorted(
            nx.weakly_connected_components(graph),
            key=lambda component: min(index[n] for n in component),
        )
        blocks: list[_Block] = [
            self._layer_block(graph.subgraph(component), sizes, index)
            for component in components
            if len(component) > 1
        ]
        singles = [n for component in components if len(component) == 1 for n in component]
        if singles:
            blocks.append(self._grid_block(singles, sizes))

        positions: dict[str, tuple[float, float]] = {}
        spacing = self.mode.node_spacing
        cursor = 0.0
        extent = 0.0
        for block_positions, (width, height) in blocks:
            for node_id, (x, y) in block_positions.items():
                positions[node_id] = (x + cursor, y) if self.vertical else (x, y + cursor)
            cursor += (width if self.vertical else height) + spacing
            extent = max(extent, height if self.vertical else width)

        cross = max(cursor - spacing, 0.0)
        return positions, ((cross, extent) if self.vertical else (extent, cross))

    def _layer_block(
        self, component: nx.DiGraph, sizes: dict[str, Size], index: dict[str, int]
    ) -> _Block:
        condensed = nx.condensation(component)
        layers = [
            sorted(
                (n for scc in generation for n in condensed.nodes[scc]["members"]),
                key=index.__getitem__,
            )
            for generation in nx.topological_generations(condensed)
        ]
        if self.reversed:
            layers.reverse()

        def main(node_id: str) -> float:
            size = sizes[node_id]
            return size.height if self.vertical else size.width

        def cross(node_id: str) -> float:
            size = sizes[node_id]
            return size.width if self.vertical else size.height

        spacing = self.mode.node_spacing
        lengths = [sum(cross(n) for n in layer) + spacing * (len(layer) - 1) for layer in layers]
        block_cross = max(lengths)

        positions: dict[str, tuple[float, float]] = {}
        main_offset = 0.0
        for layer, length in zip(layers, lengths):
            cross_offset = (block_cross - length) / 2
            for node_id in layer:
                if self.vertical:
                    positions[node_id] = (cross_offset, main_offset)
                else:
                    positions[node_id] = (main_offset, cross_offset)
                cross_offset += cross(node_id) + spacing
            main_offset += max(main(n) for n in layer) + self.mode.layer_spacing

        block_main = main_offset - self.mode.layer_spacing
        if self.vertical:
            return positions, (block_cross, block_main)
        return positions, (block_main, block_cross)

    def _grid_block(self, ids: list[str], sizes: dict[str, Size]) -> _Block:
        columns = math.ceil(math.sqrt(len(ids)))
        rows = math.ceil(len(ids) / columns)
        cell_width = max(sizes[n].width for n in ids)
        cell_height = max(sizes[n].height for n in ids)
        gap = self.config.grid_spacing

        positions = {
            node_id: ((i % columns) * (cell_width + gap), (i // columns) * (cell_height + gap))
            for i, node_id in enumerate(ids)
        }
        width = columns * cell_width + (columns - 1) * gap
        height = rows * cell_height + (rows - 1) * gap
        return positions, (width, height)
