"""Tests for layout/bfs.py - breadth-first tree layout and grid fallback."""

from graphlens.config import LayoutConfig, ModeLayout
from graphlens.graph.models import GraphEdge, GraphNode, SymbolPayload
from graphlens.layout.bfs import BfsTreeLayout, bfs_depths, count_components
from graphlens.views.models import EdgeVisibility, NodeVisibility, VisibleEdge, VisibleNode


def _node(node_id):
    payload = SymbolPayload(label=node_id, symbol_type="function", file_path="a.ts", line=1)
    return VisibleNode(GraphNode(id=node_id, payload=payload), NodeVisibility())


def _edge(source, target):
    edge = GraphEdge(id=f"{source}->{target}", source=source, target=target)
    return VisibleEdge(edge, EdgeVisibility())


def _overlaps(a, b):
    (pa, sa), (pb, sb) = a, b
    return (
        pa.x < pb.x + sb.width
        and pb.x < pa.x + sa.width
        and pa.y < pb.y + sb.height
        and pb.y < pa.y + sa.height
    )


def _assert_no_overlap(placements):
    items = list(placements.values())
    for i, first in enumerate(items):
        for second in items[i + 1 :]:
            assert not _overlaps(first, second)


class TestHelpers:
    def test_count_components(self):
        ids = ["a", "b", "c", "d"]
        assert count_components(ids, [_edge("a", "b"), _edge("c", "d")]) == 2
        assert count_components(ids, []) == 4
        assert count_components(ids, [_edge("a", "ghost")]) == 4

    def test_bfs_depths(self):
        depths = bfs_depths("a", ["a", "b", "c"], [_edge("a", "b"), _edge("b", "c"), _edge("c", "a")])
        assert depths == {"a": 0, "b": 1, "c": 2}


class TestGridFallback:
    def test_two_disconnected_singletons(self):
        placements = BfsTreeLayout().compute([_node("a"), _node("b")], [])
        assert set(placements) == {"a", "b"}
        _assert_no_overlap(placements)

    def test_fragmented_graph_with_root_uses_grid(self):
        layout = BfsTreeLayout(root_id="a")
        placements = layout.compute([_node("a"), _node("b")], [])
        _assert_no_overlap(placements)

    def test_missing_root_uses_grid(self):
        layout = BfsTreeLayout(root_id="not-visible")
        nodes = [_node(str(i)) for i in range(9)]
        placements = layout.compute(nodes, [_edge("0", "1")])
        assert len(placements) == 9
        _assert_no_overlap(placements)

    def test_empty(self):
        assert BfsTreeLayout().compute([], []) == {}


class TestTreeLayout:
    def test_depth_runs_down(self):
        layout = BfsTreeLayout(mode=ModeLayout("DOWN", 60, 100), root_id="a")
        nodes = [_node("a"), _node("b"), _node("c"), _node("d")]
        edges = [_edge("a", "b"), _edge("a", "c"), _edge("b", "d")]
        placements = layout.compute(nodes, edges)

        assert placements["a"][0].y < placements["b"][0].y < placements["d"][0].y
        assert placements["b"][0].y == placements["c"][0].y
        _assert_no_overlap(placements)

    def test_depth_runs_right(self):
        layout = BfsTreeLayout(mode=ModeLayout("RIGHT", 80, 120), root_id="a")
        placements = layout.compute([_node("a"), _node("b")], [_edge("a", "b")])
        assert placements["a"][0].x < placements["b"][0].x
        assert placements["a"][0].y == placements["b"][0].y

    def test_unreached_nodes_go_past_deepest_level(self):
        layout = BfsTreeLayout(mode=ModeLayout("DOWN", 60, 100), root_id="a")
        nodes = [_node("a"), _node("b"), _node("c"), _node("d")]
        placements = layout.compute(nodes, [_edge("a", "b"), _edge("c", "d")])

        assert placements["c"][0].y > placements["b"][0].y
        assert placements["d"][0].y > placements["b"][0].y
        _assert_no_overlap(placements)

    def test_sizes_follow_kind_hints(self):
        config = LayoutConfig(symbol_size=(100, 40))
        placements = BfsTreeLayout(config, root_id="a").compute([_node("a")], [])
        size = placements["a"][1]
        assert (size.width, size.height) == (100, 40)
