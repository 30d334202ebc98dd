"""Tests for graph/relationships.py - adjacency, BFS, related-node queries."""

from graphlens.graph.models import Edge, Snapshot, Symbol
from graphlens.graph.relationships import (
    RelationshipDetector,
    bfs_within_hops,
    build_adjacency,
)


def _chain_snapshot(length, cyclic=False, version=1):
    symbols = [
        Symbol(name=f"f{i}", type="function", file_path="src/chain.ts", start_line=i)
        for i in range(length)
    ]
    edges = [Edge(symbols[i].id, symbols[i + 1].id) for i in range(length - 1)]
    if cyclic:
        edges.append(Edge(symbols[-1].id, symbols[0].id))
    return Snapshot(symbols=symbols, edges=edges, version=version), [s.id for s in symbols]


class TestBuildAdjacency:
    def test_first_seen_order_without_duplicates(self):
        adjacency = build_adjacency(
            [Edge("a", "b"), Edge("a", "c"), Edge("a", "b", kind="import")]
        )
        assert adjacency.outgoing["a"] == ["b", "c"]
        assert adjacency.incoming["b"] == ["a"]

    def test_empty(self):
        adjacency = build_adjacency([])
        assert adjacency.outgoing == {}
        assert adjacency.incoming == {}


class TestBfsWithinHops:
    def test_respects_hop_bound(self):
        adjacency = {"a": ["b"], "b": ["c"], "c": ["d"]}
        assert bfs_within_hops("a", adjacency, 1) == ["b"]
        assert bfs_within_hops("a", adjacency, 2) == ["b", "c"]

    def test_cycle_terminates_and_excludes_start(self):
        adjacency = {"a": ["b"], "b": ["c"], "c": ["a"]}
        assert bfs_within_hops("a", adjacency, 10) == ["b", "c"]

    def test_unknown_start(self):
        assert bfs_within_hops("zzz", {"a": ["b"]}, 3) == []


class TestRelationshipDetector:
    def test_related_nodes(self, sample_snapshot, ids):
        detector = RelationshipDetector()
        detector.load(sample_snapshot)
        related = detector.get_related_nodes(ids.create)

        assert related.callers == {ids.login}
        assert related.callees == {ids.save}
        assert related.same_file == {ids.save}
        assert related.parents == {"auth:src/auth/session.ts"}
        assert related.children == frozenset()

    def test_all_is_union(self, sample_snapshot, ids):
        detector = RelationshipDetector()
        detector.load(sample_snapshot)
        related = detector.get_related_nodes(ids.create, max_hops=2)
        assert related.all == (
            related.parents
            | related.children
            | related.callers
            | related.callees
            | related.same_file
        )

    def test_container_children(self, sample_snapshot, ids):
        detector = RelationshipDetector()
        detector.load(sample_snapshot)
        related = detector.get_related_nodes("auth:src/auth/session.ts")
        assert related.children == {ids.create, ids.save}
        assert related.parents == {"domain:auth"}

    def test_hops_bound_callees(self):
        snapshot, chain = _chain_snapshot(5)
        detector = RelationshipDetector()
        detector.load(snapshot)
        assert detector.get_related_nodes(chain[0], max_hops=2).callees == {chain[1], chain[2]}

    def test_cyclic_graph_terminates(self):
        snapshot, chain = _chain_snapshot(4, cyclic=True)
        detector = RelationshipDetector()
        detector.load(snapshot)
        related = detector.get_related_nodes(chain[0], max_hops=100)
        assert related.callees == set(chain[1:])
        assert chain[0] not in related.callers

    def test_load_is_noop_for_same_version(self):
        first, _ = _chain_snapshot(3, version=7)
        second, chain = _chain_snapshot(5, version=7)
        detector = RelationshipDetector()
        detector.load(first)
        detector.load(second)
        # Still the first snapshot's adjacency
        assert chain[3] not in detector.adjacency.outgoing.get(chain[2], [])

    def test_new_version_rebuilds(self):
        first, _ = _chain_snapshot(3, version=1)
        second, chain = _chain_snapshot(5, version=2)
        detector = RelationshipDetector()
        detector.load(first)
        detector.load(second)
        assert detector.version == 2
        assert detector.adjacency.outgoing[chain[3]] == [chain[4]]

    def test_unversioned_snapshots_always_rebuild(self):
        a, b, c = (
            Symbol(name=n, type="function", file_path="src/x.ts", start_line=i)
            for i, n in enumerate("abc", start=1)
        )
        detector = RelationshipDetector()
        detector.load(Snapshot(symbols=[a, b, c], edges=[Edge(a.id, b.id)]))
        detector.load(Snapshot(symbols=[a, b, c], edges=[Edge(a.id, c.id)]))
        assert detector.get_related_nodes(a.id).callees == {c.id}

    def test_invalidate_forces_rebuild(self):
        first, _ = _chain_snapshot(3, version=4)
        second, chain = _chain_snapshot(5, version=4)
        detector = RelationshipDetector()
        detector.load(first)
        detector.invalidate()
        assert detector.version is None
        detector.load(second)
        assert detector.adjacency.outgoing[chain[3]] == [chain[4]]

    def test_file_of(self, sample_snapshot, ids):
        detector = RelationshipDetector()
        detector.load(sample_snapshot)
        assert detector.file_of(ids.total) == "src/billing/invoice.ts"
        assert detector.file_of(ids.ghost) is None

    def test_two_node_cycle(self):
        a = Symbol(name="a", type="function", file_path="src/a.ts", start_line=1)
        b = Symbol(name="b", type="function", file_path="src/b.ts", start_line=1)
        snapshot = Snapshot(symbols=[a, b], edges=[Edge(a.id, b.id), Edge(b.id, a.id)])
        detector = RelationshipDetector()
        detector.load(snapshot)
        related = detector.get_related_nodes(a.id, max_hops=2)
        assert related.callees == {b.id}
        assert related.callers == {b.id}
