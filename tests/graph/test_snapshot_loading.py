"""Tests for graph/snapshot.py - host payload parsing and directory scoping."""

import json
import logging

import pytest

from graphlens.exceptions import InvalidSnapshotError
from graphlens.graph.models import Edge, Snapshot, make_symbol_id, parse_symbol_id
from graphlens.graph.snapshot import (
    filter_by_directory,
    find_duplicate_ids,
    load_snapshot,
    snapshot_from_dict,
)


class TestSymbolIds:
    def test_round_trip(self):
        node_id = make_symbol_id("src/a.ts", "run", 12)
        assert node_id == "src/a.ts:run:12"
        assert parse_symbol_id(node_id) == ("src/a.ts", "run", 12)

    def test_windows_drive_letter(self):
        assert parse_symbol_id("C:\\code\\a.ts:run:3") == ("C:\\code\\a.ts", "run", 3)

    def test_container_ids_are_not_symbols(self):
        assert parse_symbol_id("domain:auth") is None
        assert parse_symbol_id("auth:src/a.ts") is None


class TestSnapshotFromDict:
    def test_parses_camel_case_payload(self, sample_payload):
        snapshot = snapshot_from_dict(sample_payload)
        assert len(snapshot.symbols) == 2
        save = snapshot.symbols[1]
        assert save.id == "src/auth/session.ts:saveSession:20"
        assert save.impact_depth == 2
        assert save.search_tags == ["persistence"]
        assert save.end_line == 28
        assert snapshot.edges == [
            Edge(
                "src/api/login.ts:handleSignIn:10",
                "src/auth/session.ts:saveSession:20",
                "call",
            )
        ]
        assert snapshot.files[0].content_hash == "abc"

    def test_domain_health(self, sample_payload):
        domain = snapshot_from_dict(sample_payload).domains[0]
        assert domain.name == "auth"
        assert domain.health.status == "warning"
        assert domain.health.health_score == 55.0

    def test_none_is_empty(self):
        snapshot = snapshot_from_dict(None)
        assert snapshot.is_empty

    def test_non_object_raises(self):
        with pytest.raises(InvalidSnapshotError):
            snapshot_from_dict([1, 2, 3])

    def test_symbol_missing_fields_raises(self):
        with pytest.raises(InvalidSnapshotError, match="filePath"):
            snapshot_from_dict({"symbols": [{"name": "x", "range": {"startLine": 1}}]})

    def test_symbol_without_line_raises(self):
        with pytest.raises(InvalidSnapshotError):
            snapshot_from_dict({"symbols": [{"name": "x", "filePath": "a.ts"}]})

    def test_numeric_fields_coerced_to_int(self):
        item = {
            "name": "x",
            "filePath": "a.ts",
            "range": {"startLine": "3", "endLine": "9"},
            "complexity": "4",
            "impactDepth": "2",
        }
        symbol = snapshot_from_dict({"symbols": [item]}).symbols[0]
        assert (symbol.start_line, symbol.end_line, symbol.complexity) == (3, 9, 4)
        assert symbol.impact_depth == 2
        assert isinstance(symbol.impact_depth, int)

    def test_missing_impact_depth_stays_none(self):
        item = {"name": "x", "filePath": "a.ts", "startLine": 1}
        assert snapshot_from_dict({"symbols": [item]}).symbols[0].impact_depth is None

    def test_non_numeric_impact_depth_raises(self):
        item = {"name": "x", "filePath": "a.ts", "startLine": 1, "impactDepth": "deep"}
        with pytest.raises(InvalidSnapshotError, match="impactDepth"):
            snapshot_from_dict({"symbols": [item]})

    def test_unknown_edge_type_becomes_call(self):
        snapshot = snapshot_from_dict(
            {"edges": [{"source": "a.ts:x:1", "target": "a.ts:y:2", "type": "weird"}]}
        )
        assert snapshot.edges[0].kind == "call"

    def test_malformed_edges_skipped(self):
        snapshot = snapshot_from_dict({"edges": [{"source": "a.ts:x:1"}, "junk"]})
        assert snapshot.edges == []

    def test_duplicate_ids_warn_and_last_wins(self, caplog):
        payload = {
            "symbols": [
                {"name": "x", "filePath": "a.ts", "range": {"startLine": 1}, "complexity": 1},
                {"name": "x", "filePath": "a.ts", "range": {"startLine": 1}, "complexity": 9},
            ]
        }
        with caplog.at_level(logging.WARNING, logger="graphlens"):
            snapshot = snapshot_from_dict(payload)
        assert snapshot.duplicate_ids == ["a.ts:x:1"]
        assert snapshot.symbol_map()["a.ts:x:1"].complexity == 9
        assert "duplicate" in caplog.text


class TestLoadSnapshot:
    def test_reads_file(self, tmp_path, sample_payload):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(sample_payload))
        assert len(load_snapshot(path).symbols) == 2

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(InvalidSnapshotError):
            load_snapshot(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(InvalidSnapshotError):
            load_snapshot(tmp_path / "absent.json")


class TestFilterByDirectory:
    def test_keeps_symbols_under_prefix(self, sample_snapshot, ids):
        scoped = filter_by_directory(sample_snapshot, "src/auth")
        assert {s.id for s in scoped.symbols} == {ids.create, ids.save}
        assert scoped.edges == [Edge(ids.create, ids.save)]
        assert [d.name for d in scoped.domains] == ["auth"]

    def test_backslashes_normalized(self, sample_snapshot, ids):
        scoped = filter_by_directory(sample_snapshot, "src\\billing")
        assert {s.id for s in scoped.symbols} == {ids.invoice, ids.total}

    def test_no_match_is_empty(self, sample_snapshot):
        assert filter_by_directory(sample_snapshot, "lib/").is_empty


class TestFindDuplicateIds:
    def test_no_duplicates(self, sample_snapshot):
        assert find_duplicate_ids(sample_snapshot) == []

    def test_empty(self):
        assert find_duplicate_ids(Snapshot()) == []
