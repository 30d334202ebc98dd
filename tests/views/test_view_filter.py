"""Tests for views/filter.py - visibility per view mode and search overlay."""

import pytest

from graphlens.config import RiskThresholds
from graphlens.graph.flows import detect_execution_flows
from graphlens.graph.metrics import calculate_coupling_metrics
from graphlens.graph.models import (
    CouplingMetric,
    DomainHealth,
    DomainPayload,
    FilePayload,
    GraphNode,
    NodeKind,
    SymbolPayload,
)
from graphlens.views.filter import apply_view_mode, calculate_node_risk, classify_importance
from graphlens.views.models import FilterContext, ViewMode
from graphlens.views.projection import build_containment_projection


@pytest.fixture
def projection(sample_snapshot):
    return build_containment_projection(
        sample_snapshot, calculate_coupling_metrics(sample_snapshot)
    )


def _symbol_node(complexity=0, score=0.0, impact_depth=None):
    return GraphNode(
        id="src/a.ts:f:1",
        payload=SymbolPayload(
            label="f",
            symbol_type="function",
            file_path="src/a.ts",
            line=1,
            complexity=complexity,
            coupling=CouplingMetric(node_id="src/a.ts:f:1", normalized_score=score),
            impact_depth=impact_depth,
        ),
    )


def _visibility(filtered):
    return {n.id: n.visibility for n in filtered.nodes}


def _edge_visibility(filtered):
    return {(e.source, e.target): e.visibility for e in filtered.edges}


# ── Risk scoring ──────────────────────────────────────────────────


class TestNodeRisk:
    def test_complex_and_coupled_symbol_is_high(self):
        node = _symbol_node(complexity=15, score=0.7)
        assert calculate_node_risk(node, RiskThresholds()) == 1.0

    def test_single_factor_is_half(self):
        assert calculate_node_risk(_symbol_node(complexity=15), RiskThresholds()) == 0.5
        assert calculate_node_risk(_symbol_node(score=0.9), RiskThresholds()) == 0.5

    def test_thresholds_are_exclusive(self):
        assert calculate_node_risk(_symbol_node(complexity=10, score=0.6), RiskThresholds()) == 0

    @pytest.mark.parametrize(
        "status, expected", [("critical", 1.0), ("warning", 0.5), ("healthy", 0.1)]
    )
    def test_domain_by_status(self, status, expected):
        node = GraphNode(
            id="domain:d",
            payload=DomainPayload(domain="d", health=DomainHealth(domain="d", status=status)),
        )
        assert calculate_node_risk(node, RiskThresholds()) == expected

    def test_domain_without_health(self):
        node = GraphNode(id="domain:d", payload=DomainPayload(domain="d"))
        assert calculate_node_risk(node, RiskThresholds()) == 0.1

    def test_files_have_no_risk(self):
        node = GraphNode(id="d:a.ts", payload=FilePayload(file_path="a.ts"))
        assert calculate_node_risk(node, RiskThresholds()) == 0.0


class TestClassifyImportance:
    def test_levels(self):
        assert classify_importance(0) == "low"
        assert classify_importance(1.0) == "medium"
        assert classify_importance(1.5) == "medium"
        assert classify_importance(2.0) == "high"


# ── Modes ─────────────────────────────────────────────────────────


class TestArchitectureMode:
    def test_containers_only(self, projection):
        filtered = apply_view_mode(
            projection.nodes, projection.edges, FilterContext(mode=ViewMode.ARCHITECTURE)
        )
        assert filtered.nodes
        assert all(n.node.kind is not NodeKind.SYMBOL for n in filtered.nodes)
        assert all(n.visibility.opacity == 1.0 for n in filtered.nodes)
        # Every projected edge joins symbols, so none survive
        assert filtered.edges == ()


class TestFlowMode:
    def test_path_nodes_highlighted(self, projection, sample_snapshot, ids):
        context = FilterContext(
            mode=ViewMode.FLOW, execution_flows=tuple(detect_execution_flows(sample_snapshot))
        )
        visibility = _visibility(apply_view_mode(projection.nodes, projection.edges, context))

        assert visibility[ids.total].opacity == 1.0
        assert visibility[ids.total].highlighted
        assert visibility[ids.total].flow_node
        assert visibility["domain:auth"].opacity == 0.15

    def test_path_edges_animated_with_importance(self, projection, sample_snapshot, ids):
        context = FilterContext(
            mode=ViewMode.FLOW, execution_flows=tuple(detect_execution_flows(sample_snapshot))
        )
        edges = _edge_visibility(apply_view_mode(projection.nodes, projection.edges, context))

        first_hop = edges[(ids.login, ids.create)]
        assert first_hop.opacity == 1.0
        assert first_hop.stroke_width == 3
        assert first_hop.animated
        assert first_hop.importance == "medium"
        assert edges[(ids.login, ids.invoice)].importance == "low"

    def test_no_flows_fades_everything(self, projection):
        filtered = apply_view_mode(
            projection.nodes, projection.edges, FilterContext(mode=ViewMode.FLOW)
        )
        assert all(n.visibility.opacity == 0.15 for n in filtered.nodes)
        assert all(e.visibility.opacity == 0.15 for e in filtered.edges)


class TestRiskMode:
    def test_high_risk_symbol(self):
        filtered = apply_view_mode([_symbol_node(15, 0.7)], [], FilterContext(mode=ViewMode.RISK))
        visibility = filtered.nodes[0].visibility
        assert visibility.risk_score == 1.0
        assert visibility.opacity == 1.0
        assert visibility.glow_color == "#ef4444"

    def test_sample_classification(self, projection, ids):
        filtered = apply_view_mode(
            projection.nodes, projection.edges, FilterContext(mode=ViewMode.RISK)
        )
        visibility = _visibility(filtered)

        assert visibility[ids.login].glow_color == "#ef4444"
        assert visibility[ids.create].glow_color == "#f97316"
        assert visibility[ids.create].opacity == 1.0
        assert visibility[ids.save].glow_color is None
        assert visibility[ids.save].opacity == 0.3
        assert visibility["domain:auth"].glow_color == "#ef4444"
        assert visibility["domain:billing"].opacity == 0.3
        assert all(e.visibility.opacity == 0.4 for e in filtered.edges)

    def test_custom_thresholds(self):
        context = FilterContext(
            mode=ViewMode.RISK, risk_thresholds=RiskThresholds(complexity=20, coupling=0.9)
        )
        filtered = apply_view_mode([_symbol_node(15, 0.7)], [], context)
        assert filtered.nodes[0].visibility.risk_score == 0.0


class TestImpactMode:
    def test_no_focus_dims_everything(self, projection):
        filtered = apply_view_mode(
            projection.nodes, projection.edges, FilterContext(mode=ViewMode.IMPACT)
        )
        assert all(n.visibility.opacity == 0.4 for n in filtered.nodes)
        assert all(e.visibility.opacity == 0.4 for e in filtered.edges)

    def test_focus_and_related(self, projection, ids):
        context = FilterContext(
            mode=ViewMode.IMPACT,
            focused_node_id=ids.create,
            related_node_ids=frozenset({ids.login, ids.save}),
        )
        filtered = apply_view_mode(projection.nodes, projection.edges, context)
        visibility = _visibility(filtered)

        assert visibility[ids.create].focused
        assert visibility[ids.create].border_width == 3.0
        assert visibility[ids.save].opacity == 1.0
        assert visibility[ids.save].border_width == 2.0
        assert visibility[ids.login].border_width is None
        assert visibility[ids.total].opacity == 0.15

        edges = _edge_visibility(filtered)
        assert edges[(ids.create, ids.save)].label == "downstream"
        assert edges[(ids.login, ids.create)].label == "upstream"
        assert edges[(ids.login, ids.create)].stroke_width == 2.5
        assert edges[(ids.login, ids.invoice)].opacity == 0.15
        assert edges[(ids.login, ids.invoice)].label is None


class TestTraceMode:
    def test_pass_through(self, projection):
        filtered = apply_view_mode(
            projection.nodes, projection.edges, FilterContext(mode=ViewMode.TRACE)
        )
        assert len(filtered.nodes) == len(projection.nodes)
        assert all(n.visibility.opacity == 1.0 for n in filtered.nodes)


# ── Search overlay ────────────────────────────────────────────────


class TestSearch:
    def test_matches_label_and_path(self, projection, ids):
        context = FilterContext(mode=ViewMode.ARCHITECTURE, search_query="SESS")
        filtered = apply_view_mode(projection.nodes, projection.edges, context)
        visibility = _visibility(filtered)

        assert visibility[ids.create].opacity == 1.0
        assert visibility[ids.create].highlighted
        assert visibility["auth:src/auth/session.ts"].opacity == 1.0
        assert visibility[ids.login].opacity == 0.15

        edges = _edge_visibility(filtered)
        assert edges[(ids.create, ids.save)].opacity == 1.0
        assert edges[(ids.login, ids.create)].opacity == 0.1

    def test_matches_tags(self, projection, ids):
        context = FilterContext(mode=ViewMode.RISK, search_query="payments")
        visibility = _visibility(apply_view_mode(projection.nodes, projection.edges, context))
        assert visibility[ids.invoice].opacity == 1.0
        assert visibility[ids.total].opacity == 0.15

    def test_pre_empts_mode(self, projection, ids):
        context = FilterContext(mode=ViewMode.ARCHITECTURE, search_query="invoice")
        filtered = apply_view_mode(projection.nodes, projection.edges, context)
        # Symbols survive, which architecture mode alone would drop
        assert ids.total in _visibility(filtered)

    def test_short_query_ignored(self, projection):
        context = FilterContext(mode=ViewMode.ARCHITECTURE, search_query="se")
        filtered = apply_view_mode(projection.nodes, projection.edges, context)
        assert all(n.node.kind is not NodeKind.SYMBOL for n in filtered.nodes)


class TestPurity:
    @pytest.mark.parametrize("mode", list(ViewMode))
    def test_same_input_same_output(self, projection, sample_snapshot, ids, mode):
        context = FilterContext(
            mode=mode,
            focused_node_id=ids.create,
            related_node_ids=frozenset({ids.login}),
            execution_flows=tuple(detect_execution_flows(sample_snapshot)),
        )
        first = apply_view_mode(projection.nodes, projection.edges, context)
        second = apply_view_mode(projection.nodes, projection.edges, context)
        assert first == second

    def test_inputs_not_mutated(self, projection):
        before = list(projection.nodes)
        apply_view_mode(projection.nodes, projection.edges, FilterContext(mode=ViewMode.RISK))
        assert projection.nodes == before
