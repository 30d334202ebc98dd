"""Shared test fixtures for graphlens."""

from types import SimpleNamespace

import pytest

from graphlens.graph.models import Domain, DomainHealth, Edge, Snapshot, Symbol


def make_symbol(name, file_path, line, domain=None, complexity=0, **kwargs):
    return Symbol(
        name=name,
        type=kwargs.pop("type", "function"),
        file_path=file_path,
        start_line=line,
        complexity=complexity,
        domain=domain,
        **kwargs,
    )


@pytest.fixture
def ids():
    """Symbol ids of the sample snapshot."""
    return SimpleNamespace(
        login="src/api/login.ts:handleSignIn:10",
        create="src/auth/session.ts:createSession:5",
        save="src/auth/session.ts:saveSession:20",
        invoice="src/billing/invoice.ts:buildInvoice:1",
        total="src/billing/invoice.ts:computeTotal:30",
        fmt="src/util/format.ts:formatDate:3",
        ghost="src/missing.ts:ghost:1",
    )


@pytest.fixture
def sample_snapshot(ids):
    """Small two-domain graph with one API flow.

    handleSignIn -> createSession -> saveSession
    handleSignIn -> buildInvoice -> computeTotal -> formatDate
    handleSignIn -> ghost (dangling)
    """
    symbols = [
        make_symbol("handleSignIn", "src/api/login.ts", 10, "auth", complexity=12),
        make_symbol("createSession", "src/auth/session.ts", 5, "auth", complexity=3),
        make_symbol("saveSession", "src/auth/session.ts", 20, "auth", impact_depth=2),
        make_symbol(
            "buildInvoice", "src/billing/invoice.ts", 1, "billing", search_tags=["payments"]
        ),
        make_symbol("computeTotal", "src/billing/invoice.ts", 30, "billing"),
        make_symbol("formatDate", "src/util/format.ts", 3),
    ]
    edges = [
        Edge(ids.login, ids.create),
        Edge(ids.create, ids.save),
        Edge(ids.login, ids.invoice),
        Edge(ids.login, ids.ghost),
        Edge(ids.invoice, ids.total),
        Edge(ids.total, ids.fmt, kind="import"),
    ]
    domains = [
        Domain(
            name="auth",
            symbol_count=3,
            health=DomainHealth(domain="auth", health_score=35.0, status="critical"),
        ),
        Domain(
            name="billing",
            symbol_count=2,
            health=DomainHealth(domain="billing", health_score=90.0, status="healthy"),
        ),
    ]
    return Snapshot(symbols=symbols, edges=edges, domains=domains, version=1)


@pytest.fixture
def sample_payload():
    """The sample graph in the host's camelCase wire format."""
    return {
        "symbols": [
            {
                "name": "handleSignIn",
                "type": "function",
                "filePath": "src/api/login.ts",
                "range": {"startLine": 10, "endLine": 30},
                "complexity": 12,
                "domain": "auth",
            },
            {
                "name": "saveSession",
                "type": "function",
                "filePath": "src/auth/session.ts",
                "range": {"startLine": 20, "endLine": 28},
                "domain": "auth",
                "impactDepth": 2,
                "searchTags": ["persistence"],
            },
        ],
        "edges": [
            {
                "source": "src/api/login.ts:handleSignIn:10",
                "target": "src/auth/session.ts:saveSession:20",
                "type": "call",
            }
        ],
        "files": [{"filePath": "src/api/login.ts", "contentHash": "abc"}],
        "domains": [
            {
                "domain": "auth",
                "symbolCount": 2,
                "health": {"status": "warning", "healthScore": 55, "symbolCount": 2},
            }
        ],
    }
