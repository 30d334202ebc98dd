"""Data models for the code graph and its derived structures.

Levels:
  Raw snapshot: symbols, edges, files, domains as delivered by the host
  Projection: GraphNode / GraphEdge with a domain → file → symbol containment tree
  Derived: coupling metrics, execution flows, related-node sets, impact stats
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Union

EdgeKind = Literal["call", "import", "extends", "implements"]
HealthStatus = Literal["healthy", "warning", "critical"]
FlowCategory = Literal["api", "main", "event", "route"]

UNKNOWN_DOMAIN = "unknown"


def make_symbol_id(file_path: str, name: str, start_line: int) -> str:
    """Build the location-derived symbol id every cross-reference uses."""
    return f"{file_path}:{name}:{start_line}"


def parse_symbol_id(node_id: str) -> Optional[tuple[str, str, int]]:
    """Split a symbol id into (file_path, name, start_line).

    Splits from the right so file paths that contain ``:`` (Windows drive
    letters) survive. Returns None for ids that are not symbol-shaped.
    """
    parts = node_id.rsplit(":", 2)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        return None
    try:
        line = int(parts[2])
    except ValueError:
        return None
    return parts[0], parts[1], line


def domain_node_id(domain: Optional[str]) -> str:
    return f"domain:{domain or UNKNOWN_DOMAIN}"


def file_node_id(domain: Optional[str], file_path: str) -> str:
    return f"{domain or UNKNOWN_DOMAIN}:{file_path}"


# ── Raw snapshot ───────────────────────────────────────────────────


@dataclass
class Symbol:
    """A named code entity (function, class, ...) with a location-derived id."""

    name: str
    type: str
    file_path: str
    start_line: int
    complexity: int = 0
    domain: Optional[str] = None
    end_line: int = 0

    # Optional AI metadata
    purpose: Optional[str] = None
    impact_depth: Optional[int] = None
    search_tags: list[str] = field(default_factory=list)
    fragility: Optional[str] = None

    @property
    def id(self) -> str:
        return make_symbol_id(self.file_path, self.name, self.start_line)

    @property
    def domain_name(self) -> str:
        return self.domain or UNKNOWN_DOMAIN


@dataclass(frozen=True)
class Edge:
    """A directed relationship between two symbol ids."""

    source: str
    target: str
    kind: EdgeKind = "call"
    reason: Optional[str] = None


@dataclass(frozen=True)
class FileRecord:
    file_path: str
    content_hash: str = ""
    last_indexed_at: str = ""


@dataclass(frozen=True)
class DomainHealth:
    """Aggregate health of a domain, supplied upstream (never recomputed here)."""

    domain: str
    symbol_count: int = 0
    avg_complexity: float = 0.0
    coupling: float = 0.0
    health_score: float = 100.0
    status: HealthStatus = "healthy"


@dataclass(frozen=True)
class Domain:
    name: str
    symbol_count: int = 0
    health: Optional[DomainHealth] = None


@dataclass
class Snapshot:
    """An immutable-by-convention graph snapshot.

    ``version`` is the generation id assigned when the snapshot is
    installed into a pipeline; caches key on it instead of object identity.
    """

    symbols: list[Symbol] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    files: list[FileRecord] = field(default_factory=list)
    domains: list[Domain] = field(default_factory=list)
    version: int = 0
    duplicate_ids: list[str] = field(default_factory=list)

    def symbol_map(self) -> dict[str, Symbol]:
        """Symbols keyed by id. Duplicate ids: last write wins."""
        return {s.id: s for s in self.symbols}

    @property
    def is_empty(self) -> bool:
        return not self.symbols and not self.domains


# ── Projection: tagged node payloads ───────────────────────────────


class NodeKind(str, Enum):
    DOMAIN = "domain"
    FILE = "file"
    SYMBOL = "symbol"


@dataclass(frozen=True)
class CouplingMetric:
    """Per-symbol coupling score, derived once per snapshot."""

    node_id: str
    in_degree: int = 0
    out_degree: int = 0
    cbo: int = 0
    normalized_score: float = 0.0
    color: str = "#3b82f6"


@dataclass(frozen=True)
class DomainPayload:
    domain: str
    health: Optional[DomainHealth] = None
    collapsed: bool = False


@dataclass(frozen=True)
class FilePayload:
    file_path: str
    symbol_count: int = 0
    avg_coupling: float = 0.0
    collapsed: bool = False
    avg_fragility: Optional[float] = None
    total_blast_radius: Optional[int] = None


@dataclass(frozen=True)
class SymbolPayload:
    label: str
    symbol_type: str
    file_path: str
    line: int
    complexity: int = 0
    coupling: CouplingMetric = field(default_factory=lambda: CouplingMetric(node_id=""))
    search_tags: tuple[str, ...] = ()
    impact_depth: Optional[int] = None
    is_sink: bool = False


NodePayload = Union[DomainPayload, FilePayload, SymbolPayload]

_PAYLOAD_KINDS = {
    DomainPayload: NodeKind.DOMAIN,
    FilePayload: NodeKind.FILE,
    SymbolPayload: NodeKind.SYMBOL,
}


@dataclass(frozen=True)
class GraphNode:
    """A node in a projected view; its kind is fixed by the payload variant."""

    id: str
    payload: NodePayload
    parent_id: Optional[str] = None

    @property
    def kind(self) -> NodeKind:
        return _PAYLOAD_KINDS[type(self.payload)]

    @property
    def is_container(self) -> bool:
        return self.kind is not NodeKind.SYMBOL

    @property
    def label(self) -> str:
        payload = self.payload
        if isinstance(payload, DomainPayload):
            return payload.domain
        if isinstance(payload, FilePayload):
            return payload.file_path.replace("\\", "/").rsplit("/", 1)[-1]
        return payload.label

    @property
    def path(self) -> Optional[str]:
        payload = self.payload
        if isinstance(payload, (FilePayload, SymbolPayload)):
            return payload.file_path
        return None

    @property
    def tags(self) -> tuple[str, ...]:
        if isinstance(self.payload, SymbolPayload):
            return self.payload.search_tags
        return ()


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    kind: EdgeKind = "call"
    weight: int = 1


# ── Derived structures ─────────────────────────────────────────────


@dataclass(frozen=True)
class ExecutionFlow:
    """One entry point traced to its sinks.

    ``path`` is the full reachable set from the entry point in BFS
    discovery order (entry first), not a single linear walk.
    """

    entry_point: str
    sinks: tuple[str, ...]
    path: tuple[str, ...]
    category: FlowCategory


@dataclass(frozen=True)
class RelatedNodes:
    parents: frozenset[str] = frozenset()
    children: frozenset[str] = frozenset()
    callers: frozenset[str] = frozenset()
    callees: frozenset[str] = frozenset()
    same_file: frozenset[str] = frozenset()

    @property
    def all(self) -> frozenset[str]:
        return self.parents | self.children | self.callers | self.callees | self.same_file


@dataclass(frozen=True)
class ImpactStats:
    affected_functions: int = 0
    affected_files: int = 0
    affected_domains: int = 0
    upstream: tuple[str, ...] = ()
    downstream: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImpactAnalysis:
    node_id: str
    related: RelatedNodes
    upstream: tuple[str, ...]
    downstream: tuple[str, ...]
    affected_files: frozenset[str]
    affected_domains: frozenset[str]
    stats: ImpactStats
