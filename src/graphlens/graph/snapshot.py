"""Snapshot construction from the host's JSON payload, plus directory scoping."""

from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Optional

from ..exceptions import InvalidSnapshotError
from .models import Domain, DomainHealth, Edge, FileRecord, Snapshot, Symbol

logger = logging.getLogger(__name__)

_EDGE_KINDS = frozenset({"call", "import", "extends", "implements"})
_HEALTH_STATUSES = frozenset({"healthy", "warning", "critical"})


def load_snapshot(path: Path) -> Snapshot:
    """Read a snapshot JSON file written by the host."""
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidSnapshotError(str(e), source=path)
    return snapshot_from_dict(raw, source=path)


def snapshot_from_dict(raw: Any, source: Optional[Path] = None) -> Snapshot:
    """Build a Snapshot from the host payload ``{symbols, edges, files, domains}``.

    A ``None`` payload yields an empty snapshot. Field names follow the
    host's camelCase wire format.
    """
    if raw is None:
        return Snapshot()
    if not isinstance(raw, dict):
        raise InvalidSnapshotError(f"expected an object, got {type(raw).__name__}", source)

    symbols = [_parse_symbol(item, i, source) for i, item in enumerate(raw.get("symbols") or [])]
    edges = [e for e in (_parse_edge(item) for item in raw.get("edges") or []) if e is not None]
    files = [
        FileRecord(
            file_path=str(item.get("filePath", "")),
            content_hash=str(item.get("contentHash", "")),
            last_indexed_at=str(item.get("lastIndexedAt", "")),
        )
        for item in raw.get("files") or []
        if isinstance(item, dict)
    ]
    domains = [_parse_domain(item) for item in raw.get("domains") or [] if isinstance(item, dict)]

    snapshot = Snapshot(symbols=symbols, edges=edges, files=files, domains=domains)
    snapshot.duplicate_ids = find_duplicate_ids(snapshot)
    if snapshot.duplicate_ids:
        logger.warning(
            "Snapshot contains %d duplicate symbol id(s); the last occurrence wins (e.g. %s)",
            len(snapshot.duplicate_ids),
            snapshot.duplicate_ids[0],
        )
    return snapshot


def find_duplicate_ids(snapshot: Snapshot) -> list[str]:
    counts = Counter(s.id for s in snapshot.symbols)
    return sorted(node_id for node_id, count in counts.items() if count > 1)


def filter_by_directory(snapshot: Snapshot, target_path: str) -> Snapshot:
    """Restrict a snapshot to symbols under *target_path*.

    Edges survive only when both endpoint paths are under the prefix;
    domains survive when at least one kept symbol belongs to them.
    """
    prefix = target_path.replace("\\", "/")

    def under(path: str) -> bool:
        return path.replace("\\", "/").startswith(prefix)

    symbols = [s for s in snapshot.symbols if under(s.file_path)]

    edges = []
    for edge in snapshot.edges:
        source_file = edge.source.rsplit(":", 2)[0]
        target_file = edge.target.rsplit(":", 2)[0]
        if under(source_file) and under(target_file):
            edges.append(edge)

    active_domains = {s.domain for s in symbols if s.domain}
    return Snapshot(
        symbols=symbols,
        edges=edges,
        files=[f for f in snapshot.files if under(f.file_path)],
        domains=[d for d in snapshot.domains if d.name in active_domains],
        duplicate_ids=[i for i in snapshot.duplicate_ids if under(i.rsplit(":", 2)[0])],
    )


def _parse_symbol(item: Any, index: int, source: Optional[Path]) -> Symbol:
    if not isinstance(item, dict):
        raise InvalidSnapshotError(f"symbol #{index} is not an object", source)

    missing = [key for key in ("name", "filePath") if not item.get(key)]
    if missing:
        raise InvalidSnapshotError(
            f"symbol #{index} is missing {', '.join(missing)}", source
        )

    rng = item.get("range") or {}
    start_line = rng.get("startLine", item.get("startLine"))
    if start_line is None:
        raise InvalidSnapshotError(f"symbol #{index} has no start line", source)

    return Symbol(
        name=str(item["name"]),
        type=str(item.get("type", "function")),
        file_path=str(item["filePath"]),
        start_line=_as_int(start_line, "startLine", index, source),
        end_line=_as_int(rng.get("endLine") or 0, "endLine", index, source),
        complexity=_as_int(item.get("complexity") or 0, "complexity", index, source),
        domain=item.get("domain") or None,
        purpose=item.get("purpose"),
        impact_depth=_optional_int(item.get("impactDepth"), "impactDepth", index, source),
        search_tags=[str(t) for t in item.get("searchTags") or []],
        fragility=item.get("fragility"),
    )


def _as_int(value: Any, key: str, index: int, source: Optional[Path]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidSnapshotError(f"symbol #{index} has a non-integer {key}: {value!r}", source) from None


def _optional_int(value: Any, key: str, index: int, source: Optional[Path]) -> Optional[int]:
    if value is None:
        return None
    return _as_int(value, key, index, source)


def _parse_edge(item: Any) -> Optional[Edge]:
    if not isinstance(item, dict) or not item.get("source") or not item.get("target"):
        logger.debug("Skipping malformed edge: %r", item)
        return None
    kind = item.get("type", "call")
    if kind not in _EDGE_KINDS:
        logger.debug("Unknown edge type %r, treating as call", kind)
        kind = "call"
    return Edge(
        source=str(item["source"]),
        target=str(item["target"]),
        kind=kind,
        reason=item.get("reason"),
    )


def _parse_domain(item: dict) -> Domain:
    name = str(item.get("domain") or "unknown")
    health_raw = item.get("health")
    health = None
    if isinstance(health_raw, dict):
        status = health_raw.get("status", "healthy")
        if status not in _HEALTH_STATUSES:
            status = "healthy"
        health = DomainHealth(
            domain=name,
            symbol_count=int(health_raw.get("symbolCount", 0) or 0),
            avg_complexity=float(health_raw.get("avgComplexity", 0.0) or 0.0),
            coupling=float(health_raw.get("coupling", 0.0) or 0.0),
            health_score=float(health_raw.get("healthScore", 100.0) or 0.0),
            status=status,
        )
    return Domain(name=name, symbol_count=int(item.get("symbolCount", 0) or 0), health=health)
