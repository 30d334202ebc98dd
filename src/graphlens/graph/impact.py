"""Change-impact (blast radius) analysis for a focal node."""

from __future__ import annotations

from .models import (
    ImpactAnalysis,
    ImpactStats,
    Snapshot,
    domain_node_id,
)
from .relationships import RelationshipDetector

DEFAULT_IMPACT_HOPS = 2


class ImpactAnalyzer:
    """Upstream/downstream sets and blast-radius counts around one node.

    Upstream are the callers (who depends on the node), downstream the
    callees (what the node depends on), both within ``hops`` steps.
    """

    def __init__(
        self,
        snapshot: Snapshot,
        detector: RelationshipDetector,
        hops: int = DEFAULT_IMPACT_HOPS,
    ) -> None:
        self.snapshot = snapshot
        self.detector = detector
        self.hops = hops
        self._symbols = snapshot.symbol_map()
        detector.load(snapshot)

    def analyze(self, node_id: str) -> ImpactAnalysis:
        related = self.detector.get_related_nodes(node_id, max_hops=self.hops)

        upstream = tuple(sorted(related.callers))
        downstream = tuple(sorted(related.callees))

        affected_symbols = {nid for nid in related.all if nid in self._symbols}
        files: set[str] = set()
        domains: set[str] = set()
        for nid in affected_symbols | {node_id}:
            symbol = self._symbols.get(nid)
            if symbol is None:
                continue
            files.add(symbol.file_path)
            domains.add(domain_node_id(symbol.domain))

        affected_symbols.discard(node_id)
        stats = ImpactStats(
            affected_functions=len(affected_symbols),
            affected_files=len(files),
            affected_domains=len(domains),
            upstream=upstream,
            downstream=downstream,
        )

        return ImpactAnalysis(
            node_id=node_id,
            related=related,
            upstream=upstream,
            downstream=downstream,
            affected_files=frozenset(files),
            affected_domains=frozenset(domains),
            stats=stats,
        )

    def related_ids(self, node_id: str) -> frozenset[str]:
        """The related set the impact view highlights around *node_id*."""
        return self.analyze(node_id).related.all

