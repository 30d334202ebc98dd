"""Coupling metrics: in/out degree and CBO (coupling between objects) per symbol.

CBO counts *distinct* neighbors, degree counts edge occurrences, so
``in_degree + out_degree >= cbo`` always holds. Scores are normalized
against the snapshot maximum so colors are relative to the codebase.
"""

from collections import defaultdict

import numpy as np

from ..config import COUPLING_BREAKS, COUPLING_COLORS
from .models import CouplingMetric, Snapshot


def coupling_color(score: float) -> str:
    """Pick a color from the three-stop low/medium/high scale."""
    low_break, high_break = COUPLING_BREAKS
    if score < low_break:
        return COUPLING_COLORS[0]
    if score < high_break:
        return COUPLING_COLORS[1]
    return COUPLING_COLORS[2]


def calculate_coupling_metrics(snapshot: Snapshot) -> dict[str, CouplingMetric]:
    """Compute a CouplingMetric for every symbol in the snapshot.

    Degrees count every edge by endpoint, dangling ones included. CBO only
    counts other symbols in the snapshot, so a self-loop or an edge to a
    missing symbol never raises it.
    """
    symbol_ids = list(snapshot.symbol_map())
    if not symbol_ids:
        return {}
    known = set(symbol_ids)

    in_degree: dict[str, int] = defaultdict(int)
    out_degree: dict[str, int] = defaultdict(int)
    neighbors: dict[str, set[str]] = defaultdict(set)

    for edge in snapshot.edges:
        out_degree[edge.source] += 1
        in_degree[edge.target] += 1
        if edge.source in known and edge.target in known and edge.source != edge.target:
            neighbors[edge.source].add(edge.target)
            neighbors[edge.target].add(edge.source)

    cbo = np.array([len(neighbors.get(node_id, ())) for node_id in symbol_ids], dtype=float)
    max_cbo = cbo.max()
    scores = cbo / max_cbo if max_cbo > 0 else np.zeros_like(cbo)

    return {
        node_id: CouplingMetric(
            node_id=node_id,
            in_degree=in_degree.get(node_id, 0),
            out_degree=out_degree.get(node_id, 0),
            cbo=int(cbo[i]),
            normalized_score=float(scores[i]),
            color=coupling_color(float(scores[i])),
        )
        for i, node_id in enumerate(symbol_ids)
    }
