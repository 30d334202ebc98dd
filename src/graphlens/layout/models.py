"""Positioned output of the layout stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from ..graph.models import NodeKind
from ..views.models import VisibleEdge, VisibleNode


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Size:
    width: float
    height: float


Placement = tuple[Position, Size]


@dataclass(frozen=True)
class PositionedNode:
    """A visible node with its absolute top-left position and size."""

    node: VisibleNode
    position: Position
    size: Size

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def kind(self) -> NodeKind:
        return self.node.node.kind

    @property
    def parent_id(self) -> Optional[str]:
        return self.node.node.parent_id

    def contains(self, other: PositionedNode) -> bool:
        """True if *other*'s box lies inside this node's box."""
        return (
            other.position.x >= self.position.x
            and other.position.y >= self.position.y
            and other.position.x + other.size.width <= self.position.x + self.size.width
            and other.position.y + other.size.height <= self.position.y + self.size.height
        )


@dataclass(frozen=True)
class LayoutResult:
    """One completed layout.

    ``generation`` is the orchestrator generation the result was computed
    for; ``fallback`` marks results that carry pre-layout positions after
    the engine failed.
    """

    nodes: tuple[PositionedNode, ...] = ()
    edges: tuple[VisibleEdge, ...] = ()
    generation: int = 0
    fallback: bool = False
    engine: str = ""

    def by_id(self) -> dict[str, PositionedNode]:
        return {n.id: n for n in self.nodes}


class LayoutEngine(Protocol):
    """Engines turn visible nodes and edges into absolute placements."""

    name: str

    def compute(
        self, nodes: Sequence[VisibleNode], edges: Sequence[VisibleEdge]
    ) -> dict[str, Placement]: ...
