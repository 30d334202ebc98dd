"""Debounced, generation-checked layout scheduling.

Every trigger bumps the generation counter and replaces the pending timer,
so a burst of triggers inside the debounce window runs one layout. Engines
run in a worker thread; a result is applied only if no newer trigger
arrived while it was computing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence

from ..config import LayoutConfig
from ..views.models import ViewMode, VisibleEdge, VisibleNode
from .bfs import BfsTreeLayout
from .hierarchical import HierarchicalLayout
from .models import LayoutEngine, LayoutResult, Position, PositionedNode, Size

logger = logging.getLogger(__name__)

ResultCallback = Callable[[LayoutResult], None]


class LayoutOrchestrator:
    """Owns the debounce timer and the generation counter for one view.

    Must be driven from inside a running event loop.
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self.config = config or LayoutConfig()
        self.on_result = on_result
        self.latest: Optional[LayoutResult] = None

        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self._timer is not None or bool(self._in_flight)

    def engine_for(
        self, mode: ViewMode, root_id: Optional[str] = None, search_active: bool = False
    ) -> LayoutEngine:
        """BFS tree for flow and trace, hierarchical for everything else.

        A search overlay always uses the hierarchical layout.
        """
        mode_layout = self.config.for_mode(mode.value)
        if mode.uses_tree_layout and not search_active:
            return BfsTreeLayout(self.config, mode_layout, root_id=root_id)
        return HierarchicalLayout(self.config, mode_layout)

    def schedule(
        self,
        nodes: Sequence[VisibleNode],
        edges: Sequence[VisibleEdge],
        mode: ViewMode,
        root_id: Optional[str] = None,
        search_active: bool = False,
    ) -> int:
        """Request a layout; returns the generation it will carry.

        An empty graph is applied immediately without a layout call.
        """
        self._generation += 1
        generation = self._generation
        self.cancel()

        if not nodes:
            self._apply(LayoutResult(generation=generation))
            return generation

        loop = asyncio.get_running_loop()
        engine = self.engine_for(mode, root_id, search_active)
        self._timer = loop.call_later(
            self.config.debounce_seconds,
            self._fire,
            generation,
            engine,
            tuple(nodes),
            tuple(edges),
        )
        return generation

    def cancel(self) -> None:
        """Drop the pending timer; in-flight layouts finish but go stale."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait(self) -> Optional[LayoutResult]:
        """Wait until no timer is pending and nothing is in flight."""
        while self.pending:
            if self._in_flight:
                await asyncio.gather(*self._in_flight, return_exceptions=True)
            else:
                await asyncio.sleep(self.config.debounce_seconds / 2)
        return self.latest

    async def compute(
        self,
        nodes: Sequence[VisibleNode],
        edges: Sequence[VisibleEdge],
        engine: LayoutEngine,
        generation: int = 0,
    ) -> LayoutResult:
        """Run *engine* once, off the event loop, without debouncing.

        Engine failures are logged and answered with a fallback result.
        """
        nodes = tuple(nodes)
        edges = tuple(edges)
        if not nodes:
            return LayoutResult(generation=generation, engine=engine.name)

        try:
            placements = await asyncio.to_thread(engine.compute, nodes, edges)
        except Exception:
            logger.exception(
                "Layout engine '%s' failed for %d node(s); using pre-layout positions",
                engine.name,
                len(nodes),
            )
            return self._fallback(nodes, edges, engine.name, generation)

        positioned = []
        for visible in nodes:
            placement = placements.get(visible.id)
            if placement is None:
                placement = (Position(), Size(*self.config.size_for(visible.node.kind.value)))
            positioned.append(PositionedNode(visible, *placement))

        return LayoutResult(
            nodes=tuple(positioned), edges=edges, generation=generation, engine=engine.name
        )

    # ── Internals ──────────────────────────────────────────────────

    def _fire(
        self,
        generation: int,
        engine: LayoutEngine,
        nodes: tuple[VisibleNode, ...],
        edges: tuple[VisibleEdge, ...],
    ) -> None:
        self._timer = None
        task = asyncio.ensure_future(self._run(generation, engine, nodes, edges))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run(
        self,
        generation: int,
        engine: LayoutEngine,
        nodes: tuple[VisibleNode, ...],
        edges: tuple[VisibleEdge, ...],
    ) -> None:
        result = await self.compute(nodes, edges, engine, generation)
        if generation != self._generation:
            logger.debug(
                "Discarding stale layout (generation %d, current %d)",
                generation,
                self._generation,
            )
            return
        self._apply(result)

    def _apply(self, result: LayoutResult) -> None:
        self.latest = result
        if self.on_result is not None:
            self.on_result(result)

    def _fallback(
        self,
        nodes: tuple[VisibleNode, ...],
        edges: tuple[VisibleEdge, ...],
        engine_name: str,
        generation: int,
    ) -> LayoutResult:
        """Pre-layout positions: every node at the origin with its size hint."""
        positioned = tuple(
            PositionedNode(visible, Position(), Size(*self.config.size_for(visible.node.kind.value)))
            for visible in nodes
        )

        return LayoutResult(
            nodes=positioned,
            edges=edges,
            generation=generation,
            fallback=True,
            engine=engine_name,
        )
