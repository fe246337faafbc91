"""Stage registry — analysis stages are plain functions declared with ``@stage``.

    @stage(id="T2.01", layer=Layer.SHAPE, dependencies=["T1.01", "T1.02"])
    def shape_metrics(ctx: AnalysisContext) -> None:
        ctx.edge.metrics["area"] = area(ctx.marked)

A stage lives in its own module inside a ``layerN`` package; importing the
module registers it.
"""

from __future__ import annotations

import enum
import heapq
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable

if TYPE_CHECKING:
    from leafcomplex.engine.context import AnalysisContext

logger = logging.getLogger(__name__)

StageFn = Callable[["AnalysisContext"], None]


class Layer(enum.IntEnum):
    PREPROCESS = 0
    CONTOUR = 1
    SHAPE = 2
    FEATURES = 3
    COMPLEXITY = 4


@dataclass
class StageSpec:
    id: str
    layer: Layer
    fn: StageFn
    dependencies: list[str] = field(default_factory=list)
    description: str = ""


class StageRegistry:
    """Stages keyed by id, ordered on demand by their declared dependencies."""

    def __init__(self) -> None:
        self._stages: dict[str, StageSpec] = {}

    def register(self, spec: StageSpec) -> None:
        if spec.id in self._stages:
            raise ValueError(f"Duplicate stage ID: {spec.id}")
        self._stages[spec.id] = spec
        logger.debug("Registered stage %s (%s)", spec.id, spec.layer.name)

    def get(self, stage_id: str) -> StageSpec:
        return self._stages[stage_id]

    def get_layer(self, layer: Layer) -> list[StageSpec]:
        return [s for s in self.all() if s.layer == layer]

    def all(self) -> list[StageSpec]:
        return sorted(self._stages.values(), key=lambda s: (s.layer, s.id))

    @property
    def count(self) -> int:
        return len(self._stages)

    def _closure(self, stage_ids: Iterable[str]) -> set[str]:
        """``stage_ids`` plus every registered stage they depend on, transitively."""
        found: set[str] = set()
        pending = [sid for sid in stage_ids if sid in self._stages]
        while pending:
            sid = pending.pop()
            if sid not in found:
                found.add(sid)
                pending.extend(d for d in self._stages[sid].dependencies if d in self._stages)
        return found

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[StageSpec]:
        """Dependency-respecting order, smallest ready id first.

        With ``requested_ids`` only those stages and their prerequisites are
        returned. Dependencies on unregistered ids are ignored. Raises
        ValueError on a cycle.
        """
        ids = set(self._stages) if requested_ids is None else self._closure(requested_ids)

        waiting_on: dict[str, int] = {}
        unlocks: dict[str, list[str]] = defaultdict(list)
        for sid in ids:
            deps = {d for d in self._stages[sid].dependencies if d in ids}
            waiting_on[sid] = len(deps)
            for dep in deps:
                unlocks[dep].append(sid)

        ready = [sid for sid, n in waiting_on.items() if n == 0]
        heapq.heapify(ready)
        ordered: list[StageSpec] = []
        while ready:
            sid = heapq.heappop(ready)
            ordered.append(self._stages[sid])
            for nxt in unlocks[sid]:
                waiting_on[nxt] -= 1
                if waiting_on[nxt] == 0:
                    heapq.heappush(ready, nxt)

        if len(ordered) < len(ids):
            stuck = sorted(ids - {s.id for s in ordered})
            raise ValueError(f"Circular dependency detected among: {stuck}")
        return ordered


_registry = StageRegistry()


def get_registry() -> StageRegistry:
    return _registry


def stage(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    description: str = "",
) -> Callable[[StageFn], StageFn]:
    """Register the decorated function on the module-level registry."""

    def decorator(fn: StageFn) -> StageFn:
        _registry.register(StageSpec(id, layer, fn, list(dependencies or []), description))
        return fn

    return decorator
