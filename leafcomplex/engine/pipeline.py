"""Pipeline orchestrator — runs stages in dependency order, skipping those whose inputs failed."""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from typing import Any

from numpy.typing import NDArray

from leafcomplex.engine.config import AnalysisConfig
from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.registry import Layer, StageRegistry, StageSpec, get_registry
from leafcomplex.utils.raster import as_rgba

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates the stage pipeline for one raster at a time."""

    def __init__(
        self,
        registry: StageRegistry | None = None,
        config: AnalysisConfig | None = None,
        record_timings: bool = True,
    ) -> None:
        self.registry = registry or get_registry()
        self.config = config or AnalysisConfig()
        self.record_timings = record_timings

    def new_context(self, image: NDArray, name: str = "") -> AnalysisContext:
        """Fresh context for one raster using this pipeline's configuration."""
        return AnalysisContext(image=as_rgba(image), config=self.config, name=name)

    def _plan(self, ctx: AnalysisContext) -> list[StageSpec]:
        ordered = self.registry.resolve_order()
        logger.info("Pipeline %s: %d stages queued", ctx.name or "<image>", len(ordered))
        return ordered

    def _blocked(self, spec: StageSpec, ctx: AnalysisContext) -> bool:
        """A stage whose dependency failed or was skipped cannot run."""
        return any(dep in ctx.errors or dep in ctx.skipped for dep in spec.dependencies)

    def _execute(self, spec: StageSpec, ctx: AnalysisContext) -> tuple[str, str, float]:
        if self._blocked(spec, ctx):
            ctx.skipped.add(spec.id)
            logger.debug("  %s skipped (dependency unavailable)", spec.id)
            return "skipped", "", 0.0

        ctx.current_stage = spec.id
        t0 = time.perf_counter()
        status, error = "ok", ""
        try:
            spec.fn(ctx)
            ctx.completed_stages.add(spec.id)
        except Exception as e:
            ctx.errors[spec.id] = str(e)
            status, error = "error", str(e)
            logger.warning("  %s FAILED: %s", spec.id, e)
        finally:
            ctx.current_stage = ""
        elapsed = (time.perf_counter() - t0) * 1000
        if self.record_timings:
            ctx.timings[spec.id] = round(elapsed, 1)
        if status == "ok":
            logger.debug("  %s completed in %.1fms", spec.id, elapsed)
        return status, error, elapsed

    def run(self, ctx: AnalysisContext) -> AnalysisContext:
        """Run the full pipeline on the given context."""
        start = time.perf_counter()
        ordered = self._plan(ctx)
        for spec in ordered:
            self._execute(spec, ctx)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Pipeline complete: %d/%d stages in %.0fms",
            len(ctx.completed_stages),
            len(ordered),
            total,
        )
        return ctx

    def run_streaming(self, ctx: AnalysisContext) -> Generator[dict[str, Any], None, None]:
        """Run the pipeline, yielding a progress dict after each stage.

        The caller's ``ctx`` is mutated in-place, so after the generator is
        exhausted the context contains all results (same as ``run()``).
        """
        ordered = self._plan(ctx)
        total = len(ordered)
        for i, spec in enumerate(ordered):
            status, error, elapsed = self._execute(spec, ctx)
            yield {
                "stage_id": spec.id,
                "description": spec.description,
                "layer": spec.layer.name,
                "index": i,
                "total": total,
                "elapsed_ms": round(elapsed, 1),
                "status": status,
                "error": error,
            }

    def run_layer(self, ctx: AnalysisContext, layer: Layer) -> AnalysisContext:
        """Run only stages in a specific layer."""
        for spec in self.registry.get_layer(layer):
            self._execute(spec, ctx)
        return ctx
