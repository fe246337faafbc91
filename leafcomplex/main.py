"""Public entry points — logging setup, stage registration, single-image and batch analysis."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from dotenv import load_dotenv
from numpy.typing import NDArray
from PIL import Image

from leafcomplex.config import settings
from leafcomplex.engine.config import AnalysisConfig
from leafcomplex.engine.context import AnalysisContext, ProgressCallback
from leafcomplex.engine.pipeline import Pipeline
from leafcomplex.errors import AnalysisFailedError, LeafComplexError

load_dotenv()

logger = logging.getLogger(__name__)

_LAYER_PACKAGES = ["layer0", "layer1", "layer2", "layer3", "layer4"]

# Column order for report rows; the remaining summary keys follow
_REPORT_COLUMNS = [
    "area",
    "length",
    "width",
    "shape_index",
    "circularity",
    "outline_count",
    "spectral_entropy",
    "approximate_entropy",
    "valid_chain_count",
    "total_chain_count",
]


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or settings.leafcomplex_log_level).upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def register_stages() -> None:
    """Import all stage modules so @stage decorators fire."""
    import importlib
    import pkgutil

    for layer_name in _LAYER_PACKAGES:
        package = importlib.import_module(f"leafcomplex.engine.{layer_name}")
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package.__name__}.{module_name}")


def load_rgba(path: str | Path) -> NDArray[np.uint8]:
    """Decode an image file into an (H, W, 4) uint8 array."""
    with Image.open(path) as img:
        return np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()


def analyze_image(
    image: NDArray[np.uint8],
    config: AnalysisConfig | None = None,
    *,
    name: str = "",
    progress_callback: ProgressCallback | None = None,
) -> AnalysisContext:
    """Analyse one raster. Raises AnalysisFailedError if any stage failed."""
    register_stages()
    pipeline = Pipeline(
        config=(config or AnalysisConfig()).validate(),
        record_timings=settings.leafcomplex_record_timings,
    )
    ctx = pipeline.new_context(image, name=name)
    ctx.progress_callback = progress_callback
    pipeline.run(ctx)
    if ctx.failed:
        raise AnalysisFailedError(ctx.errors)
    return ctx


@dataclass
class ImageReport:
    name: str
    status: str
    summary: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    context: AnalysisContext | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def as_row(self) -> dict[str, Any]:
        """Flat record for a report writer: name, status, headline columns, extras."""
        row: dict[str, Any] = {"name": self.name, "status": self.status}
        for key in _REPORT_COLUMNS:
            row[key] = self.summary.get(key)
        for key, value in self.summary.items():
            row.setdefault(key, value)
        if self.errors:
            row["errors"] = "; ".join(f"{k}: {v}" for k, v in sorted(self.errors.items()))
        return row


def analyze_batch(
    items: Iterable[tuple[str, NDArray[np.uint8] | str | Path]],
    config: AnalysisConfig | None = None,
    *,
    keep_context: bool = False,
    progress_callback: ProgressCallback | None = None,
) -> list[ImageReport]:
    """Analyse (name, raster-or-path) pairs; a failed image never stops the batch."""
    config = (config or AnalysisConfig()).validate()
    reports: list[ImageReport] = []
    for name, source in items:
        try:
            image = load_rgba(source) if isinstance(source, (str, Path)) else source
            ctx = analyze_image(image, config, name=name, progress_callback=progress_callback)
        except AnalysisFailedError as e:
            logger.warning("Analysis of %s failed: %s", name, e)
            reports.append(ImageReport(name=name, status="failed", errors=e.errors))
            continue
        except (LeafComplexError, OSError) as e:
            logger.warning("Analysis of %s failed: %s", name, e)
            reports.append(ImageReport(name=name, status="failed", errors={"input": str(e)}))
            continue
        reports.append(
            ImageReport(
                name=name,
                status="ok",
                summary=dict(ctx.summary),
                context=ctx if keep_context else None,
            )
        )
    logger.info("Batch complete: %d/%d images analysed", sum(r.ok for r in reports), len(reports))
    return reports
