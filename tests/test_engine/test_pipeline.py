"""Tests for the pipeline orchestrator."""

import numpy as np

from leafcomplex.engine.context import AnalysisContext
from leafcomplex.engine.pipeline import Pipeline
from leafcomplex.engine.registry import Layer, StageRegistry, StageSpec


def _image():
    img = np.zeros((8, 8, 4), dtype=np.uint8)
    img[2:6, 2:6] = (10, 200, 10, 255)
    return img


def _pipeline(*specs):
    reg = StageRegistry()
    for spec in specs:
        reg.register(spec)
    return Pipeline(registry=reg)


def test_runs_in_dependency_order():
    executed = []

    def make(sid):
        def fn(ctx):
            executed.append(sid)

        return fn

    pipe = _pipeline(
        StageSpec(id="T1.01", layer=Layer.CONTOUR, fn=make("T1.01"), dependencies=["T0.01"]),
        StageSpec(id="T0.01", layer=Layer.PREPROCESS, fn=make("T0.01")),
    )
    ctx = pipe.run(pipe.new_context(_image()))
    assert executed == ["T0.01", "T1.01"]
    assert ctx.completed_stages == {"T0.01", "T1.01"}
    assert set(ctx.timings) == {"T0.01", "T1.01"}


def test_error_captured_and_dependents_skipped():
    def boom(ctx):
        raise RuntimeError("no tissue")

    ran = []
    pipe = _pipeline(
        StageSpec(id="T0.01", layer=Layer.PREPROCESS, fn=boom),
        StageSpec(id="T1.01", layer=Layer.CONTOUR, fn=lambda ctx: ran.append(1), dependencies=["T0.01"]),
        StageSpec(id="T2.01", layer=Layer.SHAPE, fn=lambda ctx: ran.append(2), dependencies=["T1.01"]),
        StageSpec(id="T0.02", layer=Layer.PREPROCESS, fn=lambda ctx: ran.append(3)),
    )
    ctx = pipe.run(pipe.new_context(_image()))
    assert ctx.errors == {"T0.01": "no tissue"}
    assert ctx.skipped == {"T1.01", "T2.01"}
    assert ran == [3]
    assert ctx.failed


def test_run_streaming_yields_one_event_per_stage():
    pipe = _pipeline(
        StageSpec(id="T0.01", layer=Layer.PREPROCESS, fn=lambda ctx: None, description="first"),
        StageSpec(id="T1.01", layer=Layer.CONTOUR, fn=lambda ctx: None, dependencies=["T0.01"]),
    )
    ctx = pipe.new_context(_image(), name="leaf")
    events = list(pipe.run_streaming(ctx))
    assert [e["stage_id"] for e in events] == ["T0.01", "T1.01"]
    assert events[0]["description"] == "first"
    assert events[0]["layer"] == "PREPROCESS"
    assert all(e["status"] == "ok" and e["total"] == 2 for e in events)
    assert ctx.completed_stages == {"T0.01", "T1.01"}


def test_progress_reported_with_current_stage():
    seen = []

    def work(ctx: AnalysisContext):
        ctx.report_progress(0.5)

    pipe = _pipeline(StageSpec(id="T3.01", layer=Layer.FEATURES, fn=work))
    ctx = pipe.new_context(_image())
    ctx.progress_callback = lambda sid, frac: seen.append((sid, frac))
    pipe.run(ctx)
    assert seen == [("T3.01", 0.5)]


def test_run_layer_only_touches_that_layer():
    ran = []
    pipe = _pipeline(
        StageSpec(id="T0.01", layer=Layer.PREPROCESS, fn=lambda ctx: ran.append("T0.01")),
        StageSpec(id="T1.01", layer=Layer.CONTOUR, fn=lambda ctx: ran.append("T1.01")),
    )
    pipe.run_layer(pipe.new_context(_image()), Layer.CONTOUR)
    assert ran == ["T1.01"]


def test_timings_can_be_disabled():
    reg = StageRegistry()
    reg.register(StageSpec(id="T0.01", layer=Layer.PREPROCESS, fn=lambda ctx: None))
    pipe = Pipeline(registry=reg, record_timings=False)
    ctx = pipe.run(pipe.new_context(_image()))
    assert ctx.timings == {}
