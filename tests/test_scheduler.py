"""Tests for the frame clock and the animation scheduler."""

import threading
import time

import numpy as np
import pytest

from harmonik.core.fields import Effect
from harmonik.params import Parameters
from harmonik.renderer import FieldRenderer, RenderConfig
from harmonik.scheduler import AnimationScheduler, FrameClock, TimerFrameClock


class _Recorder:
    """Collects committed frames."""

    def __init__(self):
        self.frames = []
        self.timestamps = []

    def __call__(self, frame, timestamp_ms):
        self.frames.append(frame)
        self.timestamps.append(timestamp_ms)


@pytest.fixture
def recorder():
    return _Recorder()


@pytest.fixture
def scheduler(renderer, model, clock, recorder):
    return AnimationScheduler(renderer, model, clock, on_frame=recorder)


class TestFrameClock:
    def test_dispatch_fires_once(self, clock):
        calls = []
        clock.request_frame(calls.append)
        assert clock.dispatch(16.0) == 1
        assert clock.dispatch(32.0) == 0
        assert calls == [16.0]

    def test_cancel(self, clock):
        calls = []
        handle = clock.request_frame(calls.append)
        clock.cancel_frame(handle)
        clock.dispatch(16.0)
        assert calls == []
        assert clock.pending == 0

    def test_request_during_dispatch_waits(self, clock):
        calls = []

        def rearm(ts):
            calls.append(ts)
            clock.request_frame(rearm)

        clock.request_frame(rearm)
        clock.dispatch(1.0)
        clock.dispatch(2.0)
        assert calls == [1.0, 2.0]
        assert clock.pending == 1

    def test_now_is_monotonic(self, clock):
        a = clock.now_ms()
        b = clock.now_ms()
        assert 0.0 <= a <= b


class TestTimerFrameClock:
    def test_dispatches_in_background(self):
        clock = TimerFrameClock(fps=200)
        fired = threading.Event()
        clock.request_frame(lambda ts: fired.set())
        clock.start()
        try:
            assert fired.wait(timeout=2.0)
        finally:
            clock.stop()

    def test_stop_is_idempotent(self):
        clock = TimerFrameClock(fps=100)
        clock.stop()
        clock.start()
        clock.start()
        clock.stop()
        clock.stop()


class TestStoppedState:
    def test_open_renders_static_frame(self, scheduler, recorder):
        scheduler.open()
        assert recorder.timestamps == [0.0]
        assert not scheduler.is_running()

    def test_param_change_rerenders_at_zero(self, scheduler, model, recorder):
        with scheduler:
            model.set(effect="ripple")
            model.apply_preset("cosmic")
        assert recorder.timestamps == [0.0, 0.0, 0.0]
        expected = scheduler.renderer.render_frame(model.snapshot(), 0)
        np.testing.assert_array_equal(recorder.frames[-1], expected)

    def test_no_ticks_while_stopped(self, scheduler, clock):
        scheduler.open()
        assert clock.pending == 0

    def test_newer_preview_wins_over_slow_one(self, model, clock, recorder):
        started = threading.Event()
        release = threading.Event()

        class SlowRippleRenderer(FieldRenderer):
            def render_frame(self, params, timestamp_ms):
                if params.effect is Effect.RIPPLE:
                    started.set()
                    release.wait(timeout=5.0)
                return super().render_frame(params, timestamp_ms)

        sched = AnimationScheduler(SlowRippleRenderer(RenderConfig(width=8, height=8)), model, clock, recorder)
        with sched:
            worker = threading.Thread(target=model.set, kwargs={"speed": 0.5, "effect": "ripple"})
            worker.start()
            assert started.wait(timeout=5.0)
            model.set(speed=0.7, effect="spiral")
            release.set()
            worker.join(timeout=5.0)

            current = model.snapshot()
            assert current.effect is Effect.SPIRAL
            expected = sched.renderer.render_frame(current, 0)
            np.testing.assert_array_equal(sched.last_frame, expected)
            np.testing.assert_array_equal(recorder.frames[-1], expected)
            # Initial preview plus the spiral one; the ripple render is dropped
            assert recorder.timestamps == [0.0, 0.0]

    def test_tick_ignored_while_stopped(self, scheduler, recorder):
        scheduler.open()
        assert scheduler.tick(123.0) is None
        assert recorder.timestamps == [0.0]
        assert scheduler.last_timestamp == 0.0

    def test_close_unsubscribes(self, scheduler, model, recorder):
        scheduler.open()
        scheduler.close()
        model.set(speed=0.2)
        assert recorder.timestamps == [0.0]


class TestRunningState:
    def test_ticks_render_with_timestamps(self, scheduler, clock, recorder):
        scheduler.start()
        for ts in (16.0, 33.0, 50.0):
            clock.dispatch(ts)
        assert recorder.timestamps == [16.0, 33.0, 50.0]
        assert scheduler.last_timestamp == 50.0
        assert scheduler.frames_committed == 3
        assert clock.pending == 1

    def test_frame_matches_renderer(self, scheduler, model, clock, recorder):
        model.apply_preset("retro")
        scheduler.start()
        clock.dispatch(1200.0)
        expected = scheduler.renderer.render_frame(model.snapshot(), 1200.0)
        np.testing.assert_array_equal(recorder.frames[-1], expected)

    def test_start_is_idempotent(self, scheduler, clock):
        scheduler.start()
        scheduler.start()
        assert clock.pending == 1

    def test_param_change_applies_next_tick(self, scheduler, model, clock, recorder):
        scheduler.open()
        scheduler.start()
        clock.dispatch(10.0)
        model.set(invert=True)
        # No extra static render while animating
        assert recorder.timestamps == [0.0, 10.0]
        clock.dispatch(20.0)
        inverted = scheduler.renderer.render_frame(model.snapshot(), 20.0)
        np.testing.assert_array_equal(recorder.frames[-1], inverted)

    def test_tick_commits_while_running(self, scheduler, recorder):
        scheduler.start()
        frame = scheduler.tick(123.0)
        assert frame is not None
        assert recorder.timestamps == [123.0]
        np.testing.assert_array_equal(recorder.frames[-1], frame)

    def test_toggle(self, scheduler):
        assert scheduler.toggle() is True
        assert scheduler.toggle() is False


class TestStop:
    def test_stop_cancels_pending_tick(self, scheduler, clock, recorder):
        scheduler.start()
        scheduler.stop(render_preview=False)
        assert clock.pending == 0
        clock.dispatch(16.0)
        assert recorder.frames == []

    def test_stop_renders_preview(self, scheduler, clock, recorder):
        scheduler.start()
        clock.dispatch(500.0)
        scheduler.stop()
        assert recorder.timestamps == [500.0, 0.0]
        assert scheduler.last_timestamp == 0.0

    def test_stale_callback_cannot_commit(self, scheduler, clock, recorder):
        # Grab the tick callback before stop() cancels it
        scheduler.start()
        (stale,) = list(clock._pending.values())
        scheduler.stop(render_preview=False)
        stale(99.0)
        assert recorder.frames == []

    def test_stop_during_render_discards_frame(self, model, clock, recorder):
        started = threading.Event()
        release = threading.Event()

        class SlowRenderer(FieldRenderer):
            def render_frame(self, params, timestamp_ms):
                started.set()
                release.wait(timeout=5.0)
                return super().render_frame(params, timestamp_ms)

        sched = AnimationScheduler(SlowRenderer(RenderConfig(width=8, height=8)), model, clock, recorder)
        sched.start()
        worker = threading.Thread(target=clock.dispatch, args=(40.0,))
        worker.start()
        assert started.wait(timeout=5.0)
        sched.stop(render_preview=False)
        release.set()
        worker.join(timeout=5.0)

        assert recorder.frames == []
        assert clock.pending == 0
        assert not sched.is_running()

    def test_restart_after_stop(self, scheduler, clock, recorder):
        scheduler.start()
        scheduler.stop(render_preview=False)
        scheduler.start()
        clock.dispatch(70.0)
        assert recorder.timestamps == [70.0]


class TestFailedFrames:
    def test_failed_render_not_committed(self, model, clock, recorder):
        calls = {"n": 0}

        class FlakyRenderer(FieldRenderer):
            def render_frame(self, params, timestamp_ms):
                calls["n"] += 1
                if calls["n"] == 1:
                    raise RuntimeError("boom")
                return super().render_frame(params, timestamp_ms)

        sched = AnimationScheduler(FlakyRenderer(RenderConfig(width=8, height=8)), model, clock, recorder)
        sched.start()
        clock.dispatch(10.0)
        assert recorder.frames == []
        # Loop keeps going
        clock.dispatch(20.0)
        assert recorder.timestamps == [20.0]


class TestWithTimerClock:
    def test_runs_until_stopped(self, renderer, model, recorder):
        clock = TimerFrameClock(fps=120)
        sched = AnimationScheduler(renderer, model, clock, recorder)
        clock.start()
        try:
            sched.start()
            deadline = time.monotonic() + 5.0
            while len(recorder.frames) < 3 and time.monotonic() < deadline:
                time.sleep(0.01)
            sched.stop(render_preview=False)
            committed = len(recorder.frames)
            time.sleep(0.1)
        finally:
            clock.stop()

        assert committed >= 3
        assert len(recorder.frames) == committed
        assert recorder.timestamps == sorted(recorder.timestamps)
