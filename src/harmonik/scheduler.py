"""
Animation scheduling.

FrameClock stands in for the host's display-refresh callback: callers
request a one-shot callback for the next frame and may cancel it. The
host (a pygame loop, a timer thread, a test) calls dispatch() once per
refresh.

AnimationScheduler drives the renderer from that clock. Stopped, it
renders a single static frame at t=0 whenever parameters change.
Running, it renders one frame per tick and re-arms itself after each
commit.
"""

import itertools
import logging
import threading
import time
from typing import Callable

import numpy as np

from harmonik.model import ParameterModel
from harmonik.params import Parameters
from harmonik.renderer import FieldRenderer

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]
CommitCallback = Callable[[np.ndarray, float], None]


class FrameClock:
    """One-shot per-frame callback registry."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: dict[int, FrameCallback] = {}
        self._handles = itertools.count(1)
        self._origin = time.monotonic()

    def now_ms(self) -> float:
        """Milliseconds since the clock was created."""
        return (time.monotonic() - self._origin) * 1000.0

    def request_frame(self, callback: FrameCallback) -> int:
        with self._lock:
            handle = next(self._handles)
            self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int):
        with self._lock:
            self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def dispatch(self, timestamp_ms: float | None = None) -> int:
        """
        Fire every callback registered before this call.

        Callbacks requested while dispatching wait for the next call.

        Returns:
            Number of callbacks fired.
        """
        if timestamp_ms is None:
            timestamp_ms = self.now_ms()

        with self._lock:
            due = list(self._pending.items())
            self._pending.clear()

        for _, callback in due:
            callback(timestamp_ms)
        return len(due)


class TimerFrameClock(FrameClock):
    """FrameClock dispatched from a background thread at a fixed rate."""

    def __init__(self, fps: int = 60):
        super().__init__()
        self.fps = fps
        self.frame_interval = 1.0 / fps

        self._stop_flag = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self):
        if self._thread is not None:
            return
        self._stop_flag.clear()
        self._thread = threading.Thread(target=self._loop, name="harmonik-clock", daemon=True)
        self._thread.start()
        logger.info("Frame clock started at %d fps", self.fps)

    def stop(self):
        if self._thread is None:
            return
        self._stop_flag.set()
        self._thread.join(timeout=1.0)
        self._thread = None
        logger.info("Frame clock stopped")

    def _loop(self):
        while not self._stop_flag.is_set():
            frame_start = time.monotonic()
            self.dispatch()

            # Sleep to hold the target rate
            sleep_time = self.frame_interval - (time.monotonic() - frame_start)
            if sleep_time > 0:
                self._stop_flag.wait(sleep_time)


class AnimationScheduler:
    """
    Stopped/Running render loop over a FrameClock.

    Every start(), stop() and static preview bumps a generation counter.
    A frame only commits if its generation is still current, checked under the same
    lock stop() takes, so nothing commits once stop() has returned.
    """

    def __init__(
        self,
        renderer: FieldRenderer,
        model: ParameterModel,
        clock: FrameClock,
        on_frame: CommitCallback | None = None,
    ):
        self.renderer = renderer
        self.model = model
        self.clock = clock
        self.on_frame = on_frame

        self._lock = threading.RLock()
        self._running = False
        self._generation = 0
        self._handle: int | None = None
        self._mounted = False

        self.last_timestamp: float | None = None
        self.last_frame: np.ndarray | None = None
        self.frames_committed = 0

    # --- Lifecycle ---

    def open(self):
        """Attach to the model and show the initial static frame."""
        if self._mounted:
            return
        self._mounted = True
        self.model.subscribe(self._on_params_changed)
        self.render_static()

    def close(self):
        """Stop animating and detach from the model."""
        self.stop(render_preview=False)
        if self._mounted:
            self.model.unsubscribe(self._on_params_changed)
            self._mounted = False

    def __enter__(self) -> "AnimationScheduler":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # --- Control ---

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self):
        with self._lock:
            if self._running:
                return
            self._running = True
            self._generation += 1
            self._schedule(self._generation)
        logger.info("Animation started")

    def stop(self, render_preview: bool = True):
        """Cancel the pending tick and, by default, show the t=0 preview."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            if self._handle is not None:
                self.clock.cancel_frame(self._handle)
                self._handle = None
        logger.info("Animation stopped")

        if render_preview:
            self.render_static()

    def toggle(self) -> bool:
        if self.is_running():
            self.stop()
        else:
            self.start()
        return self.is_running()

    # --- Rendering ---

    def tick(self, timestamp_ms: float) -> np.ndarray | None:
        """Render and commit one frame; a stopped scheduler only shows the t=0 preview."""
        with self._lock:
            if not self._running:
                return None
            generation = self._generation
        return self._render_and_commit(generation, timestamp_ms)

    def render_static(self) -> np.ndarray | None:
        """Render the preview frame at t=0 unless an animation owns the surface."""
        with self._lock:
            if self._running:
                return None
            # A newer preview supersedes any still in flight
            self._generation += 1
            generation = self._generation
        return self._render_and_commit(generation, 0.0)

    def _schedule(self, generation: int):
        self._handle = self.clock.request_frame(
            lambda ts: self._on_tick(generation, ts)
        )

    def _on_tick(self, generation: int, timestamp_ms: float):
        with self._lock:
            if not self._running or generation != self._generation:
                return
            self._handle = None

        self._render_and_commit(generation, timestamp_ms)

        with self._lock:
            if self._running and generation == self._generation:
                self._schedule(generation)

    def _render_and_commit(self, generation: int, timestamp_ms: float) -> np.ndarray | None:
        params: Parameters = self.model.snapshot()
        try:
            frame = self.renderer.render_frame(params, timestamp_ms)
        except Exception:
            logger.exception("Frame at %.1f ms failed; not committed", timestamp_ms)
            return None

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding stale frame at %.1f ms", timestamp_ms)
                return None
            self.last_timestamp = timestamp_ms
            self.last_frame = frame
            self.frames_committed += 1
            if self.on_frame is not None:
                self.on_frame(frame, timestamp_ms)
        return frame

    def _on_params_changed(self, params: Parameters):
        # Running frames pick up the new snapshot on their next tick.
        if not self.is_running():
            self.render_static()
