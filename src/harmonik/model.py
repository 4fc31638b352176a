"""
Mutable parameter model shared between controls and the renderer.

Controls mutate; the renderer reads atomic snapshots. Every change
notifies subscribers with the new snapshot.
"""

import logging
import threading
from typing import Any, Callable, Mapping

import numpy as np

from harmonik.core.fields import EFFECTS
from harmonik.params import BLEND_RANGE, SCALE_RANGE, SPEED_RANGE, Parameters
from harmonik.presets import CUSTOM, PRESETS, get_preset

logger = logging.getLogger(__name__)

Listener = Callable[[Parameters], None]


class ParameterModel:
    """
    Current parameters plus the operations the control layer needs.

    Thread-safe: state is swapped under a lock and listeners run
    outside it.
    """

    def __init__(
        self,
        initial: Parameters | None = None,
        presets: Mapping[str, Parameters] | None = None,
        seed: int | None = None,
    ):
        self.presets = dict(PRESETS if presets is None else presets)
        self.rng = np.random.default_rng(seed)

        self._lock = threading.Lock()
        self._params = initial or Parameters()
        self._active_preset = "default" if initial is None else CUSTOM
        self._listeners: list[Listener] = []

    @property
    def active_preset(self) -> str:
        with self._lock:
            return self._active_preset

    def snapshot(self) -> Parameters:
        with self._lock:
            return self._params

    def subscribe(self, listener: Listener):
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _commit(self, params: Parameters, preset: str | None) -> list[Listener]:
        """Swap in new state. Caller holds the lock and notifies afterwards."""
        self._params = params
        if preset is not None:
            self._active_preset = preset
        return list(self._listeners)

    def _notify(self, listeners: list[Listener], params: Parameters):
        for listener in listeners:
            listener(params)

    def set(self, **changes: Any) -> Parameters:
        """Change individual parameters, e.g. ``model.set(speed=1.3)``."""
        with self._lock:
            params = self._params.with_changes(**changes)
            listeners = self._commit(params, preset=None)
        self._notify(listeners, params)
        return params

    def apply_preset(self, name: str) -> Parameters:
        """Overwrite every parameter with the named preset."""
        params = get_preset(name, self.presets)
        with self._lock:
            listeners = self._commit(params, preset=name)
        self._notify(listeners, params)
        logger.info("Applied preset %s", name)
        return params

    def randomize(self, rng: np.random.Generator | None = None) -> Parameters:
        """
        Draw a random parameter set.

        Effect is uniform over all variants, speed and scale uniform in
        [0, 2], blend uniform in [0, 1], invert a fair coin.
        """
        with self._lock:
            # numpy Generators are not thread-safe; draw under the lock
            if rng is None:
                rng = self.rng
            params = Parameters(
                effect=EFFECTS[int(rng.integers(len(EFFECTS)))],
                speed=float(rng.uniform(*SPEED_RANGE)),
                scale=float(rng.uniform(*SCALE_RANGE)),
                blend=float(rng.uniform(*BLEND_RANGE)),
                invert=bool(rng.random() > 0.5),
            )
            listeners = self._commit(params, preset=CUSTOM)
        self._notify(listeners, params)
        return params
