"""
Polar field generators.

Vectorized with numpy, no per-pixel Python loops.
Every function takes normalized coordinates (x, y) in [0, 1] and a
speed-scaled time in seconds, recenters on (0.5, 0.5), and returns
values in [-1, 1]. Scalars and arrays are both accepted.
"""

from enum import Enum
from typing import Callable

import numpy as np

# Value returned where 1/r is undefined (r == 0).
WORMHOLE_CENTER_VALUE = 1.0


class Effect(str, Enum):
    """Closed set of field variants."""

    TUNNEL = "tunnel"
    VORTEX = "vortex"
    RIPPLE = "ripple"
    SPIRAL = "spiral"
    WORMHOLE = "wormhole"
    HYPNOTIC = "hypnotic"

    @classmethod
    def parse(cls, value: "Effect | str") -> "Effect":
        """Resolve an Effect from itself or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown effect {value!r} (expected one of: {valid})") from None


EFFECTS: tuple[Effect, ...] = tuple(Effect)


def _polar(x, y) -> tuple[np.ndarray, np.ndarray]:
    """Recenter on the canvas middle and convert to (r, angle)."""
    dx = np.asarray(x, dtype=np.float64) - 0.5
    dy = np.asarray(y, dtype=np.float64) - 0.5
    r = np.sqrt(dx ** 2 + dy ** 2)
    angle = np.arctan2(dy, dx)
    return r, angle


def tunnel(x, y, t: float) -> np.ndarray:
    r, angle = _polar(x, y)
    return np.sin(r * 20 + t) * np.cos(angle * 6 + t / 2)


def vortex(x, y, t: float) -> np.ndarray:
    r, angle = _polar(x, y)
    return np.sin(r * 10 - angle * 5 + t)


def ripple(x, y, t: float) -> np.ndarray:
    """Concentric rings damped by distance. The denominator is >= 1."""
    r, _ = _polar(x, y)
    return np.sin(r * 20 - t * 2) / (r * 5 + 1)


def spiral(x, y, t: float) -> np.ndarray:
    r, angle = _polar(x, y)
    return np.sin(r * 20 + angle * 10 + t * 2)


def wormhole(x, y, t: float) -> np.ndarray:
    """
    Inverse-radius swirl.

    The 1/r term is singular at the exact canvas center; that point
    saturates to WORMHOLE_CENTER_VALUE instead of going non-finite.
    """
    r, angle = _polar(x, y)
    with np.errstate(divide="ignore", invalid="ignore"):
        value = np.sin(1.0 / r + angle * 5 + t)
    return np.where(r > 0, value, WORMHOLE_CENTER_VALUE)


def hypnotic(x, y, t: float) -> np.ndarray:
    r, _ = _polar(x, y)
    return np.sin(r * 10 + t) * np.sin(r * 20 - t * 0.5)


FIELD_FUNCTIONS: dict[Effect, Callable[..., np.ndarray]] = {
    Effect.TUNNEL: tunnel,
    Effect.VORTEX: vortex,
    Effect.RIPPLE: ripple,
    Effect.SPIRAL: spiral,
    Effect.WORMHOLE: wormhole,
    Effect.HYPNOTIC: hypnotic,
}


def evaluate(effect: Effect | str, x, y, t: float) -> np.ndarray:
    """
    Evaluate the field selected by ``effect``.

    Args:
        effect: Effect member or its name.
        x: Normalized horizontal coordinate(s) in [0, 1].
        y: Normalized vertical coordinate(s) in [0, 1].
        t: Time in seconds, already multiplied by speed.

    Returns:
        float64 array broadcast from x and y, values in [-1, 1].
    """
    return FIELD_FUNCTIONS[Effect.parse(effect)](x, y, t)
