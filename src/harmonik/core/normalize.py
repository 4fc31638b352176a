"""
Normalization and blend stage.

Turns raw field values in [-1, 1] into luminance, then luminance
into 8-bit channel values.
"""

from enum import Enum

import numpy as np


class ClampPolicy(str, Enum):
    """Where, if anywhere, out-of-range values are clamped."""

    NONE = "none"  # literal arithmetic, only byte saturation
    PARAMETERS = "parameters"  # clamp speed/scale/blend to their slider ranges
    LUMINANCE = "luminance"  # clip final luminance to [0, 1]


def normalize_blend(raw, scale: float = 1.0, blend: float = 0.0, invert: bool = False):
    """
    Map a raw field value to luminance.

    Blending interpolates toward flat mid-gray (0.5) as ``blend`` goes
    to 1. The result is not clamped: scale > 1 or blend < 0 can leave
    [0, 1].

    Args:
        raw: Field value(s), nominally in [-1, 1].
        scale: Multiplier applied after normalizing to [0, 1].
        blend: Mix factor toward 0.5.
        invert: Flip the result around 1.

    Returns:
        Luminance with the same shape as ``raw``.
    """
    normalized = (raw + 1.0) / 2.0
    scaled = normalized * scale
    blended = blend * 0.5 + scaled * (1.0 - blend)
    if invert:
        return 1.0 - blended
    return blended


def to_bytes(luminance, clamp: ClampPolicy = ClampPolicy.NONE) -> np.ndarray:
    """
    Quantize luminance to uint8.

    Values are rounded half-to-even and saturated to [0, 255], the
    same as writing into a clamped byte array. NaN maps to 0.
    """
    lum = np.asarray(luminance, dtype=np.float64)
    if ClampPolicy(clamp) is ClampPolicy.LUMINANCE:
        lum = np.clip(lum, 0.0, 1.0)
    with np.errstate(over="ignore", invalid="ignore"):
        levels = np.rint(lum * 255.0)
    levels = np.nan_to_num(levels, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(levels, 0, 255).astype(np.uint8)
