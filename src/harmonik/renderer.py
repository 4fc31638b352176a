"""
Frame rasterizer.

Evaluates the selected field over the full pixel grid, runs the
normalization stage, and returns a fresh RGBA frame. No state is
carried between frames: output depends only on (parameters, timestamp).
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from harmonik.core.fields import Effect, evaluate
from harmonik.core.normalize import ClampPolicy, normalize_blend, to_bytes
from harmonik.params import Parameters


@dataclass
class RenderConfig:
    """Configuration for the field renderer."""

    width: int = 800
    height: int = 450

    # Where inside each pixel the field is sampled: 0.5 = centre, 0.0 = top-left corner
    sample_offset: float = 0.5

    clamp: ClampPolicy = ClampPolicy.NONE

    # Row bands evaluated concurrently; 1 renders on the calling thread
    workers: int = 1

    def __post_init__(self):
        self.clamp = ClampPolicy(self.clamp)


def _check_dims(width: int, height: int):
    if int(width) != width or int(height) != height or width <= 0 or height <= 0:
        raise ValueError(f"Frame size must be positive integers, got {width}x{height}")


class FieldRenderer:
    """
    Renders procedural field frames.

    One call to render_frame is one complete pass; the returned array
    is owned by the caller.
    """

    def __init__(self, config: RenderConfig | None = None):
        self.cfg = config or RenderConfig()
        _check_dims(self.cfg.width, self.cfg.height)

    def _coords(self, count: int, start: int = 0, stop: int | None = None) -> np.ndarray:
        stop = count if stop is None else stop
        return (np.arange(start, stop, dtype=np.float64) + self.cfg.sample_offset) / count

    def _render_rows(
        self,
        params: Parameters,
        t: float,
        row_start: int,
        row_stop: int,
    ) -> np.ndarray:
        """Luminance bytes for rows [row_start, row_stop)."""
        cfg = self.cfg
        xs = self._coords(cfg.width)
        ys = self._coords(cfg.height, row_start, row_stop)
        xg, yg = np.meshgrid(xs, ys)

        with np.errstate(over="ignore", invalid="ignore"):
            raw = evaluate(params.effect, xg, yg, t)
            lum = normalize_blend(raw, params.scale, params.blend, params.invert)
        return to_bytes(lum, cfg.clamp)

    def _bands(self) -> list[tuple[int, int]]:
        height = self.cfg.height
        n = max(1, min(int(self.cfg.workers), height))
        edges = np.linspace(0, height, n + 1).astype(int)
        return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:])]

    def render_frame(self, params: Parameters, timestamp_ms: float) -> np.ndarray:
        """
        Render a single frame.

        Args:
            params: Parameter snapshot for this frame.
            timestamp_ms: Frame timestamp in milliseconds.

        Returns:
            (H, W, 4) uint8 RGBA numpy array.
        """
        cfg = self.cfg
        if cfg.clamp is ClampPolicy.PARAMETERS:
            params = params.clamped()

        t = float(timestamp_ms) * params.speed / 1000.0

        bands = self._bands()
        if len(bands) == 1:
            lum = self._render_rows(params, t, 0, cfg.height)
        else:
            with ThreadPoolExecutor(max_workers=len(bands)) as pool:
                parts = list(pool.map(lambda band: self._render_rows(params, t, *band), bands))
            lum = np.concatenate(parts, axis=0)

        frame = np.empty((cfg.height, cfg.width, 4), dtype=np.uint8)
        frame[:, :, :3] = lum[:, :, np.newaxis]
        frame[:, :, 3] = 255
        return frame


def render(
    effect: Effect | str,
    speed: float,
    scale: float,
    blend: float,
    invert: bool,
    timestamp_ms: float,
    width: int,
    height: int,
    config: RenderConfig | None = None,
) -> bytes:
    """
    Render one frame and return it as raw RGBA bytes.

    Args:
        effect: Field variant to evaluate.
        speed: Time multiplier.
        scale: Luminance scale.
        blend: Mix toward mid-gray.
        invert: Invert luminance.
        timestamp_ms: Frame time in milliseconds.
        width: Frame width in pixels.
        height: Frame height in pixels.
        config: Optional base config; its size is replaced by width/height.

    Returns:
        width * height * 4 bytes, row-major RGBA.
    """
    _check_dims(width, height)
    base = config or RenderConfig()
    cfg = RenderConfig(
        width=int(width),
        height=int(height),
        sample_offset=base.sample_offset,
        clamp=base.clamp,
        workers=base.workers,
    )
    params = Parameters(effect=effect, speed=speed, scale=scale, blend=blend, invert=invert)
    return FieldRenderer(cfg).render_frame(params, timestamp_ms).tobytes()
