"""
PNG export of committed frames.

Encoding is delegated to Pillow; the frame itself is never modified.
"""

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "harmonik.png"


def _to_image(frame: np.ndarray) -> Image.Image:
    if frame is None:
        raise ValueError("No frame has been rendered yet")
    if frame.dtype != np.uint8 or frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3|4) uint8 frame, got {frame.dtype} {frame.shape}")
    return Image.fromarray(np.ascontiguousarray(frame))


def encode_png(frame: np.ndarray) -> bytes:
    """Encode an (H, W, 4) uint8 RGBA frame as PNG bytes."""
    buf = io.BytesIO()
    _to_image(frame).save(buf, format="PNG")
    return buf.getvalue()


def export_png(frame: np.ndarray, output_path: str | Path = DEFAULT_FILENAME) -> Path:
    """
    Write a frame to a PNG file.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        output_path: Destination; parent directories are created.

    Returns:
        Path to the written file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _to_image(frame).save(output_path, format="PNG")
    logger.info("Saved %dx%d frame to %s", frame.shape[1], frame.shape[0], output_path)
    return output_path
