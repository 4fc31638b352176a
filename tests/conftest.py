"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from harmonik.model import ParameterModel
from harmonik.renderer import FieldRenderer, RenderConfig
from harmonik.scheduler import FrameClock


@pytest.fixture
def grid() -> tuple[np.ndarray, np.ndarray]:
    """
    Dense normalized coordinate grid covering [0, 1] x [0, 1].

    Returns:
        Tuple of (x_grid, y_grid).
    """
    xs = np.arange(101) / 100.0
    return np.meshgrid(xs, xs)


@pytest.fixture
def small_config() -> RenderConfig:
    """Tiny canvas for fast renders."""
    return RenderConfig(width=32, height=18)


@pytest.fixture
def renderer(small_config) -> FieldRenderer:
    return FieldRenderer(small_config)


@pytest.fixture
def model() -> ParameterModel:
    return ParameterModel(seed=42)


@pytest.fixture
def clock() -> FrameClock:
    return FrameClock()
