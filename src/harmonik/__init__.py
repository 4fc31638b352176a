"""
Harmonik - real-time procedural field synthesizer.

Evaluates parameterized polar scalar fields over a pixel grid and
streams the normalized result into an RGBA frame buffer.
"""

__version__ = "0.1.0"

from harmonik.core.fields import EFFECTS, Effect, evaluate
from harmonik.core.normalize import ClampPolicy, normalize_blend
from harmonik.model import ParameterModel
from harmonik.params import Parameters
from harmonik.presets import PRESETS
from harmonik.renderer import FieldRenderer, RenderConfig, render
from harmonik.scheduler import AnimationScheduler, FrameClock, TimerFrameClock

__all__ = [
    "AnimationScheduler",
    "ClampPolicy",
    "EFFECTS",
    "Effect",
    "FieldRenderer",
    "FrameClock",
    "ParameterModel",
    "Parameters",
    "PRESETS",
    "RenderConfig",
    "TimerFrameClock",
    "evaluate",
    "normalize_blend",
    "render",
]
