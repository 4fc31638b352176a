"""Core field evaluation and normalization."""

from harmonik.core.fields import EFFECTS, FIELD_FUNCTIONS, Effect, evaluate
from harmonik.core.normalize import ClampPolicy, normalize_blend, to_bytes

__all__ = [
    "ClampPolicy",
    "EFFECTS",
    "FIELD_FUNCTIONS",
    "Effect",
    "evaluate",
    "normalize_blend",
    "to_bytes",
]
