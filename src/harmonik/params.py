"""
Render parameters.

A Parameters value is an immutable snapshot; the renderer only ever
reads snapshots. Mutation lives in harmonik.model.ParameterModel.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Mapping

from harmonik.core.fields import Effect

# Slider ranges exposed by the control surface.
SPEED_RANGE = (0.0, 2.0)
SCALE_RANGE = (0.0, 2.0)
BLEND_RANGE = (0.0, 1.0)


def _clip(value: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return min(max(value, lo), hi)


@dataclass(frozen=True)
class Parameters:
    """Effect selection plus the four tuning knobs."""

    effect: Effect = Effect.TUNNEL
    speed: float = 1.0
    scale: float = 1.0
    blend: float = 0.0
    invert: bool = False

    def __post_init__(self):
        # Accept plain names so presets and CLI args can pass strings.
        object.__setattr__(self, "effect", Effect.parse(self.effect))

    def with_changes(self, **changes: Any) -> "Parameters":
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def clamped(self) -> "Parameters":
        """Copy with speed, scale and blend pulled into their slider ranges."""
        return replace(
            self,
            speed=_clip(self.speed, SPEED_RANGE),
            scale=_clip(self.scale, SCALE_RANGE),
            blend=_clip(self.blend, BLEND_RANGE),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["effect"] = self.effect.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Parameters":
        """Build from a mapping; missing keys take the defaults."""
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        base = cls()
        return cls(
            effect=data.get("effect", base.effect),
            speed=float(data.get("speed", base.speed)),
            scale=float(data.get("scale", base.scale)),
            blend=float(data.get("blend", base.blend)),
            invert=bool(data.get("invert", base.invert)),
        )
