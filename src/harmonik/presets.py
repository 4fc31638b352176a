"""
Named parameter presets.

Built-in presets live in PRESETS. Additional presets can be read
from a JSON file of the form::

    {"sunset": {"effect": "ripple", "speed": 0.4, "blend": 0.25}}

and are merged over the built-ins.
"""

import json
import logging
from pathlib import Path
from typing import Mapping

from harmonik.core.fields import Effect
from harmonik.params import Parameters

logger = logging.getLogger(__name__)

# Label used for parameter states that did not come from a preset.
CUSTOM = "custom"

PRESETS: dict[str, Parameters] = {
    "default": Parameters(effect=Effect.TUNNEL, speed=1.0, scale=1.0, blend=0.0, invert=False),
    "psychedelic": Parameters(effect=Effect.SPIRAL, speed=1.5, scale=1.2, blend=0.3, invert=True),
    "retro": Parameters(effect=Effect.HYPNOTIC, speed=0.8, scale=0.9, blend=0.1, invert=False),
    "cosmic": Parameters(effect=Effect.WORMHOLE, speed=1.2, scale=1.1, blend=0.2, invert=False),
}


def get_preset(name: str, registry: Mapping[str, Parameters] | None = None) -> Parameters:
    """Look up a preset by name, raising ValueError if it is unknown."""
    registry = PRESETS if registry is None else registry
    try:
        return registry[name]
    except KeyError:
        valid = ", ".join(registry)
        raise ValueError(f"Unknown preset {name!r} (expected one of: {valid})") from None


def load_presets(path: str | Path | None = None) -> dict[str, Parameters]:
    """
    Return the preset registry, optionally extended from a JSON file.

    Args:
        path: JSON file mapping preset names to parameter dicts.
            Entries override built-ins with the same name.

    Returns:
        New dict of name -> Parameters, built-ins first.
    """
    registry = dict(PRESETS)
    if path is None:
        return registry

    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Preset file {path} must contain a JSON object")

    for name, values in data.items():
        if name == CUSTOM:
            raise ValueError(f"Preset name {CUSTOM!r} is reserved")
        if not isinstance(values, dict):
            raise ValueError(f"Preset {name!r} in {path} must be an object")
        registry[name] = Parameters.from_dict(values)

    logger.info("Loaded %d preset(s) from %s", len(data), path)
    return registry
