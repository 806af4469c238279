"""
Region resolution: merge DEFAULT_REGION with incoming wire params, coerce and clamp.
Malformed values fall back to defaults; nothing here raises for bad tunables.
"""
import math
from typing import Any, Dict

from engine.core.params import get_float
from engine.core.types import AutomationCurve, Region
from engine.params.clamp import clamp_if_bounds
from engine.params.schema import DEFAULT_REGION, REGION_SCHEMA


def resolve_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Defaults overridden by params, tunables coerced to float and clamped to schema bounds."""
    result = {**DEFAULT_REGION, **params}
    for name, spec in REGION_SCHEMA.items():
        value = get_float(result, name, spec.default)
        if not math.isfinite(value):
            value = spec.default
        result[name] = clamp_if_bounds(value, spec.min, spec.max)
    return result


def resolve_region(params: Dict[str, Any]) -> Region:
    """
    Build a Region from a studio wire dict.
    start/end missing or non-finite -> 0; end before start is kept (realization clamps it).
    """
    resolved = resolve_params(params)
    start = get_float(resolved, "start", 0.0)
    end = get_float(resolved, "end", 0.0)
    start = start if math.isfinite(start) else 0.0
    end = end if math.isfinite(end) else 0.0
    name = resolved.get("name")
    return Region(
        id=str(resolved.get("id", "")),
        start=start,
        end=end,
        name=None if name is None else str(name),
        gain_db=resolved["gainDb"],
        pan=resolved["pan"],
        fade_in_s=resolved["fadeInSec"],
        fade_out_s=resolved["fadeOutSec"],
        stretch_rate=resolved["stretchRate"],
        automation=AutomationCurve.from_list(resolved.get("automation")),
    )
