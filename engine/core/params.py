"""
Param parsing utilities for region params (studio wire dicts, camelCase keys).
Supports dotted keys for nested dicts.
"""
from dataclasses import dataclass
from typing import Any, Optional


# -----------------------------------------------------------------------------
# Param definition (for schema/documentation; lookup still via get_param)
# -----------------------------------------------------------------------------

@dataclass
class ParamDef:
    """Definition of a single parameter. Bounds/unit are optional."""
    name: str
    default: Any
    min: Optional[float] = None
    max: Optional[float] = None
    unit: Optional[str] = None


# -----------------------------------------------------------------------------
# Lookup helpers
# -----------------------------------------------------------------------------

def get_param(params: dict, name: str, default: Any = None) -> Any:
    """
    Read a value from params, supporting dotted keys for nested dicts.
    E.g. get_param(p, "region.gainDb", 0.0) -> p["region"]["gainDb"] or default.
    If any intermediate key is missing or not a dict, returns default.
    """
    if not params or not name:
        return default
    keys = name.split(".")
    current = params
    for key in keys[:-1]:
        next_val = current.get(key)
        if next_val is None or not isinstance(next_val, dict):
            return default
        current = next_val
    return current.get(keys[-1], default)


def get_float(params: dict, name: str, default: float) -> float:
    """get_param coerced to float; unparsable or missing values give default."""
    raw = get_param(params, name, default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default
