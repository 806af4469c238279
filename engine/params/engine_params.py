"""
Engine settings from the environment, and the region params contract:
only wire keys the engine knows reach resolve_region. In dev mode, log anything stripped.
"""
from dataclasses import dataclass
from typing import Dict, Any
import os
import logging

from engine.params.schema import REGION_FIELDS

logger = logging.getLogger("studio-engine")

DEV = os.environ.get("ENV", "development").lower() in ("development", "dev", "test")


@dataclass(frozen=True)
class EngineSettings:
    wav_float32: bool = False
    stretch_window: int = 2048


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[Settings] %s=%r is not an integer, using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("[Settings] %s=%r must be positive, using %d", name, raw, default)
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> EngineSettings:
    """Read ENGINE_* variables; bad values fall back to defaults with a warning."""
    return EngineSettings(
        wav_float32=_env_bool("ENGINE_WAV_FLOAT32", False),
        stretch_window=_env_int("ENGINE_STRETCH_WINDOW", 2048),
    )


def strip_unknown_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of params with keys outside the region contract removed."""
    return {k: v for k, v in params.items() if k in REGION_FIELDS}


def to_region_params(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a raw region dict from the UI: strip UI-only keys (selection state, colors...).
    This is the single entry point for region dicts that reach resolve_region.
    """
    unknown = sorted(k for k in raw if k not in REGION_FIELDS)
    if unknown:
        if DEV:
            logger.warning(
                "[Region Contract] Unknown fields stripped before engine: %s (region=%s)",
                unknown,
                raw.get("id"),
            )
        raw = strip_unknown_params(raw)
    return raw
