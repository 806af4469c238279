"""
Region parameter schema, resolution and the tempo grid.
Default values: single source is schema.DEFAULT_REGION; use resolve_region({...}) for a clamped Region.
"""
from engine.params.schema import REGION_SCHEMA, DEFAULT_REGION
from engine.params.resolve import resolve_params, resolve_region
from engine.params.engine_params import load_settings, to_region_params
from engine.params.grid import bar_duration_seconds, grid_step_seconds, snap_to_grid

__all__ = [
    "REGION_SCHEMA",
    "DEFAULT_REGION",
    "resolve_params",
    "resolve_region",
    "load_settings",
    "to_region_params",
    "bar_duration_seconds",
    "grid_step_seconds",
    "snap_to_grid",
]
