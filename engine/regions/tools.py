"""
Region edit tools (split, trim, gain, pan, fade, stretch, automation).
Every tool returns a new Region; inputs are never mutated.
"""
import math
from dataclasses import replace
from typing import Optional, Tuple

from engine.core.types import AutomationCurve, AutomationPoint, GridResolution, Region
from engine.params.clamp import clamp, finite_or
from engine.params.grid import grid_step_seconds, snap_to_grid
from engine.params.schema import REGION_SCHEMA

# Shortest region a trim can produce when no grid is active
MIN_REGION_S = 0.001


def split_region(region: Region, at_s: float, new_id: str) -> Tuple[Region, Optional[Region]]:
    """
    Cut region at at_s. Left keeps the id and fade-in, right gets new_id and the fade-out.
    Split points outside (start, end) leave the region whole: (region, None).
    """
    if not math.isfinite(at_s) or at_s <= region.start or at_s >= region.end:
        return region, None

    left_points = [p for p in region.automation if p.t < at_s]
    right_points = [p for p in region.automation if p.t >= at_s]

    left = replace(
        region,
        end=at_s,
        fade_in_s=min(region.fade_in_s, at_s - region.start),
        fade_out_s=0.0,
        automation=AutomationCurve(left_points),
    )
    right = replace(
        region,
        id=new_id,
        start=at_s,
        fade_in_s=0.0,
        fade_out_s=min(region.fade_out_s, region.end - at_s),
        automation=AutomationCurve(right_points),
    )
    return left, right


def trim_region(
    region: Region,
    start_s: float,
    end_s: float,
    bpm: Optional[float] = None,
    resolution: Optional[GridResolution] = None,
) -> Region:
    """
    Move region edges, optionally snapping them to the tempo grid.
    The result always keeps end > start (by one grid step, or 1 ms without a grid).
    """
    start = finite_or(start_s, region.start)
    end = finite_or(end_s, region.end)
    min_len = MIN_REGION_S
    if bpm is not None and resolution is not None:
        start = snap_to_grid(start, bpm, resolution)
        end = snap_to_grid(end, bpm, resolution)
        min_len = grid_step_seconds(bpm, resolution)
    start = max(0.0, start)
    if end - start < min_len:
        end = start + min_len
    duration = end - start
    return replace(
        region,
        start=start,
        end=end,
        fade_in_s=min(region.fade_in_s, duration),
        fade_out_s=min(region.fade_out_s, duration),
    )


def _bounded(name: str, value: float) -> float:
    p = REGION_SCHEMA[name]
    return clamp(value, p.min, p.max)


def set_gain(region: Region, gain_db: float) -> Region:
    """Gain in dB, held within the gainDb control range."""
    return replace(region, gain_db=_bounded("gainDb", finite_or(gain_db, 0.0)))


def set_pan(region: Region, pan: float) -> Region:
    return replace(region, pan=clamp(finite_or(pan, 0.0), -1.0, 1.0))


def set_fades(region: Region, fade_in_s: float, fade_out_s: float) -> Region:
    """Each fade clamped to [0, region duration]."""
    duration = max(0.0, region.duration_s)
    return replace(
        region,
        fade_in_s=clamp(finite_or(fade_in_s, 0.0), 0.0, duration),
        fade_out_s=clamp(finite_or(fade_out_s, 0.0), 0.0, duration),
    )


def set_stretch_rate(region: Region, rate: float) -> Region:
    rate = finite_or(rate, 1.0)
    return replace(region, stretch_rate=_bounded("stretchRate", rate) if rate > 0 else 1.0)


def add_automation_point(region: Region, t: float, v: float) -> Region:
    curve = AutomationCurve(region.automation)
    curve.add(AutomationPoint(t, v))
    return replace(region, automation=curve)


def clear_automation(region: Region) -> Region:
    return replace(region, automation=AutomationCurve())
