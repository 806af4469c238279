"""
Tempo grid: bar length, grid step and snap-to-grid for a 4-beat bar.
Invalid tempo falls back to 120 BPM instead of raising.
"""
import math
from typing import Union

from engine.core.types import GridResolution, round_half_up

DEFAULT_BPM = 120.0
BEATS_PER_BAR = 4

Resolution = Union[GridResolution, str]


def bar_duration_seconds(bpm: float) -> float:
    """(60 / bpm) * 4, with 120 BPM used for non-finite or non-positive tempo."""
    try:
        bpm = float(bpm)
    except (TypeError, ValueError):
        bpm = DEFAULT_BPM
    effective = bpm if math.isfinite(bpm) and bpm > 0 else DEFAULT_BPM
    return (60.0 / effective) * BEATS_PER_BAR


def grid_step_seconds(bpm: float, resolution: Resolution) -> float:
    return bar_duration_seconds(bpm) * GridResolution.parse(resolution).fraction


def snap_to_grid(time_s: float, bpm: float, resolution: Resolution) -> float:
    """
    Round time_s to the nearest grid line, floored at 0.
    A non-finite time snaps to 0; times too large to count in grid steps stay put.
    """
    step = grid_step_seconds(bpm, resolution)
    if not math.isfinite(step) or step <= 0:
        return time_s
    if not math.isfinite(time_s):
        return 0.0
    steps = time_s / step
    if not math.isfinite(steps):
        return max(0.0, time_s)
    snapped = round_half_up(steps) * step
    return max(0.0, snapped)
