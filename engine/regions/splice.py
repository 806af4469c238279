"""
Bounce a region's stretch into its track: the track is rebuilt as
prefix + stretched region + suffix and the regions after it ripple by the length change.
"""
import logging
import math
from dataclasses import replace
from typing import List, Sequence, Tuple

from engine.core.types import AutomationCurve, AutomationPoint, Region, SampleBuffer
from engine.dsp.buffer_ops import concat_buffers, empty_like, slice_buffer, time_to_index
from engine.dsp.time_stretch import time_stretch_segment

logger = logging.getLogger(__name__)

# Rates this close to 1 are not worth re-rendering the track for
MIN_RATE_CHANGE = 0.01


def _range_or_empty(track: SampleBuffer, start_s: float, end_s: float) -> SampleBuffer:
    start = time_to_index(start_s, track.sample_rate, track.frame_count)
    end = time_to_index(end_s, track.sample_rate, track.frame_count)
    if end <= start:
        return empty_like(track)
    return slice_buffer(track, start_s, end_s)


def _remap_stretched(curve: AutomationCurve, start: float, old_end: float, rate: float, delta: float) -> AutomationCurve:
    remapped = AutomationCurve()
    for p in curve:
        if p.t < start:
            remapped.add(p)
        elif p.t > old_end:
            remapped.add(AutomationPoint(p.t + delta, p.v))
        else:
            remapped.add(AutomationPoint(start + (p.t - start) * rate, p.v))
    return remapped


def apply_stretch_to_track(
    track: SampleBuffer,
    regions: Sequence[Region],
    region_id: str,
    stretch_rate: float,
    **stretch_options,
) -> Tuple[SampleBuffer, List[Region]]:
    """
    Stretch region_id inside track and ripple later regions.
    Unknown region, invalid rate or a rate within 0.01 of 1 returns the inputs unchanged.
    stretch_options (window_size, analysis_hop, search_radius) go to the stretch engine.
    """
    regions = list(regions)
    target = next((r for r in regions if r.id == region_id), None)
    if target is None:
        logger.warning("stretch skipped: region %s not found", region_id)
        return track, regions
    if not math.isfinite(stretch_rate) or stretch_rate <= 0 or abs(stretch_rate - 1.0) < MIN_RATE_CHANGE:
        return track, regions

    start = max(0.0, target.start)
    end = max(start, target.end)
    old_duration = end - start
    if old_duration <= 0:
        return track, regions

    prefix = _range_or_empty(track, 0.0, start)
    stretched = time_stretch_segment(track, start, end, stretch_rate, **stretch_options)
    suffix = _range_or_empty(track, end, track.duration_s)
    combined = concat_buffers([prefix, stretched, suffix])

    delta = stretched.duration_s - old_duration
    new_end = start + stretched.duration_s

    updated: List[Region] = []
    for r in regions:
        if r.id == region_id:
            updated.append(replace(
                r,
                end=new_end,
                stretch_rate=1.0,
                automation=_remap_stretched(r.automation, start, end, stretch_rate, delta),
            ))
        elif r.start >= end:
            updated.append(replace(
                r,
                start=r.start + delta,
                end=r.end + delta,
                automation=r.automation.shifted(delta),
            ))
        else:
            updated.append(r)

    logger.info(
        "stretched region %s by %.3f: %.3fs -> %.3fs (track %d -> %d frames)",
        region_id, stretch_rate, old_duration, stretched.duration_s, track.frame_count, combined.frame_count,
    )
    return combined, updated
