"""
Realize a Region against its track buffer into concrete audio.
Order: slice -> stretch -> gain x automation -> fades -> pan.
"""
import logging

from engine.core.types import Region, SampleBuffer
from engine.dsp.buffer_ops import slice_buffer
from engine.dsp.envelopes import automation_envelope, db_to_lin, fade_envelope
from engine.dsp.mixer import apply_gain, apply_pan
from engine.dsp.time_stretch import IDENTITY_TOLERANCE, stretch_buffer
from engine.params.clamp import finite_or

logger = logging.getLogger(__name__)


def realize_region(region: Region, track: SampleBuffer, **stretch_options) -> SampleBuffer:
    """
    Render region's [start, end) of track with its stretch, gain, automation, fades and pan.
    Mono tracks come back as stereo (panned); stereo tracks keep their layout.
    """
    segment = slice_buffer(track, region.start, region.end)

    rate = finite_or(region.stretch_rate, 1.0)
    if rate > 0 and abs(rate - 1.0) >= IDENTITY_TOLERANCE:
        segment = stretch_buffer(segment, rate, **stretch_options)

    n = segment.frame_count
    sr = segment.sample_rate
    gain = db_to_lin(finite_or(region.gain_db, 0.0))
    curve = automation_envelope(region.automation, n, sr, finite_or(region.start, 0.0))
    fades = fade_envelope(n, sr, region.fade_in_s, region.fade_out_s)

    out = apply_gain(segment, curve * fades * gain)
    out = apply_pan(out, region.pan)

    logger.debug(
        "realized region %s: %d frames, rate=%.3f gain_db=%.2f pan=%.2f",
        region.id, out.frame_count, rate, region.gain_db, region.pan,
    )
    return out
