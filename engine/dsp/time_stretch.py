"""
WSOLA time-stretch: waveform-similarity overlap-add.
Output length is round(len * factor); pitch and local waveform shape are kept.
Each window is placed at the input offset (within +/- search radius) whose samples
correlate best with what has already been written at the synthesis position.
"""
import logging
import math
from typing import Optional

import torch

from engine.core.types import SampleBuffer, StretchParams, round_half_up
from engine.dsp.buffer_ops import slice_buffer, time_to_index

logger = logging.getLogger(__name__)

# |factor - 1| below this is treated as no stretch
IDENTITY_TOLERANCE = 1e-3
# Correlation is computed on every 8th sample
CORRELATION_STEP = 8


def hann_window(length: int) -> torch.Tensor:
    """0.5 * (1 - cos(2 pi i / (N - 1))); a single 1.0 for N == 1."""
    if length <= 1:
        return torch.ones(max(0, length))
    i = torch.arange(length, dtype=torch.float64)
    return (0.5 * (1.0 - torch.cos(2.0 * math.pi * i / (length - 1)))).float()


def _read_padded(x: torch.Tensor, idx: torch.Tensor) -> torch.Tensor:
    """x[idx] with out-of-range reads returned as 0."""
    valid = (idx >= 0) & (idx < x.shape[0])
    vals = x[idx.clamp(0, max(0, x.shape[0] - 1))] if x.shape[0] > 0 else torch.zeros(idx.shape, dtype=x.dtype)
    return torch.where(valid, vals, torch.zeros_like(vals))


def _best_offset(
    out: torch.Tensor,
    out_pos: int,
    x: torch.Tensor,
    in_pos: int,
    window: int,
    radius: int,
) -> int:
    """
    Offset in [-radius, radius] maximising the strided cross-correlation between
    out[out_pos:] and x[in_pos + offset:]. Candidates that would run past the end
    of x are skipped; ties keep the lowest offset. 0 when nothing fits.
    """
    offsets = torch.arange(-radius, radius + 1)
    cand = in_pos + offsets
    fits = (cand >= 0) & (cand + window < x.shape[0])
    if not bool(fits.any()):
        return 0
    offsets = offsets[fits]
    cand = cand[fits]

    taps = torch.arange(0, window, CORRELATION_STEP)
    ref = _read_padded(out, out_pos + taps).double()
    segs = _read_padded(x, cand.unsqueeze(1) + taps.unsqueeze(0)).double()
    scores = segs @ ref
    # argmax returns the first maximal index, i.e. the lowest offset on ties
    return int(offsets[int(torch.argmax(scores))])


def time_stretch(
    samples: torch.Tensor,
    factor: float,
    window_size: Optional[int] = None,
    analysis_hop: Optional[int] = None,
    search_radius: Optional[int] = None,
) -> torch.Tensor:
    """
    Stretch a mono sequence by factor (2.0 = twice as long).
    factor <= 0, non-finite, or within 0.001 of 1 returns an unmodified copy.
    """
    x = torch.as_tensor(samples).reshape(-1).float()
    try:
        factor = float(factor)
    except (TypeError, ValueError):
        factor = 1.0
    if not math.isfinite(factor):
        factor = 1.0
    if factor <= 0 or abs(factor - 1.0) < IDENTITY_TOLERANCE:
        return x.clone()

    p = StretchParams.derive(factor, window_size, analysis_hop, search_radius)
    w, ha, hs = p.window_size, p.analysis_hop, p.synthesis_hop
    n = x.shape[0]

    target = max(1, round_half_up(n * factor))
    out = torch.zeros(target + w + 1, dtype=torch.float32)
    win = hann_window(w)

    # seed the first window raw to anchor phase
    seed = min(w, n)
    out[:seed] = x[:seed]

    in_pos = ha
    out_pos = hs
    frames = 0
    while out_pos + w < out.shape[0] and in_pos + w < n:
        offset = _best_offset(out, out_pos, x, in_pos, w, p.search_radius)
        src = in_pos + offset
        out[out_pos:out_pos + w] += x[src:src + w] * win
        in_pos += ha
        out_pos += hs
        frames += 1

    logger.debug(
        "wsola factor=%.4f W=%d Ha=%d Hs=%d R=%d frames=%d in=%d out=%d",
        factor, w, ha, hs, p.search_radius, frames, n, target,
    )
    return out[:target].clone()


def stretch_buffer(buffer: SampleBuffer, factor: float, **options) -> SampleBuffer:
    """Stretch every channel of buffer independently."""
    channels = [time_stretch(buffer.channel(c), factor, **options) for c in range(buffer.channel_count)]
    return SampleBuffer(torch.stack(channels), buffer.sample_rate)


def time_stretch_segment(
    buffer: SampleBuffer,
    start_s: float,
    end_s: float,
    factor: float,
    **options,
) -> SampleBuffer:
    """
    Stretch the [start_s, end_s) part of buffer.
    Inverted or empty selections return a silent 1-frame buffer.
    """
    start = time_to_index(start_s, buffer.sample_rate, buffer.frame_count)
    end = time_to_index(end_s, buffer.sample_rate, buffer.frame_count)
    if end <= start:
        return SampleBuffer.silence(buffer.channel_count, 1, buffer.sample_rate)

    segment = slice_buffer(buffer, start_s, end_s)
    if math.isfinite(factor) and factor > 0:
        out_len = max(1, round_half_up(segment.frame_count * factor))
    else:
        out_len = segment.frame_count
    stretched = stretch_buffer(segment, factor, **options)
    out = torch.zeros(buffer.channel_count, out_len, dtype=torch.float32)
    keep = min(out_len, stretched.frame_count)
    out[:, :keep] = stretched.samples[:, :keep]
    return SampleBuffer(out, buffer.sample_rate)
