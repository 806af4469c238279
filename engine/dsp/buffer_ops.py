"""
Slice and concatenate multi-channel sample buffers.
Out-of-range selections clamp to the buffer instead of raising.
"""
import math
from typing import Iterable

import torch

from engine.core.types import SampleBuffer

DEFAULT_SAMPLE_RATE = 44100


def time_to_index(time_s: float, sample_rate: int, frame_count: int) -> int:
    """floor(time * sr) clamped into [0, frame_count]. Non-finite time maps to 0."""
    try:
        t = float(time_s)
    except (TypeError, ValueError):
        t = 0.0
    if math.isnan(t):
        t = 0.0
    pos = t * sample_rate
    if math.isinf(pos):
        return frame_count if pos > 0 else 0
    idx = math.floor(pos)
    return max(0, min(frame_count, idx))


def slice_buffer(buffer: SampleBuffer, start_s: float, end_s: float) -> SampleBuffer:
    """
    Copy [start_s, end_s) out of buffer.
    Always returns at least one frame; inverted or empty ranges give a silent 1-frame buffer.
    """
    n = buffer.frame_count
    start = time_to_index(start_s, buffer.sample_rate, n)
    end = time_to_index(end_s, buffer.sample_rate, n)
    length = max(1, end - start)

    out = torch.zeros(buffer.channel_count, length, dtype=torch.float32)
    available = max(0, end - start)
    if available > 0:
        out[:, :available] = buffer.samples[:, start:end]
    return SampleBuffer(out, buffer.sample_rate)


def empty_like(buffer: SampleBuffer) -> SampleBuffer:
    """Zero-frame buffer with buffer's layout; dropped by concat_buffers."""
    return SampleBuffer(torch.zeros(buffer.channel_count, 0), buffer.sample_rate)


def concat_buffers(buffers: Iterable[SampleBuffer]) -> SampleBuffer:
    """
    Join buffers end to end.
    The first non-empty buffer sets sample rate and channel count; inputs with fewer
    channels repeat their last channel. No inputs -> 1 silent frame at 44.1 kHz.
    """
    non_empty = [b for b in buffers if b is not None and b.frame_count > 0]
    if not non_empty:
        return SampleBuffer.silence(1, 1, DEFAULT_SAMPLE_RATE)

    first = non_empty[0]
    channels = first.channel_count
    total = sum(b.frame_count for b in non_empty)
    out = torch.zeros(channels, total, dtype=torch.float32)

    offset = 0
    for b in non_empty:
        for c in range(channels):
            out[c, offset:offset + b.frame_count] = b.samples[min(c, b.channel_count - 1)]
        offset += b.frame_count
    return SampleBuffer(out, first.sample_rate)
