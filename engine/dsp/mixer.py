"""
Region mix stage: static gain and equal-power pan.
Pan law: theta = (pan + 1) * pi / 4; mono is upmixed to stereo with (cos, sin),
stereo gets the equal-power balance min(1, sqrt(2) * cos/sin) so centre is unity.
"""
import math
from typing import Tuple

import torch

from engine.core.types import SampleBuffer
from engine.dsp.envelopes import db_to_lin
from engine.params.clamp import clamp, finite_or


def pan_gains(pan: float) -> Tuple[float, float]:
    """Equal-power (left, right) gains for pan in [-1, 1]. Centre -> (0.707, 0.707)."""
    theta = (clamp(finite_or(pan, 0.0), -1.0, 1.0) + 1.0) * math.pi / 4.0
    return math.cos(theta), math.sin(theta)


def balance_gains(pan: float) -> Tuple[float, float]:
    """Stereo balance from the same law, normalised to unity at centre."""
    left, right = pan_gains(pan)
    return min(1.0, math.sqrt(2.0) * left), min(1.0, math.sqrt(2.0) * right)


def apply_pan(buffer: SampleBuffer, pan: float) -> SampleBuffer:
    """
    Mono -> stereo with pan_gains; stereo and wider -> balance on the first two channels.
    """
    x = buffer.samples
    if buffer.channel_count == 1:
        left, right = pan_gains(pan)
        return SampleBuffer(torch.stack([x[0] * left, x[0] * right]), buffer.sample_rate)

    left, right = balance_gains(pan)
    out = x.clone()
    out[0] = out[0] * left
    out[1] = out[1] * right
    return SampleBuffer(out, buffer.sample_rate)


def apply_gain(buffer: SampleBuffer, gain: torch.Tensor) -> SampleBuffer:
    """Multiply every channel by a scalar or a per-frame gain curve."""
    gain = torch.as_tensor(gain, dtype=torch.float32)
    return SampleBuffer(buffer.samples * gain, buffer.sample_rate)


def apply_gain_db(buffer: SampleBuffer, gain_db: float) -> SampleBuffer:
    return apply_gain(buffer, torch.tensor(db_to_lin(finite_or(gain_db, 0.0))))
