"""Gain envelopes for regions: dB conversion, linear fades and automation."""
import math

import torch

from engine.core.types import AutomationCurve
from engine.params.clamp import clamp, finite_or

# 10 ** (600 / 20) = 1e30, still finite in float32
DB_LIMIT = 600.0


# -----------------------------------------------------------------------------
# Helpers (reusable across envelopes and region rendering)
# -----------------------------------------------------------------------------

def db_to_lin(db: float) -> float:
    """Convert decibels to linear gain. 0 dB -> 1.0. Input is held within +/- DB_LIMIT."""
    db = clamp(finite_or(db, 0.0), -DB_LIMIT, DB_LIMIT)
    return 10.0 ** (db / 20.0)


def lin_to_db(lin: float, floor_db: float = -120.0) -> float:
    """Convert linear amplitude to dB. Values <= 1e-12 read as floor_db."""
    lin = abs(float(lin))
    if lin <= 1e-12:
        return floor_db
    return 20.0 * math.log10(lin)


# -----------------------------------------------------------------------------
# Region fades
# -----------------------------------------------------------------------------

def fade_envelope(n: int, sample_rate: int, fade_in_s: float, fade_out_s: float) -> torch.Tensor:
    """
    Linear fade-in / fade-out gain over n samples.
    Each fade is clamped to half the segment so the two never overlap.
    """
    env = torch.ones(max(0, n))
    if n <= 0:
        return env
    half = n // 2
    span_s = n / sample_rate
    n_in = min(half, max(0, int(clamp(finite_or(fade_in_s, 0.0), 0.0, span_s) * sample_rate)))
    n_out = min(half, max(0, int(clamp(finite_or(fade_out_s, 0.0), 0.0, span_s) * sample_rate)))
    if n_in > 0:
        env[:n_in] = torch.linspace(0.0, 1.0, n_in)
    if n_out > 0:
        env[n - n_out:] = env[n - n_out:] * torch.linspace(1.0, 0.0, n_out)
    return env


# -----------------------------------------------------------------------------
# Automation
# -----------------------------------------------------------------------------

def automation_envelope(curve: AutomationCurve, n: int, sample_rate: int, start_s: float) -> torch.Tensor:
    """
    Per-sample gain multiplier from a sparse automation curve.
    Sample i sits at timeline time start_s + i / sample_rate.
    """
    if n <= 0:
        return torch.ones(0)
    if len(curve) == 0:
        return torch.ones(n)
    times = start_s + torch.arange(n, dtype=torch.float64) / sample_rate
    return curve.evaluate(times)
