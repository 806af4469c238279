"""
Tests for engine/dsp/time_stretch: WSOLA identity, lengths, pitch preservation, search rules.
Run from project root: python -m pytest tests/test_time_stretch.py -v
"""
import sys
import os
import math

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np
import pytest
import torch
from engine.core.types import SampleBuffer, StretchParams
from engine.dsp.time_stretch import (
    _best_offset,
    hann_window,
    stretch_buffer,
    time_stretch,
    time_stretch_segment,
)

SR = 44100


def _noise(n: int, seed: int = 7) -> torch.Tensor:
    g = torch.Generator().manual_seed(seed)
    return torch.rand(n, generator=g) * 2 - 1


def _sine(freq: float, seconds: float, sr: int = SR) -> torch.Tensor:
    t = torch.arange(int(seconds * sr), dtype=torch.float64) / sr
    return torch.sin(2 * math.pi * freq * t).float()


def _dominant_frequency(x: np.ndarray, sr: int, min_hz: float = 300.0, max_hz: float = 600.0) -> float:
    """Autocorrelation peak within [min_hz, max_hz]."""
    x = x - x.mean()
    min_lag = int(sr / max_hz)
    max_lag = int(sr / min_hz)
    scores = [float(np.dot(x[:-lag], x[lag:])) for lag in range(min_lag, max_lag + 1)]
    best_lag = min_lag + int(np.argmax(scores))
    return sr / best_lag


# -----------------------------------------------------------------------------
# Identity / degenerate factors
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("factor", [1.0, 1.0005, 0.9995])
def test_identity_within_tolerance(factor):
    x = _noise(5000)
    out = time_stretch(x, factor)
    assert torch.equal(out, x)
    assert out.data_ptr() != x.data_ptr()


@pytest.mark.parametrize("factor", [0.0, -2.0, float("nan"), float("inf")])
def test_invalid_factor_returns_copy(factor):
    x = _noise(3000)
    assert torch.equal(time_stretch(x, factor), x)


# -----------------------------------------------------------------------------
# Output length
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("factor", [0.5, 0.75, 1.5, 2.0])
def test_output_length_matches_factor(factor):
    x = _noise(20001)
    out = time_stretch(x, factor)
    assert out.shape[0] == int(math.floor(20001 * factor + 0.5))
    assert out.dtype == torch.float32
    assert torch.isfinite(out).all()


def test_short_input_is_seeded_raw():
    """Input shorter than one window: output is the input followed by zeros."""
    x = _noise(300)
    out = time_stretch(x, 2.0)
    assert out.shape[0] == 600
    assert torch.equal(out[:300], x)
    assert float(out[300:].abs().sum()) == 0.0


# -----------------------------------------------------------------------------
# Pitch preservation
# -----------------------------------------------------------------------------

def test_sine_440_doubled_keeps_pitch():
    x = _sine(440.0, 2.0)
    out = time_stretch(x, 2.0)
    assert abs(out.shape[0] - 4 * SR) <= 1

    middle = out[SR:3 * SR].numpy().astype(np.float64)
    freq = _dominant_frequency(middle, SR)
    assert abs(freq - 440.0) < 10.0, f"dominant frequency {freq:.1f} Hz"


def test_sine_440_compressed_keeps_pitch():
    x = _sine(440.0, 2.0)
    out = time_stretch(x, 0.5)
    assert out.shape[0] == SR
    middle = out[SR // 4:3 * SR // 4].numpy().astype(np.float64)
    freq = _dominant_frequency(middle, SR)
    assert abs(freq - 440.0) < 10.0, f"dominant frequency {freq:.1f} Hz"


# -----------------------------------------------------------------------------
# Search rules
# -----------------------------------------------------------------------------

def test_tie_keeps_lowest_offset():
    """With silent output every candidate scores 0, so the first (lowest) offset wins."""
    out = torch.zeros(4000)
    x = _noise(4000)
    assert _best_offset(out, 0, x, 1000, 512, 16) == -16


def test_candidates_past_input_end_are_skipped():
    x = _noise(1200)
    out = _noise(1200, seed=3)
    window, radius, in_pos = 512, 64, 650
    offset = _best_offset(out, 0, x, in_pos, window, radius)
    assert in_pos + offset + window < x.shape[0]


def test_no_candidate_fits_gives_zero_offset():
    x = _noise(600)
    out = torch.zeros(2000)
    assert _best_offset(out, 0, x, 500, 512, 8) == 0


def test_best_offset_finds_aligned_segment():
    x = _noise(8000, seed=11)
    out = torch.zeros(4000)
    out[1000:1512] = x[3005:3517]
    assert _best_offset(out, 1000, x, 3000, 512, 16) == 5


# -----------------------------------------------------------------------------
# Window / parameters
# -----------------------------------------------------------------------------

def test_hann_window_shape():
    w = hann_window(2048)
    assert w.shape == (2048,)
    assert float(w[0]) == pytest.approx(0.0, abs=1e-7)
    assert float(w[-1]) == pytest.approx(0.0, abs=1e-7)
    assert float(w.max()) == pytest.approx(1.0, abs=1e-5)
    assert torch.equal(hann_window(1), torch.ones(1))


def test_stretch_params_defaults():
    p = StretchParams.derive(1.5)
    assert (p.window_size, p.analysis_hop, p.synthesis_hop, p.search_radius) == (2048, 512, 768, 256)


def test_stretch_params_clamps():
    assert StretchParams.derive(2.0, window_size=100).window_size == 512
    assert StretchParams.derive(2.0, window_size=100000).window_size == 8192
    assert StretchParams.derive(2.0, analysis_hop=10).analysis_hop == 64
    assert StretchParams.derive(2.0, analysis_hop=5000).analysis_hop == 1024
    assert StretchParams.derive(2.0, search_radius=-3).search_radius == 0
    assert StretchParams.derive(2.0, search_radius=99999).search_radius == 1024
    assert StretchParams.derive(0.001).synthesis_hop == 1


# -----------------------------------------------------------------------------
# Multi-channel
# -----------------------------------------------------------------------------

def test_stretch_buffer_processes_channels_independently():
    left = _noise(12000, seed=1)
    buf = SampleBuffer(torch.stack([left, -left]), SR)
    out = stretch_buffer(buf, 1.5)
    assert out.frame_count == 18000
    torch.testing.assert_close(out.samples[1], -out.samples[0])


def test_segment_length_and_inverted_range():
    buf = SampleBuffer(torch.stack([_noise(SR, 1), _noise(SR, 2)]), SR)
    seg = time_stretch_segment(buf, 0.25, 0.75, 1.5)
    assert seg.channel_count == 2
    assert seg.frame_count == int(math.floor(0.5 * SR * 1.5 + 0.5))

    empty = time_stretch_segment(buf, 0.75, 0.25, 1.5)
    assert empty.frame_count == 1
    assert float(empty.samples.abs().sum()) == 0.0
