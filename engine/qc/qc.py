"""
Quality Control analysis for rendered regions.
Detects common failure modes: clipping, non-finite samples, silence.
"""
from typing import Dict, Optional

import torch

from engine.core.types import SampleBuffer
from engine.dsp.envelopes import lin_to_db
from engine.qc.thresholds import QC_THRESHOLDS


def analyze(buffer: SampleBuffer, thresholds: Optional[Dict] = None) -> Dict:
    """
    Level metrics plus pass/fail against thresholds.
    Peak and RMS are measured over all channels, non-finite samples excluded.
    """
    th = {**QC_THRESHOLDS, **(thresholds or {})}
    x = buffer.samples.double()
    finite = torch.isfinite(x)
    non_finite = int((~finite).sum())
    clean = torch.where(finite, x, torch.zeros_like(x))

    total = max(1, clean.numel())
    peak = float(clean.abs().max()) if clean.numel() else 0.0
    rms = float(torch.sqrt((clean ** 2).sum() / total))
    clipped = int((clean.abs() >= 1.0).sum())

    metrics = {
        "peak_dbfs": lin_to_db(peak),
        "rms_dbfs": lin_to_db(rms),
        "clipped_samples": clipped,
        "non_finite_samples": non_finite,
        "duration_s": buffer.duration_s,
        "channels": buffer.channel_count,
        "sample_rate": buffer.sample_rate,
    }

    reasons = []
    if metrics["peak_dbfs"] > th["peak_dbfs_max"]:
        reasons.append(f"peak {metrics['peak_dbfs']:.2f} dBFS > {th['peak_dbfs_max']}")
    if clipped / total > th["clip_ratio_max"]:
        reasons.append(f"clipped {clipped}/{total} samples")
    if metrics["rms_dbfs"] < th["rms_dbfs_min"]:
        reasons.append(f"rms {metrics['rms_dbfs']:.2f} dBFS < {th['rms_dbfs_min']} (silent)")
    if non_finite > th["non_finite_max"]:
        reasons.append(f"{non_finite} non-finite samples")

    metrics["pass"] = not reasons
    metrics["reasons"] = reasons
    return metrics
