"""
Core value types shared across the engine: sample buffers, regions, automation, stretch params.
Buffers hold float32 tensors shaped (channels, frames).
"""
import bisect
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import torch


def round_half_up(x: float) -> int:
    """Round to nearest integer, .5 goes up (matches the studio UI rounding)."""
    return int(math.floor(x + 0.5))


# -----------------------------------------------------------------------------
# Sample buffer
# -----------------------------------------------------------------------------

@dataclass
class SampleBuffer:
    samples: torch.Tensor  # float32, (channels, frames)
    sample_rate: int

    def __post_init__(self):
        if not isinstance(self.samples, torch.Tensor):
            self.samples = torch.as_tensor(np.asarray(self.samples, dtype=np.float32))
        if self.samples.dim() != 2:
            raise ValueError(f"samples must be 2-D (channels, frames), got shape {tuple(self.samples.shape)}")
        if self.samples.shape[0] < 1:
            raise ValueError("buffer needs at least one channel")
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be > 0, got {self.sample_rate}")
        self.sample_rate = int(self.sample_rate)
        if self.samples.dtype != torch.float32:
            self.samples = self.samples.float()

    @classmethod
    def from_channels(cls, channels: Sequence[Any], sample_rate: int) -> "SampleBuffer":
        """Build from one 1-D array per channel. All channels must have the same length."""
        if len(channels) == 0:
            raise ValueError("buffer needs at least one channel")
        tensors = [torch.as_tensor(np.asarray(c, dtype=np.float32)).reshape(-1) for c in channels]
        lengths = {int(t.shape[0]) for t in tensors}
        if len(lengths) != 1:
            raise ValueError(f"channel lengths differ: {sorted(lengths)}")
        return cls(torch.stack(tensors), sample_rate)

    @classmethod
    def silence(cls, channels: int, frames: int, sample_rate: int) -> "SampleBuffer":
        return cls(torch.zeros(max(1, int(channels)), max(0, int(frames))), sample_rate)

    @classmethod
    def mono(cls, samples: Any, sample_rate: int) -> "SampleBuffer":
        return cls.from_channels([samples], sample_rate)

    @property
    def channel_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration_s(self) -> float:
        return self.frame_count / self.sample_rate

    def channel(self, index: int) -> torch.Tensor:
        return self.samples[index]

    def copy(self) -> "SampleBuffer":
        return SampleBuffer(self.samples.clone(), self.sample_rate)


# -----------------------------------------------------------------------------
# Grid resolution
# -----------------------------------------------------------------------------

class GridResolution(str, Enum):
    HALF = "1/2"
    QUARTER = "1/4"
    EIGHTH = "1/8"

    @property
    def fraction(self) -> float:
        return _GRID_FRACTIONS[self]

    @classmethod
    def parse(cls, value: Any) -> "GridResolution":
        """Unknown resolutions fall back to 1/4."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.QUARTER


_GRID_FRACTIONS = {
    GridResolution.HALF: 0.5,
    GridResolution.QUARTER: 0.25,
    GridResolution.EIGHTH: 0.125,
}


# -----------------------------------------------------------------------------
# Automation
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class AutomationPoint:
    t: float
    v: float


class AutomationCurve:
    """
    Sparse gain curve kept sorted by time.
    Values hold flat outside the first/last point; an empty curve is unity.
    """

    def __init__(self, points: Optional[Iterable[AutomationPoint]] = None):
        self._points: List[AutomationPoint] = []
        self._times: List[float] = []
        for p in points or ():
            self.add(p)

    def add(self, point: AutomationPoint) -> None:
        t, v = float(point.t), float(point.v)
        if not (math.isfinite(t) and math.isfinite(v)):
            return
        idx = bisect.bisect_right(self._times, t)
        self._times.insert(idx, t)
        self._points.insert(idx, AutomationPoint(t, v))

    @property
    def points(self) -> List[AutomationPoint]:
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AutomationCurve):
            return NotImplemented
        return self._points == other._points

    def __repr__(self) -> str:
        return f"AutomationCurve({self._points!r})"

    def value_at(self, t: float) -> float:
        if not self._points:
            return 1.0
        idx = bisect.bisect_right(self._times, t)
        if idx == 0:
            return self._points[0].v
        if idx == len(self._points):
            return self._points[-1].v
        a, b = self._points[idx - 1], self._points[idx]
        span = b.t - a.t
        if span <= 0:
            return b.v
        return a.v + (b.v - a.v) * (t - a.t) / span

    def evaluate(self, times: torch.Tensor) -> torch.Tensor:
        """Vectorised value_at over a tensor of times (seconds)."""
        times = times.to(torch.float64)
        if not self._points:
            return torch.ones_like(times, dtype=torch.float32)
        t_knots = torch.tensor(self._times, dtype=torch.float64)
        v_knots = torch.tensor([p.v for p in self._points], dtype=torch.float64)
        if len(self._points) == 1:
            return torch.full_like(times, float(v_knots[0])).float()

        idx = torch.searchsorted(t_knots, times, right=True)
        hi = idx.clamp(1, len(self._points) - 1)
        lo = hi - 1
        t0, t1 = t_knots[lo], t_knots[hi]
        v0, v1 = v_knots[lo], v_knots[hi]
        span = t1 - t0
        frac = torch.where(span > 0, (times - t0) / torch.where(span > 0, span, torch.ones_like(span)), torch.ones_like(span))
        out = v0 + (v1 - v0) * frac.clamp(0.0, 1.0)
        out = torch.where(idx == 0, v_knots[0], out)
        out = torch.where(idx >= len(self._points), v_knots[-1], out)
        return out.float()

    def shifted(self, delta: float) -> "AutomationCurve":
        return AutomationCurve(AutomationPoint(p.t + delta, p.v) for p in self._points)

    def to_list(self) -> List[Dict[str, float]]:
        return [{"t": p.t, "v": p.v} for p in self._points]

    @classmethod
    def from_list(cls, raw: Optional[Iterable[Any]]) -> "AutomationCurve":
        """Accepts [{t, v}, ...]; malformed entries are skipped."""
        curve = cls()
        for item in raw or ():
            if not isinstance(item, dict):
                continue
            try:
                curve.add(AutomationPoint(float(item["t"]), float(item["v"])))
            except (KeyError, TypeError, ValueError):
                continue
        return curve


# -----------------------------------------------------------------------------
# Region
# -----------------------------------------------------------------------------

@dataclass
class Region:
    id: str
    start: float
    end: float
    name: Optional[str] = None
    gain_db: float = 0.0
    pan: float = 0.0
    fade_in_s: float = 0.0
    fade_out_s: float = 0.0
    stretch_rate: float = 1.0
    automation: AutomationCurve = field(default_factory=AutomationCurve)

    @property
    def duration_s(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        """Studio wire format (camelCase keys)."""
        out = {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "gainDb": self.gain_db,
            "pan": self.pan,
            "fadeInSec": self.fade_in_s,
            "fadeOutSec": self.fade_out_s,
            "stretchRate": self.stretch_rate,
            "automation": self.automation.to_list(),
        }
        if self.name is not None:
            out["name"] = self.name
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Region":
        """Plain wire decode, no clamping. Use engine.params.resolve.resolve_region for UI input."""
        return cls(
            id=str(raw["id"]),
            start=float(raw["start"]),
            end=float(raw["end"]),
            name=raw.get("name"),
            gain_db=float(raw.get("gainDb", 0.0)),
            pan=float(raw.get("pan", 0.0)),
            fade_in_s=float(raw.get("fadeInSec", 0.0)),
            fade_out_s=float(raw.get("fadeOutSec", 0.0)),
            stretch_rate=float(raw.get("stretchRate", 1.0)),
            automation=AutomationCurve.from_list(raw.get("automation")),
        )


# -----------------------------------------------------------------------------
# Stretch parameters
# -----------------------------------------------------------------------------

WINDOW_MIN = 512
WINDOW_MAX = 8192
WINDOW_DEFAULT = 2048
HOP_MIN = 64


@dataclass(frozen=True)
class StretchParams:
    """Derived WSOLA parameters (never persisted)."""
    window_size: int
    analysis_hop: int
    synthesis_hop: int
    search_radius: int

    @classmethod
    def derive(
        cls,
        factor: float,
        window_size: Optional[int] = None,
        analysis_hop: Optional[int] = None,
        search_radius: Optional[int] = None,
    ) -> "StretchParams":
        w = WINDOW_DEFAULT if window_size is None else int(window_size)
        w = max(WINDOW_MIN, min(WINDOW_MAX, w))
        ha = w // 4 if analysis_hop is None else int(analysis_hop)
        ha = max(HOP_MIN, min(w // 2, ha))
        hs = max(1, round_half_up(ha * factor))
        r = round_half_up(ha / 2) if search_radius is None else int(search_radius)
        r = max(0, min(w // 2, r))
        return cls(window_size=w, analysis_hop=ha, synthesis_hop=hs, search_radius=r)
