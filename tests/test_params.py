"""
Tests for engine/params: region resolution, wire contract, settings from env.
Run from project root: python -m pytest tests/test_params.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from engine.core.types import Region
from engine.params import DEFAULT_REGION, load_settings, resolve_region, to_region_params


def test_resolve_region_defaults():
    region = resolve_region({"id": "r1", "start": 1, "end": 2})
    assert region == Region(id="r1", start=1.0, end=2.0)
    assert DEFAULT_REGION["stretchRate"] == 1.0


def test_resolve_region_clamps_and_coerces():
    region = resolve_region({
        "id": 7,
        "start": "0.5",
        "end": 1.5,
        "gainDb": "loud",
        "pan": 3,
        "stretchRate": 10,
        "fadeInSec": -2,
        "automation": [{"t": 1.0, "v": 0.5}, {"t": 0.6, "v": 0.1}],
    })
    assert region.id == "7"
    assert region.start == 0.5
    assert region.gain_db == 0.0
    assert region.pan == 1.0
    assert region.stretch_rate == 4.0
    assert region.fade_in_s == 0.0
    assert [p.t for p in region.automation] == [0.6, 1.0]


def test_region_wire_round_trip():
    raw = {"id": "r1", "start": 0.0, "end": 1.0, "name": "vox", "gainDb": -2.0, "pan": 0.25,
           "fadeInSec": 0.1, "fadeOutSec": 0.2, "stretchRate": 1.25,
           "automation": [{"t": 0.5, "v": 0.8}]}
    assert Region.from_dict(raw).to_dict() == raw


def test_unknown_ui_keys_stripped():
    raw = {"id": "r1", "start": 0, "end": 1, "color": "#ff0", "selected": True}
    assert to_region_params(raw) == {"id": "r1", "start": 0, "end": 1}


def test_settings_defaults(monkeypatch):
    for name in ("ENGINE_WAV_FLOAT32", "ENGINE_STRETCH_WINDOW"):
        monkeypatch.delenv(name, raising=False)
    s = load_settings()
    assert (s.wav_float32, s.stretch_window) == (False, 2048)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("ENGINE_WAV_FLOAT32", "true")
    monkeypatch.setenv("ENGINE_STRETCH_WINDOW", "nope")
    s = load_settings()
    assert s.wav_float32 is True
    assert s.stretch_window == 2048
    monkeypatch.setenv("ENGINE_STRETCH_WINDOW", "4096")
    assert load_settings().stretch_window == 4096
