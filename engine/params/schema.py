"""
Region parameter schema: bounds and defaults for the studio's region controls.
Keys are the studio wire names.
"""
from engine.core.params import ParamDef

REGION_SCHEMA = {
    "gainDb": ParamDef("gainDb", 0.0, min=-60.0, max=24.0, unit="dB"),
    "pan": ParamDef("pan", 0.0, min=-1.0, max=1.0),
    "fadeInSec": ParamDef("fadeInSec", 0.0, min=0.0, unit="s"),
    "fadeOutSec": ParamDef("fadeOutSec", 0.0, min=0.0, unit="s"),
    "stretchRate": ParamDef("stretchRate", 1.0, min=0.25, max=4.0, unit="x"),
}

# Keys accepted on the wire besides the tunable params above
REGION_FIELDS = frozenset({"id", "start", "end", "name", "automation"}) | frozenset(REGION_SCHEMA)

DEFAULT_REGION = {name: p.default for name, p in REGION_SCHEMA.items()}
