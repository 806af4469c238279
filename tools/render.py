#!/usr/bin/env python3
"""
Region render tool: realize, stretch and bounce regions of an audio file from the command line.

Usage:
    python tools/render.py <subcommand> [options]

Subcommands:
    region <input> <output>      Realize one region (gain/pan/fades/stretch) to a WAV
    stretch <input> <output>     Bounce a stretch of [start, end) into the whole track
    bounce <input> <regions_json> <output_zip>
                                 Realize every region in a JSON list into a zip

Options:
    --start/--end <sec>   Region bounds (snapped when --bpm is given)
    --bpm <float>         Tempo for grid snapping
    --grid <1/2|1/4|1/8>  Grid resolution (default: 1/4)
    --float32             Write 32-bit float WAV instead of 16-bit PCM
"""
import sys
import os
import json
import argparse

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from engine.core.io import AudioIO
from engine.core.types import Region
from engine.export.exporter import Exporter
from engine.params.engine_params import load_settings, to_region_params
from engine.params.grid import snap_to_grid
from engine.params.resolve import resolve_region
from engine.qc.qc import analyze
from engine.regions.render import realize_region
from engine.regions.splice import apply_stretch_to_track


def _bounds(args):
    start, end = args.start, args.end
    if args.bpm is not None:
        start = snap_to_grid(start, args.bpm, args.grid)
        end = snap_to_grid(end, args.bpm, args.grid)
    return start, end


def _print_qc(qc: dict) -> None:
    print(f"Peak: {qc['peak_dbfs']:.2f} dBFS, RMS: {qc['rms_dbfs']:.2f} dBFS, "
          f"{qc['channels']} ch, {qc['duration_s']:.3f} s")
    print(f"QC Status: {'PASS' if qc['pass'] else 'FAIL'}")
    for reason in qc["reasons"]:
        print(f"    - {reason}")


def cmd_region(args):
    track = AudioIO.load(args.input)
    start, end = _bounds(args)
    region = resolve_region({
        "id": "cli",
        "start": start,
        "end": end,
        "gainDb": args.gain_db,
        "pan": args.pan,
        "fadeInSec": args.fade_in,
        "fadeOutSec": args.fade_out,
        "stretchRate": args.stretch,
    })
    audio = realize_region(region, track, window_size=load_settings().stretch_window)
    AudioIO.save_wav(audio, args.output, float32=args.float32)

    print(f"\n=== Region Rendered ===")
    print(f"Region: {region.start:.3f}s - {region.end:.3f}s (stretch x{region.stretch_rate})")
    print(f"Output: {args.output}")
    _print_qc(analyze(audio))
    return 0


def cmd_stretch(args):
    track = AudioIO.load(args.input)
    start, end = _bounds(args)
    region = Region(id="cli", start=start, end=end)
    new_track, regions = apply_stretch_to_track(
        track, [region], "cli", args.stretch, window_size=load_settings().stretch_window
    )
    AudioIO.save_wav(new_track, args.output, float32=args.float32)

    print(f"\n=== Track Stretched ===")
    print(f"Region now: {regions[0].start:.3f}s - {regions[0].end:.3f}s")
    print(f"Track: {track.duration_s:.3f}s -> {new_track.duration_s:.3f}s")
    print(f"Output: {args.output}")
    return 0


def cmd_bounce(args):
    track = AudioIO.load(args.input)
    with open(args.regions_json) as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        print(f"Error: {args.regions_json} must hold a JSON list of regions")
        return 1
    regions = [resolve_region(to_region_params(r)) for r in raw if isinstance(r, dict)]
    if not regions:
        print("No regions found in file")
        return 1

    zip_bytes = Exporter.create_bounce_zip(
        track, regions, name=args.name, float32=args.float32,
        window_size=load_settings().stretch_window,
    )
    with open(args.output_zip, "wb") as f:
        f.write(zip_bytes)
    print(f"Bounced {len(regions)} regions to {args.output_zip}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Region render tool: realize, stretch and bounce regions"
    )

    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    # Common arguments
    def add_common_args(p):
        p.add_argument("--float32", action="store_true", help="Write 32-bit float WAV")

    def add_bounds_args(p):
        p.add_argument("--start", type=float, default=0.0, help="Region start (s)")
        p.add_argument("--end", type=float, required=True, help="Region end (s)")
        p.add_argument("--bpm", type=float, default=None, help="Tempo for grid snapping")
        p.add_argument("--grid", choices=["1/2", "1/4", "1/8"], default="1/4", help="Grid resolution")

    p_region = subparsers.add_parser("region", help="Realize one region")
    p_region.add_argument("input")
    p_region.add_argument("output")
    add_bounds_args(p_region)
    p_region.add_argument("--gain-db", type=float, default=0.0)
    p_region.add_argument("--pan", type=float, default=0.0)
    p_region.add_argument("--fade-in", type=float, default=0.0)
    p_region.add_argument("--fade-out", type=float, default=0.0)
    p_region.add_argument("--stretch", type=float, default=1.0)
    add_common_args(p_region)

    p_stretch = subparsers.add_parser("stretch", help="Bounce a stretch into the track")
    p_stretch.add_argument("input")
    p_stretch.add_argument("output")
    add_bounds_args(p_stretch)
    p_stretch.add_argument("--stretch", type=float, required=True)
    add_common_args(p_stretch)

    p_bounce = subparsers.add_parser("bounce", help="Realize all regions into a zip")
    p_bounce.add_argument("input")
    p_bounce.add_argument("regions_json")
    p_bounce.add_argument("output_zip")
    p_bounce.add_argument("--name", default="Bounce")
    add_common_args(p_bounce)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "region":
        return cmd_region(args)
    elif args.command == "stretch":
        return cmd_stretch(args)
    elif args.command == "bounce":
        return cmd_bounce(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
