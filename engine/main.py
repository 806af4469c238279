from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import base64
import logging

from engine.core.io import AudioIO
from engine.core.types import SampleBuffer
from engine.export.exporter import Exporter
from engine.params.engine_params import load_settings, to_region_params
from engine.params.grid import grid_step_seconds, snap_to_grid
from engine.params.resolve import resolve_region
from engine.qc.qc import analyze
from engine.regions.render import realize_region
from engine.regions.splice import apply_stretch_to_track

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("studio-engine")

settings = load_settings()

app = FastAPI(
    title="Studio Region Engine",
    version="1.0.0",
    description="Region editing, WSOLA time-stretch and WAV bounce"
)

# CORS (Allow Studio frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _decode_audio(data: dict) -> SampleBuffer:
    """Base64 WAV from the request body -> SampleBuffer. Bad input is a 400."""
    raw = data.get("audio")
    if not isinstance(raw, str) or not raw:
        raise HTTPException(status_code=400, detail="audio (base64 WAV) is required")
    try:
        return AudioIO.load(base64.b64decode(raw, validate=True))
    except (ValueError, RuntimeError) as e:
        logger.warning("audio decode failed: %s", e)
        raise HTTPException(status_code=400, detail="audio could not be decoded") from e


def _encode_audio(buffer: SampleBuffer, data: dict) -> str:
    float32 = bool(data.get("float32", settings.wav_float32))
    return base64.b64encode(AudioIO.to_bytes(buffer, float32=float32)).decode("utf-8")


def _region_list(data: dict) -> list:
    raw = data.get("regions") or []
    if not isinstance(raw, list):
        raise HTTPException(status_code=400, detail="regions must be a list")
    return [resolve_region(to_region_params(r)) for r in raw if isinstance(r, dict)]


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "studio-region-engine"}


@app.post("/regions/render")
async def render_region(data: dict):
    """
    Realizes one region of the uploaded track.
    Returns JSON with base64-encoded audio and QC metrics.
    """
    track = _decode_audio(data)
    raw_region = data.get("region")
    if not isinstance(raw_region, dict):
        raise HTTPException(status_code=400, detail="region is required")
    region = resolve_region(to_region_params(raw_region))

    audio = realize_region(region, track, window_size=settings.stretch_window)
    return {
        "audio": _encode_audio(audio, data),
        "region": region.to_dict(),
        "qc": analyze(audio),
    }


@app.post("/tracks/stretch")
async def stretch_track(data: dict):
    """
    Bounces a region's stretch into the track.
    Body: { audio, regions: [...], regionId, stretchRate }. Returns the new track and rippled regions.
    """
    track = _decode_audio(data)
    regions = _region_list(data)
    try:
        rate = float(data.get("stretchRate", 1.0))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="stretchRate must be a number")

    new_track, new_regions = apply_stretch_to_track(
        track, regions, str(data.get("regionId", "")), rate, window_size=settings.stretch_window
    )
    return {
        "audio": _encode_audio(new_track, data),
        "regions": [r.to_dict() for r in new_regions],
    }


@app.post("/grid/snap")
async def grid_snap(data: dict):
    try:
        time_s = float(data.get("time", 0.0))
        bpm = float(data.get("bpm", 120.0))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="time and bpm must be numbers")
    resolution = data.get("resolution", "1/4")
    return {
        "time": snap_to_grid(time_s, bpm, resolution),
        "step": grid_step_seconds(bpm, resolution),
    }


@app.post("/export/bounce")
async def export_bounce(data: dict):
    """
    Generates a ZIP file with every region realized as WAV.
    """
    track = _decode_audio(data)
    regions = _region_list(data)
    zip_bytes = Exporter.create_bounce_zip(
        track,
        regions,
        name=str(data.get("name", "Bounce")),
        float32=bool(data.get("float32", settings.wav_float32)),
        window_size=settings.stretch_window,
    )
    return Response(
        content=zip_bytes,
        media_type="application/zip",
        headers={"Content-Disposition": "attachment; filename=bounce.zip"}
    )


if __name__ == "__main__":
    uvicorn.run("engine.main:app", host="0.0.0.0", port=8000, reload=True)
