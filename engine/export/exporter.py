import zipfile
import io
import os
import json
from datetime import datetime
from typing import Sequence

from engine.core.types import Region, SampleBuffer
from engine.core.io import AudioIO
from engine.qc.qc import analyze
from engine.regions.render import realize_region


def _entry_name(region_id: str, index: int, used: set) -> str:
    """
    Zip-safe file name for a region: directory parts are dropped and
    repeated ids get the region's index appended.
    """
    stem = os.path.basename(str(region_id).replace("\\", "/")).strip()
    if stem in ("", ".", ".."):
        stem = f"region_{index}"
    name = f"{stem}.wav"
    suffix = index
    while name in used:
        name = f"{stem}_{suffix}.wav"
        suffix += 1
    used.add(name)
    return name


class Exporter:
    @staticmethod
    def create_bounce_zip(
        track: SampleBuffer,
        regions: Sequence[Region],
        name: str = "Bounce",
        float32: bool = False,
        **stretch_options,
    ) -> bytes:
        """
        Realize every region of track and pack them as:
          bounce_info.json  - name, created_at, regions (wire dicts) and per-region QC
          <region id>.wav   - one file per region
        stretch_options (window_size, analysis_hop, search_radius) go to realize_region.
        """
        buffer = io.BytesIO()

        with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zip_file:
            entries = []
            used = set()
            for index, region in enumerate(regions):
                audio = realize_region(region, track, **stretch_options)
                file_name = _entry_name(region.id, index, used)
                zip_file.writestr(file_name, AudioIO.to_bytes(audio, float32=float32))
                entries.append({
                    "region": region.to_dict(),
                    "file": file_name,
                    "qc": analyze(audio),
                })

            meta = {
                "name": name,
                "created_at": datetime.now().isoformat(),
                "sample_rate": track.sample_rate,
                "format": "float32" if float32 else "pcm16",
                "regions": entries,
            }
            zip_file.writestr("bounce_info.json", json.dumps(meta, indent=2))

        return buffer.getvalue()
