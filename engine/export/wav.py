"""
RIFF/WAVE encoder: canonical 44-byte header + interleaved little-endian samples.
16-bit integer PCM (format tag 1) or 32-bit float (format tag 3).
"""
import struct
from dataclasses import dataclass

import numpy as np

from engine.core.types import SampleBuffer

WAV_MIME_TYPE = "audio/wav"
HEADER_SIZE = 44

FORMAT_PCM = 1
FORMAT_IEEE_FLOAT = 3


@dataclass(frozen=True)
class WavBlob:
    data: bytes
    mime_type: str = WAV_MIME_TYPE


def _header(channels: int, sample_rate: int, frames: int, bytes_per_sample: int, format_tag: int) -> bytes:
    block_align = channels * bytes_per_sample
    byte_rate = sample_rate * block_align
    data_size = frames * block_align
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF", 36 + data_size, b"WAVE",
        b"fmt ", 16, format_tag, channels, sample_rate, byte_rate, block_align, bytes_per_sample * 8,
        b"data", data_size,
    )


def encode_wav(buffer: SampleBuffer, float32: bool = False) -> bytes:
    """
    Serialize buffer to WAV bytes.
    Non-finite samples become 0, everything is clamped to [-1, 1].
    PCM16 scales negatives by 0x8000 and the rest by 0x7fff, rounding half up.
    """
    # (frames, channels) so a C-order ravel interleaves
    x = buffer.samples.detach().cpu().numpy().astype(np.float64).T
    x = np.where(np.isfinite(x), x, 0.0)
    x = np.clip(x, -1.0, 1.0)

    if float32:
        payload = np.ascontiguousarray(x, dtype="<f4").tobytes()
        header = _header(buffer.channel_count, buffer.sample_rate, buffer.frame_count, 4, FORMAT_IEEE_FLOAT)
    else:
        scaled = np.where(x < 0, x * 0x8000, x * 0x7FFF)
        pcm = np.floor(scaled + 0.5).astype("<i2")
        payload = np.ascontiguousarray(pcm).tobytes()
        header = _header(buffer.channel_count, buffer.sample_rate, buffer.frame_count, 2, FORMAT_PCM)

    return header + payload


def encode_wav_blob(buffer: SampleBuffer, float32: bool = False) -> WavBlob:
    return WavBlob(encode_wav(buffer, float32=float32))
