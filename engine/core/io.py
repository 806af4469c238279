import io
from typing import Union

import numpy as np
import soundfile as sf

from engine.core.types import SampleBuffer
from engine.export.wav import encode_wav

PathOrBytes = Union[str, bytes, bytearray]


class AudioIO:
    @staticmethod
    def load(source: PathOrBytes) -> SampleBuffer:
        """Decode an audio file (path or raw bytes) into a SampleBuffer."""
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(bytes(source))
        data, sample_rate = sf.read(source, dtype="float32", always_2d=True)
        # soundfile gives (frames, channels)
        return SampleBuffer.from_channels(list(np.ascontiguousarray(data.T)), sample_rate)

    @staticmethod
    def to_bytes(buffer: SampleBuffer, float32: bool = False) -> bytes:
        """Returns WAV bytes (for API responses)."""
        return encode_wav(buffer, float32=float32)

    @staticmethod
    def save_wav(buffer: SampleBuffer, path: str, float32: bool = False) -> None:
        """Saves a buffer to a WAV file."""
        with open(path, "wb") as f:
            f.write(encode_wav(buffer, float32=float32))
