from __future__ import annotations

import os

import numpy as np
import soundfile as sf

from .errors import DecodeError
from .models import SignalBuffer

AUDIO_EXTENSIONS = (".wav", ".aif", ".aiff", ".flac")

_SUBTYPE_MAP = {
    'PCM_S8': '8-bit',
    'PCM_U8': '8-bit',
    'PCM_16': '16-bit',
    'PCM_24': '24-bit',
    'PCM_32': '32-bit',
    'FLOAT': '32-bit Float',
    'DOUBLE': '64-bit Float',
}

# Integer width samples are decoded to.  Anything not listed (float and
# compressed subtypes) is decoded to int16.
_SAMPLE_DTYPE = {
    'PCM_24': 'int32',
    'PCM_32': 'int32',
}


def sample_dtype(subtype: str) -> str:
    return _SAMPLE_DTYPE.get(subtype, 'int16')


def to_complex(samples: np.ndarray) -> np.ndarray:
    """Widen integer samples to a read-only complex128 array (imag = 0)."""
    out = np.asarray(samples, dtype=np.float64).astype(np.complex128)
    out.flags.writeable = False
    return out


def load_signal(filepath: str, channel_mode: str = "interleaved") -> SignalBuffer:
    """Decode an entire audio file into a :class:`SignalBuffer`.

    ``channel_mode`` selects how multi-channel frames become one sample
    sequence: ``"interleaved"`` keeps every sample in file order,
    ``"mix"`` averages the channels of each frame.

    Raises :class:`DecodeError` if the file is missing, cannot be parsed,
    or holds no samples.
    """
    if channel_mode not in ("interleaved", "mix"):
        raise ValueError(f"Unknown channel mode: {channel_mode}")
    if not os.path.isfile(filepath):
        raise DecodeError(f"Audio file not found: {filepath}")

    try:
        info = sf.info(filepath)
        data, samplerate = sf.read(
            filepath, dtype=sample_dtype(info.subtype), always_2d=True,
        )
    except (sf.LibsndfileError, RuntimeError, OSError) as e:
        raise DecodeError(f"Cannot decode {filepath}: {e}") from e

    if data.size == 0:
        raise DecodeError(f"Audio file contains no samples: {filepath}")

    if channel_mode == "mix":
        flat = data.astype(np.float64).mean(axis=1)
    else:
        # Row-major flatten of (frames, channels) is the interleaved order
        flat = data.reshape(-1)

    return SignalBuffer(
        filepath=filepath,
        samples=to_complex(flat),
        samplerate=int(samplerate),
        channels=int(data.shape[1]),
        frames=int(data.shape[0]),
        bitdepth=_SUBTYPE_MAP.get(info.subtype, info.subtype),
        subtype=info.subtype,
    )


def signal_from_array(
    samples: np.ndarray,
    samplerate: int = 44100,
    filepath: str = "<memory>",
) -> SignalBuffer:
    """Wrap in-memory mono samples as a :class:`SignalBuffer`."""
    samples = np.asarray(samples)
    if samples.ndim != 1:
        raise ValueError("signal_from_array expects a 1-D sample array")
    return SignalBuffer(
        filepath=filepath,
        samples=to_complex(samples),
        samplerate=int(samplerate),
        channels=1,
        frames=int(samples.shape[0]),
        bitdepth="64-bit Float" if samples.dtype.kind == "f" else f"{samples.dtype.itemsize * 8}-bit",
        subtype="",
    )


def discover_audio_files(directory: str) -> list[str]:
    """Return sorted paths of the audio files directly inside *directory*."""
    return sorted(
        os.path.join(directory, name)
        for name in os.listdir(directory)
        if name.lower().endswith(AUDIO_EXTENSIONS)
        and os.path.isfile(os.path.join(directory, name))
    )
