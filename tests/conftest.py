from __future__ import annotations

import numpy as np
import pytest
import soundfile as sf


def _tone(bin_index: int, window_size: int, length: int, amplitude: float = 1.0) -> np.ndarray:
    """Sinusoid that lands exactly on FFT bin *bin_index* of a *window_size* window."""
    n = np.arange(length)
    return amplitude * np.cos(2.0 * np.pi * bin_index * n / window_size)


@pytest.fixture
def write_wav(tmp_path):
    """Write int16 samples to a WAV file under tmp_path and return its path."""
    def _write(name: str, samples: np.ndarray, samplerate: int = 44100,
               subtype: str = "PCM_16") -> str:
        path = str(tmp_path / name)
        sf.write(path, np.asarray(samples), samplerate, subtype=subtype)
        return path
    return _write


@pytest.fixture
def band_track(write_wav):
    """Four 1024-sample segments: low tone, mid tone, high tone, silence.

    With band edges (4, 32, 128) and a 1024 window the segments render to
    red, green, blue and black.
    """
    n = 1024
    segments = [
        _tone(10, n, n, 10000.0),
        _tone(64, n, n, 10000.0),
        _tone(256, n, n, 10000.0),
        np.zeros(n),
    ]
    samples = np.round(np.concatenate(segments)).astype(np.int16)
    return write_wav("bands.wav", samples)


@pytest.fixture
def band_config():
    return {
        "window_size": 1024,
        "band_edges": [4, 32, 128],
        "width": 2,
        "height": 2,
        "output_width": 8,
        "output_height": 8,
    }


@pytest.fixture
def tone():
    """Factory for bin-aligned sinusoids, see :func:`_tone`."""
    return _tone
