from __future__ import annotations

import os

import numpy as np
import pytest

from wavprintlib.audio import discover_audio_files, load_signal, sample_dtype
from wavprintlib.errors import DecodeError


def test_load_mono_16bit(write_wav):
    data = np.array([0, 1, -1, 32767, -32768, 1234], dtype=np.int16)
    path = write_wav("mono.wav", data, samplerate=8000)

    signal = load_signal(path)
    assert len(signal) == 6
    assert signal.samplerate == 8000
    assert signal.channels == 1
    assert signal.frames == 6
    assert signal.bitdepth == "16-bit"
    assert signal.samples.dtype == np.complex128
    assert not signal.samples.flags.writeable
    np.testing.assert_array_equal(signal.samples.real, data.astype(np.float64))
    assert not np.any(signal.samples.imag)


def test_stereo_interleaved_keeps_file_order(write_wav):
    frames = np.array([[1, 2], [3, 4], [5, 6]], dtype=np.int16)
    path = write_wav("stereo.wav", frames)

    signal = load_signal(path)
    assert signal.channels == 2
    assert signal.frames == 3
    np.testing.assert_array_equal(signal.samples.real, [1, 2, 3, 4, 5, 6])


def test_stereo_mix_averages_frames(write_wav):
    frames = np.array([[1, 2], [3, 4], [5, 6]], dtype=np.int16)
    path = write_wav("stereo.wav", frames)

    signal = load_signal(path, channel_mode="mix")
    np.testing.assert_array_equal(signal.samples.real, [1.5, 3.5, 5.5])


def test_missing_file_is_decode_error(tmp_path):
    with pytest.raises(DecodeError):
        load_signal(str(tmp_path / "nope.wav"))


def test_garbage_file_is_decode_error(tmp_path):
    path = tmp_path / "broken.wav"
    path.write_bytes(b"definitely not a RIFF header" * 10)
    with pytest.raises(DecodeError) as excinfo:
        load_signal(str(path))
    assert excinfo.value.stage == "decode"


def test_empty_file_is_decode_error(write_wav):
    path = write_wav("empty.wav", np.zeros(0, dtype=np.int16))
    with pytest.raises(DecodeError):
        load_signal(path)


def test_unknown_channel_mode(write_wav):
    path = write_wav("mono.wav", np.zeros(4, dtype=np.int16))
    with pytest.raises(ValueError):
        load_signal(path, channel_mode="left")


def test_sample_dtype_by_subtype():
    assert sample_dtype("PCM_16") == "int16"
    assert sample_dtype("PCM_24") == "int32"
    assert sample_dtype("PCM_32") == "int32"
    assert sample_dtype("FLOAT") == "int16"


def test_discover_audio_files(tmp_path, write_wav):
    write_wav("b.wav", np.zeros(4, dtype=np.int16))
    write_wav("a.flac", np.zeros(4, dtype=np.int16), subtype="PCM_16")
    (tmp_path / "notes.txt").write_text("x")
    found = discover_audio_files(str(tmp_path))
    assert [os.path.basename(p) for p in found] == ["a.flac", "b.wav"]
