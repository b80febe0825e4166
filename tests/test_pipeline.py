from __future__ import annotations

import os

import numpy as np
import pytest
from PIL import Image

from wavprintlib.errors import (
    ConfigError,
    DecodeError,
    InsufficientSignalError,
    TransformFailure,
)
from wavprintlib.events import EventBus
from wavprintlib.pipeline import Pipeline


def test_band_track_renders_expected_colors(band_track, band_config, tmp_path):
    out = str(tmp_path / "out" / "bands_2x2.png")
    result = Pipeline(band_config).render(band_track, out)

    assert result.plan.window_size == 1024
    assert result.plan.step == 1024
    assert result.grid.is_complete

    pixels = result.grid.pixels
    # indices 0, 1 fill the first row left to right
    assert tuple(pixels[0, 0]) == (255, 0, 0)
    assert tuple(pixels[0, 1]) == (0, 255, 0)
    assert tuple(pixels[1, 0]) == (0, 0, 255)
    assert tuple(pixels[1, 1]) == (0, 0, 0)

    assert os.path.isfile(out)
    with Image.open(out) as image:
        assert image.size == (8, 8)
    assert result.output_size == (8, 8)
    assert set(result.timings) == {"load", "transform", "encode"}


def test_render_is_deterministic_across_worker_counts(write_wav, tmp_path):
    rng = np.random.default_rng(42)
    samples = rng.integers(-20000, 20000, size=60_000).astype(np.int16)
    path = write_wav("noise.wav", samples)
    config = {
        "window_size": 1024, "band_edges": [4, 32, 128],
        "width": 6, "height": 6, "output_width": 60, "output_height": 60,
    }

    single = Pipeline(config, max_workers=1).render(path)
    many = Pipeline(config, max_workers=8).render(path)
    again = Pipeline(config, max_workers=8).render(path)
    np.testing.assert_array_equal(single.grid.pixels, many.grid.pixels)
    assert single.png == many.png == again.png
    assert single.output_path is None


def test_events_are_emitted(band_track, band_config):
    bus = EventBus()
    seen = {"pixels": [], "other": []}
    bus.subscribe("pixel.complete",
                  lambda index, completed, total: seen["pixels"].append((completed, total)))
    for name in ("signal.loaded", "plan.ready", "image.assembled"):
        bus.subscribe(name, lambda _name=name, **data: seen["other"].append(_name))

    Pipeline(band_config, event_bus=bus).render(band_track)
    assert seen["pixels"] == [(1, 4), (2, 4), (3, 4), (4, 4)]
    assert seen["other"] == ["signal.loaded", "plan.ready", "image.assembled"]


def test_short_signal_fails_before_workers(write_wav, band_config, tmp_path):
    path = write_wav("short.wav", np.ones(1000, dtype=np.int16))
    out = str(tmp_path / "short.png")
    with pytest.raises(InsufficientSignalError):
        Pipeline(band_config).render(path, out)
    assert not os.path.exists(out)


def test_missing_input(band_config, tmp_path):
    with pytest.raises(DecodeError):
        Pipeline(band_config).render(str(tmp_path / "missing.wav"))


def test_worker_failure_writes_nothing(band_track, band_config, tmp_path, monkeypatch):
    pipeline = Pipeline(band_config)

    def explode(window):
        raise ArithmeticError("bad window")

    monkeypatch.setattr(pipeline.reducer, "reduce", explode)
    out = str(tmp_path / "never.png")
    with pytest.raises(TransformFailure) as excinfo:
        pipeline.render(band_track, out)
    assert excinfo.value.stage == "transform"
    assert not os.path.exists(out)


def test_invalid_config_is_rejected():
    with pytest.raises(ConfigError):
        Pipeline({"window_size": 4096})
    with pytest.raises(ConfigError):
        Pipeline({"width": -3})
    with pytest.raises(ConfigError):
        Pipeline({"width": 6, "height": 5})


def test_single_pixel_render(band_track, band_config):
    config = dict(band_config, width=1, height=1, output_width=1, output_height=1)
    result = Pipeline(config).render(band_track)
    assert result.plan.step == 0
    assert tuple(result.grid.pixels[0, 0]) == (255, 0, 0)
