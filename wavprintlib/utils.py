from __future__ import annotations

import os


def output_filename(source_path: str, width: int, height: int) -> str:
    """``song.wav`` rendered on a 64x64 grid becomes ``song_64x64.png``."""
    stem = os.path.splitext(os.path.basename(source_path))[0]
    return f"{stem}_{width}x{height}.png"


def output_path_for(
    source_path: str,
    width: int,
    height: int,
    output_dir: str | None = None,
) -> str:
    """Place the derived output name in *output_dir*, or next to the source."""
    directory = output_dir if output_dir else os.path.dirname(source_path)
    return os.path.join(directory, output_filename(source_path, width, height))


def format_duration(seconds: float) -> str:
    if seconds <= 0:
        return "00:00.000"
    m = int(seconds // 60)
    s = int(seconds % 60)
    ms = int((seconds % 1) * 1000)
    return f"{m:02d}:{s:02d}.{ms:03d}"
