from __future__ import annotations

import json
import os
from datetime import datetime
from typing import Any

from .errors import EncodeError
from .models import RenderResult

REPORT_SCHEMA_VERSION = "1.0"


def build_report(result: RenderResult, config: dict[str, Any]) -> dict[str, Any]:
    """Describe a finished render as a JSON-serializable dict."""
    signal = result.signal
    plan = result.plan
    return {
        "schema_version": REPORT_SCHEMA_VERSION,
        "timestamp": datetime.now().isoformat(),
        "source": {
            "path": os.path.abspath(result.source_path),
            "samplerate": int(signal.samplerate),
            "channels": int(signal.channels),
            "bitdepth": signal.bitdepth,
            "frames": int(signal.frames),
            "samples": len(signal),
            "duration_sec": round(float(signal.duration_sec), 3),
        },
        "plan": {
            "window_size": plan.window_size,
            "step": plan.step,
            "pixel_count": plan.pixel_count,
            "span": plan.span,
            "overlapping": plan.overlapping,
        },
        "config": {
            "channel_mode": config.get("channel_mode", "interleaved"),
            "band_edges": list(config.get("band_edges", [])),
            "normalization": "pixel",
        },
        "image": {
            "grid": [result.grid.width, result.grid.height],
            "output": list(result.output_size),
            "path": os.path.abspath(result.output_path) if result.output_path else None,
            "png_bytes": len(result.png),
        },
        "timing": {
            "elapsed_sec": round(result.elapsed_sec, 4),
            **{k: round(v, 4) for k, v in result.timings.items()},
        },
    }


def save_json(result: RenderResult, config: dict[str, Any], output_path: str) -> None:
    """Write the :func:`build_report` sidecar for automation tools.

    Raises :class:`EncodeError` if the file cannot be written.
    """
    report = build_report(result, config)
    try:
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=4, ensure_ascii=False)
    except OSError as e:
        raise EncodeError(f"Cannot write report {output_path}: {e}") from e
