from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

from .errors import ConfigError

PRESET_SCHEMA_VERSION = "1.0"

# Keys that are CLI-only and should not be saved in presets
_INTERNAL_KEYS = {"output_dir", "json"}


@dataclass
class ConfigFieldError:
    """A single validation error for one configuration field.

    Attributes:
        key:     The config key that failed validation.
        value:   The offending value.
        message: Human-readable explanation of what is wrong.
    """
    key: str
    value: Any
    message: str


@dataclass(frozen=True)
class ParamSpec:
    """Declarative specification for a single configuration parameter."""
    key: str
    type: type | tuple              # expected Python type(s)
    default: Any
    label: str                       # short label used in messages
    description: str = ""            # longer help text
    min: float | int | None = None   # inclusive lower bound
    max: float | int | None = None   # inclusive upper bound
    choices: list | None = None      # allowed string values
    item_type: type | None = None    # element type for list fields
    length: int | None = None        # exact length for list fields
    nullable: bool = False           # True if None is valid


def default_config() -> dict[str, Any]:
    """Returns the built-in default configuration."""
    return {
        "window_size": 16384,
        "width": 64,
        "height": 64,
        "output_width": 1024,
        "output_height": 1024,
        "channel_mode": "interleaved",
        "band_edges": [20, 250, 4000],
        "max_workers": None,
        "output_dir": None,
        "json": False,
    }


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """
    Merge multiple config dicts left-to-right.
    Later values override earlier ones; ``None`` never overrides a value
    that is already set.
    """
    result: dict[str, Any] = {}
    for cfg in configs:
        for k, v in cfg.items():
            if v is None and result.get(k) is not None:
                continue
            result[k] = list(v) if isinstance(v, list) else v
    return result


def load_preset(path: str) -> dict[str, Any]:
    """
    Load a JSON preset file. Returns a partial config dict.
    Raises ConfigError if the file cannot be read or parsed.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Preset file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in preset file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read preset file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Preset file must contain a JSON object, got {type(data).__name__}")

    # Metadata keys are informational, not config
    return {k: v for k, v in data.items() if k not in ("schema_version", "_description")}


def save_preset(config: dict[str, Any], path: str, *, description: str | None = None) -> None:
    """
    Save a config dict as a JSON preset file.
    CLI-only keys and values equal to the defaults are left out.
    """
    preset: dict[str, Any] = {"schema_version": PRESET_SCHEMA_VERSION}
    if description:
        preset["_description"] = description

    defaults = default_config()
    for k, v in config.items():
        if k in _INTERNAL_KEYS or k.startswith("_"):
            continue
        if k in defaults and defaults[k] == v:
            continue
        preset[k] = v

    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(preset, f, indent=4, ensure_ascii=False)
    except OSError as e:
        raise ConfigError(f"Cannot write preset file {path}: {e}") from e


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

RENDER_PARAMS: list[ParamSpec] = [
    ParamSpec(
        key="window_size", type=int, default=16384, min=2,
        label="Window size (samples)",
        description=(
            "Samples per analysis window, which is also the transform size. "
            "Half of it must exceed the upper band edge."
        ),
    ),
    ParamSpec(
        key="width", type=int, default=64, min=1,
        label="Grid width (pixels)",
    ),
    ParamSpec(
        key="height", type=int, default=64, min=1,
        label="Grid height (pixels)",
    ),
    ParamSpec(
        key="output_width", type=int, default=1024, min=1,
        label="Output width (pixels)",
        description="Width the grid is resized to before PNG encoding.",
    ),
    ParamSpec(
        key="output_height", type=int, default=1024, min=1,
        label="Output height (pixels)",
        description="Height the grid is resized to before PNG encoding.",
    ),
    ParamSpec(
        key="channel_mode", type=str, default="interleaved",
        choices=["interleaved", "mix"],
        label="Channel handling",
        description=(
            "'interleaved' reads multi-channel frames as one sample sequence "
            "in file order. 'mix' averages the channels of each frame."
        ),
    ),
    ParamSpec(
        key="band_edges", type=list, default=[20, 250, 4000],
        item_type=int, length=3,
        label="Band edges (bins)",
        description=(
            "First bin of the low, mid and high bands. The high band ends "
            "at window_size / 2."
        ),
    ),
    ParamSpec(
        key="max_workers", type=int, default=None, min=1, nullable=True,
        label="Worker threads",
        description="Concurrent transform workers. Empty means one per CPU.",
    ),
    ParamSpec(
        key="output_dir", type=str, default=None, nullable=True,
        label="Output directory",
    ),
    ParamSpec(
        key="json", type=bool, default=False,
        label="Write JSON report",
    ),
]


# ---------------------------------------------------------------------------
# Validation  (ParamSpec-driven)
# ---------------------------------------------------------------------------

def validate_param_values(
    params: list[ParamSpec],
    values: dict[str, Any],
) -> list[ConfigFieldError]:
    """Validate *values* against a list of :class:`ParamSpec` definitions.

    Only keys present in *values* are checked; missing keys are not errors
    (they will receive their default).
    """
    errors: list[ConfigFieldError] = []

    for spec in params:
        if spec.key not in values:
            continue

        value = values[spec.key]

        if value is None:
            if spec.nullable:
                continue
            errors.append(ConfigFieldError(
                spec.key, value, f"{spec.label} must not be empty.",
            ))
            continue

        # bool is an int subclass; never accept it for numeric fields
        expected = spec.type
        if expected is not bool and isinstance(value, bool):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, got boolean.",
            ))
            continue
        if not isinstance(value, expected):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, "
                f"got {type(value).__name__}.",
            ))
            continue

        if spec.choices is not None and value not in spec.choices:
            opts = ", ".join(repr(c) for c in spec.choices)
            errors.append(ConfigFieldError(
                spec.key, value, f"{spec.label} must be one of {opts}.",
            ))
            continue

        if isinstance(value, (int, float)):
            if spec.min is not None and value < spec.min:
                errors.append(ConfigFieldError(
                    spec.key, value, f"{spec.label} must be at least {spec.min}.",
                ))
                continue
            if spec.max is not None and value > spec.max:
                errors.append(ConfigFieldError(
                    spec.key, value, f"{spec.label} must be at most {spec.max}.",
                ))
                continue

        if isinstance(value, list):
            if spec.length is not None and len(value) != spec.length:
                errors.append(ConfigFieldError(
                    spec.key, value,
                    f"{spec.label} must have exactly {spec.length} items.",
                ))
                continue
            if spec.item_type is not None:
                for i, item in enumerate(value):
                    if isinstance(item, bool) or not isinstance(item, spec.item_type):
                        errors.append(ConfigFieldError(
                            spec.key, value,
                            f"{spec.label}[{i}] must be "
                            f"{spec.item_type.__name__}, "
                            f"got {type(item).__name__}.",
                        ))
                        break

    return errors


def _band_errors(config: dict[str, Any]) -> list[ConfigFieldError]:
    """Cross-field checks between ``band_edges`` and ``window_size``."""
    edges = config.get("band_edges")
    window_size = config.get("window_size")
    if not isinstance(edges, list) or len(edges) != 3:
        return []
    if not all(isinstance(e, int) and not isinstance(e, bool) for e in edges):
        return []

    low, mid, high = edges
    if not 0 <= low < mid < high:
        return [ConfigFieldError(
            "band_edges", edges,
            "Band edges (bins) must be non-negative and strictly increasing.",
        )]
    if isinstance(window_size, int) and not isinstance(window_size, bool):
        if window_size // 2 <= high:
            return [ConfigFieldError(
                "window_size", window_size,
                f"Window size (samples) must be larger than {2 * high + 1} "
                f"so the high band starting at bin {high} is not empty.",
            )]
    return []


def _grid_errors(config: dict[str, Any]) -> list[ConfigFieldError]:
    """Pixel placement needs a square grid."""
    if config.get("width") != config.get("height"):
        return [ConfigFieldError(
            "height", config.get("height"),
            f"Grid height must equal grid width ({config.get('width')}).",
        )]
    return []


def validate_config_fields(config: dict[str, Any]) -> list[ConfigFieldError]:
    """Validate a flat config dict.  Returns structured errors, never raises."""
    errors = validate_param_values(RENDER_PARAMS, config)
    if not errors:
        errors.extend(_grid_errors(config))
        errors.extend(_band_errors(config))
    return errors


def validate_config(config: dict[str, Any]) -> None:
    """Validate a flat config dict.

    Raises :class:`ConfigError` listing every invalid field.
    """
    errors = validate_config_fields(config)
    if errors:
        lines = [e.message for e in errors]
        raise ConfigError(
            "Configuration has invalid values:\n  • " + "\n  • ".join(lines)
        )


def _type_label(t) -> str:
    """Human-readable label for an expected type or tuple of types."""
    if isinstance(t, tuple):
        return " or ".join(x.__name__ for x in t)
    return t.__name__
