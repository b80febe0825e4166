from ._version import __version__
from .errors import (
    WavprintError,
    ConfigError,
    DecodeError,
    InsufficientSignalError,
    TransformFailure,
    IncompleteImageError,
    EncodeError,
)
from .models import (
    SignalBuffer,
    WindowPlan,
    BandPeaks,
    Pixel,
    ImageGrid,
    RenderResult,
    RenderJob,
    JobStatus,
)
from .audio import load_signal
from .planner import plan_windows
from .spectral import SpectralReducer
from .workers import WorkerPool, PixelChannel
from .assembler import collect_pixels
from .pipeline import Pipeline
from .queue import RenderQueue
from .config import (
    default_config,
    merge_configs,
    validate_config,
    validate_config_fields,
    load_preset,
    save_preset,
    ConfigFieldError,
    ParamSpec,
    RENDER_PARAMS,
)
from .reports import build_report, save_json
from .events import EventBus

__all__ = [
    "__version__",
    "WavprintError",
    "ConfigError",
    "DecodeError",
    "InsufficientSignalError",
    "TransformFailure",
    "IncompleteImageError",
    "EncodeError",
    "SignalBuffer",
    "WindowPlan",
    "BandPeaks",
    "Pixel",
    "ImageGrid",
    "RenderResult",
    "RenderJob",
    "JobStatus",
    "load_signal",
    "plan_windows",
    "SpectralReducer",
    "WorkerPool",
    "PixelChannel",
    "collect_pixels",
    "Pipeline",
    "RenderQueue",
    "default_config",
    "merge_configs",
    "validate_config",
    "validate_config_fields",
    "load_preset",
    "save_preset",
    "ConfigFieldError",
    "ParamSpec",
    "RENDER_PARAMS",
    "build_report",
    "save_json",
    "EventBus",
]
