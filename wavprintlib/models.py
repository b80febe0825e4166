from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import numpy as np

from .errors import IncompleteImageError


class JobStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SignalBuffer:
    """A fully decoded track held as complex samples.

    Attributes:
        filepath:   Source path the samples were decoded from.
        samples:    1-D complex128 array, imaginary part zero.  Read-only
                    once :func:`~wavprintlib.audio.load_signal` returns, so
                    worker threads share it without locking.
        samplerate: Frames per second of the source.
        channels:   Channel count of the source file.
        frames:     Frame count of the source file.
        bitdepth:   Human-readable bit depth, e.g. "16-bit".
        subtype:    soundfile subtype string, e.g. "PCM_16".
    """
    filepath: str
    samples: np.ndarray
    samplerate: int
    channels: int
    frames: int
    bitdepth: str
    subtype: str

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_sec(self) -> float:
        if self.samplerate <= 0:
            return 0.0
        return self.frames / self.samplerate

    def window(self, start: int, size: int) -> np.ndarray:
        """Return a private copy of ``samples[start:start + size]``."""
        if start < 0 or size < 1 or start + size > len(self):
            raise ValueError(
                f"window [{start}, {start + size}) outside signal of "
                f"length {len(self)}"
            )
        return self.samples[start:start + size].copy()


@dataclass(frozen=True)
class WindowPlan:
    window_size: int
    step: int
    pixel_count: int

    def offset(self, index: int) -> int:
        """First sample of the window rendered into pixel *index*."""
        return index * self.step

    @property
    def span(self) -> int:
        """Samples covered from the first window start to the last window end."""
        return self.step * (self.pixel_count - 1) + self.window_size

    @property
    def overlapping(self) -> bool:
        return self.pixel_count > 1 and self.step < self.window_size


@dataclass(frozen=True)
class BandPeaks:
    low: float
    mid: float
    high: float

    @property
    def scale(self) -> float:
        return max(self.low, self.mid, self.high)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.low, self.mid, self.high)


@dataclass(frozen=True)
class Pixel:
    index: int
    color: tuple[int, int, int]


class ImageGrid:
    """Square RGB grid filled one pixel index at a time.

    Pixel index ``i`` lands in column ``i % height`` of row ``i // height``.
    The column index is bounded by ``height`` and the row index by
    ``width``, so the layout only fits a square grid.  Every cell must be
    written exactly once.
    """

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError(f"grid size must be positive, got {width}x{height}")
        if width != height:
            raise ValueError(f"grid must be square, got {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)
        self.written = np.zeros((height, width), dtype=bool)
        self._count = 0

    def __len__(self) -> int:
        return self.width * self.height

    def position(self, index: int) -> tuple[int, int]:
        """Return the ``(x, y)`` image coordinate of pixel *index*."""
        return index % self.height, index // self.height

    def place(self, index: int, color: tuple[int, int, int]) -> None:
        if not 0 <= index < len(self):
            raise IncompleteImageError(
                f"pixel index {index} outside grid of {len(self)} cells"
            )
        x, y = self.position(index)
        if self.written[y, x]:
            raise IncompleteImageError(f"pixel index {index} delivered twice")
        self.pixels[y, x] = color
        self.written[y, x] = True
        self._count += 1

    @property
    def filled(self) -> int:
        return self._count

    @property
    def is_complete(self) -> bool:
        return self._count == len(self)


@dataclass
class RenderResult:
    source_path: str
    signal: SignalBuffer
    plan: WindowPlan
    grid: ImageGrid
    png: bytes
    output_size: tuple[int, int]
    output_path: str | None = None
    elapsed_sec: float = 0.0
    timings: dict[str, float] = field(default_factory=dict)


@dataclass
class RenderJob:
    job_id: str
    source_path: str
    config: dict[str, Any]
    output_path: str | None = None
    status: JobStatus = JobStatus.PENDING
    priority: int = 0
    result: RenderResult | None = None
    error: str | None = None
    error_stage: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
