from __future__ import annotations

from .errors import InsufficientSignalError
from .log import dbg
from .models import WindowPlan


def plan_windows(signal_length: int, window_size: int, pixel_count: int) -> WindowPlan:
    """Spread *pixel_count* equal windows evenly over the whole signal.

    The step is ``window_size + floor(deficit / (pixel_count - 1))`` with
    ``deficit = signal_length - window_size * pixel_count``, so the last
    window ends at or before the end of the signal whether the file is
    longer or shorter than ``window_size * pixel_count`` samples.  A
    negative deficit yields overlapping windows.

    A single pixel uses ``step = 0``.

    Raises :class:`InsufficientSignalError` when no valid plan exists.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be positive, got {window_size}")
    if pixel_count < 1:
        raise ValueError(f"pixel_count must be positive, got {pixel_count}")

    if signal_length < window_size:
        raise InsufficientSignalError(
            f"Signal has {signal_length} samples, fewer than one "
            f"{window_size}-sample window"
        )

    if pixel_count == 1:
        step = 0
    else:
        deficit = signal_length - window_size * pixel_count
        step = window_size + deficit // (pixel_count - 1)

    plan = WindowPlan(window_size=window_size, step=step, pixel_count=pixel_count)
    if step < 0 or plan.span > signal_length:
        raise InsufficientSignalError(
            f"Cannot place {pixel_count} windows of {window_size} samples "
            f"in a signal of {signal_length} samples"
        )

    if plan.overlapping:
        dbg(f"windows overlap: step {step} < window {window_size} "
            f"({pixel_count} pixels, {signal_length} samples)")
    return plan
