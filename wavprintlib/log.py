"""Stage tracing for wavprint renders.

The pipeline reports decode, plan, assembly and encode timings through
:func:`dbg`; the worker pool adds its admission summary.  Tracing is off
unless ``WP_DEBUG`` is ``1`` or ``true`` when the first line is logged,
and goes to stderr so it never mixes with the CLI's rich output::

    [14:02:11.348 Pipeline] plan: window 16384, step 17212, 4096 pixels, ...
    [14:02:12.901 WorkerPool wavprint-admit] 4096/4096 windows with 8 workers ...
"""

from __future__ import annotations

import inspect
import os
import sys
import threading
import time

_ENABLED: bool | None = None


def _is_enabled() -> bool:
    global _ENABLED
    if _ENABLED is None:
        val = os.environ.get("WP_DEBUG", "").strip().lower()
        _ENABLED = val in ("1", "true")
    return _ENABLED


def _caller_name() -> str:
    """Return the class name (or module name) of the caller's caller."""
    frame = inspect.currentframe()
    try:
        # _caller_name -> dbg -> actual caller
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return "?"
        self_obj = caller.f_locals.get("self")
        if self_obj is not None:
            return type(self_obj).__name__
        mod = caller.f_globals.get("__name__", "")
        return mod.rsplit(".", 1)[-1] if mod else "?"
    finally:
        del frame


def dbg(msg: str) -> None:
    """Print a timestamped debug line to stderr if ``WP_DEBUG`` is active.

    Format: ``[HH:MM:SS.mmm ClassName] message``.  Lines written from a
    worker thread carry the thread name after the caller name.
    """
    if not _is_enabled():
        return
    t = time.strftime("%H:%M:%S")
    ms = int((time.time() % 1) * 1000)
    name = _caller_name()
    current = threading.current_thread()
    thread = "" if current is threading.main_thread() else f" {current.name}"
    print(f"[{t}.{ms:03d} {name}{thread}] {msg}", file=sys.stderr, flush=True)
