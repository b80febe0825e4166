"""Concurrent transform-and-reduce stage.

One task per pixel runs on a thread pool.  Admission is bounded by a
semaphore sized to the worker ceiling, so at most ``max_workers`` windows
are in flight at once and the admitting thread blocks instead of
spinning.  Results travel to the single consumer through a
:class:`PixelChannel`.
"""

from __future__ import annotations

import os
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .errors import TransformFailure
from .log import dbg
from .models import Pixel, SignalBuffer, WindowPlan
from .spectral import SpectralReducer


@dataclass(frozen=True)
class _Failure:
    index: int
    error: BaseException


_CLOSED = object()


class PixelChannel:
    """Multi-producer, single-consumer queue of pixel results."""

    def __init__(self) -> None:
        self._queue: queue.Queue = queue.Queue()
        self._closed = False

    def send(self, pixel: Pixel) -> None:
        self._queue.put(pixel)

    def fail(self, index: int, error: BaseException) -> None:
        self._queue.put(_Failure(index, error))

    def close(self) -> None:
        """Signal that no more results will be sent."""
        self._queue.put(_CLOSED)

    def receive(self, timeout: float | None = None) -> Pixel | None:
        """Block for the next pixel.

        Returns ``None`` once the channel is closed.  Raises
        :class:`TransformFailure` when a worker reported an error, and
        :class:`queue.Empty` if *timeout* expires.
        """
        if self._closed:
            return None
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._closed = True
            return None
        if isinstance(item, _Failure):
            raise TransformFailure(
                f"pixel {item.index}: {type(item.error).__name__}: {item.error}",
                index=item.index,
            ) from item.error
        return item


class WorkerPool:
    def __init__(self, max_workers: int | None = None):
        self.max_workers = max_workers or os.cpu_count() or 1
        self._cancel = threading.Event()
        self._admission: threading.Thread | None = None

    def run(
        self,
        buffer: SignalBuffer,
        plan: WindowPlan,
        reducer: SpectralReducer,
    ) -> PixelChannel:
        """Start rendering every pixel of *plan* and return the result channel.

        The channel is closed after the last task finishes, or after the
        in-flight tasks drain when the run was cancelled.
        """
        if self._admission is not None:
            raise RuntimeError("WorkerPool.run() may only be called once")
        if len(buffer) < plan.span:
            raise ValueError(
                f"plan spans {plan.span} samples, signal has {len(buffer)}"
            )

        channel = PixelChannel()
        self._admission = threading.Thread(
            target=self._admit,
            args=(buffer, plan, reducer, channel),
            name="wavprint-admit",
            daemon=True,
        )
        self._admission.start()
        return channel

    def cancel(self) -> None:
        """Stop issuing new windows.  Tasks already running finish."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def finished(self) -> bool:
        """True once admission has ended and the channel is closed."""
        return self._admission is not None and not self._admission.is_alive()

    def join(self, timeout: float | None = None) -> None:
        if self._admission is not None:
            self._admission.join(timeout)

    # ------------------------------------------------------------------

    def _admit(self, buffer, plan, reducer, channel: PixelChannel) -> None:
        slots = threading.BoundedSemaphore(self.max_workers)
        t0 = time.perf_counter()
        issued = 0
        try:
            with ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="wavprint-pixel",
            ) as pool:
                for index in range(plan.pixel_count):
                    slots.acquire()
                    if self._cancel.is_set():
                        slots.release()
                        break
                    future = pool.submit(
                        self._render_pixel, buffer, plan, reducer, index, channel,
                    )
                    future.add_done_callback(lambda _f: slots.release())
                    issued += 1
        except Exception as e:
            self._cancel.set()
            channel.fail(issued, e)
        finally:
            channel.close()
        dt = (time.perf_counter() - t0) * 1000
        dbg(f"{issued}/{plan.pixel_count} windows with {self.max_workers} "
            f"workers in {dt:.1f} ms")

    def _render_pixel(self, buffer, plan, reducer, index: int, channel: PixelChannel) -> None:
        if self._cancel.is_set():
            return
        try:
            window = buffer.window(plan.offset(index), plan.window_size)
            color = reducer.reduce(window)
        except Exception as e:
            self._cancel.set()
            channel.fail(index, e)
            return
        channel.send(Pixel(index=index, color=color))
