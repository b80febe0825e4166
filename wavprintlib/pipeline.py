from __future__ import annotations

import time
from typing import Any

from .assembler import collect_pixels
from .audio import load_signal
from .config import default_config, merge_configs, validate_config
from .events import EventBus
from .log import dbg
from .models import ImageGrid, Pixel, RenderResult, SignalBuffer, WindowPlan
from .planner import plan_windows
from .rendering import render_png, write_file
from .spectral import SpectralReducer
from .workers import WorkerPool


class Pipeline:
    """Renders audio files into band-peak fingerprint images.

    Stages run in order: decode the whole file, plan the windows, fan the
    pixels out to a :class:`WorkerPool`, collect them into an
    :class:`ImageGrid`, then resize and encode.  Any stage failure raises
    a :class:`~wavprintlib.errors.WavprintError` subclass and nothing is
    written.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        event_bus: EventBus | None = None,
        max_workers: int | None = None,
    ):
        self.config = merge_configs(default_config(), config or {})
        validate_config(self.config)
        self.event_bus = event_bus
        self.max_workers = max_workers or self.config.get("max_workers")

        self.width: int = self.config["width"]
        self.height: int = self.config["height"]
        self.window_size: int = self.config["window_size"]

        self.reducer = SpectralReducer()
        self.reducer.configure(self.config)
        self.reducer.check_window_size(self.window_size)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def output_size(self) -> tuple[int, int]:
        return (self.config["output_width"], self.config["output_height"])

    def _emit(self, event_type: str, **data):
        if self.event_bus:
            self.event_bus.emit(event_type, **data)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def load(self, source_path: str) -> SignalBuffer:
        t0 = time.perf_counter()
        signal = load_signal(source_path, self.config["channel_mode"])
        dt = (time.perf_counter() - t0) * 1000
        dbg(f"decoded {source_path}: {len(signal)} samples "
            f"({signal.channels} ch, {signal.bitdepth}) in {dt:.1f} ms")
        self._emit("signal.loaded", source=source_path, samples=len(signal),
                   samplerate=signal.samplerate, channels=signal.channels)
        return signal

    def plan(self, signal: SignalBuffer) -> WindowPlan:
        plan = plan_windows(len(signal), self.window_size, self.pixel_count)
        dbg(f"plan: window {plan.window_size}, step {plan.step}, "
            f"{plan.pixel_count} pixels, span {plan.span}/{len(signal)}")
        self._emit("plan.ready", window_size=plan.window_size, step=plan.step,
                   pixel_count=plan.pixel_count)
        return plan

    def assemble(self, signal: SignalBuffer, plan: WindowPlan) -> ImageGrid:
        """Run the worker pool over *plan* and collect the completed grid."""
        total = plan.pixel_count
        on_pixel = None
        if self.event_bus and self.event_bus.has_subscribers("pixel.complete"):
            def on_pixel(pixel: Pixel, received: int) -> None:
                self._emit("pixel.complete", index=pixel.index,
                           completed=received, total=total)

        t0 = time.perf_counter()
        pool = WorkerPool(self.max_workers)
        channel = pool.run(signal, plan, self.reducer)
        try:
            grid = collect_pixels(channel, self.width, self.height, total,
                                  on_pixel=on_pixel)
        except BaseException:
            pool.cancel()
            raise
        finally:
            pool.join()
        dt = (time.perf_counter() - t0) * 1000
        dbg(f"assembled {total} pixels in {dt:.1f} ms "
            f"({dt / total:.2f} ms/pixel avg)")
        self._emit("image.assembled", width=self.width, height=self.height)
        return grid

    def encode(self, grid: ImageGrid) -> bytes:
        t0 = time.perf_counter()
        png = render_png(grid, *self.output_size)
        dt = (time.perf_counter() - t0) * 1000
        dbg(f"encoded {self.output_size[0]}x{self.output_size[1]} PNG "
            f"({len(png)} bytes) in {dt:.1f} ms")
        return png

    # ------------------------------------------------------------------

    def render(self, source_path: str, output_path: str | None = None) -> RenderResult:
        """Render *source_path*; write the PNG to *output_path* if given."""
        timings: dict[str, float] = {}
        t_start = time.perf_counter()

        t0 = time.perf_counter()
        signal = self.load(source_path)
        timings["load"] = time.perf_counter() - t0

        t0 = time.perf_counter()
        plan = self.plan(signal)
        grid = self.assemble(signal, plan)
        timings["transform"] = time.perf_counter() - t0

        t0 = time.perf_counter()
        png = self.encode(grid)
        if output_path:
            write_file(png, output_path)
            self._emit("image.written", path=output_path, size=len(png))
        timings["encode"] = time.perf_counter() - t0

        return RenderResult(
            source_path=source_path,
            signal=signal,
            plan=plan,
            grid=grid,
            png=png,
            output_size=self.output_size,
            output_path=output_path,
            elapsed_sec=time.perf_counter() - t_start,
            timings=timings,
        )
