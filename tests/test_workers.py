from __future__ import annotations

import threading
import time

import numpy as np
import pytest

from wavprintlib.assembler import collect_pixels
from wavprintlib.audio import signal_from_array
from wavprintlib.errors import TransformFailure
from wavprintlib.planner import plan_windows
from wavprintlib.spectral import SpectralReducer
from wavprintlib.workers import WorkerPool

EDGES = (2, 8, 16)
WINDOW = 64


@pytest.fixture
def signal():
    rng = np.random.default_rng(11)
    return signal_from_array(rng.integers(-2000, 2000, size=5000).astype(np.int16))


@pytest.fixture
def reducer():
    return SpectralReducer(EDGES)


def _render(signal, plan, reducer, max_workers, width, height):
    pool = WorkerPool(max_workers)
    channel = pool.run(signal, plan, reducer)
    try:
        return collect_pixels(channel, width, height, plan.pixel_count)
    finally:
        pool.join(timeout=10)


class _CountingReducer(SpectralReducer):
    def __init__(self):
        super().__init__(EDGES)
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def reduce(self, window):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.002)
        try:
            return super().reduce(window)
        finally:
            with self._lock:
                self.active -= 1


class _FailingReducer(SpectralReducer):
    def __init__(self, fail_on):
        super().__init__(EDGES)
        self._lock = threading.Lock()
        self.calls = 0
        self.fail_on = fail_on

    def reduce(self, window):
        with self._lock:
            self.calls += 1
            call = self.calls
        if call == self.fail_on:
            raise FloatingPointError("transform blew up")
        return super().reduce(window)


def test_pool_matches_sequential_reduction(signal, reducer):
    plan = plan_windows(len(signal), WINDOW, 16)
    grid = _render(signal, plan, reducer, 4, 4, 4)
    for index in range(plan.pixel_count):
        expected = reducer.reduce(signal.window(plan.offset(index), WINDOW))
        x, y = grid.position(index)
        assert tuple(grid.pixels[y, x]) == expected


def test_result_independent_of_worker_count(signal, reducer):
    plan = plan_windows(len(signal), WINDOW, 36)
    single = _render(signal, plan, reducer, 1, 6, 6)
    many = _render(signal, plan, reducer, 8, 6, 6)
    np.testing.assert_array_equal(single.pixels, many.pixels)


def test_concurrency_is_bounded(signal):
    reducer = _CountingReducer()
    plan = plan_windows(len(signal), WINDOW, 36)
    _render(signal, plan, reducer, 3, 6, 6)
    assert 1 <= reducer.peak <= 3


def test_failure_is_fatal_and_does_not_deadlock(signal):
    reducer = _FailingReducer(fail_on=5)
    plan = plan_windows(len(signal), WINDOW, 49)
    pool = WorkerPool(2)
    channel = pool.run(signal, plan, reducer)
    with pytest.raises(TransformFailure) as excinfo:
        collect_pixels(channel, 7, 7, plan.pixel_count)
    assert isinstance(excinfo.value.__cause__, FloatingPointError)
    pool.join(timeout=10)
    assert pool.cancelled
    assert pool.finished
    assert reducer.calls < plan.pixel_count


def test_cancel_closes_channel(signal, reducer):
    plan = plan_windows(len(signal), WINDOW, 200)
    pool = WorkerPool(1)
    pool.cancel()
    channel = pool.run(signal, plan, reducer)
    pool.join(timeout=10)
    assert pool.finished
    while channel.receive(timeout=5) is not None:
        pass


def test_run_only_once(signal, reducer):
    plan = plan_windows(len(signal), WINDOW, 4)
    pool = WorkerPool(2)
    pool.run(signal, plan, reducer)
    with pytest.raises(RuntimeError):
        pool.run(signal, plan, reducer)
    pool.join(timeout=10)


def test_plan_larger_than_signal_is_rejected(signal, reducer):
    plan = plan_windows(len(signal) * 2, WINDOW, 4)
    with pytest.raises(ValueError):
        WorkerPool(2).run(signal, plan, reducer)


def test_default_ceiling_is_positive():
    assert WorkerPool().max_workers >= 1
