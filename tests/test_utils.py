from __future__ import annotations

import os
import threading

from wavprintlib import log
from wavprintlib.events import EventBus
from wavprintlib.utils import format_duration, output_filename, output_path_for


def test_output_filename():
    assert output_filename("/music/song.final.wav", 64, 32) == "song.final_64x32.png"


def test_output_path_for():
    src = os.path.join("music", "song.wav")
    assert output_path_for(src, 8, 8) == os.path.join("music", "song_8x8.png")
    assert output_path_for(src, 8, 8, "out") == os.path.join("out", "song_8x8.png")


def test_format_duration():
    assert format_duration(0) == "00:00.000"
    assert format_duration(83.25) == "01:23.250"


def test_event_bus_subscribe_and_unsubscribe():
    bus = EventBus()
    received = []

    def handler(**data):
        received.append(data)

    assert not bus.has_subscribers("pixel.complete")
    bus.subscribe("pixel.complete", handler)
    assert bus.has_subscribers("pixel.complete")
    bus.emit("pixel.complete", index=3)
    bus.unsubscribe("pixel.complete", handler)
    bus.emit("pixel.complete", index=4)
    assert received == [{"index": 3}]


def test_dbg_is_silent_unless_enabled(monkeypatch, capsys):
    monkeypatch.setattr(log, "_ENABLED", False)
    log.dbg("hidden")
    assert capsys.readouterr().err == ""


def test_dbg_names_caller_and_worker_thread(monkeypatch, capsys):
    monkeypatch.setattr(log, "_ENABLED", True)

    class Planner:
        def trace(self):
            log.dbg("step 4")

    Planner().trace()
    worker = threading.Thread(target=lambda: log.dbg("window 3"), name="wavprint-pixel_0")
    worker.start()
    worker.join()

    lines = capsys.readouterr().err.splitlines()
    assert lines[0].endswith(" Planner] step 4")
    assert lines[1].endswith(" test_utils wavprint-pixel_0] window 3")
