from __future__ import annotations

from solar_tilt.core.frames import FrameLoop


def test_callbacks_requested_during_a_frame_run_next_frame() -> None:
    loop = FrameLoop()
    calls = []

    def first():
        calls.append(("first", loop.frame_count))
        loop.request_frame(lambda: calls.append(("second", loop.frame_count)))

    loop.request_frame(first)
    assert loop.tick() == 1
    assert calls == [("first", 1)]
    assert loop.pending == 1
    loop.tick()
    assert calls == [("first", 1), ("second", 2)]


def test_cancelled_callbacks_do_not_run() -> None:
    loop = FrameLoop()
    calls = []
    handle = loop.request_frame(lambda: calls.append("x"))
    assert loop.cancel_frame(handle)
    assert not loop.cancel_frame(handle)
    assert not loop.cancel_frame(None)
    assert loop.run_until_idle() == 0
    assert calls == []


def test_run_until_idle_respects_frame_limit() -> None:
    loop = FrameLoop()

    def forever():
        loop.request_frame(forever)

    loop.request_frame(forever)
    assert loop.run_until_idle(max_frames=10) == 10
    assert loop.pending == 1
