import math
import time

import numpy as np
import pytest

from gesture import FINGERTIPS, GestureSource, hand_openness


def _hand(spread_px, wrist=(320.0, 400.0)):
    lms = [wrist for _ in range(21)]
    for k, idx in enumerate(FINGERTIPS):
        a = math.pi * (0.2 + 0.15 * k)
        lms[idx] = (wrist[0] + spread_px * math.cos(a), wrist[1] - spread_px * math.sin(a))
    return lms


class FakeCapture:
    def __init__(self, ok=True):
        self.ok = ok
        self.released = False
        self.reads = 0

    def read(self):
        self.reads += 1
        if not self.ok:
            return False, None
        return True, np.zeros((48, 64, 3), dtype=np.uint8)

    def release(self):
        self.released = True


class FakeTracker:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.closed = False

    def process(self, frame):
        if self.error:
            raise self.error
        return self.result

    def close(self):
        self.closed = True


@pytest.mark.parametrize("spread, expected", [
    (50.0, 0.0), (150.0, 0.5), (250.0, 1.0), (10.0, 0.0), (400.0, 1.0),
])
def test_hand_openness(spread, expected):
    assert hand_openness(_hand(spread)) == pytest.approx(expected, abs=1e-9)


def test_hand_openness_custom_range():
    assert hand_openness(_hand(0.3), min_px=0.1, max_px=0.5) == pytest.approx(0.5)


def test_sample_uses_first_hand():
    result = {"hands": [{"landmarks_px": _hand(200.0)}, {"landmarks_px": _hand(50.0)}]}
    src = GestureSource(FakeCapture(), FakeTracker(result))
    assert src.sample_once() == pytest.approx(0.75)


@pytest.mark.parametrize("capture, tracker", [
    (FakeCapture(), FakeTracker(None)),
    (FakeCapture(), FakeTracker({"hands": []})),
    (FakeCapture(ok=False), FakeTracker({"hands": [{"landmarks_px": _hand(250.0)}]})),
    (FakeCapture(), FakeTracker(error=RuntimeError("model crashed"))),
])
def test_no_signal_gives_neutral(capture, tracker):
    src = GestureSource(capture, tracker)
    assert src.sample_once() == 0.5


def test_neutral_from_params():
    src = GestureSource(FakeCapture(), FakeTracker(None), params={"neutral_openness": 0.3})
    assert src.sample_once() == 0.3


def test_drain_returns_every_sample_in_order():
    src = GestureSource(FakeCapture(), FakeTracker(None))
    assert src.drain() == []
    src.publish(0.2)
    assert src.drain() == [0.2]
    assert src.drain() == []
    src.publish(0.4)
    src.publish(0.9)
    assert src.drain() == [0.4, 0.9]


class RaisingCapture(FakeCapture):
    def read(self):
        self.reads += 1
        raise RuntimeError("camera unplugged")


def _wait_for_samples(src, n, timeout=2.0):
    got = []
    deadline = time.monotonic() + timeout
    while len(got) < n and time.monotonic() < deadline:
        got.extend(src.drain())
        time.sleep(0.005)
    return got


@pytest.mark.parametrize("capture, tracker", [
    (RaisingCapture(), FakeTracker({"hands": [{"landmarks_px": _hand(200.0)}]})),
    (FakeCapture(), FakeTracker({"hands": [{"landmarks_px": [(0.0, 0.0)] * 5}]})),
])
def test_worker_survives_bad_frames(capture, tracker):
    src = GestureSource(capture, tracker, params={"gesture_interval_sec": 0.01})
    assert src.sample_once() == 0.5
    try:
        src.start()
        got = _wait_for_samples(src, 3)
        assert src.running
        assert len(got) >= 3
        assert all(v == 0.5 for v in got)
    finally:
        src.stop()
    assert not src.running


def test_worker_thread_publishes_and_releases():
    cap = FakeCapture()
    tracker = FakeTracker({"hands": [{"landmarks_px": _hand(250.0)}]})
    src = GestureSource(cap, tracker, params={"gesture_interval_sec": 0.01})
    with src:
        src.start()
        assert src.running
        got = _wait_for_samples(src, 1)
        assert got and got[0] == pytest.approx(1.0)
    assert not src.running
    assert cap.released
    assert tracker.closed

    with pytest.raises(RuntimeError):
        src.start()


def test_stop_is_idempotent():
    cap = FakeCapture()
    src = GestureSource(cap, FakeTracker(None))
    src.stop()
    src.stop()
    assert cap.released
