# gesture.py
# Camera -> hand landmarks -> openness in [0, 1], sampled on a worker thread.
#
# The worker and the render loop never share mutable state: every sample goes
# through a queue and the render side drains it, so each sample reaches the
# smoothing filter exactly once.

from __future__ import annotations
import logging
import math
import queue
import threading
import time

import cv2

from params import DEFAULTS, pget

log = logging.getLogger(__name__)

WRIST = 0
FINGERTIPS = (4, 8, 12, 16, 20)  # thumb, index, middle, ring, pinky


def hand_openness(landmarks_px, min_px: float = DEFAULTS.openness_min_px,
                  max_px: float = DEFAULTS.openness_max_px) -> float:
    """
    Mean fingertip-to-wrist distance (pixels), mapped from [min_px, max_px]
    to [0, 1] and clamped. Fist ~ 0, spread hand ~ 1.
    """
    wx, wy = landmarks_px[WRIST][0], landmarks_px[WRIST][1]
    total = 0.0
    for idx in FINGERTIPS:
        x, y = landmarks_px[idx][0], landmarks_px[idx][1]
        total += math.hypot(x - wx, y - wy)
    avg = total / len(FINGERTIPS)

    span = float(max_px) - float(min_px)
    if span <= 0:
        return 1.0 if avg >= max_px else 0.0
    v = (avg - min_px) / span
    return 0.0 if v < 0.0 else 1.0 if v > 1.0 else v


def _first_landmarks(result):
    if result is None:
        return None
    if isinstance(result, dict):
        hands = result.get("hands") or []
    elif isinstance(result, (list, tuple)):
        hands = list(result)
    else:
        return None
    if not hands:
        return None
    hand = hands[0]
    if isinstance(hand, dict):
        return hand.get("landmarks_px", hand.get("landmarks"))
    return getattr(hand, "landmarks_px", None)


def open_camera(index=None, width=DEFAULTS.capture_width, height=DEFAULTS.capture_height, max_index=6):
    indices = [int(index)] if index is not None else range(max_index)
    for i in indices:
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
            ok, _ = cap.read()
            if ok:
                log.info("Using camera index %d", i)
                return cap
        cap.release()
    if index is not None:
        raise RuntimeError(f"Camera {index} is not available.")
    raise RuntimeError(f"No working camera found (0-{max_index - 1}).")


class GestureSource:
    """
    Owns a capture device and a hand tracker and turns frames into openness.

      with GestureSource.open(params) as source:
          source.start()
          ...
          for value in source.drain():   # every sample since the last drain
              ...

    No hand, a dropped frame or a tracker error all produce the neutral value
    so downstream smoothing keeps ticking.
    """

    def __init__(self, capture, tracker, params=None):
        self.capture = capture
        self.tracker = tracker
        self.interval = float(pget(params, "gesture_interval_sec", DEFAULTS.gesture_interval_sec))
        self.neutral = float(pget(params, "neutral_openness", DEFAULTS.neutral_openness))
        self.min_px = float(pget(params, "openness_min_px", DEFAULTS.openness_min_px))
        self.max_px = float(pget(params, "openness_max_px", DEFAULTS.openness_max_px))

        self._samples = queue.Queue()
        self._stop = threading.Event()
        self._thread = None
        self._closed = False

    @classmethod
    def open(cls, params=None, camera_index=None):
        """Acquire camera + tracker; whatever was acquired is released if the other fails."""
        cap = open_camera(
            camera_index,
            width=int(pget(params, "capture_width", DEFAULTS.capture_width)),
            height=int(pget(params, "capture_height", DEFAULTS.capture_height)),
        )
        try:
            from hands import Hands
            tracker = Hands(max_hands=1)
        except BaseException:
            cap.release()
            raise
        return cls(cap, tracker, params)

    # ---------------- sampling ----------------

    def sample_once(self) -> float:
        try:
            ok, frame = self.capture.read()
            if not ok or frame is None:
                return self.neutral
            frame = cv2.flip(frame, 1)
            lms = _first_landmarks(self.tracker.process(frame))
            if lms is None:
                return self.neutral
            return hand_openness(lms, self.min_px, self.max_px)
        except Exception:
            log.debug("Gesture sample failed", exc_info=True)
            return self.neutral

    def publish(self, value: float):
        self._samples.put(float(value))

    def drain(self) -> list[float]:
        """Every sample published since the last drain, oldest first. Single reader."""
        out = []
        while True:
            try:
                out.append(self._samples.get_nowait())
            except queue.Empty:
                return out

    # ---------------- worker ----------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        if self._closed:
            raise RuntimeError("GestureSource was stopped; open a new one.")

        def worker():
            log.info("Gesture thread started (every %.0f ms)", self.interval * 1000.0)
            while not self._stop.is_set():
                t0 = time.monotonic()
                self.publish(self.sample_once())
                self._stop.wait(max(0.0, self.interval - (time.monotonic() - t0)))
            log.info("Gesture thread stopped")

        self._stop.clear()
        self._thread = threading.Thread(target=worker, name="gesture", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.close()

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            if self.capture is not None:
                self.capture.release()
        finally:
            close = getattr(self.tracker, "close", None)
            if callable(close):
                close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.stop()
        return False
