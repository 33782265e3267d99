# app.py - gesture-driven particle nebula
import argparse
import logging
import time

import cv2

from controls import ControlPanel, KEY_HELP
from gesture import GestureSource
from params import Params
from particles import ParticleEngine
from renderer3d import Renderer3D
from scheduler import Scheduler
from signals import SignalCombiner, VisualConfig

WINDOW_NAME = "Particle Nebula"

log = logging.getLogger(__name__)


class NebulaApp:
    """
    Wires UI edits and gesture samples through the combiner into the engine.

    One scheduler drives both the per-frame step and the gesture poll, so
    shutdown() can stop everything in one call.
    """

    def __init__(self, params=None, camera_index=None, gesture_factory=None, scheduler=None):
        self.params = params if params is not None else Params()
        self.camera_index = camera_index
        self.gesture_factory = gesture_factory or GestureSource.open

        self.combiner = SignalCombiner(VisualConfig.from_params(self.params), params=self.params)
        self.engine = ParticleEngine(self.params)
        self.engine.apply(self.combiner.effective())
        self.engine.initialize()
        self._unsubscribe = self.combiner.subscribe(self.engine.apply)

        self.renderer = Renderer3D(self.params.window_width, self.params.window_height, params=self.params)
        self.panel = ControlPanel(self.combiner.ui_config, self.combiner.set_ui_config, self.set_camera)
        self.scheduler = scheduler or Scheduler()

        self.gesture = None
        self._gesture_job = None
        self.image = None

        self._prev = time.time()
        self.fps_smooth = 0.0

    # ---------------- camera ----------------

    def set_camera(self, on: bool) -> bool:
        """Returns the camera state that actually took effect."""
        if not on:
            self._stop_gesture()
            self.combiner.set_camera_enabled(False)
            return False

        if self.gesture is None:
            try:
                source = self.gesture_factory(self.params, self.camera_index)
            except (RuntimeError, ImportError, AttributeError, OSError) as e:
                print(f"⚠️  Gesture camera unavailable: {e}")
                print("   Diffusion stays on the slider.")
                return False
            try:
                source.start()
            except BaseException:
                source.stop()
                raise
            self.gesture = source
            self._gesture_job = self.scheduler.every(self.params.gesture_interval_sec, self._gesture_tick)
            print("✅ Gesture camera on: open/close your hand to control diffusion")

        self.combiner.set_camera_enabled(True)
        return True

    def _stop_gesture(self):
        if self._gesture_job is not None:
            self._gesture_job.cancel()
            self._gesture_job = None
        if self.gesture is not None:
            self.gesture.stop()
            self.gesture = None

    def _gesture_tick(self):
        if self.gesture is None:
            return
        # One filter update per sample, however many arrived since last tick
        for value in self.gesture.drain():
            self.combiner.push_openness(value)

    # ---------------- frames ----------------

    def _frame_tick(self):
        now = time.time()
        dt = max(1e-6, now - self._prev)
        self._prev = now
        fps = 1.0 / dt
        self.fps_smooth = fps if self.fps_smooth == 0 else 0.9 * self.fps_smooth + 0.1 * fps

        effective = self.combiner.effective()
        self.engine.step(effective.diffusion)
        img = self.renderer.render(self.engine.frame())
        self.image = self.panel.draw_hud(
            img, effective, self.combiner.gesture.smoothed_openness, self.fps_smooth)

    def start(self):
        self.scheduler.every_frame(self._frame_tick)

    def shutdown(self):
        self.scheduler.cancel_all()
        self._stop_gesture()
        self._unsubscribe()
        self.engine.dispose()


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Gesture-driven 3D particle nebula")
    ap.add_argument("--particles", type=int, default=None, help="particle buffer size")
    ap.add_argument("--backend", choices=("numpy", "taichi"), default=None)
    ap.add_argument("--camera-index", type=int, default=None)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--camera", action="store_true", help="start with gesture control on")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    params = Params()
    if args.particles is not None:
        params.max_particles = args.particles
    if args.backend is not None:
        params.backend = args.backend
    params.seed = args.seed

    app = NebulaApp(params, camera_index=args.camera_index)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW_NAME, params.window_width, params.window_height)
    app.panel.attach(WINDOW_NAME)

    print("\n" + "=" * 60)
    print("✨ PARTICLE NEBULA")
    print("=" * 60)
    print(f"\n   {params.max_particles} particles, backend: {params.backend}")
    print("\n📋 CONTROLS:")
    print("   Trackbars - Density / Diffusion")
    for line in KEY_HELP:
        print(f"   {line}")
    print("\n✋ GESTURE:")
    print("   Open hand = more diffusion, fist = tight shape")
    print("\n" + "=" * 60 + "\n")

    app.start()
    try:
        if args.camera:
            app.panel.toggle_camera()

        while True:
            app.scheduler.tick()
            if app.image is not None:
                cv2.imshow(WINDOW_NAME, app.image)

            key = cv2.waitKey(1) & 0xFF
            if key == 27:
                break
            if key != 255:
                app.panel.handle_key(key)
            if cv2.getWindowProperty(WINDOW_NAME, cv2.WND_PROP_VISIBLE) < 1:
                break
    finally:
        app.shutdown()
        cv2.destroyAllWindows()

    print("\n✅ Particle nebula shutdown complete")


if __name__ == "__main__":
    main()
