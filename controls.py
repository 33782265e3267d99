# controls.py
# OpenCV trackbars + keys standing in for the UI panel.
# Every edit builds a new VisualConfig and hands it to on_config.

from __future__ import annotations
import cv2

from signals import VisualConfig, color_to_hex

COLOR_CYCLE = ("#00ffff", "#ff00ff", "#ffd700", "#ff4d4d", "#7cfc00", "#ffffff")

KEY_HELP = (
    "N - Nebula | H - Heart",
    "C - Cycle colour",
    "G - Toggle gesture camera",
    "ESC - Exit",
)


class ControlPanel:
    def __init__(self, config: VisualConfig, on_config, on_camera_toggle):
        self.config = config
        self.on_config = on_config
        self.on_camera_toggle = on_camera_toggle
        self.camera_on = False
        self.window = None

    def attach(self, window_name: str):
        self.window = window_name
        cv2.createTrackbar("Density %", window_name, int(round(self.config.particle_density * 100)), 100, self.on_density)
        cv2.createTrackbar("Diffusion %", window_name, int(round(self.config.diffusion * 100)), 100, self.on_diffusion)

    # ---------------- edits ----------------

    def on_density(self, pos: int):
        self._edit(particle_density=pos / 100.0)

    def on_diffusion(self, pos: int):
        self._edit(diffusion=pos / 100.0)

    def set_shape(self, shape: str):
        self._edit(shape=shape)

    def cycle_color(self):
        try:
            i = COLOR_CYCLE.index(color_to_hex(self.config.particle_color))
        except ValueError:
            i = -1
        self._edit(particle_color=COLOR_CYCLE[(i + 1) % len(COLOR_CYCLE)])

    def _edit(self, **changes):
        new = self.config.with_changes(**changes)
        if new == self.config:
            return
        self.config = new
        self.on_config(new)

    # ---------------- camera toggle ----------------

    def toggle_camera(self):
        # The handler returns the state that actually took effect
        self.camera_on = bool(self.on_camera_toggle(not self.camera_on))

    def handle_key(self, key: int) -> bool:
        if key in (ord('n'), ord('N')):
            self.set_shape("nebula")
        elif key in (ord('h'), ord('H')):
            self.set_shape("heart")
        elif key in (ord('c'), ord('C')):
            self.cycle_color()
        elif key in (ord('g'), ord('G')):
            self.toggle_camera()
        else:
            return False
        return True

    # ---------------- overlay ----------------

    def draw_hud(self, img, effective: VisualConfig, openness: float, fps: float = 0.0):
        lines = [
            f"Shape: {effective.shape}   Density: {effective.particle_density:.2f}",
            f"Diffusion: {effective.diffusion:.2f}" + (" (hand)" if self.camera_on else ""),
            f"Camera: {'ON' if self.camera_on else 'off'}   Openness: {openness:.2f}",
        ]
        if fps > 0:
            lines.append(f"FPS: {fps:5.1f}")
        y = 26
        for s in lines:
            cv2.putText(img, s, (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 3, cv2.LINE_AA)
            cv2.putText(img, s, (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 200), 1, cv2.LINE_AA)
            y += 24
        return img
