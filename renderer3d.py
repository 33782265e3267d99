from __future__ import annotations
import math
import numpy as np
import cv2

from params import pget


def _rot_y(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, 0, s], [0, 1, 0], [-s, 0, c]], dtype=np.float32)


class Renderer3D:
    """
    Point-cloud renderer: perspective camera on +Z looking at the origin.

    Consumes a particles.FrameState and never writes back into it. Particles
    are blended additively (overlaps get brighter), stars drawn at half
    intensity behind them.
    """

    def __init__(self, width: int = 1280, height: int = 720, params=None):
        self.width = int(width)
        self.height = int(height)
        self.fov_deg = float(pget(params, "fov_deg", 75.0))
        self.camera_z = float(pget(params, "camera_z", 50.0))
        self.point_size = int(pget(params, "point_size_px", 1))
        self.near = 0.1
        self.far = 1000.0
        self.gain = 0.35          # per-particle contribution in additive blend
        self.star_level = 128     # white at 0.5 opacity

    @property
    def focal(self) -> float:
        # fov is vertical, like a three.js PerspectiveCamera
        return (self.height * 0.5) / math.tan(math.radians(self.fov_deg) * 0.5)

    def resize(self, width: int, height: int):
        self.width = max(1, int(width))
        self.height = max(1, int(height))

    def project(self, pts: np.ndarray, yaw: float = 0.0):
        """Return integer pixel coords (M, 2) for points in front of the camera."""
        if len(pts) == 0:
            return np.zeros((0, 2), dtype=np.int32)
        world = pts @ _rot_y(yaw).T
        depth = self.camera_z - world[:, 2]
        keep = (depth > self.near) & (depth < self.far)
        world = world[keep]
        depth = depth[keep]

        f = self.focal
        sx = self.width * 0.5 + (world[:, 0] / depth) * f
        sy = self.height * 0.5 - (world[:, 1] / depth) * f
        on = (sx >= 0) & (sx < self.width) & (sy >= 0) & (sy < self.height)
        return np.stack([sx[on], sy[on]], axis=-1).astype(np.int32)

    def render(self, frame) -> np.ndarray:
        img = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        if frame is None:
            return img

        # Background stars
        star_px = self.project(np.asarray(frame.stars), frame.background_rotation)
        img[star_px[:, 1], star_px[:, 0]] = self.star_level

        # Particles: only the visible prefix is drawn
        n = max(0, min(int(frame.visible_count), len(frame.positions)))
        px = self.project(np.asarray(frame.positions[:n]), frame.group_rotation)
        if len(px):
            flat = px[:, 1] * self.width + px[:, 0]
            hits = np.bincount(flat, minlength=self.width * self.height).astype(np.float32)
            hits = hits.reshape(self.height, self.width)
            if self.point_size > 1:
                k = np.ones((self.point_size, self.point_size), dtype=np.uint8)
                hits = cv2.dilate(hits, k)

            r, g, b = frame.color
            bgr = np.array([b, g, r], dtype=np.float32)
            glow = hits[:, :, None] * bgr[None, None, :] * self.gain
            img = np.clip(img.astype(np.float32) + glow, 0, 255).astype(np.uint8)

        return img
