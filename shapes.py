# shapes.py
# Target geometries for the particle cloud.
# Every generator returns a (count, 3) float32 array, freshly sampled per call.

from __future__ import annotations
import math
import numpy as np

from params import DEFAULTS, pget

MAX_PARTICLES = DEFAULTS.max_particles
NEBULA_RADIUS = DEFAULTS.nebula_radius
HEART_SCALE = DEFAULTS.heart_scale

# Max |x|, |y|, |z| of the unscaled heart parametrisation
HEART_ENVELOPE = (16.0, 17.0, 10.0)


class ShapeError(Exception):
    pass


class ShapeCapacityError(ShapeError, ValueError):
    """Requested more points than the particle buffer can hold."""

    def __init__(self, count: int, capacity: int):
        super().__init__(f"Cannot generate {count} points: capacity is {capacity}")
        self.count = count
        self.capacity = capacity


class UnknownShapeError(ShapeError, ValueError):
    def __init__(self, name):
        super().__init__(f"Unknown shape {name!r} (expected one of: {', '.join(SHAPES)})")
        self.name = name


def _rng(rng):
    return rng if rng is not None else np.random.default_rng()


def nebula(count: int, radius: float = NEBULA_RADIUS, rng=None) -> np.ndarray:
    """
    Uniform samples inside a solid sphere.

    Radius uses the inverse cube root so volume is filled evenly instead of
    piling points up at the core.
    """
    rng = _rng(rng)
    u = rng.random(count)
    v = rng.random(count)
    w = rng.random(count)

    theta = 2.0 * math.pi * u
    phi = np.arccos(2.0 * v - 1.0)
    r = np.cbrt(w) * radius

    sin_phi = np.sin(phi)
    out = np.empty((count, 3), dtype=np.float32)
    out[:, 0] = r * sin_phi * np.cos(theta)
    out[:, 1] = r * sin_phi * np.sin(theta)
    out[:, 2] = r * np.cos(phi)
    return out


def heart(count: int, scale: float = HEART_SCALE, rng=None) -> np.ndarray:
    """
    Thick heart surface. t walks the classic heart curve, u sweeps it into a
    volume so the result reads as a solid rather than a thin line.
    """
    rng = _rng(rng)
    t = rng.random(count) * 2.0 * math.pi
    u = rng.random(count) * 2.0 * math.pi

    cos_u = np.cos(u)
    out = np.empty((count, 3), dtype=np.float32)
    out[:, 0] = scale * 16.0 * np.sin(t) ** 3 * cos_u
    out[:, 1] = scale * (13.0 * np.cos(t) - 5.0 * np.cos(2.0 * t)
                         - 2.0 * np.cos(3.0 * t) - np.cos(4.0 * t)) * cos_u
    out[:, 2] = scale * 5.0 * np.sin(u) * (1.0 + np.sin(t))
    return out


SHAPES = {
    "nebula": nebula,
    "heart": heart,
}


def heart_bounds(scale: float = HEART_SCALE) -> tuple[float, float, float]:
    return tuple(scale * e for e in HEART_ENVELOPE)


def generate(shape: str, count: int, params=None, rng=None) -> np.ndarray:
    """
    Generate exactly `count` points for a named shape.

    Raises ShapeCapacityError instead of truncating when `count` does not fit
    the particle buffer, and UnknownShapeError for names outside SHAPES.
    """
    capacity = int(pget(params, "max_particles", MAX_PARTICLES))
    count = int(count)
    if count < 0 or count > capacity:
        raise ShapeCapacityError(count, capacity)

    if shape == "nebula":
        return nebula(count, radius=float(pget(params, "nebula_radius", NEBULA_RADIUS)), rng=rng)
    if shape == "heart":
        return heart(count, scale=float(pget(params, "heart_scale", HEART_SCALE)), rng=rng)
    raise UnknownShapeError(shape)


def background_stars(count: int, extent: float = DEFAULTS.star_extent, rng=None) -> np.ndarray:
    # Uniform in a cube of side `extent` centred on the origin
    rng = _rng(rng)
    return ((rng.random((count, 3)) - 0.5) * extent).astype(np.float32)
