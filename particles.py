"""
Particle animation engine.

State:
- current: Nx3 float32, what gets drawn every frame
- target:  Nx3 float32, the shape the cloud is drifting toward

Each frame every particle chases a jittered copy of its target:
    target_i' = target_i + U(-0.5, 0.5)^3 * diffusion * DIFFUSION_SCALE
    current_i = lerp(current_i, target_i', LERP_FACTOR)

N never changes after construction. Density only changes how many particles
are drawn; hidden particles keep moving so raising density never reveals a
frozen tail.
"""

from __future__ import annotations
from dataclasses import dataclass
import enum
import logging
import math

import numpy as np

import shapes
from params import DEFAULTS, pget
from signals import VisualConfig, clamp01, parse_color

log = logging.getLogger(__name__)

DIFFUSION_SCALE = DEFAULTS.diffusion_scale
LERP_FACTOR = DEFAULTS.lerp_factor
GROUP_ROTATION_SPEED = DEFAULTS.group_rotation_speed
BACKGROUND_ROTATION_SPEED = DEFAULTS.background_rotation_speed


class EngineState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    ANIMATING = "animating"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class RotationDelta:
    group: float
    background: float


@dataclass(frozen=True)
class FrameState:
    """Read-only view handed to the renderer once per frame."""
    positions: np.ndarray       # (N, 3), not writeable
    visible_count: int
    color: tuple[int, int, int]
    rotation_delta: RotationDelta
    group_rotation: float       # accumulated, radians about Y
    background_rotation: float
    stars: np.ndarray           # (S, 3), not writeable


def _readonly(a: np.ndarray) -> np.ndarray:
    v = a.view()
    v.flags.writeable = False
    return v


class ParticleEngine:
    # (config field, engine method) pairs run by apply() when the field changes
    EFFECTS = (
        ("shape", "set_shape"),
        ("particle_color", "set_color"),
        ("particle_density", "set_density"),
    )

    def __init__(self, params=None, rng=None):
        self.params = params
        self.capacity = int(pget(params, "max_particles", shapes.MAX_PARTICLES))
        if self.capacity <= 0:
            raise ValueError(f"max_particles must be positive, got {self.capacity}")

        self.diffusion_scale = float(pget(params, "diffusion_scale", DIFFUSION_SCALE))
        self.lerp_factor = float(pget(params, "lerp_factor", LERP_FACTOR))
        self.group_rotation_speed = float(pget(params, "group_rotation_speed", GROUP_ROTATION_SPEED))
        self.background_rotation_speed = float(pget(params, "background_rotation_speed", BACKGROUND_ROTATION_SPEED))
        self.backend = str(pget(params, "backend", DEFAULTS.backend))
        if self.backend not in ("numpy", "taichi"):
            raise ValueError(f"Unknown backend {self.backend!r} (expected 'numpy' or 'taichi')")

        self.rng = rng if rng is not None else np.random.default_rng(pget(params, "seed", None))

        self.state = EngineState.UNINITIALIZED
        self.current: np.ndarray | None = None
        self.target: np.ndarray | None = None
        self.stars: np.ndarray | None = None
        self._scratch: np.ndarray | None = None
        self._stepper = None

        defaults = VisualConfig.from_params(params)
        self.shape = defaults.shape
        self.color = parse_color(defaults.particle_color)
        self.density = clamp01(defaults.particle_density)
        self.visible_count = int(math.floor(self.capacity * self.density))

        self.group_rotation = 0.0
        self.background_rotation = 0.0
        self.frame_count = 0
        self._applied: VisualConfig | None = None

    # ========================= Lifecycle =========================

    def initialize(self, shape: str | None = None):
        """Fill both buffers with the default shape. UNINITIALIZED -> READY."""
        if self.state is not EngineState.UNINITIALIZED:
            return self
        if shape is None:
            shape = self._applied.shape if self._applied is not None else self.shape

        points = shapes.generate(shape, self.capacity, params=self.params, rng=self.rng)
        self.target = points
        self.current = points.copy()
        self._scratch = np.empty_like(points)
        self.stars = shapes.background_stars(
            int(pget(self.params, "star_count", DEFAULTS.star_count)),
            float(pget(self.params, "star_extent", DEFAULTS.star_extent)),
            rng=self.rng,
        )
        self.shape = shape

        if self.backend == "taichi":
            from particles_taichi import TaichiStepper
            self._stepper = TaichiStepper(self.capacity)
            self._stepper.load(self.current, self.target)

        self.state = EngineState.READY
        log.info("Particle engine ready: %d particles, shape=%s, backend=%s",
                 self.capacity, shape, self.backend)
        return self

    def dispose(self):
        if self.state is EngineState.DISPOSED:
            return
        if self._stepper is not None:
            self._stepper.release()
            self._stepper = None
        self.current = None
        self.target = None
        self.stars = None
        self._scratch = None
        self.state = EngineState.DISPOSED
        log.info("Particle engine disposed after %d frames", self.frame_count)

    @property
    def initialized(self) -> bool:
        return self.state in (EngineState.READY, EngineState.ANIMATING)

    # ========================= Parameters =========================

    def set_shape(self, shape: str):
        """
        Replace the whole target buffer with a fresh point set.

        current is left alone and drifts over on subsequent frames. The new
        set is generated in full before anything is copied, so a failed
        generation leaves the old target intact.
        """
        if not self.initialized:
            log.debug("set_shape(%s) ignored: engine is %s", shape, self.state.value)
            return
        points = shapes.generate(shape, self.capacity, params=self.params, rng=self.rng)
        np.copyto(self.target, points)
        if self._stepper is not None:
            self._stepper.set_target(self.target)
        self.shape = shape
        log.debug("Target shape -> %s", shape)

    def set_color(self, color):
        if self.state is EngineState.DISPOSED:
            return
        try:
            self.color = parse_color(color)
        except ValueError:
            log.warning("Ignoring invalid particle colour %r", color)

    def set_density(self, density):
        if self.state is EngineState.DISPOSED:
            return
        self.density = clamp01(density)
        self.visible_count = int(math.floor(self.capacity * self.density))

    def apply(self, config: VisualConfig):
        """Run each effect whose input field differs from the last applied config."""
        prev = self._applied
        self._applied = config
        for field, method in self.EFFECTS:
            value = getattr(config, field)
            if prev is not None and getattr(prev, field) == value:
                continue
            try:
                getattr(self, method)(value)
            except shapes.ShapeError as e:
                log.warning("Keeping shape %s: %s", self.shape, e)

    # ========================= Animation =========================

    def step(self, diffusion=0.0):
        """Advance one frame. Never raises on bad diffusion values."""
        if not self.initialized:
            return
        amp = clamp01(diffusion) * self.diffusion_scale
        lerp = self.lerp_factor

        if self._stepper is not None:
            self._stepper.step(amp, lerp)
            self._stepper.read_current(self.current)
        else:
            s = self._scratch
            self.rng.random(out=s, dtype=np.float32)
            s -= 0.5
            s *= amp
            s += self.target
            s -= self.current
            s *= lerp
            self.current += s

        self.group_rotation += self.group_rotation_speed
        self.background_rotation += self.background_rotation_speed
        self.frame_count += 1
        self.state = EngineState.ANIMATING

    def frame(self) -> FrameState | None:
        if not self.initialized:
            return None
        return FrameState(
            positions=_readonly(self.current),
            visible_count=self.visible_count,
            color=self.color,
            rotation_delta=RotationDelta(self.group_rotation_speed, self.background_rotation_speed),
            group_rotation=self.group_rotation,
            background_rotation=self.background_rotation,
            stars=_readonly(self.stars),
        )
