# signals.py
# UI parameters + gesture override -> one immutable config snapshot.
#
# Inputs change on their own schedules (slider edits, camera toggle, ~10 Hz
# gesture samples). Each change produces a fresh EffectiveConfig which is
# pushed to subscribers; nothing is mutated in place.

from __future__ import annotations
from dataclasses import dataclass, replace
import logging
import math

from params import DEFAULTS, pget

log = logging.getLogger(__name__)

SMOOTHING_KEEP = DEFAULTS.smoothing_keep
NEUTRAL_OPENNESS = DEFAULTS.neutral_openness


def clamp01(x, default: float = 0.0) -> float:
    try:
        x = float(x)
    except (TypeError, ValueError):
        return default
    if math.isnan(x):
        return default
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else x


def parse_color(value) -> tuple[int, int, int]:
    """
    '#0ff', '#00ffff', '00ffff', 0x00ffff or (r, g, b) -> (r, g, b) in 0..255.
    """
    if isinstance(value, str):
        s = value.strip().lstrip("#")
        if len(s) == 3:
            s = "".join(ch * 2 for ch in s)
        if len(s) != 6:
            raise ValueError(f"Bad colour: {value!r}")
        try:
            n = int(s, 16)
        except ValueError:
            raise ValueError(f"Bad colour: {value!r}") from None
        return ((n >> 16) & 0xFF, (n >> 8) & 0xFF, n & 0xFF)

    if isinstance(value, bool):
        raise ValueError(f"Bad colour: {value!r}")

    if isinstance(value, int):
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"Bad colour: {value!r}")
        return ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    if isinstance(value, (tuple, list)) and len(value) == 3:
        rgb = tuple(int(c) for c in value)
        if all(0 <= c <= 255 for c in rgb):
            return rgb

    raise ValueError(f"Bad colour: {value!r}")


def color_to_hex(rgb) -> str:
    r, g, b = parse_color(rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True)
class VisualConfig:
    particle_density: float = DEFAULTS.particle_density
    diffusion: float = DEFAULTS.diffusion
    particle_color: str = DEFAULTS.particle_color
    shape: str = DEFAULTS.shape

    @classmethod
    def from_params(cls, params=None) -> "VisualConfig":
        d = DEFAULTS
        return cls(
            particle_density=float(pget(params, "particle_density", d.particle_density)),
            diffusion=float(pget(params, "diffusion", d.diffusion)),
            particle_color=pget(params, "particle_color", d.particle_color),
            shape=pget(params, "shape", d.shape),
        )

    def with_changes(self, **changes) -> "VisualConfig":
        return replace(self, **changes)


# Same fields, diffusion possibly overridden by the gesture signal
EffectiveConfig = VisualConfig


@dataclass(frozen=True)
class GestureState:
    enabled: bool = False
    smoothed_openness: float = NEUTRAL_OPENNESS


def smooth(smoothed: float, raw: float, keep: float = SMOOTHING_KEEP) -> float:
    # First-order low-pass; one call per received sample
    return smoothed * keep + raw * (1.0 - keep)


def combine(ui_config: VisualConfig, camera_enabled: bool, smoothed_openness: float) -> EffectiveConfig:
    if camera_enabled:
        return replace(ui_config, diffusion=smoothed_openness)
    return ui_config


class SignalCombiner:
    """
    Holds the latest UI config and gesture state and derives EffectiveConfig.

    Usage:
      combiner = SignalCombiner(VisualConfig(), params=params)
      combiner.subscribe(engine.apply)
      combiner.set_ui_config(cfg)        # slider edit
      combiner.set_camera_enabled(True)  # toggle
      combiner.push_openness(0.83)       # gesture sample
    """

    def __init__(self, ui_config: VisualConfig | None = None, params=None):
        self.params = params
        self.keep = float(pget(params, "smoothing_keep", SMOOTHING_KEEP))
        neutral = float(pget(params, "neutral_openness", NEUTRAL_OPENNESS))
        self.neutral = neutral

        self._ui = ui_config if ui_config is not None else VisualConfig.from_params(params)
        self._gesture = GestureState(enabled=False, smoothed_openness=neutral)
        self._subscribers = []
        self._last_published: EffectiveConfig | None = None

    # ---------------- inputs ----------------

    @property
    def ui_config(self) -> VisualConfig:
        return self._ui

    @property
    def gesture(self) -> GestureState:
        return self._gesture

    def set_ui_config(self, config: VisualConfig) -> EffectiveConfig:
        self._ui = config
        return self._publish()

    def set_camera_enabled(self, enabled: bool) -> EffectiveConfig:
        enabled = bool(enabled)
        if enabled != self._gesture.enabled:
            log.info("Gesture override %s", "on" if enabled else "off")
        self._gesture = replace(self._gesture, enabled=enabled)
        return self._publish()

    def push_openness(self, raw) -> EffectiveConfig:
        # Raw samples are clamped before they reach the filter so a bad
        # detector reading cannot drag the average out of [0, 1].
        raw = clamp01(raw, default=self.neutral)
        smoothed = smooth(self._gesture.smoothed_openness, raw, self.keep)
        self._gesture = replace(self._gesture, smoothed_openness=smoothed)
        return self._publish()

    # ---------------- output ----------------

    def effective(self) -> EffectiveConfig:
        g = self._gesture
        return combine(self._ui, g.enabled, g.smoothed_openness)

    def subscribe(self, fn):
        self._subscribers.append(fn)

        def unsubscribe():
            if fn in self._subscribers:
                self._subscribers.remove(fn)

        return unsubscribe

    def _publish(self) -> EffectiveConfig:
        eff = self.effective()
        if eff == self._last_published:
            return eff
        self._last_published = eff
        for fn in list(self._subscribers):
            fn(eff)
        return eff
