import pytest

import gesture
import particles
import shapes
import signals
from params import DEFAULTS, Params, pget


def test_module_constants_follow_params():
    p = Params()
    assert shapes.MAX_PARTICLES == p.max_particles
    assert shapes.NEBULA_RADIUS == p.nebula_radius
    assert shapes.HEART_SCALE == p.heart_scale
    assert particles.DIFFUSION_SCALE == p.diffusion_scale
    assert particles.LERP_FACTOR == p.lerp_factor
    assert particles.GROUP_ROTATION_SPEED == p.group_rotation_speed
    assert particles.BACKGROUND_ROTATION_SPEED == p.background_rotation_speed
    assert signals.SMOOTHING_KEEP == p.smoothing_keep
    assert signals.NEUTRAL_OPENNESS == p.neutral_openness
    assert not hasattr(gesture, "NEUTRAL_OPENNESS")


def test_visual_config_defaults_follow_params():
    cfg = signals.VisualConfig()
    assert cfg == signals.VisualConfig.from_params(DEFAULTS)
    assert cfg.particle_color == Params().particle_color


def test_gesture_source_defaults_follow_params():
    src = gesture.GestureSource(capture=None, tracker=None)
    assert src.neutral == DEFAULTS.neutral_openness
    assert src.interval == DEFAULTS.gesture_interval_sec


def test_unknown_override_rejected():
    with pytest.raises(AttributeError):
        Params(max_particle=10)


def test_pget_dict_object_and_none():
    assert pget({"seed": 3}, "seed") == 3
    assert pget(Params(seed=4), "seed") == 4
    assert pget(None, "seed", 5) == 5
