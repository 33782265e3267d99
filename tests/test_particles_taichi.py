import numpy as np
import pytest

pytest.importorskip("taichi")

from params import Params
from particles import ParticleEngine


def test_taichi_backend_converges_like_numpy():
    eng = ParticleEngine(Params(max_particles=1000, star_count=10, backend="taichi"),
                         rng=np.random.default_rng(0))
    eng.initialize()
    eng.set_shape("heart")
    before = np.linalg.norm(eng.current - eng.target, axis=1)
    eng.step(0.0)
    after = np.linalg.norm(eng.current - eng.target, axis=1)
    assert np.all(after <= before + 1e-4)

    for _ in range(200):
        eng.step(0.0)
    assert np.abs(eng.current - eng.target).max() < 0.05
    eng.dispose()
