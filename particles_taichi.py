# particles_taichi.py
# Taichi kernel for the per-frame particle update (same math as the numpy path).
# pyright: reportInvalidTypeForm=false

import logging

import numpy as np
import taichi as ti

log = logging.getLogger(__name__)

_TAICHI_READY = False


def ensure_ti():
    global _TAICHI_READY
    if _TAICHI_READY:
        return
    try:
        ti.init(arch=ti.gpu)
        log.info("Taichi GPU backend (particles)")
    except Exception:
        ti.init(arch=ti.cpu)
        log.warning("Taichi CPU fallback (particles)")
    _TAICHI_READY = True


@ti.data_oriented
class TaichiStepper:
    """
    Holds current/target on the device.

      stepper = TaichiStepper(n)
      stepper.load(current_np, target_np)
      stepper.step(amp, lerp)
      stepper.read_current(current_np)   # copies back into the numpy buffer
    """

    def __init__(self, capacity: int):
        ensure_ti()
        self.capacity = int(capacity)
        self.current = ti.Vector.field(3, dtype=ti.f32, shape=self.capacity)
        self.target = ti.Vector.field(3, dtype=ti.f32, shape=self.capacity)

    def load(self, current: np.ndarray, target: np.ndarray):
        self.current.from_numpy(np.ascontiguousarray(current, dtype=np.float32))
        self.target.from_numpy(np.ascontiguousarray(target, dtype=np.float32))

    def set_target(self, target: np.ndarray):
        self.target.from_numpy(np.ascontiguousarray(target, dtype=np.float32))

    def step(self, amp: float, lerp: float):
        self._step(float(amp), float(lerp))

    def read_current(self, out: np.ndarray):
        out[:] = self.current.to_numpy()

    def release(self):
        # Fields live until ti.reset(); drop our references so they can go
        self.current = None
        self.target = None

    @ti.kernel
    def _step(self, amp: ti.f32, lerp: ti.f32):
        for i in self.current:
            jitter = ti.Vector([ti.random() - 0.5, ti.random() - 0.5, ti.random() - 0.5]) * amp
            goal = self.target[i] + jitter
            self.current[i] += (goal - self.current[i]) * lerp
