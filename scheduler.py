# scheduler.py
# Cooperative stand-in for requestAnimationFrame / setInterval.
# Everything runs on the caller's thread inside tick(); cancel_all() is the
# single teardown switch.

from __future__ import annotations
from dataclasses import dataclass
import logging
import time

log = logging.getLogger(__name__)


@dataclass
class Job:
    fn: object
    interval: float | None = None   # None => every frame
    due: float = 0.0
    cancelled: bool = False

    def cancel(self):
        self.cancelled = True


class Scheduler:
    def __init__(self, clock=time.monotonic):
        self.clock = clock
        self._jobs: list[Job] = []

    def every_frame(self, fn) -> Job:
        job = Job(fn)
        self._jobs.append(job)
        return job

    def every(self, interval: float, fn) -> Job:
        interval = float(interval)
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        job = Job(fn, interval=interval, due=self.clock() + interval)
        self._jobs.append(job)
        return job

    def cancel_all(self):
        for job in self._jobs:
            job.cancel()
        n = len(self._jobs)
        self._jobs.clear()
        if n:
            log.debug("Cancelled %d scheduled jobs", n)

    @property
    def active(self) -> bool:
        return any(not j.cancelled for j in self._jobs)

    def tick(self, now: float | None = None) -> int:
        """Run frame jobs, then any interval job that is due. Returns jobs run."""
        if now is None:
            now = self.clock()
        ran = 0
        for job in list(self._jobs):
            if job.cancelled:
                continue
            if job.interval is None:
                job.fn()
                ran += 1
                continue
            if now >= job.due:
                job.fn()
                ran += 1
                job.due += job.interval
                # After a stall, skip missed slots instead of bursting
                if job.due <= now:
                    job.due = now + job.interval
        self._jobs = [j for j in self._jobs if not j.cancelled]
        return ran
