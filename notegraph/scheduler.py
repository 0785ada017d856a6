"""Repeating-callback schedulers for the layout animation.

Everything runs on the caller's thread: a tick is a plain function call and
must not block.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

_job_ids = itertools.count(1)


@dataclass
class Job:
    interval: float  # seconds
    callback: Callable[[], None]
    id: int = field(default_factory=lambda: next(_job_ids))
    cancelled: bool = False
    runs: int = 0


class Scheduler(Protocol):
    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> Job: ...

    def cancel(self, job: Job) -> None: ...


class ManualScheduler:
    """Scheduler driven explicitly by ``advance()``; time never passes on its own."""

    def __init__(self) -> None:
        self.jobs: list[Job] = []

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> Job:
        job = Job(interval=interval, callback=callback)
        self.jobs.append(job)
        return job

    def cancel(self, job: Job) -> None:
        job.cancelled = True
        if job in self.jobs:
            self.jobs.remove(job)

    @property
    def active(self) -> bool:
        return bool(self.jobs)

    def advance(self, ticks: int = 1) -> int:
        """Fire every active job ``ticks`` times. Returns the number of callbacks run."""
        fired = 0
        for _ in range(ticks):
            for job in list(self.jobs):
                if job.cancelled:
                    continue
                job.runs += 1
                job.callback()
                fired += 1
        return fired

    def run_until_idle(self, max_ticks: int = 100_000) -> int:
        """Advance until no job is scheduled. Returns the number of ticks taken."""
        ticks = 0
        while self.jobs and ticks < max_ticks:
            self.advance()
            ticks += 1
        return ticks


class LoopScheduler:
    """Blocking cooperative loop: ``run()`` fires due jobs until none remain."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, sleep: Callable[[float], None] = time.sleep):
        self.clock = clock
        self.sleep = sleep
        self.jobs: list[Job] = []
        self._due: dict[int, float] = {}

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> Job:
        job = Job(interval=interval, callback=callback)
        self.jobs.append(job)
        self._due[job.id] = self.clock()
        return job

    def cancel(self, job: Job) -> None:
        job.cancelled = True
        if job in self.jobs:
            self.jobs.remove(job)
        self._due.pop(job.id, None)

    def run(self) -> None:
        """Run until every job is cancelled. KeyboardInterrupt propagates to the caller."""
        while self.jobs:
            now = self.clock()
            next_due = min(self._due[j.id] for j in self.jobs)
            if next_due > now:
                self.sleep(next_due - now)
                continue
            for job in list(self.jobs):
                if job.cancelled or self._due.get(job.id, now + 1) > now:
                    continue
                job.runs += 1
                job.callback()
                if not job.cancelled:
                    self._due[job.id] = now + job.interval
