from notegraph.scheduler import LoopScheduler, ManualScheduler


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_manual_scheduler_fires_until_cancelled() -> None:
    scheduler = ManualScheduler()
    calls = []
    job = scheduler.schedule_repeating(0.016, lambda: calls.append(1))

    assert scheduler.advance(3) == 3
    scheduler.cancel(job)
    assert scheduler.advance(3) == 0
    assert len(calls) == 3
    assert job.cancelled and job.runs == 3


def test_manual_scheduler_run_until_idle() -> None:
    scheduler = ManualScheduler()
    holder = {}

    def tick() -> None:
        if holder["job"].runs == 4:
            scheduler.cancel(holder["job"])

    holder["job"] = scheduler.schedule_repeating(0.1, tick)
    assert scheduler.run_until_idle() == 4
    assert not scheduler.active


def test_loop_scheduler_sleeps_between_ticks() -> None:
    clock = FakeClock()
    scheduler = LoopScheduler(clock=clock, sleep=clock.sleep)
    seen = []

    def tick() -> None:
        seen.append(clock.now)
        if len(seen) == 3:
            scheduler.cancel(job)

    job = scheduler.schedule_repeating(0.5, tick)
    scheduler.run()

    assert seen == [0.0, 0.5, 1.0]
    assert clock.sleeps == [0.5, 0.5]
    assert scheduler.jobs == []
