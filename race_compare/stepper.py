from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .config import max_race_time
from .engine.telemetry import CompetitorTrajectory, SampleData
from .intervals import SkillIntervalTracker
from .swap import Role

DT = 1.0 / 15.0


class StalledRaceError(RuntimeError):
    """A race instance failed to reach its target within the time limit."""


@dataclass
class StepResult:
    sample: SampleData
    leader_final: float
    follower_align: float


class DualTrajectoryStepper:
    """Steps one sample of both competitors and aligns them on the leader's finish time."""

    def __init__(
        self,
        course_distance: float,
        trackers: Sequence[SkillIntervalTracker],
        dt: float = DT,
        max_time: Optional[float] = None,
    ) -> None:
        self.course_distance = course_distance
        self.trackers = trackers
        self.dt = dt
        self.max_time = max_time if max_time is not None else max_race_time()

    def run(self, streams: Sequence, role: Role, retry: bool) -> StepResult:
        """
        Pull one instance per stream (streams[0] is the first competitor) and
        run the leader to the finish, then the follower up to the leader's
        final time and on to its own finish.
        """
        sample = SampleData()
        instances: List = []
        try:
            for stream in streams:
                instances.append(stream.next(retry))
            leader = instances[role.leader_slot]
            follower = instances[role.follower_slot]
            leader_run = sample[role.leader_slot]
            follower_run = sample[role.follower_slot]

            self._advance(leader, leader_run, lambda: leader.pos < self.course_distance)
            leader_run.start_delay = leader.start_delay

            self._advance(follower, follower_run, lambda: follower.elapsed_time < leader.elapsed_time)
            follower_align = follower.pos
            # the rest of the way is only needed for the chart
            self._advance(follower, follower_run, lambda: follower.pos < self.course_distance)
            follower_run.start_delay = follower.start_delay
            leader_final = leader.pos
        finally:
            for instance in instances:
                instance.cleanup()

        for slot, tracker in enumerate(self.trackers):
            run = sample[slot]
            run.skills, run.downhill = tracker.collect(final_time=instances[slot].elapsed_time)
        return StepResult(sample=sample, leader_final=leader_final, follower_align=follower_align)

    def _advance(self, instance, run: CompetitorTrajectory, keep_going: Callable[[], bool]) -> None:
        while keep_going():
            if instance.elapsed_time > self.max_time:
                raise StalledRaceError(
                    f"Race instance stalled at pos {instance.pos:.2f} after {instance.elapsed_time:.1f}s"
                )
            instance.step(self.dt)
            run.record(instance)
