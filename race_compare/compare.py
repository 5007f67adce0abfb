from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple

from .config import CompareOptions
from .engine.builder import RaceSolverBuilder, SimulationStream
from .engine.data_models import Course, HorseConfig, RaceDefinition
from .engine.telemetry import SampleData
from .intervals import SkillIntervalTracker
from .selector import ComparisonResult, RepresentativeSelector
from .skill_meta import SkillCatalog, default_catalog
from .skill_order import SkillRollPlan, plan_skill_rolls
from .stepper import DualTrajectoryStepper
from .swap import SwapController

SampleCallback = Callable[[int, float, SampleData], None]


class ComparisonRunner:
    """
    Runs ``nsamples`` paired races of two horses and measures the gap in lengths.

    Samples are drawn strictly in order from two streams that share a seed;
    a biased attempt is replayed with the roles swapped and does not use
    up a sample.
    """

    def __init__(
        self,
        nsamples: int,
        course: Course,
        racedef: RaceDefinition,
        horse_a: HorseConfig,
        horse_b: HorseConfig,
        options: Optional[CompareOptions] = None,
        *,
        catalog: Optional[SkillCatalog] = None,
        on_sample: Optional[SampleCallback] = None,
        verbose: bool = False,
    ) -> None:
        if nsamples < 0:
            raise ValueError(f"Sample count must be non-negative, got {nsamples}")
        self.nsamples = nsamples
        self.course = course
        self.racedef = racedef
        self.horse_a = horse_a
        self.horse_b = horse_b
        self.options = options or CompareOptions.from_config()
        self.catalog = catalog or default_catalog()
        self.on_sample = on_sample
        self.verbose = verbose
        self.trackers = (SkillIntervalTracker(course.distance), SkillIntervalTracker(course.distance))
        self.swap = SwapController()
        self.attempts = 0
        self.plan: Optional[SkillRollPlan] = None

    @property
    def swaps(self) -> int:
        return self.swap.swaps

    def build_streams(self) -> Tuple[SimulationStream, SimulationStream]:
        racedef = self.racedef
        standard = (
            RaceSolverBuilder(self.nsamples, self.catalog)
            .seed(self.options.seed)
            .course(self.course)
            .mood(racedef.mood)
            .ground(racedef.ground)
            .weather(racedef.weather)
            .season(racedef.season)
            .time(racedef.time)
            .grade(racedef.grade)
        )
        if racedef.order_range is not None:
            standard.order(*racedef.order_range)
            if racedef.num_umas is not None:
                standard.num_umas(racedef.num_umas)
        compare = standard.fork()
        standard.horse(self.horse_a).opponent(self.horse_b)
        compare.horse(self.horse_b).opponent(self.horse_a)

        self.plan = plan_skill_rolls(self.horse_a.skills, self.horse_b.skills, self.options.seed, self.catalog)
        for skill_id, perspective in self.plan.calls_a:
            standard.add_skill(skill_id, perspective)
        for skill_id, perspective in self.plan.calls_b:
            compare.add_skill(skill_id, perspective)

        for builder in (standard, compare):
            if not self.options.global_ruleset:
                builder.with_region_mechanics()
            if self.options.use_pos_keep:
                builder.use_default_pacer()
            if self.options.use_int_checks:
                builder.with_wisdom_checks(self.plan.wisdom_seeds)

        standard.on_skill_activate(self.trackers[0].activate)
        standard.on_skill_deactivate(self.trackers[0].deactivate)
        compare.on_skill_activate(self.trackers[1].activate)
        compare.on_skill_deactivate(self.trackers[1].deactivate)
        return standard.build(), compare.build()

    def run(self, streams: Optional[Sequence] = None) -> ComparisonResult:
        # each run starts from the initial roles with empty records
        self.attempts = 0
        self.swap = SwapController()
        for tracker in self.trackers:
            tracker.reset()
        if streams is None:
            streams = self.build_streams()
        if self.verbose:
            print(
                f"\n--- Comparing {self.horse_a.name} vs {self.horse_b.name} "
                f"({self.nsamples} samples, {self.course.distance:.0f}m) ---"
            )

        stepper = DualTrajectoryStepper(self.course.distance, self.trackers)
        selector = RepresentativeSelector(self.nsamples)
        index = 0
        while index < self.nsamples:
            self.attempts += 1
            step = stepper.run(streams, self.swap.role, self.swap.retry)
            if not self.swap.accept(step.leader_final, step.follower_align):
                if self.verbose:
                    print(f"     ...sample {index}: leader overshot, replaying as {self.swap.role.name}")
                continue
            outcome = self.swap.outcome(step.leader_final, step.follower_align)
            selector.add(outcome, step.sample)
            if self.on_sample:
                self.on_sample(index, outcome, step.sample)
            index += 1

        result = selector.finish()
        if self.verbose:
            stats = result.summary()
            print(
                f"     ...{len(result.results)} samples in {self.attempts} attempts; "
                f"mean {stats['mean']:.2f}, median {stats['median']:.2f}, "
                f"min {stats['min']:.2f}, max {stats['max']:.2f} lengths"
            )
        return result


def run_comparison(
    nsamples: int,
    course: Course,
    racedef: RaceDefinition,
    horse_a: HorseConfig,
    horse_b: HorseConfig,
    options: Optional[CompareOptions] = None,
    **kwargs,
) -> ComparisonResult:
    """Compare two horses over ``nsamples`` paired races; positive lengths favour ``horse_b``."""
    return ComparisonRunner(nsamples, course, racedef, horse_a, horse_b, options, **kwargs).run()
