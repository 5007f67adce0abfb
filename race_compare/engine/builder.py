from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Tuple

from ..skill_meta import SkillCatalog, SkillEffect, default_catalog
from .data_models import (
    Course,
    GroundCondition,
    Grade,
    HorseConfig,
    Perspective,
    RaceDefinition,
    Season,
    TimeOfDay,
    Weather,
)
from .rng import SeededRng
from .solver import RaceSolver, ScheduledSkill, SkillCallback

WisdomSeeds = Mapping[str, Tuple[int, int]]


class StreamExhaustedError(RuntimeError):
    """Raised when a stream is pulled more often than its sample count."""


def wisdom_check_chance(wisdom: float) -> float:
    if wisdom <= 0:
        return 0.2
    return max(100.0 - 9000.0 / wisdom, 20.0) / 100.0


@dataclass
class _SampleSeed:
    race: Tuple[int, int]
    skills: Tuple[int, int]
    wisdom: Dict[str, float] = field(default_factory=dict)


class SimulationStream:
    """
    Pull-based source of race instances for one horse.

    Each fresh pull advances the stream's generator; ``next(retry=True)``
    rebuilds the previous sample from the same randomness without advancing.
    A stream has exactly one consumer and must be pulled in order.
    """

    def __init__(
        self,
        *,
        nsamples: int,
        seed: int,
        course: Course,
        racedef: RaceDefinition,
        horse: HorseConfig,
        skills: List[Tuple[str, Perspective]],
        catalog: SkillCatalog,
        on_activate: List[SkillCallback],
        on_deactivate: List[SkillCallback],
        pacer: bool,
        wisdom_seeds: Optional[WisdomSeeds],
        region_mechanics: bool,
        opponent: Optional[HorseConfig] = None,
    ) -> None:
        self.nsamples = nsamples
        self.course = course
        self.racedef = racedef
        self.horse = horse
        self._skills = list(skills)
        self._catalog = catalog
        self._on_activate = list(on_activate)
        self._on_deactivate = list(on_deactivate)
        self._pacer = pacer
        self._region_mechanics = region_mechanics
        self._master = SeededRng(seed)
        self._wisdom_rngs: Optional[Dict[str, SeededRng]] = None
        if wisdom_seeds is not None:
            self._wisdom_rngs = {skill_id: SeededRng.from_pair(pair) for skill_id, pair in wisdom_seeds.items()}
        self._wisdom_chance = wisdom_check_chance(horse.stats.wisdom)
        # without an opponent its skills are never gated
        self._opponent_chance = wisdom_check_chance(opponent.stats.wisdom) if opponent is not None else 1.0
        self.pulled = 0
        self._last: Optional[_SampleSeed] = None

    def next(self, retry: bool = False) -> RaceSolver:
        if retry:
            if self._last is None:
                raise RuntimeError("Cannot replay a sample before the first pull.")
            sample = self._last
        else:
            if self.pulled >= self.nsamples:
                raise StreamExhaustedError(f"Stream exhausted after {self.nsamples} samples.")
            self.pulled += 1
            sample = _SampleSeed(race=self._master.pair(), skills=self._master.pair())
            if self._wisdom_rngs is not None:
                sample.wisdom = {skill_id: rng.random() for skill_id, rng in self._wisdom_rngs.items()}
            self._last = sample
        return self._instantiate(sample)

    def __iter__(self) -> "SimulationStream":
        return self

    def __next__(self) -> RaceSolver:
        try:
            return self.next()
        except StreamExhaustedError:
            raise StopIteration from None

    def _instantiate(self, sample: _SampleSeed) -> RaceSolver:
        race_rng = SeededRng.from_pair(sample.race)

        order = None
        if self.racedef.order_range is not None:
            order = race_rng.randint(*self.racedef.order_range)

        scheduled: List[ScheduledSkill] = []
        for skill_id, perspective in self._skills:
            effect = self._catalog.get(skill_id).effect
            if perspective is Perspective.OTHER and not effect.targets_other:
                continue
            # keyed by skill id so the holder's copy and the opponent's copy land together
            lo, hi = effect.window
            start_pos = SeededRng.keyed(sample.skills, int(skill_id)).uniform(lo, hi) * self.course.distance
            if perspective is Perspective.SELF and effect.targets_other:
                effect = _observed_only(effect)
            passes = True
            if self._wisdom_rngs is not None:
                chance = self._wisdom_chance if perspective is Perspective.SELF else self._opponent_chance
                passes = sample.wisdom.get(skill_id, 0.0) < chance
            scheduled.append(ScheduledSkill(skill_id, perspective, start_pos, effect, passes))

        return RaceSolver(
            course=self.course,
            horse=self.horse,
            racedef=self.racedef,
            rng=race_rng,
            skills=scheduled,
            on_activate=self._dispatch(self._on_activate),
            on_deactivate=self._dispatch(self._on_deactivate),
            pacer=self._pacer,
            region_mechanics=self._region_mechanics,
            order=order,
            num_umas=self.racedef.num_umas,
        )

    @staticmethod
    def _dispatch(callbacks: List[SkillCallback]) -> SkillCallback:
        def fire(solver: RaceSolver, skill_id: str, perspective: Perspective) -> None:
            for callback in callbacks:
                callback(solver, skill_id, perspective)

        return fire


def _observed_only(effect: SkillEffect) -> SkillEffect:
    """A skill aimed at the opponent still activates but leaves its holder untouched."""
    return replace(effect, speed=0.0, accel=0.0, current_speed=0.0, heal=0.0)


class RaceSolverBuilder:
    """Fluent configuration for a :class:`SimulationStream`."""

    def __init__(self, nsamples: int, catalog: Optional[SkillCatalog] = None) -> None:
        if nsamples < 0:
            raise ValueError(f"Sample count must be non-negative, got {nsamples}")
        self._nsamples = nsamples
        self._catalog = catalog
        self._seed = 0
        self._course: Optional[Course] = None
        self._racedef = RaceDefinition()
        self._horse: Optional[HorseConfig] = None
        self._opponent: Optional[HorseConfig] = None
        self._skills: List[Tuple[str, Perspective]] = []
        self._on_activate: List[SkillCallback] = []
        self._on_deactivate: List[SkillCallback] = []
        self._pacer = False
        self._wisdom_seeds: Optional[WisdomSeeds] = None
        self._region_mechanics = False

    def seed(self, seed: int) -> "RaceSolverBuilder":
        self._seed = int(seed)
        return self

    def course(self, course: Course) -> "RaceSolverBuilder":
        self._course = course
        return self

    def mood(self, mood: int) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, mood=mood)
        return self

    def ground(self, ground: GroundCondition) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, ground=ground)
        return self

    def weather(self, weather: Weather) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, weather=weather)
        return self

    def season(self, season: Season) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, season=season)
        return self

    def time(self, time: TimeOfDay) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, time=time)
        return self

    def grade(self, grade: Grade) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, grade=grade)
        return self

    def order(self, lo: int, hi: int) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, order_range=(lo, hi))
        return self

    def num_umas(self, count: int) -> "RaceSolverBuilder":
        self._racedef = replace(self._racedef, num_umas=count)
        return self

    def horse(self, horse: HorseConfig) -> "RaceSolverBuilder":
        self._horse = horse
        return self

    def opponent(self, horse: HorseConfig) -> "RaceSolverBuilder":
        """Horse whose skills arrive under the other perspective; its wisdom gates them."""
        self._opponent = horse
        return self

    def add_skill(self, skill_id: str, perspective: Perspective = Perspective.SELF) -> "RaceSolverBuilder":
        self._skills.append((skill_id, perspective))
        return self

    def on_skill_activate(self, callback: SkillCallback) -> "RaceSolverBuilder":
        self._on_activate.append(callback)
        return self

    def on_skill_deactivate(self, callback: SkillCallback) -> "RaceSolverBuilder":
        self._on_deactivate.append(callback)
        return self

    def use_default_pacer(self) -> "RaceSolverBuilder":
        self._pacer = True
        return self

    def with_wisdom_checks(self, seeds: WisdomSeeds) -> "RaceSolverBuilder":
        self._wisdom_seeds = seeds
        return self

    def with_region_mechanics(self) -> "RaceSolverBuilder":
        """Leg conservation and the final-leg stamina contest."""
        self._region_mechanics = True
        return self

    def fork(self) -> "RaceSolverBuilder":
        forked = copy.copy(self)
        forked._skills = list(self._skills)
        forked._on_activate = list(self._on_activate)
        forked._on_deactivate = list(self._on_deactivate)
        return forked

    def build(self) -> SimulationStream:
        if self._course is None:
            raise ValueError("Cannot build a stream without a course.")
        if self._horse is None:
            raise ValueError("Cannot build a stream without a horse.")
        if self._course.distance <= 0:
            raise ValueError(f"Course {self._course.course_id} has non-positive distance {self._course.distance}")
        catalog = self._catalog or default_catalog()
        for skill_id, _ in self._skills:
            catalog.get(skill_id)
        return SimulationStream(
            nsamples=self._nsamples,
            seed=self._seed,
            course=self._course,
            racedef=self._racedef,
            horse=self._horse,
            skills=self._skills,
            catalog=catalog,
            on_activate=self._on_activate,
            on_deactivate=self._on_deactivate,
            pacer=self._pacer,
            wisdom_seeds=self._wisdom_seeds,
            region_mechanics=self._region_mechanics,
            opponent=self._opponent,
        )
