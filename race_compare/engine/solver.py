from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..skill_meta import SkillEffect
from .course import section_length, slope_gradient_at
from .data_models import Course, GroundCondition, HorseConfig, Perspective, RaceDefinition, Strategy
from .rng import SeededRng

SkillCallback = Callable[["RaceSolver", str, Perspective], None]

DOWNHILL_ID = "downhill"
LEG_CONSERVATION_ID = "asitame"
STAMINA_CONTEST_ID = "staminasyoubu"

MAX_STAT_VALUE = 1200.0
DEFAULT_FIELD_SIZE = 9


class Phase(Enum):
    OPENING = 0
    MIDDLE = 1
    FINAL = 2


STRATEGY_SPEED_MOD = {
    Strategy.FRONT_RUNNER: {Phase.OPENING: 1.0, Phase.MIDDLE: 0.98, Phase.FINAL: 0.962},
    Strategy.PACE_CHASER: {Phase.OPENING: 0.978, Phase.MIDDLE: 0.991, Phase.FINAL: 0.975},
    Strategy.LATE_SURGER: {Phase.OPENING: 0.938, Phase.MIDDLE: 0.998, Phase.FINAL: 0.994},
    Strategy.END_CLOSER: {Phase.OPENING: 0.931, Phase.MIDDLE: 1.0, Phase.FINAL: 1.0},
}

STRATEGY_ACCEL_MOD = {
    Strategy.FRONT_RUNNER: {Phase.OPENING: 1.0, Phase.MIDDLE: 1.0, Phase.FINAL: 0.996},
    Strategy.PACE_CHASER: {Phase.OPENING: 0.985, Phase.MIDDLE: 1.0, Phase.FINAL: 0.996},
    Strategy.LATE_SURGER: {Phase.OPENING: 0.975, Phase.MIDDLE: 1.0, Phase.FINAL: 1.0},
    Strategy.END_CLOSER: {Phase.OPENING: 0.945, Phase.MIDDLE: 1.0, Phase.FINAL: 0.997},
}

STRATEGY_HP_MOD = {
    Strategy.FRONT_RUNNER: 0.95,
    Strategy.PACE_CHASER: 0.89,
    Strategy.LATE_SURGER: 1.0,
    Strategy.END_CLOSER: 0.995,
}

PHASE_DECELERATION = {
    Phase.OPENING: -1.2,
    Phase.MIDDLE: -0.8,
    Phase.FINAL: -1.0,
}

DISTANCE_SPEED_MOD = [1.05, 1.0, 0.9, 0.8, 0.6, 0.4, 0.2, 0.1]
DISTANCE_ACCEL_MOD = [1.0, 1.0, 1.0, 1.0, 1.0, 0.6, 0.5, 0.4]
SURFACE_ACCEL_MOD = [1.05, 1.0, 0.9, 0.8, 0.7, 0.5, 0.3, 0.1]
STRATEGY_WISDOM_MOD = [1.1, 1.0, 0.85, 0.75, 0.6, 0.4, 0.2, 0.1]

MOOD_COEF = {-2: 0.96, -1: 0.98, 0: 1.0, 1: 1.02, 2: 1.04}
GROUND_POWER_PENALTY = {
    GroundCondition.FIRM: 0.0,
    GroundCondition.GOOD: 0.0,
    GroundCondition.SOFT: -50.0,
    GroundCondition.HEAVY: -50.0,
}
GROUND_HP_MOD = {
    GroundCondition.FIRM: 1.0,
    GroundCondition.GOOD: 1.0,
    GroundCondition.SOFT: 1.02,
    GroundCondition.HEAVY: 1.02,
}

PK_SPEED_FACTORS = {
    "speed_up": 1.04,
    "pace_up": 1.04,
    "pace_down": 0.915,
    "normal": 1.0,
}

START_SPEED = 3.0
START_DASH_ACCEL_BONUS = 24.0
START_DASH_TARGET_FACTOR = 0.85
BASE_ACCEL = 0.0006
UPHILL_BASE_ACCEL = 0.0004
LAST_SPURT_GUTS_BONUS_COEF = 0.0001


@dataclass
class SpeedModifiers:
    """Correction terms added on top of the base current speed."""

    acc: float = 0.0
    err: float = 0.0


@dataclass
class ScheduledSkill:
    skill_id: str
    perspective: Perspective
    start_pos: float
    effect: SkillEffect
    passes_check: bool = True


@dataclass
class ActiveSkill:
    skill_id: str
    perspective: Perspective
    effect: SkillEffect
    remaining: float


def _noop(solver: "RaceSolver", skill_id: str, perspective: Perspective) -> None:
    return None


class RaceSolver:
    """Fixed-step forward simulation of one horse over one course."""

    def __init__(
        self,
        *,
        course: Course,
        horse: HorseConfig,
        racedef: RaceDefinition,
        rng: SeededRng,
        skills: Sequence[ScheduledSkill] = (),
        on_activate: Optional[SkillCallback] = None,
        on_deactivate: Optional[SkillCallback] = None,
        pacer: bool = False,
        region_mechanics: bool = False,
        order: Optional[int] = None,
        num_umas: Optional[int] = None,
    ) -> None:
        if course.distance <= 0:
            raise ValueError(f"Course {course.course_id} has non-positive distance {course.distance}")

        self.course = course
        self.horse = horse
        self.racedef = racedef
        self.rng = rng
        self.on_activate = on_activate or _noop
        self.on_deactivate = on_deactivate or _noop
        self.pacer = pacer
        self.region_mechanics = region_mechanics
        self.num_umas = num_umas or DEFAULT_FIELD_SIZE
        self.order = order if order is not None else (self.num_umas + 1) // 2

        mood = MOOD_COEF.get(racedef.mood, 1.0)
        stats = horse.stats
        self.speed_stat = stats.speed * mood
        self.stamina_stat = stats.stamina * mood
        self.power_stat = max(1.0, stats.power * mood + GROUND_POWER_PENALTY.get(racedef.ground, 0.0))
        self.guts_stat = stats.guts * mood
        self.wisdom_stat = stats.wisdom * mood * STRATEGY_WISDOM_MOD[horse.aptitudes.strategy.index]

        self.base_speed = 20.0 - (course.distance - 2000.0) / 1000.0
        self.max_hp = 0.8 * STRATEGY_HP_MOD[horse.strategy] * self.stamina_stat + course.distance
        self.hp = self.max_hp
        self.min_speed = 0.85 * self.base_speed + math.sqrt(200.0 * self.guts_stat) * 0.001
        self._section_length = section_length(course)

        self.pos = 0.0
        self.elapsed_time = 0.0
        self.current_speed = START_SPEED
        self.speed_modifiers = SpeedModifiers()
        self.start_delay = rng.uniform(0.0, 0.1)
        self.phase = Phase.OPENING

        self._pending: List[ScheduledSkill] = sorted(skills, key=lambda s: s.start_pos)
        self._active: List[ActiveSkill] = []
        self._start_dash = True
        self._downhill = False
        self._noise_timer = 0.0
        self._section = -1
        self._pace_factor = 1.0
        self._leg_conservation: Optional[bool] = None
        self._stamina_contest: Optional[bool] = None
        self._stamina_contest_bonus = 0.0
        self._released = False

    # --- Public API ------------------------------------------------------

    def step(self, dt: float) -> None:
        """Advance the horse by dt seconds."""
        self.elapsed_time += dt
        if self.elapsed_time < self.start_delay:
            return

        self.phase = self._phase_for(self.pos)
        self._update_section()
        if self.region_mechanics:
            self._update_region_mechanics()
        self._activate_pending()

        gradient = slope_gradient_at(self.course, self.pos)
        downhill_bonus = self._update_downhill(gradient, dt)
        self._update_noise(dt)

        target = self._target_speed(downhill_bonus)
        if self.current_speed < target:
            accel = self._acceleration(gradient)
            new_speed = min(self.current_speed + accel * dt, target)
        else:
            new_speed = max(self.current_speed + PHASE_DECELERATION[self.phase] * dt, target)
        if self._start_dash and new_speed >= START_DASH_TARGET_FACTOR * self.base_speed:
            self._start_dash = False
        if not self._start_dash:
            new_speed = max(new_speed, self.min_speed)
        self.current_speed = new_speed

        self.speed_modifiers.acc = sum(s.effect.current_speed for s in self._active)
        self.hp = max(0.0, self.hp - self._hp_drain(dt))
        self.pos += (self.current_speed + self.speed_modifiers.acc + self.speed_modifiers.err) * dt
        self._tick_active(dt)

    def cleanup(self) -> None:
        """Deactivate everything still running so observers see closed records."""
        if self._released:
            return
        self._released = True
        for active in list(self._active):
            self.on_deactivate(self, active.skill_id, active.perspective)
        self._active.clear()
        if self._downhill:
            self._downhill = False
            self.on_deactivate(self, DOWNHILL_ID, Perspective.SELF)
        if self._leg_conservation:
            self._leg_conservation = False
            self.on_deactivate(self, LEG_CONSERVATION_ID, Perspective.SELF)
        if self._stamina_contest:
            self._stamina_contest = False
            self.on_deactivate(self, STAMINA_CONTEST_ID, Perspective.SELF)

    @property
    def active_skill_ids(self) -> List[str]:
        return [s.skill_id for s in self._active]

    # --- Helpers ---------------------------------------------------------

    def _phase_for(self, position: float) -> Phase:
        ratio = position / self.course.distance
        if ratio < 1.0 / 6.0:
            return Phase.OPENING
        if ratio < 2.0 / 3.0:
            return Phase.MIDDLE
        return Phase.FINAL

    def _update_section(self) -> None:
        section = int(self.pos / self._section_length) if self._section_length > 0 else 0
        if section == self._section:
            return
        self._section = section
        if not self.pacer or self.phase is Phase.FINAL:
            self._pace_factor = 1.0
            return
        roll = self.rng.random()
        if self.horse.strategy is Strategy.FRONT_RUNNER:
            mode = "speed_up" if roll < 0.2 else "normal"
        elif self.order <= 2 and roll < 0.25:
            mode = "pace_down"
        elif self.order > self.num_umas / 2 and roll < 0.2:
            mode = "pace_up"
        else:
            mode = "normal"
        self._pace_factor = PK_SPEED_FACTORS[mode]

    def _update_region_mechanics(self) -> None:
        if self.phase is Phase.MIDDLE and self._leg_conservation is None:
            self._leg_conservation = self.rng.random() < min(0.9, self.guts_stat / 2000.0)
            if self._leg_conservation:
                self.on_activate(self, LEG_CONSERVATION_ID, Perspective.SELF)
        if self.phase is Phase.FINAL:
            if self._leg_conservation:
                self._leg_conservation = False
                self.on_deactivate(self, LEG_CONSERVATION_ID, Perspective.SELF)
            if self._stamina_contest is None:
                hp_ratio = self.hp / self.max_hp if self.max_hp > 0 else 0.0
                self._stamina_contest = self.stamina_stat > 1200.0 and hp_ratio > 0.15
                if self._stamina_contest:
                    distance_factor = DISTANCE_SPEED_MOD[self.horse.aptitudes.distance.index]
                    self._stamina_contest_bonus = math.sqrt(self.stamina_stat - 1200.0) * 0.0085 * distance_factor
                    self.on_activate(self, STAMINA_CONTEST_ID, Perspective.SELF)

    def _activate_pending(self) -> None:
        while self._pending and self._pending[0].start_pos <= self.pos:
            scheduled = self._pending.pop(0)
            if not scheduled.passes_check:
                continue
            self.on_activate(self, scheduled.skill_id, scheduled.perspective)
            effect = scheduled.effect
            if effect.heal:
                self.hp = min(self.max_hp, self.hp + effect.heal * self.max_hp)
            if effect.duration > 0.0:
                duration = effect.duration * self.course.distance / 1000.0
                self._active.append(ActiveSkill(scheduled.skill_id, scheduled.perspective, effect, duration))
            else:
                self.on_deactivate(self, scheduled.skill_id, scheduled.perspective)

    def _tick_active(self, dt: float) -> None:
        expired = []
        for active in self._active:
            active.remaining -= dt
            if active.remaining <= 0.0:
                expired.append(active)
        for active in expired:
            self._active.remove(active)
            self.on_deactivate(self, active.skill_id, active.perspective)

    def _update_downhill(self, gradient: float, dt: float) -> float:
        active = self._downhill
        if gradient < -0.1:
            if not active:
                chance = min(0.8, self.wisdom_stat * 0.0004) * dt
                active = self.rng.random() < chance
            else:
                active = not (self.rng.random() < 0.2 * dt)
        else:
            active = False
        if active != self._downhill:
            self._downhill = active
            callback = self.on_activate if active else self.on_deactivate
            callback(self, DOWNHILL_ID, Perspective.SELF)
        if active:
            return max(0.0, 0.3 + abs(gradient) / 10.0)
        return 0.0

    def _update_noise(self, dt: float) -> None:
        self._noise_timer -= dt
        if self._noise_timer > 0.0:
            return
        wisdom_ratio = min(self.wisdom_stat / MAX_STAT_VALUE, 1.0)
        amplitude = 0.1 * (1.0 - wisdom_ratio * 0.5)
        self.speed_modifiers.err = (self.rng.random() * 2.0 - 1.0) * amplitude
        self._noise_timer = 0.45 + (1.0 - wisdom_ratio) * 0.4

    def _target_speed(self, downhill_bonus: float) -> float:
        if self.hp <= 0.0:
            return self.min_speed
        strategy = self.horse.strategy
        total = self.base_speed * STRATEGY_SPEED_MOD[strategy][self.phase]
        if self.phase is Phase.FINAL:
            distance_factor = DISTANCE_SPEED_MOD[self.horse.aptitudes.distance.index]
            total += math.sqrt(500.0 * self.speed_stat) * distance_factor * 0.002
            total += math.pow(450.0 * self.guts_stat, 0.597) * LAST_SPURT_GUTS_BONUS_COEF
            total += self._stamina_contest_bonus if self._stamina_contest else 0.0
        total += sum(s.effect.speed for s in self._active)
        total += downhill_bonus
        total *= self._pace_factor
        return float(np.clip(total, self.min_speed * 0.5, None))

    def _acceleration(self, gradient: float) -> float:
        aptitudes = self.horse.aptitudes
        base_value = UPHILL_BASE_ACCEL if gradient > 0 else BASE_ACCEL
        accel = (
            base_value
            * math.sqrt(500.0 * self.power_stat)
            * STRATEGY_ACCEL_MOD[self.horse.strategy][self.phase]
            * SURFACE_ACCEL_MOD[aptitudes.surface.index]
            * DISTANCE_ACCEL_MOD[aptitudes.distance.index]
        )
        if self._start_dash:
            accel += START_DASH_ACCEL_BONUS
        return accel + sum(s.effect.accel for s in self._active)

    def _hp_drain(self, dt: float) -> float:
        guts_mod = 1.0
        if self.phase is Phase.FINAL:
            guts_mod = 1.0 + 200.0 / math.sqrt(max(600.0 * self.guts_stat, 1.0))
        speed_delta = max(self.current_speed - self.base_speed + 12.0, 0.0)
        drain = 20.0 * (speed_delta ** 2) / 144.0 * guts_mod * GROUND_HP_MOD.get(self.racedef.ground, 1.0)
        if self._downhill:
            drain *= 0.4
        if self._leg_conservation:
            drain *= 0.9
        return drain * dt

