from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Sequence, Tuple


class Strategy(Enum):
    """Running style, accepting the legacy numeric and romanized identifiers."""

    FRONT_RUNNER = "front_runner"
    PACE_CHASER = "pace_chaser"
    LATE_SURGER = "late_surger"
    END_CLOSER = "end_closer"

    @classmethod
    def from_legacy(cls, strategy_id: int) -> "Strategy":
        mapping = {
            1: cls.FRONT_RUNNER,
            2: cls.PACE_CHASER,
            3: cls.LATE_SURGER,
            4: cls.END_CLOSER,
        }
        if strategy_id not in mapping:
            raise ValueError(f"Unknown legacy strategy id: {strategy_id}")
        return mapping[strategy_id]

    @classmethod
    def parse(cls, value) -> "Strategy":
        if isinstance(value, Strategy):
            return value
        if isinstance(value, int):
            return cls.from_legacy(value)
        key = str(value).strip().lower().replace("-", " ").replace("_", " ")
        if key not in STRATEGY_ALIASES:
            raise ValueError(f"Unknown strategy: {value}")
        return STRATEGY_ALIASES[key]


STRATEGY_ALIASES = {
    "front runner": Strategy.FRONT_RUNNER,
    "nige": Strategy.FRONT_RUNNER,
    "pace chaser": Strategy.PACE_CHASER,
    "senkou": Strategy.PACE_CHASER,
    "late surger": Strategy.LATE_SURGER,
    "sasi": Strategy.LATE_SURGER,
    "end closer": Strategy.END_CLOSER,
    "oikomi": Strategy.END_CLOSER,
}


class AptitudeGrade(Enum):
    """Distance, surface and strategy aptitude grades."""

    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"

    @classmethod
    def from_str(cls, value: str) -> "AptitudeGrade":
        try:
            return cls(value.upper())
        except ValueError as exc:
            raise ValueError(f"Unknown aptitude grade: {value}") from exc

    @property
    def index(self) -> int:
        return list(AptitudeGrade).index(self)


class Perspective(Enum):
    """Whose point of view a skill is applied from on a given stream."""

    SELF = 1
    OTHER = 2


class GroundCondition(IntEnum):
    FIRM = 1
    GOOD = 2
    SOFT = 3
    HEAVY = 4


class Weather(IntEnum):
    SUNNY = 1
    CLOUDY = 2
    RAINY = 3
    SNOWY = 4


class Season(IntEnum):
    SPRING = 1
    SUMMER = 2
    AUTUMN = 3
    WINTER = 4
    SAKURA = 5


class TimeOfDay(IntEnum):
    NONE = 0
    MORNING = 1
    MIDDAY = 2
    EVENING = 3
    NIGHT = 4


class Grade(IntEnum):
    G1 = 100
    G2 = 200
    G3 = 300
    OP = 400
    PRE_OP = 700
    MAIDEN = 800
    DEBUT = 900
    DAILY = 999


@dataclass(frozen=True)
class HorseStats:
    speed: float
    stamina: float
    power: float
    guts: float
    wisdom: float


@dataclass(frozen=True)
class Aptitudes:
    distance: AptitudeGrade = AptitudeGrade.A
    surface: AptitudeGrade = AptitudeGrade.A
    strategy: AptitudeGrade = AptitudeGrade.A


@dataclass(frozen=True)
class HorseConfig:
    """One competitor: stats, running style and the skills it carries."""

    name: str
    stats: HorseStats
    strategy: Strategy
    aptitudes: Aptitudes = field(default_factory=Aptitudes)
    skills: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(set(self.skills)) != len(self.skills):
            raise ValueError(f"Duplicate skill ids for {self.name}: {self.skills}")

    def with_skills(self, skills: Sequence[str]) -> "HorseConfig":
        return HorseConfig(
            name=self.name,
            stats=self.stats,
            strategy=self.strategy,
            aptitudes=self.aptitudes,
            skills=tuple(skills),
        )

    @classmethod
    def from_dict(cls, payload: dict) -> "HorseConfig":
        stats = payload.get("stats", {})
        aptitudes = payload.get("aptitudes", {})
        return cls(
            name=str(payload.get("name", "Horse")),
            stats=HorseStats(
                speed=float(stats["speed"]),
                stamina=float(stats["stamina"]),
                power=float(stats["power"]),
                guts=float(stats["guts"]),
                wisdom=float(stats["wisdom"]),
            ),
            strategy=Strategy.parse(payload.get("strategy", "pace chaser")),
            aptitudes=Aptitudes(
                distance=AptitudeGrade.from_str(aptitudes.get("distance", "A")),
                surface=AptitudeGrade.from_str(aptitudes.get("surface", "A")),
                strategy=AptitudeGrade.from_str(aptitudes.get("strategy", "A")),
            ),
            skills=tuple(str(skill_id) for skill_id in payload.get("skills", ())),
        )


@dataclass(frozen=True)
class CourseSlope:
    start_pos: float
    length: float
    gradient: float

    @property
    def end_pos(self) -> float:
        return self.start_pos + self.length


@dataclass(frozen=True)
class Course:
    course_id: int
    name: str
    distance: float
    surface: str = "turf"
    slopes: Sequence[CourseSlope] = field(default_factory=tuple)


@dataclass(frozen=True)
class RaceDefinition:
    """Environmental race parameters shared by both competitors."""

    mood: int = 2
    ground: GroundCondition = GroundCondition.GOOD
    weather: Weather = Weather.SUNNY
    season: Season = Season.SPRING
    time: TimeOfDay = TimeOfDay.MIDDAY
    grade: Grade = Grade.G1
    order_range: Optional[Tuple[int, int]] = None
    num_umas: Optional[int] = None

    def __post_init__(self) -> None:
        if self.order_range is not None:
            lo, hi = self.order_range
            if lo < 1 or hi < lo:
                raise ValueError(f"Invalid order range: {self.order_range}")
            if self.num_umas is not None and hi > self.num_umas:
                raise ValueError(f"Order range {self.order_range} exceeds field size {self.num_umas}")
