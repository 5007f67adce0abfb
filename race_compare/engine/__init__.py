"""
Reference race engine behind the comparison core.

The package provides the collaborators the comparison consumes through
narrow interfaces: data models, a seeded bit generator, course lookup,
a fixed-step race solver and the builder that turns a configured horse
into a pull-based stream of race instances.
"""

from .builder import RaceSolverBuilder, SimulationStream, StreamExhaustedError  # noqa: F401
from .course import DEFAULT_COURSE_REGISTRY, CourseRegistry, section_length, slope_gradient_at  # noqa: F401
from .data_models import (  # noqa: F401
    AptitudeGrade,
    Aptitudes,
    Course,
    CourseSlope,
    Grade,
    GroundCondition,
    HorseConfig,
    HorseStats,
    Perspective,
    RaceDefinition,
    Season,
    Strategy,
    TimeOfDay,
    Weather,
)
from .rng import SeededRng  # noqa: F401
from .solver import DOWNHILL_ID, LEG_CONSERVATION_ID, STAMINA_CONTEST_ID, RaceSolver  # noqa: F401
from .telemetry import CompetitorTrajectory, SampleData  # noqa: F401

__all__ = [
    "RaceSolverBuilder",
    "SimulationStream",
    "StreamExhaustedError",
    "DEFAULT_COURSE_REGISTRY",
    "CourseRegistry",
    "section_length",
    "slope_gradient_at",
    "AptitudeGrade",
    "Aptitudes",
    "Course",
    "CourseSlope",
    "Grade",
    "GroundCondition",
    "HorseConfig",
    "HorseStats",
    "Perspective",
    "RaceDefinition",
    "Season",
    "Strategy",
    "TimeOfDay",
    "Weather",
    "SeededRng",
    "DOWNHILL_ID",
    "LEG_CONSERVATION_ID",
    "STAMINA_CONTEST_ID",
    "RaceSolver",
    "CompetitorTrajectory",
    "SampleData",
]
