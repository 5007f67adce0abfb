"""
Paired race comparison measured in horse lengths.

Two horses run the same course from streams that share their seed; the
gap at the moment the leader crosses the line is collected over many
samples together with a handful of representative trajectories.
"""

from .compare import ComparisonRunner, run_comparison  # noqa: F401
from .config import CompareOptions  # noqa: F401
from .selector import ComparisonResult, RunData  # noqa: F401
from .skill_chart import SkillChartRow, run_skill_chart  # noqa: F401
from .skill_meta import SkillCatalog, default_catalog  # noqa: F401

__all__ = [
    "ComparisonRunner",
    "run_comparison",
    "CompareOptions",
    "ComparisonResult",
    "RunData",
    "SkillChartRow",
    "run_skill_chart",
    "SkillCatalog",
    "default_catalog",
]
