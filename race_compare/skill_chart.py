"""
Per-skill gain table.

Each candidate skill gets its own comparison: the base horse against the
same horse carrying the skill. The comparisons share nothing, so they can
be farmed out to worker processes; each worker owns its streams from start
to finish.
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .compare import run_comparison
from .config import CompareOptions, get_config
from .engine.data_models import Course, HorseConfig, RaceDefinition
from .selector import ComparisonResult
from .skill_meta import SkillCatalog, default_catalog


@dataclass
class SkillChartRow:
    skill_id: str
    name: str
    result: ComparisonResult

    @property
    def mean(self) -> float:
        return self.result.summary()["mean"]

    def as_dict(self) -> dict:
        stats = self.result.summary()
        return {"skill_id": self.skill_id, "name": self.name, **stats}


def with_skill(horse: HorseConfig, skill_id: str, catalog: SkillCatalog) -> HorseConfig:
    """Add a skill, replacing any variant of the same group the horse already has."""
    group_id = catalog.group_id(skill_id)
    kept = [s for s in horse.skills if catalog.group_id(s) != group_id]
    return horse.with_skills(kept + [skill_id])


def candidate_skills(horse: HorseConfig, skills: Iterable[str], catalog: SkillCatalog) -> List[str]:
    carried = set(horse.skills)
    candidates = []
    for skill_id in skills:
        if skill_id in carried:
            continue
        # inherited uniques are pointless next to the original
        if skill_id.startswith("9") and ("1" + skill_id[1:]) in carried:
            continue
        catalog.get(skill_id)
        candidates.append(skill_id)
    return candidates


def _chart_row(job: Tuple) -> SkillChartRow:
    skill_id, horse, course, racedef, options, nsamples, catalog = job
    result = run_comparison(
        nsamples,
        course,
        racedef,
        horse,
        with_skill(horse, skill_id, catalog),
        options,
        catalog=catalog,
    )
    return SkillChartRow(skill_id=skill_id, name=catalog.get(skill_id).name, result=result)


def run_skill_chart(
    horse: HorseConfig,
    skills: Iterable[str],
    course: Course,
    racedef: RaceDefinition,
    options: Optional[CompareOptions] = None,
    nsamples: Optional[int] = None,
    workers: Optional[int] = None,
    catalog: Optional[SkillCatalog] = None,
    silent: bool = True,
) -> List[SkillChartRow]:
    catalog = catalog or default_catalog()
    options = options or CompareOptions.from_config()
    nsamples = nsamples if nsamples is not None else int(get_config("skill_chart.default_samples", 100))
    workers = workers if workers is not None else int(get_config("skill_chart.workers", 1))

    jobs = [
        (skill_id, horse, course, racedef, options, nsamples, catalog)
        for skill_id in candidate_skills(horse, skills, catalog)
    ]
    if not silent:
        print(f"Skill chart: {len(jobs)} skills x {nsamples} samples on {workers} worker(s)...")

    if workers > 1 and len(jobs) > 1:
        with ProcessPoolExecutor(max_workers=workers) as pool:
            rows = list(pool.map(_chart_row, jobs))
    else:
        rows = [_chart_row(job) for job in jobs]

    rows.sort(key=lambda row: row.mean, reverse=True)
    return rows
