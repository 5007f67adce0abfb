"""
Skill roll synchronization between the two competitors.

Every skill a stream applies draws from that stream's private generator,
so two horses carrying the same skill only see correlated activations if
the skill is rolled at the same point of both draw sequences. Skills
whose group is carried by both horses are therefore applied first, in
ascending group id, with the skill id as tie-breaker; everything else
follows. White and gold variants share a group, so they line up too.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from .engine.data_models import Perspective
from .engine.rng import SeededRng
from .skill_meta import SkillCatalog

WISDOM_BURN_IN = 20

SkillCall = Tuple[str, Perspective]


@dataclass(frozen=True)
class SkillRollPlan:
    order_a: Tuple[str, ...]
    order_b: Tuple[str, ...]
    calls_a: Tuple[SkillCall, ...]
    calls_b: Tuple[SkillCall, ...]
    wisdom_seeds: Dict[str, Tuple[int, int]]


def shared_groups(skills_a: Sequence[str], skills_b: Sequence[str], catalog: SkillCatalog) -> List[str]:
    groups_a = {catalog.group_id(skill_id) for skill_id in skills_a}
    groups_b = {catalog.group_id(skill_id) for skill_id in skills_b}
    return sorted(groups_a & groups_b, key=int)


def shared_first_key(
    skills_a: Sequence[str], skills_b: Sequence[str], catalog: SkillCatalog
) -> Callable[[str], Tuple[int, int]]:
    common = shared_groups(skills_a, skills_b, catalog)
    rank = {group_id: idx for idx, group_id in enumerate(common)}

    def key(skill_id: str) -> Tuple[int, int]:
        return rank.get(catalog.group_id(skill_id), len(common)), int(skill_id)

    return key


def wisdom_seed_map(order_a: Sequence[str], order_b: Sequence[str], seed: int) -> Dict[str, Tuple[int, int]]:
    rng = SeededRng(seed)
    # only the low bits come from the seed
    for _ in range(WISDOM_BURN_IN):
        rng.pair()
    seeds: Dict[str, Tuple[int, int]] = {}
    for skill_id in list(order_a) + list(order_b):
        if skill_id not in seeds:
            seeds[skill_id] = rng.pair()
    return seeds


def plan_skill_rolls(
    skills_a: Sequence[str], skills_b: Sequence[str], seed: int, catalog: SkillCatalog
) -> SkillRollPlan:
    key = shared_first_key(skills_a, skills_b, catalog)
    order_a = tuple(sorted(skills_a, key=key))
    order_b = tuple(sorted(skills_b, key=key))
    calls_a = tuple([(s, Perspective.SELF) for s in order_a] + [(s, Perspective.OTHER) for s in order_b])
    calls_b = tuple([(s, Perspective.OTHER) for s in order_a] + [(s, Perspective.SELF) for s in order_b])
    return SkillRollPlan(
        order_a=order_a,
        order_b=order_b,
        calls_a=calls_a,
        calls_b=calls_b,
        wisdom_seeds=wisdom_seed_map(order_a, order_b, seed),
    )
