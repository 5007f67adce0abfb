import pytest

from race_compare.engine import Perspective, SeededRng
from race_compare.skill_meta import SkillCatalog
from race_compare.skill_order import (
    WISDOM_BURN_IN,
    plan_skill_rolls,
    shared_groups,
    wisdom_seed_map,
)

CATALOG = SkillCatalog.from_groups(
    {
        "99": "90",
        "100": "10",
        "201": "20",
        "202": "20",
        "300": "30",
        "500": "50",
        "700": "70",
    }
)


def _shared_relative_order(order, shared):
    return [CATALOG.group_id(s) for s in order if CATALOG.group_id(s) in shared]


def test_shared_groups_sorted_numerically():
    assert shared_groups(["300", "201", "100"], ["202", "100", "300"], CATALOG) == ["10", "20", "30"]


def test_shared_skills_rolled_first_in_group_order():
    plan = plan_skill_rolls(["500", "300", "100", "201"], ["700", "202", "100"], seed=1, catalog=CATALOG)

    # group 20 is shared through different variants
    assert plan.order_a == ("100", "201", "300", "500")
    assert plan.order_b == ("100", "202", "700")


def test_shared_relative_order_matches_regardless_of_input_order():
    a = ["300", "500", "201", "100", "99"]
    b = ["100", "700", "300", "202"]
    plan = plan_skill_rolls(a, b, seed=7, catalog=CATALOG)
    shared = set(shared_groups(a, b, CATALOG))

    assert _shared_relative_order(plan.order_a, shared) == _shared_relative_order(plan.order_b, shared)
    assert _shared_relative_order(plan.order_a, shared) == ["10", "20", "30"]


def test_unshared_skills_tie_break_on_numeric_id():
    plan = plan_skill_rolls(["500", "99", "300"], [], seed=1, catalog=CATALOG)

    # "99" sorts after "300" as a string but before it as a number
    assert plan.order_a == ("99", "300", "500")


def test_calls_put_own_skills_first_with_matching_perspectives():
    plan = plan_skill_rolls(["201"], ["202", "700"], seed=1, catalog=CATALOG)

    assert plan.calls_a == (
        ("201", Perspective.SELF),
        ("202", Perspective.OTHER),
        ("700", Perspective.OTHER),
    )
    assert plan.calls_b == (
        ("201", Perspective.OTHER),
        ("202", Perspective.SELF),
        ("700", Perspective.SELF),
    )


def test_wisdom_seed_map_burns_draws_before_first_skill():
    seeds = wisdom_seed_map(["100", "300"], ["100", "700"], seed=12345)

    rng = SeededRng(12345)
    for _ in range(WISDOM_BURN_IN):
        rng.pair()
    assert seeds["100"] == rng.pair()
    assert seeds["300"] == rng.pair()
    assert seeds["700"] == rng.pair()


def test_wisdom_seed_map_has_one_entry_per_distinct_skill():
    seeds = wisdom_seed_map(["100", "300"], ["100", "300", "700"], seed=3)

    assert set(seeds) == {"100", "300", "700"}
    assert len(set(seeds.values())) == 3


def test_wisdom_seed_map_is_deterministic_per_seed():
    first = wisdom_seed_map(["100", "201"], ["202"], seed=99)
    again = wisdom_seed_map(["100", "201"], ["202"], seed=99)
    other = wisdom_seed_map(["100", "201"], ["202"], seed=100)

    assert first == again
    assert first != other


def test_plan_rejects_unknown_skill():
    with pytest.raises(KeyError, match="404"):
        plan_skill_rolls(["404"], [], seed=1, catalog=CATALOG)
