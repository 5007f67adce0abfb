from types import SimpleNamespace

import pytest

from race_compare.engine import DOWNHILL_ID, LEG_CONSERVATION_ID, STAMINA_CONTEST_ID, Perspective
from race_compare.intervals import OPEN, SkillIntervalTracker

SELF = Perspective.SELF


def _at(pos, t=0.0):
    return SimpleNamespace(pos=pos, elapsed_time=t)


def test_activation_opens_and_deactivation_closes_interval():
    tracker = SkillIntervalTracker(1000.0)
    tracker.activate(_at(100.0), "200332", SELF)
    assert tracker.intervals == {"200332": [[100.0, OPEN]]}

    tracker.deactivate(_at(180.0), "200332", SELF)
    assert tracker.intervals == {"200332": [[100.0, 180.0]]}


def test_stacked_activations_close_oldest_open_first():
    tracker = SkillIntervalTracker(1000.0)
    tracker.activate(_at(100.0), "202051", SELF)
    tracker.activate(_at(150.0), "202051", SELF)

    tracker.deactivate(_at(200.0), "202051", SELF)
    assert tracker.intervals["202051"] == [[100.0, 200.0], [150.0, OPEN]]

    tracker.deactivate(_at(260.0), "202051", SELF)
    assert tracker.intervals["202051"] == [[100.0, 200.0], [150.0, 260.0]]


def test_second_end_report_is_ignored():
    tracker = SkillIntervalTracker(1000.0)
    tracker.activate(_at(100.0), "100011", SELF)
    tracker.deactivate(_at(140.0), "100011", SELF)
    tracker.deactivate(_at(170.0), "100011", SELF)

    assert tracker.intervals["100011"] == [[100.0, 140.0]]


def test_deactivation_without_activation_records_nothing():
    tracker = SkillIntervalTracker(1000.0)
    tracker.deactivate(_at(140.0), "100011", SELF)

    assert tracker.intervals == {}


def test_end_position_is_clamped_to_course_distance():
    tracker = SkillIntervalTracker(1200.0)
    tracker.activate(_at(1190.0), "201661", SELF)
    tracker.deactivate(_at(1213.5), "201661", SELF)

    assert tracker.intervals["201661"] == [[1190.0, 1200.0]]


def test_other_perspective_and_region_markers_are_ignored():
    tracker = SkillIntervalTracker(1000.0)
    tracker.activate(_at(100.0), "202161", Perspective.OTHER)
    tracker.activate(_at(300.0), LEG_CONSERVATION_ID, SELF)
    tracker.activate(_at(700.0), STAMINA_CONTEST_ID, SELF)
    tracker.deactivate(_at(750.0), LEG_CONSERVATION_ID, SELF)

    assert tracker.intervals == {}


def test_downhill_accumulates_duration_not_intervals():
    tracker = SkillIntervalTracker(1000.0)
    tracker.activate(_at(200.0, t=10.0), DOWNHILL_ID, SELF)
    tracker.deactivate(_at(260.0, t=13.5), DOWNHILL_ID, SELF)
    tracker.activate(_at(300.0, t=16.0), DOWNHILL_ID, SELF)
    tracker.deactivate(_at(320.0, t=17.0), DOWNHILL_ID, SELF)

    intervals, downhill = tracker.collect(final_time=60.0)
    assert intervals == {}
    assert downhill == pytest.approx(4.5)


def test_collect_resolves_open_records_and_resets():
    tracker = SkillIntervalTracker(1600.0)
    tracker.activate(_at(1500.0), "200592", SELF)
    tracker.activate(_at(900.0, t=50.0), DOWNHILL_ID, SELF)

    intervals, downhill = tracker.collect(final_time=58.0)

    assert intervals == {"200592": [[1500.0, 1600.0]]}
    assert downhill == pytest.approx(8.0)
    assert tracker.intervals == {}
    assert tracker.downhill == 0.0
