from types import SimpleNamespace

import pytest

from _fakes import FailingStream, FakeStream
from race_compare.engine import Perspective
from race_compare.intervals import SkillIntervalTracker
from race_compare.stepper import DT, DualTrajectoryStepper, StalledRaceError
from race_compare.swap import Role


def _stepper(distance=100.0, max_time=600.0):
    trackers = (SkillIntervalTracker(distance), SkillIntervalTracker(distance))
    return DualTrajectoryStepper(distance, trackers, max_time=max_time)


def test_follower_is_measured_at_leader_finish_time():
    streams = (FakeStream([18.0], start_delay=0.03), FakeStream([20.0], start_delay=0.07))
    step = _stepper().run(streams, Role.B_LEADS, retry=False)

    leader = step.sample[1]
    follower = step.sample[0]
    assert step.leader_final >= 100.0
    assert step.leader_final == leader.position[-1]
    assert step.follower_align == pytest.approx(18.0 * leader.final_time)
    assert step.follower_align < step.leader_final

    # the follower keeps running to its own finish for the chart
    assert follower.position[-1] >= 100.0
    assert follower.final_time > leader.final_time
    assert leader.start_delay == 0.07
    assert follower.start_delay == 0.03


def test_slots_stay_fixed_when_first_competitor_leads():
    streams = (FakeStream([20.0]), FakeStream([18.0]))
    step = _stepper().run(streams, Role.A_LEADS, retry=False)

    assert step.sample[0].speed[0] == pytest.approx(20.0)
    assert step.sample[1].speed[0] == pytest.approx(18.0)
    assert step.leader_final == step.sample[0].position[-1]


def test_series_are_co_indexed_and_stepped_at_fixed_dt():
    streams = (FakeStream([19.0]), FakeStream([20.0]))
    step = _stepper().run(streams, Role.B_LEADS, retry=False)

    for run in step.sample.runs:
        assert len(run.time) == len(run.position) == len(run.speed) == len(run.hp)
        assert run.time[0] == pytest.approx(DT)
        assert run.time[1] - run.time[0] == pytest.approx(DT)


def test_instances_are_released_after_each_sample():
    streams = (FakeStream([19.0]), FakeStream([20.0]))
    _stepper().run(streams, Role.B_LEADS, retry=False)

    assert streams[0].instances[0].cleaned == 1
    assert streams[1].instances[0].cleaned == 1


def test_retry_flag_is_forwarded_to_both_streams():
    streams = (FakeStream([19.0]), FakeStream([20.0]))
    stepper = _stepper()
    stepper.run(streams, Role.B_LEADS, retry=False)
    stepper.run(streams, Role.A_LEADS, retry=True)

    assert streams[0].retry_flags == [False, True]
    assert streams[1].retry_flags == [False, True]
    assert streams[0].fresh_pulls == 1


def test_pulled_instance_is_released_when_other_stream_fails():
    first = FakeStream([19.0])
    with pytest.raises(RuntimeError, match="engine blew up"):
        _stepper().run((first, FailingStream()), Role.B_LEADS, retry=False)

    assert first.instances[0].cleaned == 1


def test_stalled_instance_raises():
    streams = (FakeStream([10.0]), FakeStream([0.0]))
    with pytest.raises(StalledRaceError):
        _stepper(max_time=5.0).run(streams, Role.B_LEADS, retry=False)

    assert streams[0].instances[0].cleaned == 1
    assert streams[1].instances[0].cleaned == 1


def test_tracker_records_are_collected_into_sample():
    streams = (FakeStream([19.0]), FakeStream([20.0]))
    stepper = _stepper()
    stepper.trackers[0].activate(SimpleNamespace(pos=0.0, elapsed_time=0.0), "200332", Perspective.SELF)
    step = stepper.run(streams, Role.B_LEADS, retry=False)

    assert step.sample[0].skills == {"200332": [[0.0, 100.0]]}
    assert step.sample[1].skills == {}
    assert stepper.trackers[0].intervals == {}
