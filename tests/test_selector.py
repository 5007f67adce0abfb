import pytest

from race_compare.engine import SampleData
from race_compare.selector import ComparisonResult, RepresentativeSelector, sample_cutoff


def test_sample_cutoff_values():
    assert sample_cutoff(1000) == 800
    assert sample_cutoff(500) == 400
    assert sample_cutoff(2000) == 1800
    assert sample_cutoff(1) == 0
    assert sample_cutoff(0) == 0


def test_cutoff_estimates_use_first_800_outcomes():
    selector = RepresentativeSelector(1000)
    samples = [SampleData() for _ in range(1000)]
    for index, sample in enumerate(samples):
        selector.add(float(index), sample)
        if index < 800:
            assert selector.est_mean is None

    assert selector.cutoff == 800
    assert selector.est_mean == pytest.approx(399.5)
    assert selector.est_median == pytest.approx(399.5)

    result = selector.finish()
    assert result.run_data.min_run is samples[0]
    assert result.run_data.max_run is samples[999]
    # only the last 200 compete; 800 is the closest of them to 399.5
    assert result.run_data.mean_run is samples[800]
    assert result.run_data.median_run is samples[800]


def test_refinement_picks_closest_tail_sample():
    selector = RepresentativeSelector(5)
    samples = [SampleData() for _ in range(5)]
    for outcome, sample in zip([3.0, 1.0, 4.0, 2.0, 2.6], samples):
        selector.add(outcome, sample)

    assert selector.cutoff == 4
    assert selector.est_mean == pytest.approx(2.5)
    assert selector.est_median == pytest.approx(2.5)
    assert selector.run_data.mean_run is samples[4]
    assert selector.run_data.median_run is samples[4]


def test_median_estimate_averages_middle_pair():
    selector = RepresentativeSelector(5)
    for outcome in [10.0, 1.0, 2.0, 0.0, 5.0]:
        selector.add(outcome, SampleData())

    assert selector.est_mean == pytest.approx(3.25)
    assert selector.est_median == pytest.approx(1.5)


def test_single_sample_is_every_representative():
    selector = RepresentativeSelector(1)
    sample = SampleData()
    selector.add(-1.2, sample)
    result = selector.finish()

    assert result.results == [-1.2]
    data = result.run_data
    assert data.min_run is data.max_run is data.mean_run is data.median_run is sample


def test_no_samples_gives_empty_result():
    result = RepresentativeSelector(0).finish()

    assert result.results == []
    assert result.run_data.min_run is None
    assert result.run_data.median_run is None
    assert result.summary() == {"mean": 0.0, "median": 0.0, "min": 0.0, "max": 0.0}
    assert result.to_dict()["runData"]["minrun"] is None


def test_results_are_sorted_ascending():
    selector = RepresentativeSelector(6)
    for outcome in [0.5, -2.0, 3.0, 0.0, -0.5, 1.0]:
        selector.add(outcome, SampleData())
    result = selector.finish()

    assert result.results == [-2.0, -0.5, 0.0, 0.5, 1.0, 3.0]
    assert all(isinstance(value, float) for value in result.results)


def test_ties_keep_first_extreme():
    selector = RepresentativeSelector(3)
    first, second, third = SampleData(), SampleData(), SampleData()
    selector.add(1.0, first)
    selector.add(1.0, second)
    selector.add(1.0, third)

    assert selector.run_data.min_run is first
    assert selector.run_data.max_run is first


def test_summary_reports_basic_statistics():
    result = ComparisonResult(results=[-1.0, 0.0, 0.5, 2.5])

    assert result.summary() == {
        "mean": pytest.approx(0.5),
        "median": pytest.approx(0.25),
        "min": -1.0,
        "max": 2.5,
    }
