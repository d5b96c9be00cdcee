"""
Tests for drought classification and drought-duration statistics.
"""

import numpy as np
import pandas as pd
import pytest

from cmip_drought.metrics.core.drought import (
    classify_drought,
    drought_run_lengths,
    summarize_drought_durations,
    summarize_frame_droughts,
)


class TestClassification:

    def test_strictly_below_threshold(self):
        flags = classify_drought([-1.01, -1.0, -0.5, 0.0, 2.0])
        assert flags.tolist() == [True, False, False, False, False]

    def test_missing_is_never_drought(self):
        flags = classify_drought([np.nan, -np.inf, np.nan])
        assert flags.tolist() == [False, True, False]

    def test_monotone_in_threshold(self):
        values = np.random.default_rng(0).normal(size=200)
        lower = classify_drought(values, threshold=-1.5)
        higher = classify_drought(values, threshold=-1.0)
        assert not (lower & ~higher).any()

    def test_values_above_threshold_never_drought(self):
        values = np.linspace(-0.999, 3, 50)
        assert not classify_drought(values).any()


class TestRunLengths:

    def test_runs_split_by_normal_and_missing_months(self):
        index = [-2, -2, 0, -1.5, np.nan, -3, -3, -3]
        assert drought_run_lengths(index) == [2, 1, 3]

    def test_run_at_end_of_series(self):
        assert drought_run_lengths([0, -2, -2]) == [2]

    def test_no_runs(self):
        assert drought_run_lengths([0.5, np.nan, -0.2]) == []


class TestSummary:

    def test_single_isolated_month(self):
        summary = summarize_drought_durations([0, 0, -1.5, 0, 0])
        assert summary["n_events"] == 1
        assert summary["mean_duration"] == 1.0
        assert np.isnan(summary["std_duration"])

    def test_no_drought_gives_nan_not_zero(self):
        summary = summarize_drought_durations([0.0, 1.0, np.nan])
        assert summary["n_events"] == 0
        assert np.isnan(summary["mean_duration"])
        assert np.isnan(summary["std_duration"])
        assert summary["drought_months"] == 0

    def test_sample_standard_deviation(self):
        summary = summarize_drought_durations([-2, -2, 0, -1.5, 0, -3, -3, -3])
        assert summary["mean_duration"] == pytest.approx(2.0)
        assert summary["std_duration"] == pytest.approx(1.0)
        assert summary["max_duration"] == 3.0
        assert summary["drought_months"] == 6

    def test_frame_summary_per_series_in_time_order(self):
        times = pd.date_range("2000-01", periods=4, freq="MS")
        frame = pd.DataFrame({
            "source_id": ["M"] * 4 + ["N"] * 4,
            "experiment_id": "historical",
            # M is stored out of order: sorted it holds one 2-month run
            "time": list(times[[3, 0, 1, 2]]) + list(times),
            "spei": [-2.0, 0.0, 0.0, -2.0, -2.0, 0.0, -2.0, 0.0],
        })
        summary = summarize_frame_droughts(frame).set_index("source_id")
        assert summary.loc["M", "n_events"] == 1
        assert summary.loc["M", "mean_duration"] == 2.0
        assert summary.loc["N", "n_events"] == 2
        assert list(summary.columns[:1]) == ["experiment_id"]
