"""
Tests for the standardized precipitation-evapotranspiration index.
"""

import logging

import numpy as np
import pandas as pd
import pytest
from scipy.stats import fisk

from cmip_drought.metrics.core.evapotranspiration import derive_water_balance
from cmip_drought.metrics.core.spei import (
    LogLogisticSPEI,
    StandardizedIndexEstimator,
    accumulate,
    check_monthly_sequence,
    compute_frame_spei,
    fit_log_logistic,
    unbiased_pwm,
)
from cmip_drought.shared.contracts.climate_series import ReferencePeriod
from cmip_drought.shared.errors import (
    EmptyReferenceError,
    ReferencePeriodError,
    StructuralConsistencyError,
)

from conftest import make_model

REFERENCE = ReferencePeriod(start="1981-01", end="2010-12")


class TestMonthlySequence:

    def test_regular_sequence_passes(self):
        check_monthly_sequence(pd.date_range("2000-01", periods=24, freq="MS"))

    def test_duplicate_timestamp_rejected(self):
        times = pd.date_range("2000-01", periods=12, freq="MS")
        times = times.insert(5, times[5])
        with pytest.raises(StructuralConsistencyError) as excinfo:
            check_monthly_sequence(times, "MODEL/historical")
        assert excinfo.value.series == "MODEL/historical"
        assert excinfo.value.offending == [pd.Timestamp("2000-06-01")]

    def test_unordered_timestamps_rejected(self):
        times = pd.DatetimeIndex(["2000-01-01", "2000-03-01", "2000-02-01"])
        with pytest.raises(StructuralConsistencyError, match="increasing order"):
            check_monthly_sequence(times)

    def test_gap_rejected(self):
        times = pd.DatetimeIndex(["2000-01-01", "2000-02-01", "2000-04-01"])
        with pytest.raises(StructuralConsistencyError, match="regular monthly"):
            check_monthly_sequence(times)


class TestAccumulation:

    def test_complete_windows_only(self):
        result = accumulate(pd.Series([1.0, 2.0, 3.0, 4.0]), 3)
        assert result.isna().tolist() == [True, True, False, False]
        assert result.iloc[2:].tolist() == [6.0, 9.0]

    def test_missing_value_breaks_windows(self):
        result = accumulate(pd.Series([1.0, 2.0, np.nan, 4.0, 5.0, 6.0]), 2)
        assert result.isna().tolist() == [True, False, True, True, False, False]


class TestLogLogisticFit:

    def test_pwm_requires_three_values(self):
        with pytest.raises(ValueError):
            unbiased_pwm(np.array([1.0, 2.0]))

    def test_constant_sample_is_degenerate(self):
        assert fit_log_logistic(np.full(30, 5.0)) is None

    def test_recovers_known_parameters(self):
        sample = fisk.rvs(4.0, loc=10.0, scale=50.0, size=5000, random_state=0)
        shape, location, scale = fit_log_logistic(sample)
        assert shape == pytest.approx(4.0, rel=0.15)
        assert scale == pytest.approx(50.0, rel=0.15)
        assert location == pytest.approx(10.0, abs=8.0)

    def test_negative_skew_needs_mirrored_fit(self):
        sample = -fisk.rvs(4.0, loc=10.0, scale=50.0, size=500, random_state=1)
        assert fit_log_logistic(sample) is None
        assert fit_log_logistic(-sample) is not None


class TestLogLogisticSPEI:

    def test_is_an_estimator(self):
        assert isinstance(LogLogisticSPEI(), StandardizedIndexEstimator)

    def test_output_aligned_with_input(self, balance_series):
        index = LogLogisticSPEI().estimate(balance_series, 3, REFERENCE)
        assert len(index) == len(balance_series)
        assert index.index.equals(balance_series.index)
        assert index.iloc[:2].isna().all()
        assert index.iloc[2:].notna().all()

    def test_reference_values_are_standardized(self, balance_series):
        index = LogLogisticSPEI().estimate(balance_series, 3, REFERENCE)
        finite = index[np.isfinite(index)]
        assert abs(finite.mean()) < 0.25
        assert 0.7 < finite.std() < 1.3

    def test_negatively_skewed_months_are_fitted(self):
        times = pd.date_range("1981-01", "2010-12", freq="MS")
        values = -fisk.rvs(3.0, loc=0.0, scale=40.0, size=len(times), random_state=3)
        index = LogLogisticSPEI().estimate(pd.Series(values, index=times), 1, REFERENCE)
        assert index.notna().all()

    def test_missing_balance_propagates(self, balance_series):
        series = balance_series.copy()
        series.iloc[100] = np.nan
        index = LogLogisticSPEI().estimate(series, 3, REFERENCE)
        assert index.iloc[100:103].isna().all()
        assert not np.isnan(index.iloc[99])
        assert not np.isnan(index.iloc[103])

    def test_duplicate_timestamp_rejected_before_fitting(self, balance_series):
        series = pd.concat([balance_series.iloc[:50], balance_series.iloc[49:]])
        with pytest.raises(StructuralConsistencyError):
            LogLogisticSPEI().estimate(series, 3, REFERENCE)

    def test_series_shorter_than_scale(self):
        series = pd.Series([1.0, 2.0], index=pd.date_range("1990-01", periods=2, freq="MS"))
        with pytest.raises(ReferencePeriodError):
            LogLogisticSPEI().estimate(series, 3, REFERENCE)

    def test_reference_outside_data(self, balance_series):
        reference = ReferencePeriod(start="2041-01", end="2070-12")
        with pytest.raises(ReferencePeriodError):
            LogLogisticSPEI().estimate(balance_series, 3, reference)

    def test_all_missing_reference_months_raise_empty_reference(self, balance_series):
        series = balance_series.copy()
        series[series.index <= "2010-12-01"] = np.nan
        with pytest.raises(EmptyReferenceError):
            LogLogisticSPEI().estimate(series, 3, REFERENCE)

    def test_too_few_reference_values_leave_nan(self, balance_series, caplog):
        reference = ReferencePeriod(start="2001-01", end="2005-12")
        with caplog.at_level(logging.WARNING):
            index = LogLogisticSPEI(min_samples=10).estimate(balance_series, 3, reference)
        assert index.isna().all()
        assert "reference values" in caplog.text


class TestComputeFrameSpei:

    def test_future_experiment_uses_historical_reference(self):
        frame = derive_water_balance(make_model("MODEL-A", seed=1))
        result, failures = compute_frame_spei(frame, LogLogisticSPEI(), REFERENCE)

        assert failures == {}
        future = result[result["experiment_id"] == "ssp245"]
        # The first future months accumulate the last historical months
        assert np.isfinite(future["spei"].iloc[0])
        assert future["spei"].notna().all()
        assert len(result) == len(frame)

    def test_future_without_historical_reference_fails(self):
        frame = derive_water_balance(make_model("MODEL-A", seed=1))
        with pytest.raises(ReferencePeriodError):
            compute_frame_spei(frame, LogLogisticSPEI(), REFERENCE, prepend_historical=False)

    def test_structural_failure_blocks_only_that_series(self):
        good = make_model("MODEL-A", seed=1)
        bad = make_model("MODEL-B", seed=2)
        duplicate = bad[bad["experiment_id"] == "historical"].iloc[[60]]
        bad = pd.concat([bad, duplicate]).sort_values(
            ["experiment_id", "time"], kind="mergesort")
        frame = derive_water_balance(pd.concat([good, bad], ignore_index=True))

        result, failures = compute_frame_spei(frame, LogLogisticSPEI(), REFERENCE)

        assert "MODEL-B/historical" in failures
        assert not any(label.startswith("MODEL-A") for label in failures)
        assert result.loc[result["source_id"] == "MODEL-B", "spei"].isna().all()
        assert result.loc[result["source_id"] == "MODEL-A", "spei"].notna().sum() > 0

    def test_missing_reference_values_block_only_that_series(self):
        good = make_model("MODEL-A", seed=1)
        gappy = make_model("MODEL-B", seed=2)
        gappy.loc[gappy["time"] <= "2010-12-01", "hfls"] = np.nan
        frame = derive_water_balance(pd.concat([good, gappy], ignore_index=True))

        result, failures = compute_frame_spei(frame, LogLogisticSPEI(), REFERENCE)

        assert set(failures) == {"MODEL-B/historical", "MODEL-B/ssp245", "MODEL-B/ssp585"}
        assert result.loc[result["source_id"] == "MODEL-B", "spei"].isna().all()
        assert result.loc[result["source_id"] == "MODEL-A", "spei"].notna().sum() > 0
