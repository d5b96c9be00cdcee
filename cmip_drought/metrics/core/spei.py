"""
Standardized precipitation-evapotranspiration index (spei).

The climatic water balance is accumulated over a rolling window, a
three-parameter log-logistic distribution is fitted per calendar month on the
reference period, and each value is mapped through the fitted CDF onto the
standard normal distribution (Vicente-Serrano et al., 2010). A calendar month
whose accumulated values are negatively skewed is fitted on the negated
sample and transformed through the mirrored distribution.

The statistical routine sits behind ``StandardizedIndexEstimator`` so another
fitting library can be swapped in without touching the callers.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.special import gamma
from scipy.stats import fisk, norm

from ...shared.contracts.climate_series import (
    EXPERIMENT_COLUMN,
    SOURCE_COLUMN,
    TIME_COLUMN,
    Experiment,
    ReferencePeriod,
    series_label,
)
from ...shared.errors import (
    EmptyReferenceError,
    ReferencePeriodError,
    StructuralConsistencyError,
)

logger = logging.getLogger(__name__)


def check_monthly_sequence(times, series: str = "") -> None:
    """
    Verify timestamps are unique, increasing and exactly one month apart.

    Raises:
        StructuralConsistencyError: on the first violated condition
    """
    times = pd.DatetimeIndex(pd.to_datetime(times))

    duplicated = times[times.duplicated(keep=False)]
    if len(duplicated) > 0:
        unique_dupes = sorted(set(duplicated))
        raise StructuralConsistencyError(
            f"{series or 'series'} has {len(unique_dupes)} duplicated timestamp(s), "
            f"first {unique_dupes[0]:%Y-%m}",
            series=series,
            offending=unique_dupes,
        )

    if not times.is_monotonic_increasing:
        raise StructuralConsistencyError(
            f"{series or 'series'} timestamps are not in increasing order",
            series=series,
        )

    if len(times) > 1:
        periods = times.to_period("M")
        steps = np.diff(periods.asi8)
        irregular = np.flatnonzero(steps != 1)
        if irregular.size > 0:
            gaps = [times[i + 1] for i in irregular]
            raise StructuralConsistencyError(
                f"{series or 'series'} is not a regular monthly sequence "
                f"({irregular.size} break(s), first before {gaps[0]:%Y-%m})",
                series=series,
                offending=gaps,
            )


def accumulate(values: pd.Series, scale: int) -> pd.Series:
    """Rolling sum over complete ``scale``-month windows only."""
    return values.rolling(window=scale, min_periods=scale).sum()


def unbiased_pwm(sample: np.ndarray) -> Tuple[float, float, float]:
    """
    Unbiased probability weighted moments w0, w1, w2 of a sample.

    ``w_s = 1/N * sum C(N-i, s) / C(N-1, s) * x_(i)`` over the ascending
    order statistics.
    """
    x = np.sort(np.asarray(sample, dtype="float64"))
    n = x.size
    if n < 3:
        raise ValueError("At least three values are needed for PWM estimation")
    i = np.arange(1, n + 1)
    w0 = x.mean()
    w1 = np.sum((n - i) / (n - 1) * x) / n
    w2 = np.sum((n - i) * (n - i - 1) / ((n - 1) * (n - 2)) * x) / n
    return w0, w1, w2


def fit_log_logistic(sample: np.ndarray) -> Optional[Tuple[float, float, float]]:
    """
    Fit a three-parameter log-logistic distribution by PWM.

    Returns:
        ``(shape, location, scale)`` as understood by ``scipy.stats.fisk``,
        or None when the moments give no usable distribution
    """
    w0, w1, w2 = unbiased_pwm(sample)
    denominator = 6.0 * w1 - w0 - 6.0 * w2
    if denominator == 0:
        return None
    beta = (2.0 * w1 - w0) / denominator
    if not np.isfinite(beta) or beta <= 1.0:
        return None
    g = gamma(1.0 + 1.0 / beta) * gamma(1.0 - 1.0 / beta)
    alpha = (w0 - 2.0 * w1) * beta / g
    location = w0 - alpha * g
    if not (np.isfinite(alpha) and np.isfinite(location)) or alpha <= 0:
        return None
    return beta, location, alpha


class StandardizedIndexEstimator(ABC):
    """Turns a monthly series into a standardized index of equal length."""

    @abstractmethod
    def estimate(self, values: pd.Series, scale: int,
                 reference: ReferencePeriod, series: str = "") -> pd.Series:
        """
        Args:
            values: Monthly values indexed by timestamp
            scale: Accumulation window in months
            reference: Baseline period the distribution is fitted on
            series: Label used in messages

        Returns:
            Index values aligned to ``values``; NaN where not computable
        """


class LogLogisticSPEI(StandardizedIndexEstimator):
    """SPEI with a PWM-fitted log-logistic distribution per calendar month."""

    def __init__(self, min_samples: int = 10):
        self.min_samples = max(3, int(min_samples))

    def estimate(self, values: pd.Series, scale: int,
                 reference: ReferencePeriod, series: str = "") -> pd.Series:
        values = pd.Series(values, dtype="float64")
        values.index = pd.DatetimeIndex(values.index)
        check_monthly_sequence(values.index, series)

        if len(values) < scale:
            raise ReferencePeriodError(
                f"{series or 'series'} has {len(values)} months, "
                f"fewer than the {scale}-month accumulation window"
            )

        accumulated = accumulate(values, scale)
        in_reference = reference.contains(pd.Series(values.index, index=values.index))
        if not in_reference.any():
            raise ReferencePeriodError(
                f"Reference period {reference} lies outside "
                f"{series or 'series'} "
                f"({values.index.min():%Y-%m}..{values.index.max():%Y-%m})"
            )
        calibration = accumulated[in_reference & accumulated.notna()]
        if calibration.empty:
            raise EmptyReferenceError(
                f"Reference period {reference} has no accumulated values "
                f"in {series or 'series'}: every reference month is missing"
            )

        index = pd.Series(np.nan, index=values.index, name="spei")
        months = values.index.month
        for month in range(1, 13):
            month_mask = months == month
            sample = calibration[calibration.index.month == month].to_numpy()
            if sample.size < self.min_samples:
                logger.warning(
                    f"{series}: month {month} has {sample.size} reference values, "
                    f"need {self.min_samples}; index left missing"
                )
                continue
            mirrored = False
            params = fit_log_logistic(sample)
            if params is None:
                params = fit_log_logistic(-sample)
                mirrored = True
            if params is None:
                logger.warning(f"{series}: degenerate log-logistic fit for month {month}")
                continue
            shape, location, scale_param = params
            x = accumulated[month_mask].to_numpy()
            if mirrored:
                probability = fisk.sf(-x, shape, loc=location, scale=scale_param)
            else:
                probability = fisk.cdf(x, shape, loc=location, scale=scale_param)
            # NaN accumulations stay NaN; values outside the support map to +-inf
            index[month_mask] = np.where(np.isnan(x), np.nan, norm.ppf(probability))
        return index


def compute_frame_spei(frame: pd.DataFrame,
                       estimator: StandardizedIndexEstimator,
                       reference: ReferencePeriod,
                       scale: int = 3,
                       prepend_historical: bool = True,
                       value_column: str = "balance") -> Tuple[pd.DataFrame, Dict[str, str]]:
    """
    Add a ``spei`` column to every ``(source_id, experiment_id)`` series.

    With ``prepend_historical`` a future experiment is standardized on its
    model's historical run followed by the experiment itself, and only the
    future rows keep those values. A structural problem, or a reference
    period whose months are all missing, blocks the affected series only:
    its ``spei`` stays NaN and the reason is returned. A reference period
    outside the data is a configuration error and propagates.

    Returns:
        Tuple of (frame with ``spei``, mapping of series label to failure)
    """
    result = frame.copy()
    result["spei"] = np.nan
    failures: Dict[str, str] = {}
    historical = Experiment.HISTORICAL.value

    for (source_id, experiment_id), group in result.groupby(
            [SOURCE_COLUMN, EXPERIMENT_COLUMN], sort=False):
        label = series_label(source_id, experiment_id)
        pieces: List[pd.DataFrame] = [group]
        if prepend_historical and experiment_id != historical:
            history = result[(result[SOURCE_COLUMN] == source_id)
                             & (result[EXPERIMENT_COLUMN] == historical)]
            if not history.empty:
                pieces = [history, group]
        combined = pd.concat(pieces)
        values = pd.Series(combined[value_column].to_numpy(),
                           index=pd.DatetimeIndex(combined[TIME_COLUMN]))
        try:
            index = estimator.estimate(values, scale, reference, series=label)
        except (StructuralConsistencyError, EmptyReferenceError) as e:
            logger.error(f"Skipping index for {label}: {e}")
            failures[label] = str(e)
            continue
        result.loc[group.index, "spei"] = index.to_numpy()[-len(group):]
        logger.debug(f"Computed index for {label} ({int(index.notna().sum())} months)")

    return result, failures
