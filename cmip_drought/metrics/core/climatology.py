"""
Seasonal (calendar month) climatologies of climate series.
"""

from typing import List, Optional

import pandas as pd

from ...shared.contracts.climate_series import (
    SERIES_KEYS,
    TEMPERATURE_VARIABLES,
    TIME_COLUMN,
    YearMonthWindow,
)

MONTHS = list(range(1, 13))


def climatology_variables(frame: pd.DataFrame) -> List[str]:
    """Variables averaged into a climatology, in output order."""
    candidates = ["pr"] + TEMPERATURE_VARIABLES + ["pet", "balance"]
    return [column for column in candidates if column in frame.columns]


def _monthly_means(frame: pd.DataFrame, variables: List[str],
                   window: Optional[YearMonthWindow]) -> pd.DataFrame:
    times = pd.to_datetime(frame[TIME_COLUMN])
    if window is not None:
        in_window = window.contains(times)
        frame, times = frame[in_window], times[in_window]
    means = frame[variables].groupby(times.dt.month.rename("month")).mean()
    return means.reindex(MONTHS).rename_axis("month").reset_index()


def monthly_climatology(frame: pd.DataFrame,
                        window: Optional[YearMonthWindow] = None,
                        by: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Mean of each variable per calendar month.

    Args:
        frame: Series frame with a ``time`` column
        window: Inclusive date bounds; the whole frame when None
        by: Grouping columns; defaults to ``source_id``/``experiment_id``
            when the frame carries them

    Returns:
        Long frame with a ``month`` column (1..12) and one column per
        variable. Every series contributes exactly 12 rows; months without
        observations in range are NaN.
    """
    variables = climatology_variables(frame)
    if by is None:
        by = [key for key in SERIES_KEYS if key in frame.columns]

    if not by:
        return _monthly_means(frame, variables, window)

    pieces = []
    for keys, group in frame.groupby(by, sort=False):
        keys = keys if isinstance(keys, tuple) else (keys,)
        means = _monthly_means(group, variables, window)
        for position, (column, value) in enumerate(zip(by, keys)):
            means.insert(position, column, value)
        pieces.append(means)

    if not pieces:
        return pd.DataFrame(columns=list(by) + ["month"] + variables)
    return pd.concat(pieces, ignore_index=True)
