"""
Drought classification and drought-duration statistics on an index series.

A month is in drought when its standardized index is strictly below the
threshold (-1 by default). Missing index values are never drought and end a
run.
"""

from typing import Dict, List

import numpy as np
import pandas as pd

from ...shared.contracts.climate_series import SERIES_KEYS, TIME_COLUMN

DROUGHT_THRESHOLD = -1.0


def classify_drought(index, threshold: float = DROUGHT_THRESHOLD) -> pd.Series:
    """Boolean series, True where ``index < threshold``."""
    index = pd.Series(index, dtype="float64")
    return (index < threshold).fillna(False).astype(bool)


def drought_run_lengths(index, threshold: float = DROUGHT_THRESHOLD) -> List[int]:
    """Lengths of maximal runs of consecutive drought months, in order."""
    flags = classify_drought(index, threshold).to_numpy()
    runs = []
    current = 0
    for in_drought in flags:
        if in_drought:
            current += 1
        elif current:
            runs.append(current)
            current = 0
    if current:
        runs.append(current)
    return runs


def summarize_drought_durations(index, threshold: float = DROUGHT_THRESHOLD) -> Dict[str, float]:
    """
    Mean and sample standard deviation of drought run lengths.

    Returns:
        Dict with ``n_events``, ``mean_duration``, ``std_duration``,
        ``max_duration`` and ``drought_months``. Without any drought run the
        statistics are NaN, not zero.
    """
    runs = pd.Series(drought_run_lengths(index, threshold), dtype="float64")
    return {
        "n_events": int(runs.size),
        "mean_duration": float(runs.mean()) if runs.size else np.nan,
        "std_duration": float(runs.std(ddof=1)) if runs.size > 1 else np.nan,
        "max_duration": float(runs.max()) if runs.size else np.nan,
        "drought_months": int(runs.sum()),
    }


def summarize_frame_droughts(frame: pd.DataFrame, column: str = "spei",
                             threshold: float = DROUGHT_THRESHOLD) -> pd.DataFrame:
    """Drought-duration summary for every ``(source_id, experiment_id)`` series."""
    rows = []
    for (source_id, experiment_id), group in frame.groupby(SERIES_KEYS, sort=False):
        ordered = group.sort_values(TIME_COLUMN, kind="mergesort")
        summary = summarize_drought_durations(ordered[column], threshold)
        rows.append({"source_id": source_id, "experiment_id": experiment_id, **summary})
    columns = SERIES_KEYS + ["n_events", "mean_duration", "std_duration",
                             "max_duration", "drought_months"]
    return pd.DataFrame(rows, columns=columns)
