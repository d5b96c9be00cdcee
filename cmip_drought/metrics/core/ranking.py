"""
Correlation ranking of model climatologies against the observed climatology.

Each model gets one Pearson correlation per variable over the 12 calendar
months. The correlations are ranked separately (1 = best) and the ranks are
summed, so a model that is good on every variable beats one that is excellent
on one and poor on another.
"""

import logging
from typing import Sequence

import numpy as np
import pandas as pd
from scipy.stats import pearsonr

from ...shared.contracts.climate_series import SOURCE_COLUMN

logger = logging.getLogger(__name__)

RANKED_VARIABLES = ("pr", "tas")


def monthly_correlation(model: pd.Series, observed: pd.Series) -> float:
    """Pearson correlation over months present in both climatologies."""
    paired = pd.concat([pd.Series(model).reset_index(drop=True),
                        pd.Series(observed).reset_index(drop=True)], axis=1).dropna()
    if len(paired) < 3:
        return np.nan
    a, b = paired.iloc[:, 0].to_numpy(), paired.iloc[:, 1].to_numpy()
    if np.ptp(a) == 0 or np.ptp(b) == 0:
        return np.nan
    return float(pearsonr(a, b)[0])


def rank_models(model_climatologies: pd.DataFrame,
                observed_climatology: pd.DataFrame,
                variables: Sequence[str] = RANKED_VARIABLES) -> pd.DataFrame:
    """
    Rank models by the sum of their per-variable correlation ranks.

    Args:
        model_climatologies: Long frame with ``source_id``, ``month`` and the
            variable columns, 12 rows per model, models in encounter order
        observed_climatology: Frame with ``month`` and the variable columns
        variables: Variables to correlate

    Returns:
        One row per model with ``{var}_corr``, ``{var}_rank``,
        ``combined_rank`` and ``overall_rank``, sorted best first. Models
        with equal combined rank keep their encounter order.
    """
    observed = observed_climatology.set_index("month").reindex(range(1, 13))

    rows = []
    for source_id, group in model_climatologies.groupby(SOURCE_COLUMN, sort=False):
        model = group.set_index("month").reindex(range(1, 13))
        row = {SOURCE_COLUMN: source_id}
        for variable in variables:
            if variable in model.columns and variable in observed.columns:
                row[f"{variable}_corr"] = monthly_correlation(model[variable], observed[variable])
            else:
                logger.warning(f"{source_id}: '{variable}' unavailable for correlation")
                row[f"{variable}_corr"] = np.nan
        rows.append(row)

    columns = ([SOURCE_COLUMN] + [f"{v}_corr" for v in variables]
               + [f"{v}_rank" for v in variables] + ["combined_rank", "overall_rank"])
    if not rows:
        return pd.DataFrame(columns=columns)

    ranking = pd.DataFrame(rows)
    for variable in variables:
        ranking[f"{variable}_rank"] = ranking[f"{variable}_corr"].rank(
            ascending=False, method="min", na_option="bottom"
        ).astype(int)
    ranking["combined_rank"] = ranking[[f"{v}_rank" for v in variables]].sum(axis=1)
    ranking = ranking.sort_values("combined_rank", kind="mergesort").reset_index(drop=True)
    ranking["overall_rank"] = np.arange(1, len(ranking) + 1)
    return ranking[columns]
