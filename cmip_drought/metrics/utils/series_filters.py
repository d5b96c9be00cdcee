"""
Explicit filter steps applied to the stacked model frame.

``apply_exclusions`` applies caller-supplied cleaning rules (e.g. the year a
source's historical run overlaps its scenario run); ``select_complete_models``
keeps only models that carry every required variable in every required
experiment.
"""

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from ...shared.contracts.climate_series import (
    EXPERIMENT_COLUMN,
    SOURCE_COLUMN,
    TIME_COLUMN,
    SeriesExclusion,
)

logger = logging.getLogger(__name__)


def apply_exclusions(frame: pd.DataFrame,
                     exclusions: Iterable[SeriesExclusion]) -> pd.DataFrame:
    """Drop the rows matched by each exclusion rule."""
    drop = pd.Series(False, index=frame.index)
    times = pd.to_datetime(frame[TIME_COLUMN])
    for rule in exclusions:
        matched = (frame[SOURCE_COLUMN] == rule.source_id) & rule.window.contains(times)
        if rule.experiment_id is not None:
            matched &= frame[EXPERIMENT_COLUMN] == rule.experiment_id
        n_matched = int(matched.sum())
        where = f"{rule.source_id}/{rule.experiment_id or '*'}"
        if n_matched == 0:
            logger.warning(f"Exclusion {where} {rule.window} matched no rows")
        else:
            logger.info(f"Excluding {n_matched} rows of {where} {rule.window}"
                        + (f" ({rule.reason})" if rule.reason else ""))
        drop |= matched
    return frame[~drop].reset_index(drop=True)


def missing_requirements(frame: pd.DataFrame,
                         variables: Sequence[str],
                         experiments: Sequence[str]) -> Dict[str, List[str]]:
    """
    What each model lacks, as human-readable reasons.

    A variable counts as missing for an experiment when its column is absent
    or entirely NaN in that experiment's rows.
    """
    reasons: Dict[str, List[str]] = {}
    for source_id, model in frame.groupby(SOURCE_COLUMN, sort=False):
        problems = []
        present = set(model[EXPERIMENT_COLUMN].unique())
        for experiment in experiments:
            if experiment not in present:
                problems.append(f"experiment '{experiment}' absent")
                continue
            rows = model[model[EXPERIMENT_COLUMN] == experiment]
            for variable in variables:
                if variable not in rows.columns or rows[variable].isna().all():
                    problems.append(f"'{variable}' missing in {experiment}")
        reasons[source_id] = problems
    return reasons


def select_complete_models(frame: pd.DataFrame,
                           variables: Sequence[str],
                           experiments: Sequence[str]) -> Tuple[pd.DataFrame, Dict[str, List[str]]]:
    """
    Keep only models with every required variable in every required experiment.

    Returns:
        Tuple of (filtered frame, excluded model -> reasons). Experiments
        beyond the required ones are kept for the complete models.
    """
    reasons = missing_requirements(frame, variables, experiments)
    excluded = {source: problems for source, problems in reasons.items() if problems}
    for source_id, problems in excluded.items():
        logger.warning(f"Excluding {source_id} from comparison: {'; '.join(problems)}")

    kept = frame[~frame[SOURCE_COLUMN].isin(list(excluded))].reset_index(drop=True)
    logger.info(f"{kept[SOURCE_COLUMN].nunique()} complete model(s), {len(excluded)} excluded")
    return kept, excluded
