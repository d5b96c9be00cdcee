"""Temporal consistency validator for monthly climate series."""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional

from ..core.validator import BaseValidator, ValidationResult, ValidationSeverity
from ..core.config import ValidationConfig
from ...shared.contracts.climate_series import (
    EXPERIMENT_COLUMN,
    SERIES_KEYS,
    TIME_COLUMN,
    series_label,
)


class TemporalValidator(BaseValidator):
    """
    Validates the time axis of every ``(source_id, experiment_id)`` series.

    Duplicated or unordered timestamps are structural failures (CRITICAL):
    the standardized index is meaningless on such a series. Gaps in the
    monthly sequence are WARNINGs and experiment spans outside the expected
    years are INFO.
    """

    def __init__(self, config: Optional[ValidationConfig] = None,
                 output_dir: Optional[Path] = None):
        super().__init__(name="temporal", config=config, output_dir=output_dir)

    def validate(self, data: pd.DataFrame, dataset_path: str = "climate_series") -> ValidationResult:
        """
        Validate timestamps of every series in ``data``.

        Args:
            data: Long series frame with ``time``, ``source_id`` and
                ``experiment_id``
            dataset_path: Label used in reports

        Returns:
            ValidationResult with temporal findings
        """
        self.logger.info(f"Starting temporal validation for {dataset_path}")
        self._begin(data, dataset_path)
        self.df = data

        duplicates = {}
        unordered = []
        gaps = {}
        coverage = {}

        for (source_id, experiment_id), group in data.groupby(SERIES_KEYS, sort=False):
            label = series_label(source_id, experiment_id)
            times = pd.DatetimeIndex(pd.to_datetime(group[TIME_COLUMN]))
            coverage[label] = [int(times.year.min()), int(times.year.max())] if len(times) else []

            dupes = self._duplicated_months(times)
            if dupes:
                duplicates[label] = dupes
                self.result.add_issue(
                    ValidationSeverity.CRITICAL,
                    "structural",
                    f"{len(dupes)} duplicated timestamp(s), first {dupes[0]}",
                    {"months": dupes[:24], "count": len(dupes)},
                    series=label,
                )

            if not times.is_monotonic_increasing:
                unordered.append(label)
                self.result.add_issue(
                    ValidationSeverity.CRITICAL,
                    "structural",
                    "Timestamps are not in increasing order",
                    series=label,
                )

            n_missing = self._missing_months(times)
            if n_missing:
                gaps[label] = n_missing
                self.result.add_issue(
                    ValidationSeverity.WARNING,
                    "temporal",
                    f"{n_missing} month(s) missing from the monthly sequence",
                    {"missing_months": n_missing},
                    series=label,
                )

            self._check_experiment_span(label, experiment_id, times)

        self.result.metrics["duplicated_timestamps"] = duplicates
        self.result.metrics["unordered_series"] = unordered
        self.result.metrics["gaps"] = gaps
        self.result.metrics["coverage"] = coverage

        return self._complete()

    def structurally_invalid_series(self) -> List[str]:
        """Series labels with a structural failure in the last run."""
        if not self.result:
            return []
        return sorted({
            issue.series for issue in self.result.issues
            if issue.category == "structural" and issue.series
        })

    @staticmethod
    def _duplicated_months(times: pd.DatetimeIndex) -> List[str]:
        dupes = times[times.duplicated()]
        return sorted({f"{t:%Y-%m}" for t in dupes})

    @staticmethod
    def _missing_months(times: pd.DatetimeIndex) -> int:
        if len(times) < 2:
            return 0
        ordinals = np.unique(times.to_period("M").asi8)
        expected = ordinals[-1] - ordinals[0] + 1
        return int(expected - ordinals.size)

    def _check_experiment_span(self, label: str, experiment_id: str, times: pd.DatetimeIndex):
        span = self.config.expected_experiment_years.get(experiment_id)
        if span is None or len(times) == 0:
            return
        first, last = int(times.year.min()), int(times.year.max())
        if first < span[0] or last > span[1]:
            self.result.add_issue(
                ValidationSeverity.INFO,
                "temporal",
                f"{EXPERIMENT_COLUMN} '{experiment_id}' spans {first}-{last}, "
                f"expected within {span[0]}-{span[1]}",
                {"first_year": first, "last_year": last, "expected": list(span)},
                series=label,
            )
