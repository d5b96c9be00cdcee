"""
Validator base class and the result records every validator produces.

Issues are tagged with the series label (``source_id/experiment_id``) they
concern, so a caller can tell a problem confined to one model run apart
from one affecting the whole frame.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, Field

from .config import ValidationConfig
from ...shared.contracts.climate_series import SERIES_KEYS

# Share of checked series carrying warnings above which a result grades FAIR
FAIR_WARNING_SHARE = 0.25

REPORT_COLUMNS = ["severity", "category", "series", "message", "timestamp"]


class ValidationSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ValidationStopError(RuntimeError):
    """Raised when a critical issue remains and the configuration says stop."""

    def __init__(self, message: str, results: Optional[Dict[str, "ValidationResult"]] = None):
        super().__init__(message)
        self.results = results or {}


class ValidationIssue(BaseModel):
    """One finding, optionally tied to a single series."""
    severity: ValidationSeverity
    category: str
    message: str
    series: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ValidationResult(BaseModel):
    """Findings and metrics of one validator over one frame."""
    validator_name: str
    dataset_path: str
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    series_checked: int = 0
    issues: List[ValidationIssue] = Field(default_factory=list)
    metrics: Dict[str, Any] = Field(default_factory=dict)
    quality_score: Optional[str] = None
    passed: bool = True

    @property
    def duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def issue_count(self) -> Dict[str, int]:
        tally = Counter(issue.severity.value for issue in self.issues)
        return {severity.value: tally.get(severity.value, 0) for severity in ValidationSeverity}

    def issues_for(self, severity: ValidationSeverity) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    def affected_series(self, severity: ValidationSeverity) -> List[str]:
        """Distinct series labels carrying at least one issue of ``severity``."""
        return sorted({issue.series for issue in self.issues_for(severity) if issue.series})

    def add_issue(self, severity: ValidationSeverity, category: str,
                  message: str, details: Optional[Dict[str, Any]] = None,
                  series: Optional[str] = None):
        self.issues.append(ValidationIssue(
            severity=severity, category=category, message=message,
            series=series, details=details,
        ))
        if severity == ValidationSeverity.CRITICAL:
            self.passed = False

    def grade(self) -> str:
        """
        Quality grade of the result.

        POOR when any critical issue exists, FAIR when warnings touch more
        than a quarter of the checked series, GOOD for fewer warnings and
        EXCELLENT otherwise.
        """
        if self.issues_for(ValidationSeverity.CRITICAL):
            return "POOR"
        warned = self.affected_series(ValidationSeverity.WARNING)
        if warned and len(warned) > FAIR_WARNING_SHARE * max(self.series_checked, 1):
            return "FAIR"
        if self.issues_for(ValidationSeverity.WARNING):
            return "GOOD"
        return "EXCELLENT"


class BaseValidator(ABC):
    """
    Common plumbing for the series validators.

    Subclasses implement ``validate``: they call ``_begin`` with the frame,
    record issues on ``self.result`` and return ``self._complete()``.
    """

    def __init__(self, name: str, config: Optional[ValidationConfig] = None,
                 output_dir: Optional[Path] = None):
        self.name = name
        self.config = config or ValidationConfig()
        self.output_dir = Path(output_dir) if output_dir else Path(self.config.output_dir)
        self.logger = logging.getLogger(f"{__name__}.{name}")
        self.result: Optional[ValidationResult] = None

    @abstractmethod
    def validate(self, data: pd.DataFrame, **kwargs) -> ValidationResult:
        """
        Check a long-format series frame.

        Args:
            data: Frame keyed by ``source_id``, ``experiment_id`` and ``time``
            **kwargs: Validator specific options

        Returns:
            The populated ValidationResult
        """

    def _begin(self, data: pd.DataFrame, dataset_path: str) -> ValidationResult:
        if set(SERIES_KEYS) <= set(data.columns):
            checked = data.groupby(SERIES_KEYS, sort=False).ngroups
        else:
            checked = 1 if len(data) else 0
        self.result = ValidationResult(
            validator_name=self.name,
            dataset_path=dataset_path,
            series_checked=checked,
        )
        return self.result

    def _complete(self) -> ValidationResult:
        self.result.end_time = datetime.now()
        self.result.quality_score = self.result.grade()
        counts = self.result.issue_count
        self.logger.info(
            f"{self.name}: {self.result.series_checked} series, "
            f"{counts['critical']} critical, {counts['warning']} warning, "
            f"{counts['info']} info -> {self.result.quality_score}"
        )
        return self.result

    def _classify_fraction(self, fraction: float) -> Optional[ValidationSeverity]:
        """Map a failing-row fraction onto the configured action levels."""
        if fraction > self.config.stop_at:
            return ValidationSeverity.CRITICAL
        if fraction > self.config.warn_at:
            return ValidationSeverity.WARNING
        return None

    def save_report(self, format: str = "json") -> Path:
        """Write the result as JSON (everything) or CSV (one row per issue)."""
        if self.result is None:
            raise ValueError(f"Validator '{self.name}' has not been run")
        if format not in ("json", "csv"):
            raise ValueError(f"Unsupported report format: {format}")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        stamp = self.result.start_time.strftime("%Y%m%d_%H%M%S")
        path = self.output_dir / f"{self.name}_{stamp}.{format}"

        if format == "json":
            path.write_text(self.result.model_dump_json(indent=2))
        else:
            rows = [issue.model_dump(mode="json", include=set(REPORT_COLUMNS))
                    for issue in self.result.issues]
            pd.DataFrame(rows, columns=REPORT_COLUMNS).to_csv(path, index=False)

        self.logger.info(f"Saved {format} report to {path}")
        return path
