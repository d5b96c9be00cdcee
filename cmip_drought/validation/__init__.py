"""
Validation Package

Rule-based QA/QC of the model and observed series: completeness, temporal
consistency and physical plausibility, with warn/stop action levels.
"""

from .core.validator import BaseValidator, ValidationStopError
from .validators.completeness import CompletenessValidator
from .validators.temporal import TemporalValidator
from .validators.plausibility import PlausibilityValidator
from .validation_suite import ValidationSuite

__all__ = [
    "BaseValidator",
    "ValidationStopError",
    "CompletenessValidator",
    "TemporalValidator",
    "PlausibilityValidator",
    "ValidationSuite",
]
