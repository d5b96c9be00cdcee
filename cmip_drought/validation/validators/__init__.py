"""Validation modules for different aspects of series quality."""

from .completeness import CompletenessValidator
from .temporal import TemporalValidator
from .plausibility import PlausibilityValidator

__all__ = ["CompletenessValidator", "TemporalValidator", "PlausibilityValidator"]
