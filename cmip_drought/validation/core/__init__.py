"""Core validation components."""

from .validator import (
    BaseValidator,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    ValidationStopError,
)
from .config import ValidationConfig

__all__ = [
    "BaseValidator",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "ValidationStopError",
    "ValidationConfig",
]
