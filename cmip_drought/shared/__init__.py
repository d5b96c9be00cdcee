"""
Shared data contracts, configuration and errors for the comparison pipeline.
"""

from .contracts.climate_series import (
    ClimateVariable,
    Experiment,
    ReferencePeriod,
    SeriesExclusion,
    SourceUnits,
    ObservedColumns,
    YearMonthWindow,
)
from .errors import (
    StructuralConsistencyError,
    ReferencePeriodError,
    EmptyReferenceError,
    MissingInputError,
)

__all__ = [
    "ClimateVariable",
    "Experiment",
    "ReferencePeriod",
    "SeriesExclusion",
    "SourceUnits",
    "ObservedColumns",
    "YearMonthWindow",
    "StructuralConsistencyError",
    "ReferencePeriodError",
    "EmptyReferenceError",
    "MissingInputError",
]
