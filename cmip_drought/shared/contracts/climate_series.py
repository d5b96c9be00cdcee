"""
Pydantic data contracts for monthly climate series.

These contracts define the identifiers, column names and year-month windows
shared between ingestion, the numeric core, validation and reporting.
"""

import re
from enum import Enum
from typing import List, Optional

import pandas as pd
from pydantic import BaseModel, Field, field_validator, model_validator


YEAR_MONTH_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')


class ClimateVariable(str, Enum):
    """Column names of a climate series frame."""
    PRECIPITATION = "pr"
    TEMPERATURE = "tas"
    MAX_TEMPERATURE = "tasmax"
    MIN_TEMPERATURE = "tasmin"
    LATENT_HEAT_FLUX = "hfls"
    SENSIBLE_HEAT_FLUX = "hfss"
    POTENTIAL_EVAPOTRANSPIRATION = "pet"
    WATER_BALANCE = "balance"
    SPEI = "spei"


class Experiment(str, Enum):
    """CMIP6 experiments handled by the report."""
    HISTORICAL = "historical"
    SSP126 = "ssp126"
    SSP245 = "ssp245"
    SSP370 = "ssp370"
    SSP585 = "ssp585"


TIME_COLUMN = "time"
SOURCE_COLUMN = "source_id"
EXPERIMENT_COLUMN = "experiment_id"
SERIES_KEYS = [SOURCE_COLUMN, EXPERIMENT_COLUMN]

OBSERVED_SOURCE_ID = "observed"

TEMPERATURE_VARIABLES = [
    ClimateVariable.TEMPERATURE.value,
    ClimateVariable.MIN_TEMPERATURE.value,
    ClimateVariable.MAX_TEMPERATURE.value,
]


def parse_year_month(value: str) -> pd.Timestamp:
    """Parse a ``YYYY-MM`` label into the first day of that month."""
    match = YEAR_MONTH_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError(f"Expected a YYYY-MM label, got: {value!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {value!r}")
    return pd.Timestamp(year=year, month=month, day=1)


class YearMonthWindow(BaseModel):
    """Inclusive window between two year-months."""
    start: str = Field(..., description="First month, YYYY-MM")
    end: str = Field(..., description="Last month, YYYY-MM")

    @field_validator('start', 'end')
    @classmethod
    def validate_year_month(cls, v):
        parse_year_month(v)
        return v

    @model_validator(mode='after')
    def validate_order(self):
        if parse_year_month(self.end) < parse_year_month(self.start):
            raise ValueError(f"Window end {self.end} precedes start {self.start}")
        return self

    @property
    def start_timestamp(self) -> pd.Timestamp:
        return parse_year_month(self.start)

    @property
    def end_timestamp(self) -> pd.Timestamp:
        """Last instant covered by the window (end of the final month)."""
        first = parse_year_month(self.end)
        return first + pd.offsets.MonthEnd(0)

    def contains(self, times: pd.Series) -> pd.Series:
        """Boolean mask of timestamps falling inside the window."""
        return (times >= self.start_timestamp) & (times <= self.end_timestamp)

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


class ReferencePeriod(YearMonthWindow):
    """Baseline period the standardized index is fitted against."""


class SeriesExclusion(BaseModel):
    """
    Caller-supplied cleaning rule removing rows from one source.

    Used for sources whose historical and future runs overlap; rows of the
    matching source (and experiment, when given) inside the window are dropped
    before any index computation.
    """
    source_id: str
    experiment_id: Optional[str] = None
    start: str
    end: str
    reason: Optional[str] = None

    @field_validator('start', 'end')
    @classmethod
    def validate_year_month(cls, v):
        parse_year_month(v)
        return v

    @property
    def window(self) -> YearMonthWindow:
        return YearMonthWindow(start=self.start, end=self.end)


class SourceUnits(BaseModel):
    """Units of the model tables as stored on disk."""
    pr: str = "kg m-2 s-1"
    tas: str = "K"
    tasmin: str = "K"
    tasmax: str = "K"
    hfls: str = "W m-2"
    hfss: str = "W m-2"


class ObservedColumns(BaseModel):
    """Column names of the observed table."""
    time: str = "date"
    pr: str = "pr"
    tas: str = "tas"
    pet: str = "et0"


def series_label(source_id: str, experiment_id: str) -> str:
    return f"{source_id}/{experiment_id}"


def required_columns(variables: List[str]) -> List[str]:
    """Columns a model frame must carry to be processed."""
    return [TIME_COLUMN, SOURCE_COLUMN, EXPERIMENT_COLUMN] + list(variables)
