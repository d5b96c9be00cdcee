"""Unit conversion utilities for monthly climate tables."""

import numpy as np
import pandas as pd

SECONDS_PER_DAY = 86400
KELVIN_OFFSET = 273.15

PRECIPITATION_FLUX_UNITS = {"kg m-2 s-1", "kg_m2_s", "kg/m2/s", "mm s-1", "mm/s"}
PRECIPITATION_DAILY_UNITS = {"mm/day", "mm_day", "mm d-1"}
PRECIPITATION_MONTHLY_UNITS = {"mm/month", "mm_month", "mm"}

KELVIN_UNITS = {"K", "kelvin"}
CELSIUS_UNITS = {"degC", "C", "celsius", "°C"}


def convert_precipitation_units(data, from_units: str, to_units: str = "mm/month",
                                days_in_month=None):
    """
    Convert precipitation to a monthly total in mm.

    Args:
        data: Precipitation values
        from_units: Source units (flux, daily or monthly)
        to_units: Only ``mm/month`` is supported
        days_in_month: Days per row, required for flux and daily sources

    Returns:
        Values in mm/month
    """
    if to_units not in PRECIPITATION_MONTHLY_UNITS:
        raise ValueError(f"Unsupported target precipitation units: {to_units}")
    if from_units in PRECIPITATION_MONTHLY_UNITS:
        return data
    if days_in_month is None:
        raise ValueError(f"days_in_month is required to convert from {from_units}")
    days = np.asarray(days_in_month, dtype="float64")
    if from_units in PRECIPITATION_FLUX_UNITS:
        # 1 kg m-2 of water is 1 mm
        return data * SECONDS_PER_DAY * days
    if from_units in PRECIPITATION_DAILY_UNITS:
        return data * days
    raise ValueError(f"Unsupported precipitation units: {from_units}")


def convert_temperature_units(data, from_units: str, to_units: str = "degC"):
    """Convert temperature between Kelvin and Celsius."""
    if to_units not in CELSIUS_UNITS:
        raise ValueError(f"Unsupported target temperature units: {to_units}")
    if from_units in CELSIUS_UNITS:
        return data
    if from_units in KELVIN_UNITS:
        return data - KELVIN_OFFSET
    raise ValueError(f"Unsupported temperature units: {from_units}")


def standardize_variable_units(frame: pd.DataFrame, source_units) -> pd.DataFrame:
    """
    Bring a model frame to mm/month and degC.

    Args:
        frame: Frame with ``time`` and any of pr/tas/tasmin/tasmax
        source_units: ``SourceUnits`` describing the frame as loaded
    """
    converted = frame.copy()
    days = pd.to_datetime(converted["time"]).dt.days_in_month.to_numpy()
    if "pr" in converted.columns:
        converted["pr"] = convert_precipitation_units(
            converted["pr"], source_units.pr, "mm/month", days_in_month=days
        )
    for variable in ("tas", "tasmin", "tasmax"):
        if variable in converted.columns:
            converted[variable] = convert_temperature_units(
                converted[variable], getattr(source_units, variable)
            )
    return converted
