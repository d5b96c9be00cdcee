"""
Loading of model and observed monthly tables into series frames.

Model tables come as CSV, or as NetCDF files holding area-averaged monthly
series (read with xarray). Observed data is a CSV keyed by a ``YYYY-MM``
label. Every loader returns the same long frame layout: ``time``,
``source_id``, ``experiment_id`` and one column per variable.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd
import xarray as xr

from ...shared.contracts.climate_series import (
    EXPERIMENT_COLUMN,
    OBSERVED_SOURCE_ID,
    SERIES_KEYS,
    SOURCE_COLUMN,
    TIME_COLUMN,
    Experiment,
    ObservedColumns,
    SourceUnits,
    parse_year_month,
)
from ..core.evapotranspiration import climatic_water_balance
from .file_discovery import parse_series_filename
from .units import standardize_variable_units

logger = logging.getLogger(__name__)

MODEL_VARIABLES = ["pr", "tas", "tasmin", "tasmax", "hfls", "hfss"]


def to_month_start(times) -> pd.Series:
    """Collapse any timestamp (first-of-month or mid-month) onto its month."""
    times = pd.to_datetime(pd.Series(times), format="ISO8601")
    return times.dt.to_period("M").dt.to_timestamp()


def _read_netcdf_table(path: Path) -> pd.DataFrame:
    with xr.open_dataset(path) as ds:
        if "time" in ds.indexes and isinstance(ds.indexes["time"], xr.CFTimeIndex):
            ds = ds.assign_coords(time=ds.indexes["time"].to_datetimeindex())
        variables = [v for v in MODEL_VARIABLES if v in ds.data_vars]
        frame = ds[variables].to_dataframe().reset_index()
        for key in SERIES_KEYS:
            if key not in frame.columns and key in ds.attrs:
                frame[key] = ds.attrs[key]
    return frame


def load_model_table(path: Union[str, Path],
                     units: Optional[SourceUnits] = None) -> pd.DataFrame:
    """
    Load one model table.

    Missing ``source_id``/``experiment_id`` columns are filled from the
    filename. Precipitation is converted to mm/month and temperatures to
    degC according to ``units``.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If no time column or source can be determined
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model table not found: {path}")

    if path.suffix == ".nc":
        frame = _read_netcdf_table(path)
    else:
        frame = pd.read_csv(path)

    if TIME_COLUMN not in frame.columns:
        raise ValueError(f"{path.name}: no '{TIME_COLUMN}' column")

    from_name = parse_series_filename(path)
    for key in SERIES_KEYS:
        if key not in frame.columns:
            if from_name[key] is None:
                raise ValueError(f"{path.name}: cannot determine {key}")
            frame[key] = from_name[key]

    frame[TIME_COLUMN] = to_month_start(frame[TIME_COLUMN]).to_numpy()
    frame = standardize_variable_units(frame, units or SourceUnits())

    columns = SERIES_KEYS + [TIME_COLUMN] + [v for v in MODEL_VARIABLES if v in frame.columns]
    frame = frame[columns].sort_values(SERIES_KEYS + [TIME_COLUMN], kind="mergesort")
    logger.debug(f"Loaded {len(frame)} rows from {path.name}")
    return frame.reset_index(drop=True)


def load_model_tables(paths: Iterable[Union[str, Path]],
                      units: Optional[SourceUnits] = None) -> pd.DataFrame:
    """Load and stack several model tables in the given order."""
    frames: List[pd.DataFrame] = [load_model_table(path, units) for path in paths]
    if not frames:
        return pd.DataFrame(columns=SERIES_KEYS + [TIME_COLUMN])
    stacked = pd.concat(frames, ignore_index=True)
    n_series = stacked.groupby(SERIES_KEYS).ngroups
    logger.info(f"Loaded {len(stacked):,} rows across {n_series} model series")
    return stacked


def load_observed_table(path: Union[str, Path],
                        columns: Optional[ObservedColumns] = None) -> pd.DataFrame:
    """
    Load the observed table.

    The year-month label becomes ``time`` (first of month); precipitation,
    temperature and the reference evapotranspiration estimate become
    ``pr``, ``tas`` and ``pet``, and ``balance`` is their difference.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Observed table not found: {path}")
    columns = columns or ObservedColumns()

    raw = pd.read_csv(path, dtype={columns.time: str})
    mapping = {columns.time: TIME_COLUMN, columns.pr: "pr",
               columns.tas: "tas", columns.pet: "pet"}
    missing = [source for source in mapping if source not in raw.columns]
    if missing:
        raise ValueError(f"{path.name}: missing observed column(s) {missing}")

    frame = raw[list(mapping)].rename(columns=mapping)
    frame[TIME_COLUMN] = [parse_year_month(label) for label in frame[TIME_COLUMN]]
    frame[TIME_COLUMN] = pd.to_datetime(frame[TIME_COLUMN])
    for variable in ("pr", "tas", "pet"):
        frame[variable] = pd.to_numeric(frame[variable], errors="coerce")
    frame["balance"] = climatic_water_balance(frame["pr"], frame["pet"])
    frame.insert(0, EXPERIMENT_COLUMN, Experiment.HISTORICAL.value)
    frame.insert(0, SOURCE_COLUMN, OBSERVED_SOURCE_ID)

    frame = frame.sort_values(TIME_COLUMN, kind="mergesort").reset_index(drop=True)
    logger.info(f"Loaded {len(frame)} observed months "
                f"({frame[TIME_COLUMN].min():%Y-%m}..{frame[TIME_COLUMN].max():%Y-%m})")
    return frame
