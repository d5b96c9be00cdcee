"""
Shared fixtures: synthetic monthly model and observed series.

Values are generated in loaded units (mm/month, degC, W m-2) with a seasonal
cycle peaking in July, so the correlation ranking and the index fit have a
realistic signal to work with.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


def seasonal_cycle(times: pd.DatetimeIndex, phase: int = 0) -> np.ndarray:
    month = times.month.to_numpy()
    return np.sin(2 * np.pi * (month - 4 - phase) / 12.0)


def make_series(source_id: str, experiment_id: str, start: str, end: str,
                seed: int = 0, phase: int = 0, noise: float = 1.0) -> pd.DataFrame:
    """One model series in loaded units."""
    times = pd.date_range(start, end, freq="MS")
    rng = np.random.default_rng(seed)
    season = seasonal_cycle(times, phase)
    n = len(times)
    return pd.DataFrame({
        "source_id": source_id,
        "experiment_id": experiment_id,
        "time": times,
        "pr": np.clip(80 + 30 * season + rng.normal(0, 20 * noise, n), 0, None),
        "tas": 12 + 10 * season + rng.normal(0, 1.0 * noise, n),
        "hfls": 70 + 40 * season + rng.normal(0, 5 * noise, n),
        "hfss": 30 + 20 * season + rng.normal(0, 5 * noise, n),
    })


def make_model(source_id: str, seed: int = 0, phase: int = 0, noise: float = 1.0,
               experiments=("historical", "ssp245", "ssp585")) -> pd.DataFrame:
    pieces = []
    for offset, experiment in enumerate(experiments):
        if experiment == "historical":
            start, end = "1981-01", "2014-12"
        else:
            start, end = "2015-01", "2030-12"
        pieces.append(make_series(source_id, experiment, start, end,
                                  seed=seed + 100 * offset, phase=phase, noise=noise))
    return pd.concat(pieces, ignore_index=True)


def make_observed(start: str = "1981-01", end: str = "2010-12", seed: int = 7) -> pd.DataFrame:
    times = pd.date_range(start, end, freq="MS")
    rng = np.random.default_rng(seed)
    season = seasonal_cycle(times)
    n = len(times)
    frame = pd.DataFrame({
        "source_id": "observed",
        "experiment_id": "historical",
        "time": times,
        "pr": np.clip(85 + 30 * season + rng.normal(0, 20, n), 0, None),
        "tas": 11 + 10 * season + rng.normal(0, 1.0, n),
        "pet": 70 + 45 * season + rng.normal(0, 5, n),
    })
    frame["balance"] = frame["pr"] - frame["pet"]
    return frame


@pytest.fixture
def model_frame():
    """Three complete models: two in phase with observations, one shifted by six months."""
    return pd.concat([
        make_model("MODEL-A", seed=1),
        make_model("MODEL-B", seed=2, noise=3.0),
        make_model("MODEL-C", seed=3, phase=6),
    ], ignore_index=True)


@pytest.fixture
def observed_frame():
    return make_observed()


@pytest.fixture
def balance_series():
    """Monthly water balance indexed by timestamp over 1981-2010."""
    times = pd.date_range("1981-01", "2010-12", freq="MS")
    rng = np.random.default_rng(42)
    values = 20 + 40 * seasonal_cycle(times) + rng.normal(0, 25, len(times))
    return pd.Series(values, index=times)
