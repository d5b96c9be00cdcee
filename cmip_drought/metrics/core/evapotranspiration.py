"""
Potential evapotranspiration (pet) and climatic water balance.

PET follows the energy-only formulation: the turbulent heat fluxes available
at the surface are converted to an evaporated water depth and scaled by a
fixed coefficient. Both functions are row-wise and keep the index of their
inputs, so they can be assigned straight back onto a series frame.
"""

import numpy as np
import pandas as pd

from ...shared.errors import MissingInputError

SECONDS_PER_DAY = 86400.0
JOULES_PER_MEGAJOULE = 1.0e6
WATER_DENSITY = 1000.0  # kg m-3
ENERGY_ONLY_COEFFICIENT = 0.8


def latent_heat_of_vaporization(tas_c):
    """
    Latent heat of vaporization in MJ/kg.

    Args:
        tas_c: Air temperature in degrees Celsius (scalar, array or Series)

    Returns:
        ``2.501 - 0.002361 * T`` with the same shape as the input
    """
    return 2.501 - 0.002361 * tas_c


def flux_to_daily_depth(hfls, hfss, tas_c):
    """
    Convert the summed turbulent heat flux (W m-2) to mm/day of water.

    The flux times the seconds in a day gives J m-2 day-1; dividing by the
    latent heat gives kg m-2 day-1, which equals mm/day at the density of
    liquid water.
    """
    energy = (hfls + hfss) * SECONDS_PER_DAY
    mass = energy / (latent_heat_of_vaporization(tas_c) * JOULES_PER_MEGAJOULE)
    return mass / WATER_DENSITY * 1000.0


def days_in_month(time) -> pd.Series:
    """Number of days in the calendar month of each timestamp."""
    times = pd.to_datetime(pd.Series(time))
    return times.dt.days_in_month


def potential_evapotranspiration(hfls: pd.Series, hfss: pd.Series,
                                 tas: pd.Series, time: pd.Series) -> pd.Series:
    """
    Energy-only potential evapotranspiration as a monthly total.

    Args:
        hfls: Upward latent heat flux (W m-2)
        hfss: Upward sensible heat flux (W m-2)
        tas: Near-surface air temperature (degC)
        time: Month timestamps, used for the days-in-month factor

    Returns:
        PET in mm/month, indexed like ``hfls``. Missing inputs give NaN;
        negative values are kept as they are.
    """
    hfls = pd.Series(hfls, dtype="float64")
    index = hfls.index
    hfss = pd.Series(np.asarray(hfss, dtype="float64"), index=index)
    tas = pd.Series(np.asarray(tas, dtype="float64"), index=index)
    n_days = pd.Series(days_in_month(time).to_numpy(dtype="float64"), index=index)

    daily = ENERGY_ONLY_COEFFICIENT * flux_to_daily_depth(hfls, hfss, tas)
    pet = daily * n_days
    pet.name = "pet"
    return pet


def climatic_water_balance(pr: pd.Series, pet: pd.Series) -> pd.Series:
    """Precipitation minus PET, NaN wherever either side is missing."""
    balance = pd.Series(pr, dtype="float64") - pd.Series(pet, dtype="float64")
    balance.name = "balance"
    return balance


def derive_water_balance(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Append ``pet`` and ``balance`` columns to a model series frame.

    The frame needs ``time``, ``pr``, ``tas``, ``hfls`` and ``hfss``. A copy
    is returned; running this twice on the same input yields identical
    columns.

    Raises:
        MissingInputError: If a required column is absent
    """
    for column in ("time", "pr", "tas", "hfls", "hfss"):
        if column not in frame.columns:
            raise MissingInputError(column)

    derived = frame.copy()
    derived["pet"] = potential_evapotranspiration(
        derived["hfls"], derived["hfss"], derived["tas"], derived["time"]
    ).to_numpy()
    derived["balance"] = climatic_water_balance(derived["pr"], derived["pet"]).to_numpy()
    return derived
