"""
Tests for file discovery, unit conversion, table loading and series filters.
"""

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from cmip_drought.metrics.utils.file_discovery import discover_model_files, parse_series_filename
from cmip_drought.metrics.utils.series_filters import (
    apply_exclusions,
    missing_requirements,
    select_complete_models,
)
from cmip_drought.metrics.utils.table_loader import (
    load_model_table,
    load_model_tables,
    load_observed_table,
    to_month_start,
)
from cmip_drought.metrics.utils.units import (
    convert_precipitation_units,
    convert_temperature_units,
)
from cmip_drought.shared.contracts.climate_series import ObservedColumns, SeriesExclusion

from conftest import make_model


class TestUnits:

    def test_flux_to_monthly_total(self):
        flux = np.array([1.0 / 86400, 2.0 / 86400])
        result = convert_precipitation_units(flux, "kg m-2 s-1", days_in_month=[31, 28])
        np.testing.assert_allclose(result, [31.0, 56.0])

    def test_daily_to_monthly_total(self):
        result = convert_precipitation_units(np.array([2.0]), "mm/day", days_in_month=[30])
        np.testing.assert_allclose(result, [60.0])

    def test_monthly_passthrough(self):
        data = np.array([12.0])
        assert convert_precipitation_units(data, "mm/month") is data

    def test_flux_needs_days(self):
        with pytest.raises(ValueError):
            convert_precipitation_units(np.array([1.0]), "kg m-2 s-1")

    def test_unknown_units(self):
        with pytest.raises(ValueError):
            convert_precipitation_units(np.array([1.0]), "inches", days_in_month=[31])
        with pytest.raises(ValueError):
            convert_temperature_units(np.array([1.0]), "degF")

    def test_kelvin_to_celsius(self):
        np.testing.assert_allclose(convert_temperature_units(np.array([273.15, 300.0]), "K"),
                                   [0.0, 26.85])


class TestFileDiscovery:

    def test_sorted_and_filtered(self, tmp_path):
        for name in ["b_ssp245.csv", "a_historical.csv", "notes.txt"]:
            (tmp_path / name).write_text("")
        files = discover_model_files(tmp_path, "*")
        assert [f.name for f in files] == ["a_historical.csv", "b_ssp245.csv"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            discover_model_files(tmp_path / "absent")

    @pytest.mark.parametrize("name,source,experiment", [
        ("MPI-ESM1-2-LR_ssp245.csv", "MPI-ESM1-2-LR", "ssp245"),
        ("ACCESS_CM2_historical.nc", "ACCESS_CM2", "historical"),
        ("CanESM5.csv", "CanESM5", None),
    ])
    def test_parse_filename(self, name, source, experiment):
        parsed = parse_series_filename(name)
        assert parsed == {"source_id": source, "experiment_id": experiment}


class TestModelTables:

    def test_csv_in_source_units(self, tmp_path):
        pd.DataFrame({
            "time": ["2000-01-16", "2000-02-15", "2000-03-16"],
            "pr": [1.0 / 86400] * 3,
            "tas": [273.15, 283.15, 293.15],
            "hfls": [50.0, 60.0, 70.0],
            "hfss": [10.0, 10.0, 10.0],
        }).to_csv(tmp_path / "MODEL-A_historical.csv", index=False)

        frame = load_model_table(tmp_path / "MODEL-A_historical.csv")

        assert list(frame.columns[:3]) == ["source_id", "experiment_id", "time"]
        assert (frame["source_id"] == "MODEL-A").all()
        assert (frame["experiment_id"] == "historical").all()
        assert frame["time"].dt.day.tolist() == [1, 1, 1]
        np.testing.assert_allclose(frame["pr"], [31.0, 29.0, 31.0])
        np.testing.assert_allclose(frame["tas"], [0.0, 10.0, 20.0])

    def test_ids_from_columns_take_precedence(self, tmp_path):
        pd.DataFrame({
            "time": ["2015-01-01", "2015-02-01"],
            "source_id": "MODEL-B",
            "experiment_id": "ssp585",
            "pr": [1.0e-5, 2.0e-5],
        }).to_csv(tmp_path / "whatever.csv", index=False)
        frame = load_model_table(tmp_path / "whatever.csv")
        assert frame["source_id"].unique().tolist() == ["MODEL-B"]

    def test_missing_ids_rejected(self, tmp_path):
        pd.DataFrame({"time": ["2015-01-01"], "pr": [1.0e-5]}).to_csv(
            tmp_path / "MODEL.csv", index=False)
        with pytest.raises(ValueError, match="experiment_id"):
            load_model_table(tmp_path / "MODEL.csv")

    def test_missing_time_rejected(self, tmp_path):
        pd.DataFrame({"date": ["2015-01-01"], "pr": [1.0e-5]}).to_csv(
            tmp_path / "MODEL_ssp245.csv", index=False)
        with pytest.raises(ValueError, match="time"):
            load_model_table(tmp_path / "MODEL_ssp245.csv")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_model_table(tmp_path / "nope.csv")

    def test_netcdf_table(self, tmp_path):
        times = pd.date_range("2015-01-15", periods=4, freq="MS") + pd.Timedelta(days=14)
        ds = xr.Dataset(
            {
                "pr": ("time", np.full(4, 1.0 / 86400)),
                "tas": ("time", np.full(4, 280.0)),
            },
            coords={"time": times},
            attrs={"source_id": "MODEL-NC", "experiment_id": "ssp245"},
        )
        path = tmp_path / "model.nc"
        ds.to_netcdf(path)

        frame = load_model_table(path)

        assert (frame["source_id"] == "MODEL-NC").all()
        assert (frame["experiment_id"] == "ssp245").all()
        assert frame["time"].dt.day.tolist() == [1, 1, 1, 1]
        np.testing.assert_allclose(frame["tas"], 280.0 - 273.15)

    def test_stacking_several_tables(self, tmp_path):
        for source in ("A", "B"):
            pd.DataFrame({"time": ["2015-01-01"], "pr": [1.0e-5]}).to_csv(
                tmp_path / f"{source}_ssp245.csv", index=False)
        stacked = load_model_tables(discover_model_files(tmp_path))
        assert stacked["source_id"].tolist() == ["A", "B"]

    def test_month_start_with_mixed_formats(self):
        result = to_month_start(["2000-01-16 12:00", "2000-02-01", "2000-03-16T00:00:00"])
        assert result.dt.day.tolist() == [1, 1, 1]
        assert result.dt.month.tolist() == [1, 2, 3]


class TestObservedTable:

    def test_load(self, tmp_path):
        path = tmp_path / "observed.csv"
        pd.DataFrame({
            "date": ["1981-02", "1981-01"],
            "pr": [60.0, 50.0],
            "tas": [1.0, 0.5],
            "et0": [20.0, 15.0],
        }).to_csv(path, index=False)

        frame = load_observed_table(path)

        assert frame["time"].tolist() == [pd.Timestamp("1981-01-01"), pd.Timestamp("1981-02-01")]
        assert frame["balance"].tolist() == [35.0, 40.0]
        assert (frame["source_id"] == "observed").all()
        assert (frame["experiment_id"] == "historical").all()

    def test_custom_columns(self, tmp_path):
        path = tmp_path / "observed.csv"
        pd.DataFrame({"ym": ["2000-05"], "rain": [10.0], "temp": [15.0], "pet": [4.0]}).to_csv(
            path, index=False)
        columns = ObservedColumns(time="ym", pr="rain", tas="temp", pet="pet")
        frame = load_observed_table(path, columns)
        assert frame.loc[0, "balance"] == 6.0

    def test_bad_label(self, tmp_path):
        path = tmp_path / "observed.csv"
        pd.DataFrame({"date": ["1981/01"], "pr": [1.0], "tas": [1.0], "et0": [1.0]}).to_csv(
            path, index=False)
        with pytest.raises(ValueError, match="YYYY-MM"):
            load_observed_table(path)

    def test_missing_column(self, tmp_path):
        path = tmp_path / "observed.csv"
        pd.DataFrame({"date": ["1981-01"], "pr": [1.0]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="missing observed column"):
            load_observed_table(path)


class TestSeriesFilters:

    def test_exclusion_removes_overlap_year(self):
        frame = make_model("MODEL-A")
        rule = SeriesExclusion(source_id="MODEL-A", experiment_id="historical",
                               start="2014-01", end="2014-12")
        cleaned = apply_exclusions(frame, [rule])
        historical = cleaned[cleaned["experiment_id"] == "historical"]
        assert len(cleaned) == len(frame) - 12
        assert historical["time"].max() == pd.Timestamp("2013-12-01")

    def test_exclusion_without_experiment_hits_every_experiment(self):
        frame = make_model("MODEL-A")
        rule = SeriesExclusion(source_id="MODEL-A", start="2014-01", end="2015-12")
        cleaned = apply_exclusions(frame, [rule])
        assert len(cleaned) == len(frame) - 12 - 24

    def test_unmatched_exclusion_changes_nothing(self, caplog):
        frame = make_model("MODEL-A")
        rule = SeriesExclusion(source_id="OTHER", start="2014-01", end="2014-12")
        cleaned = apply_exclusions(frame, [rule])
        assert len(cleaned) == len(frame)
        assert "matched no rows" in caplog.text

    def test_complete_models_kept(self):
        frame = pd.concat([
            make_model("COMPLETE"),
            make_model("NO-SSP585", experiments=("historical", "ssp245")),
            make_model("NO-FLUX"),
        ], ignore_index=True)
        frame.loc[(frame["source_id"] == "NO-FLUX") & (frame["experiment_id"] == "ssp585"),
                  "hfls"] = np.nan

        kept, excluded = select_complete_models(
            frame, ["pr", "tas", "hfls", "hfss"], ["historical", "ssp245", "ssp585"])

        assert kept["source_id"].unique().tolist() == ["COMPLETE"]
        assert excluded["NO-SSP585"] == ["experiment 'ssp585' absent"]
        assert excluded["NO-FLUX"] == ["'hfls' missing in ssp585"]

    def test_missing_requirements_for_absent_column(self):
        frame = make_model("MODEL-A").drop(columns=["hfss"])
        reasons = missing_requirements(frame, ["hfss"], ["historical"])
        assert reasons == {"MODEL-A": ["'hfss' missing in historical"]}
