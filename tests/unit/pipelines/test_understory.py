"""Unit tests for the understory spawn index pipeline."""

import pandas as pd
import pytest

from spawn_index.config import UnderstoryParameters
from spawn_index.models.reference import (
    AlgaeCoefficientTable,
    WidthCorrection,
    WidthCorrectionTable,
)
from spawn_index.pipelines.understory import UnderstoryIndexPipeline
from spawn_index.validation import AlgaeLookupError, ValidationError

PARAMS = UnderstoryParameters()


def _sub(layers, proportion):
    return PARAMS.alpha * layers * proportion


def _alg(layers, proportion, coef):
    return PARAMS.beta * layers**PARAMS.gamma * proportion**PARAMS.delta * coef * PARAMS.quadrat_factor


@pytest.fixture
def spawn():
    return pd.DataFrame(
        {
            "year": [2000],
            "location_code": [820],
            "spawn_number": [1],
            "method": ["Dive"],
            "length": [40.0],
            "length_algae": [30.0],
        }
    )


@pytest.fixture
def transects():
    return pd.DataFrame(
        {
            "year": [2000, 2000],
            "location_code": [820, 820],
            "spawn_number": [1, 1],
            "transect": [1, 2],
            "width_obs": [10.0, 20.0],
            "quadrat_size": [0.5, 0.5],
        }
    )


@pytest.fixture
def stations():
    return pd.DataFrame(
        {
            "year": [2000, 2000, 2000],
            "location_code": [820, 820, 820],
            "spawn_number": [1, 1, 1],
            "transect": [1, 1, 2],
            "station": [1, 2, 1],
            "sub_lyrs": [2.0, 1.0, 3.0],
            "percent_bottom": [50.0, 100.0, 20.0],
        }
    )


@pytest.fixture
def algae():
    return pd.DataFrame(
        {
            "year": [2000, 2000],
            "location_code": [820, 820],
            "spawn_number": [1, 1],
            "transect": [1, 2],
            "station": [1, 1],
            "alg_type": ["gr", "KE"],
            "alg_lyrs": [1.0, 2.0],
            "percent_algae": [40.0, 100.0],
        }
    )


def _run(spawn, transects, stations, algae, areas, theta, **kwargs):
    return UnderstoryIndexPipeline(
        spawn=spawn,
        transects=transects,
        stations=stations,
        algae=algae,
        areas=areas,
        years=[2000],
        theta=theta,
        **kwargs,
    ).run()


def _transect_densities():
    t1 = ((_sub(2.0, 0.5) + _alg(1.0, 0.4, 0.9715)) + _sub(1.0, 1.0)) / 2
    t2 = _sub(3.0, 0.2) + _alg(2.0, 1.0, 0.9119)
    return t1, t2


class TestUnderstoryIndex:
    def test_spawn_index_matches_formula(self, spawn, transects, stations, algae, areas, theta):
        results = _run(spawn, transects, stations, algae, areas, theta)

        t1, t2 = _transect_densities()
        egg_dens = (t1 * 10.0 + t2 * 20.0) / 30.0
        expected = egg_dens * 30.0 * 15.0 * 1000 / theta

        row = results["spawn_index"].iloc[0]
        assert row["under_si"] == pytest.approx(expected, rel=1e-12)
        assert results["eggs_spawn"]["width_bar"].iloc[0] == 15.0

    def test_egg_layers_diagnostic(self, spawn, transects, stations, algae, areas, theta):
        biomass = _run(spawn, transects, stations, algae, areas, theta)["biomass_spawn"]

        # Transect 1: mean(1.5, 1.0); transect 2: mean(3.0, 2.0)
        assert biomass["under_lyrs"].iloc[0] == 1.875

    def test_length_falls_back_to_spawn_length(
        self, spawn, transects, stations, algae, areas, theta
    ):
        spawn["length_algae"] = float("nan")

        results = _run(spawn, transects, stations, algae, areas, theta)

        assert results["eggs_spawn"]["length_algae"].iloc[0] == 40.0

    def test_width_correction(self, spawn, transects, stations, algae, areas, theta):
        corrections = WidthCorrectionTable(
            corrections=(WidthCorrection(year=2000, region="SoG", factor=1.5),)
        )

        results = _run(
            spawn, transects, stations, algae, areas, theta, width_corrections=corrections
        )

        assert results["eggs_spawn"]["width_bar"].iloc[0] == 22.5

    def test_zero_width_transect_in_width_bar_only(
        self, spawn, transects, stations, algae, areas, theta
    ):
        transects = pd.concat(
            [transects, transects.iloc[[0]].assign(transect=3, width_obs=0.0)], ignore_index=True
        )
        stations = pd.concat(
            [stations, stations.iloc[[1]].assign(transect=3, station=1, sub_lyrs=5.0)],
            ignore_index=True,
        )

        results = _run(spawn, transects, stations, algae, areas, theta)

        eggs = results["eggs"]
        assert eggs.loc[eggs["transect"] == 3, "egg_dens_sub"].tolist() == [0.0]
        assert len(results["eggs_trans"]) == 2
        assert results["eggs_spawn"]["width_bar"].iloc[0] == 10.0

        t1, t2 = _transect_densities()
        assert results["eggs_spawn"]["egg_dens"].iloc[0] == pytest.approx(
            (t1 * 10.0 + t2 * 20.0) / 30.0, rel=1e-12
        )

    def test_algae_only_quadrat_keeps_transect_width(
        self, spawn, transects, stations, algae, areas, theta
    ):
        extra = algae.iloc[[1]].assign(station=2, alg_type="ST", alg_lyrs=1.0, percent_algae=50.0)
        algae = pd.concat([algae, extra], ignore_index=True)

        results = _run(spawn, transects, stations, algae, areas, theta)

        eggs = results["eggs"]
        quadrat = eggs[(eggs["transect"] == 2) & (eggs["station"] == 2)].iloc[0]
        assert quadrat["width"] == 20.0
        assert quadrat["egg_dens_sub"] == 0.0
        assert quadrat["egg_dens_alg"] == pytest.approx(_alg(1.0, 0.5, 1.0389))

    def test_algae_types_summed_per_quadrat(self, spawn, transects, stations, algae, areas, theta):
        extra = algae.iloc[[0]].assign(alg_type="RW", alg_lyrs=2.0, percent_algae=30.0)
        algae = pd.concat([algae, extra], ignore_index=True)

        eggs = _run(spawn, transects, stations, algae, areas, theta)["eggs"]
        quadrat = eggs[(eggs["transect"] == 1) & (eggs["station"] == 1)].iloc[0]

        expected = _alg(1.0, 0.4, 0.9715) + _alg(2.0, 0.3, 0.7222)
        assert quadrat["egg_dens_alg"] == pytest.approx(expected, rel=1e-12)


class TestUnderstoryValidation:
    @pytest.mark.parametrize("size", [0.6, 0.0])
    def test_quadrat_size_must_be_half_square_metre(
        self, size, spawn, transects, stations, algae, areas, theta
    ):
        transects.loc[1, "quadrat_size"] = size

        with pytest.raises(ValidationError) as exc_info:
            _run(spawn, transects, stations, algae, areas, theta)

        assert exc_info.value.count == 1

    def test_substrate_proportion_over_one(self, spawn, transects, stations, algae, areas, theta):
        stations.loc[0, "percent_bottom"] = 150.0

        with pytest.raises(ValidationError) as exc_info:
            _run(spawn, transects, stations, algae, areas, theta)

        assert exc_info.value.field == "sub_prop"

    def test_raw_algae_proportion_over_one(self, spawn, transects, stations, algae, areas, theta):
        algae.loc[0, "percent_algae"] = 120.0

        with pytest.raises(ValidationError) as exc_info:
            _run(spawn, transects, stations, algae, areas, theta)

        assert exc_info.value.field == "alg_prop"

    def test_unknown_algae_type_named(self, spawn, transects, stations, algae, areas, theta):
        algae.loc[1, "alg_type"] = "xx"

        with pytest.raises(AlgaeLookupError) as exc_info:
            _run(spawn, transects, stations, algae, areas, theta)

        assert exc_info.value.missing == ["XX"]

    def test_custom_coefficient_table(self, spawn, transects, stations, algae, areas, theta):
        table = AlgaeCoefficientTable(coefficients={"GR": 0.9715})

        with pytest.raises(AlgaeLookupError) as exc_info:
            _run(spawn, transects, stations, algae, areas, theta, algae_coefficients=table)

        assert exc_info.value.missing == ["KE"]


def test_row_order_does_not_change_index(spawn, transects, stations, algae, areas, theta):
    expected = _run(spawn, transects, stations, algae, areas, theta)["spawn_index"]

    shuffled = _run(
        spawn,
        transects.sample(frac=1, random_state=1),
        stations.sample(frac=1, random_state=2),
        algae.sample(frac=1, random_state=3),
        areas,
        theta,
    )["spawn_index"]

    pd.testing.assert_frame_equal(expected, shuffled, check_exact=True)


def test_rerun_is_identical(spawn, transects, stations, algae, areas, theta):
    first = _run(spawn, transects, stations, algae, areas, theta)
    second = _run(spawn, transects, stations, algae, areas, theta)

    for name in first:
        pd.testing.assert_frame_equal(first[name], second[name], check_exact=True)
