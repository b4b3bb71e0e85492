"""Unit tests for the surface spawn index pipeline."""

import numpy as np
import pandas as pd
import pytest

from spawn_index.config import SurfaceParameters
from spawn_index.models import SpawnRecord, SubstrateLayers, SurfaceObservation, records_to_frame
from spawn_index.models.enums import Substrate, SurveyMethod
from spawn_index.models.reference import PoolWidth, WidthReference
from spawn_index.pipelines.surface import (
    IntensityOverride,
    SurfaceIndexPipeline,
    apply_intensity_overrides,
)
from spawn_index.validation import MissingDataError, ValidationError

ALPHA = SurfaceParameters().alpha
BETA = SurfaceParameters().beta


@pytest.fixture
def widths():
    return WidthReference(
        regions={"SoG": 30.0},
        sections={142: 25.0},
        pools=(PoolWidth(section=142, pool=1, width=15.0),),
    )


@pytest.fixture
def spawn():
    return pd.DataFrame(
        {
            "year": [2000, 2000, 2000],
            "location_code": [820, 821, 820],
            "spawn_number": [1, 1, 2],
            "method": ["surface", "Dive", "Incidental"],
            "length": [100.0, 200.0, 50.0],
            "width_obs": [20.0, 40.0, 10.0],
        }
    )


@pytest.fixture
def surface():
    """Substrate observations; unlisted substrate columns are absent."""
    return pd.DataFrame(
        {
            "year": [2000, 2000, 2000, 2000],
            "location_code": [820, 821, 821, 820],
            "spawn_number": [1, 1, 1, 2],
            "intensity": [0, 0, 0, 0],
            "lay_grass": [2.0, 1.0, np.nan, 1.0],
            "grass_percent": [50.0, 100.0, np.nan, 100.0],
            "lay_rock": [1.0, np.nan, 3.0, np.nan],
            "rock_percent": [50.0, np.nan, 100.0, np.nan],
        }
    )


def _pipeline(spawn, surface, areas, widths, theta, **kwargs):
    return SurfaceIndexPipeline(
        spawn=spawn,
        surface=surface,
        areas=areas,
        widths=widths,
        years=[2000],
        theta=theta,
        **kwargs,
    )


def _row(df: pd.DataFrame, location_code: int, spawn_number: int = 1) -> pd.Series:
    match = df[(df["location_code"] == location_code) & (df["spawn_number"] == spawn_number)]
    assert len(match) == 1
    return match.iloc[0]


class TestSurfaceIndex:
    def test_single_pool_matches_formula(self, spawn, surface, areas, widths, theta):
        """One pool, one observation: no aggregation distortion."""
        results = _pipeline(spawn, surface, areas, widths, theta).run()

        egg_lyrs = 2.0 * 50.0 / 100 + 1.0 * 50.0 / 100
        egg_dens = ALPHA + BETA * egg_lyrs
        expected = egg_dens * 100.0 * 15.0 * 1000 / theta

        row = _row(results["spawn_index"], 820)
        assert row["surf_si"] == expected

    def test_pool_mean_egg_density(self, spawn, surface, areas, widths, theta):
        """Observations in the same pool are averaged before biomass."""
        results = _pipeline(spawn, surface, areas, widths, theta).run()

        # Location 821 is pool 2 (no pool width): egg layers 1.0 and 3.0
        egg_dens = ((ALPHA + BETA * 1.0) + (ALPHA + BETA * 3.0)) / 2
        expected = egg_dens * 200.0 * 25.0 * 1000 / theta

        row = _row(results["biomass_spawn"], 821)
        assert row["surf_si"] == pytest.approx(expected, rel=1e-12)
        assert row["surf_lyrs"] == 2.0

    def test_only_surface_and_dive_indexed(self, spawn, surface, areas, widths, theta):
        results = _pipeline(spawn, surface, areas, widths, theta).run()

        index = results["spawn_index"]
        assert len(index) == 2
        assert not ((index["location_code"] == 820) & (index["spawn_number"] == 2)).any()

    def test_output_keys(self, spawn, surface, areas, widths, theta):
        results = _pipeline(spawn, surface, areas, widths, theta).run()

        assert set(results) == {
            "surface",
            "eggs",
            "eggs_spawn",
            "biomass_pool",
            "biomass_spawn",
            "spawn_index",
        }
        assert list(results["spawn_index"].columns) == [
            "year",
            "region",
            "stat_area",
            "section",
            "location_code",
            "spawn_number",
            "surf_si",
        ]


def test_typed_records_without_intensity(areas, theta):
    """Observations with no intensity recorded, built from domain records."""
    spawn = records_to_frame(
        [
            SpawnRecord(
                year=2000,
                location_code=820,
                spawn_number=1,
                method=SurveyMethod.SURFACE,
                length=100.0,
                width_obs=10.0,
            )
        ]
    )
    surface = records_to_frame(
        [
            SurfaceObservation(
                year=2000,
                location_code=820,
                spawn_number=1,
                intensity=None,
                substrates=(SubstrateLayers(substrate=Substrate.GRASS, layers=2.0, percent=50.0),),
            )
        ]
    )

    results = _pipeline(spawn, surface, areas, WidthReference(), theta).run()

    expected = (ALPHA + BETA * 1.0) * 100.0 * 10.0 * 1000 / theta
    assert results["spawn_index"]["surf_si"].iloc[0] == pytest.approx(expected, rel=1e-12)


class TestWidthPrecedence:
    def test_section_width_when_pool_missing(self, spawn, surface, areas, theta):
        widths = WidthReference(regions={"SoG": 30.0}, sections={142: 25.0})

        results = _pipeline(spawn, surface, areas, widths, theta).run()

        assert _row(results["biomass_pool"], 820)["width"] == 25.0

    def test_region_width_when_section_missing(self, spawn, surface, areas, theta):
        widths = WidthReference(regions={"SoG": 30.0})

        results = _pipeline(spawn, surface, areas, widths, theta).run()

        assert _row(results["biomass_pool"], 820)["width"] == 30.0

    def test_observed_width_last(self, spawn, surface, areas, theta):
        results = _pipeline(spawn, surface, areas, WidthReference(), theta).run()

        assert _row(results["biomass_pool"], 820)["width"] == 20.0
        assert _row(results["biomass_pool"], 821)["width"] == 40.0

    def test_resolved_width_frame(self, spawn, surface, areas, theta):
        widths = pd.DataFrame(
            {"region": ["SoG"], "section": [142], "pool": [1], "width_pool": [12.0]}
        )

        results = _pipeline(spawn, surface, areas, widths, theta).run()

        assert _row(results["biomass_pool"], 820)["width"] == 12.0
        assert _row(results["biomass_pool"], 821)["width"] == 40.0


class TestSurfaceValidation:
    def test_percent_cover_over_100_fails_fast(self, spawn, surface, areas, widths, theta):
        surface.loc[0, "grass_percent"] = 101.0

        with pytest.raises(ValidationError) as exc_info:
            _pipeline(spawn, surface, areas, widths, theta).run()

        assert exc_info.value.count == 1
        assert exc_info.value.keys[0]["location_code"] == 820

    def test_percent_cover_of_100_is_valid(self, spawn, surface, areas, widths, theta):
        surface.loc[0, "grass_percent"] = 100.0
        surface.loc[0, "rock_percent"] = 100.0

        _pipeline(spawn, surface, areas, widths, theta).run()

    def test_zero_egg_layers_raise(self, spawn, surface, areas, widths, theta):
        surface.loc[0, ["lay_grass", "lay_rock"]] = 0.0

        with pytest.raises(MissingDataError) as exc_info:
            _pipeline(spawn, surface, areas, widths, theta).run()

        assert exc_info.value.count == 1
        assert exc_info.value.keys == [
            {
                "year": 2000,
                "region": "SoG",
                "stat_area": 14,
                "section": 142,
                "location_code": 820,
                "spawn_number": 1,
            }
        ]


class TestIntensity:
    @pytest.fixture
    def early_spawn(self):
        return pd.DataFrame(
            {
                "year": [1950, 1962],
                "location_code": [821, 820],
                "spawn_number": [1, 1],
                "method": ["Surface", "Surface"],
                "length": [100.0, 100.0],
                "width_obs": [10.0, 10.0],
            }
        )

    @pytest.fixture
    def early_surface(self):
        return pd.DataFrame(
            {
                "year": [1950, 1962],
                "location_code": [821, 820],
                "spawn_number": [1, 1],
                "intensity": [3, 0],
            }
        )

    def _run(self, spawn, surface, areas, theta, **kwargs):
        return SurfaceIndexPipeline(
            spawn=spawn,
            surface=surface,
            areas=areas,
            widths=WidthReference(),
            years=[1950, 1962],
            theta=theta,
            **kwargs,
        ).run()

    def test_intensity_years_use_lookup(self, early_spawn, early_surface, areas, theta):
        results = self._run(early_spawn, early_surface, areas, theta)

        # 1950 is on the 5-category scale: 3 -> 5 -> 2.9633 layers
        assert _row(results["biomass_spawn"], 821)["surf_lyrs"] == 2.9633

    def test_named_override_applied(self, early_spawn, early_surface, areas, theta):
        results = self._run(early_spawn, early_surface, areas, theta)

        row = _row(results["biomass_spawn"], 820)
        assert row["surf_lyrs"] == 0.5529
        expected = (ALPHA + BETA * 0.5529) * 100.0 * 10.0 * 1000 / theta
        assert row["surf_si"] == pytest.approx(expected, rel=1e-12)

    def test_without_override_intensity_zero_is_missing(
        self, early_spawn, early_surface, areas, theta
    ):
        with pytest.raises(MissingDataError) as exc_info:
            self._run(early_spawn, early_surface, areas, theta, overrides=())

        assert exc_info.value.count == 1
        assert exc_info.value.keys[0]["year"] == 1962

    def test_explicit_year_subsets(self, early_spawn, early_surface, areas, theta):
        """Without rescaling, intensity 3 maps straight to 1.3360 layers."""
        results = self._run(
            early_spawn, early_surface, areas, theta, intensity_years=[1950, 1962], rescale_years=[]
        )

        assert _row(results["biomass_spawn"], 821)["surf_lyrs"] == 1.3360


def test_apply_intensity_overrides_only_matches_named_record():
    override = IntensityOverride(
        description="test",
        year=1962,
        stat_area=14,
        section=142,
        location_code=820,
        from_intensity=0,
        to_intensity=1,
    )
    surface = pd.DataFrame(
        {
            "year": [1962, 1962, 1963],
            "stat_area": [14, 14, 14],
            "section": [142, 142, 142],
            "location_code": [820, 820, 820],
            "intensity": [0, 2, 0],
        }
    )

    result = apply_intensity_overrides(surface, (override,))

    assert result["intensity"].tolist() == [1, 2, 0]
    assert surface["intensity"].tolist() == [0, 2, 0]


def test_rerun_is_identical(spawn, surface, areas, widths, theta):
    first = _pipeline(spawn, surface, areas, widths, theta).run()
    second = _pipeline(spawn, surface, areas, widths, theta).run()

    for name in first:
        pd.testing.assert_frame_equal(first[name], second[name], check_exact=True)


def test_row_order_does_not_change_index(spawn, surface, areas, widths, theta):
    expected = _pipeline(spawn, surface, areas, widths, theta).run()["spawn_index"]

    shuffled = _pipeline(
        spawn.sample(frac=1, random_state=1),
        surface.sample(frac=1, random_state=2),
        areas.sample(frac=1, random_state=3),
        widths,
        theta,
    ).run()["spawn_index"]

    pd.testing.assert_frame_equal(expected, shuffled, check_exact=True)
