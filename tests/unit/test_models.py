"""Unit tests for domain models, enums and reference tables."""

import math

import pandas as pd
import pydantic
import pytest

from spawn_index.models import (
    AlgaeCoefficientTable,
    IntensityLookup,
    SpawnIndexResult,
    SpawnRecord,
    SurfaceObservation,
    UnderstoryAlgaeObservation,
    WidthCorrectionTable,
    WidthReference,
    records_to_frame,
)
from spawn_index.models.domain import SubstrateLayers
from spawn_index.models.enums import AlgaeType, IndexKind, Substrate, SurveyMethod
from spawn_index.models.reference import PoolWidth, WidthCorrection


class TestSurveyMethod:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("surface", SurveyMethod.SURFACE),
            ("DIVE", SurveyMethod.DIVE),
            (" Dive ", SurveyMethod.DIVE),
            ("incidental", SurveyMethod.INCIDENTAL),
            ("aerial", SurveyMethod.UNKNOWN),
            (None, SurveyMethod.UNKNOWN),
            (float("nan"), SurveyMethod.UNKNOWN),
        ],
    )
    def test_parse(self, raw, expected):
        assert SurveyMethod.parse(raw) is expected

    def test_indexed_methods(self):
        indexed = {method for method in SurveyMethod if method.is_indexed}
        assert indexed == {SurveyMethod.SURFACE, SurveyMethod.DIVE}


class TestAlgaeType:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("gr", AlgaeType.GRASSES),
            (" KE ", AlgaeType.KELP),
            ("xx", "XX"),
        ],
    )
    def test_parse(self, raw, expected):
        assert AlgaeType.parse(raw) == expected

    def test_default_coefficients_cover_every_type(self):
        assert set(AlgaeCoefficientTable().coefficients) == {t.value for t in AlgaeType}

    def test_observation_keeps_unknown_codes(self):
        """Unknown codes survive into the frame so the coefficient check can name them."""
        known, unknown = (
            UnderstoryAlgaeObservation(
                year=2000, location_code=820, spawn_number=1, transect=1, station=1, alg_type=code
            )
            for code in ("st", "xx")
        )

        assert known.alg_type is AlgaeType.STRINGY_ALGAE
        assert unknown.alg_type == "XX"
        assert records_to_frame([known, unknown])["alg_type"].tolist() == ["ST", "XX"]


def test_substrate_columns():
    assert Substrate.GRASS.layers_column == "lay_grass"
    assert Substrate.STRINGY_RED.percent_column == "stringy_red_percent"
    assert len(Substrate.layers_columns()) == 8


def test_index_kind_columns():
    assert IndexKind.SURFACE.value_column == "surf_si"
    assert IndexKind.MACROCYSTIS.layers_column == "macro_lyrs"
    assert IndexKind.UNDERSTORY.legacy_name == "UnderSI"


def test_spawn_record_is_frozen():
    record = SpawnRecord(year=2000, location_code=820, spawn_number=1, method=SurveyMethod.DIVE)

    with pytest.raises(pydantic.ValidationError):
        record.year = 2001


def test_records_to_frame():
    """Records convert to the raw table layout the pipelines consume."""
    spawn = records_to_frame(
        [SpawnRecord(year=2000, location_code=820, spawn_number=1, method=SurveyMethod.SURFACE)]
    )
    surface = records_to_frame(
        [
            SurfaceObservation(
                year=2000,
                location_code=820,
                spawn_number=1,
                intensity=0,
                substrates=(SubstrateLayers(substrate=Substrate.KELP, layers=2.0, percent=60.0),),
            )
        ]
    )

    assert spawn.loc[0, "method"] == "Surface"
    assert surface.loc[0, "lay_kelp"] == 2.0
    assert surface.loc[0, "kelp_percent"] == 60.0
    assert pd.isna(surface.loc[0, "lay_grass"])


def test_spawn_index_result():
    result = SpawnIndexResult(
        year=2000,
        region="SoG",
        stat_area=14,
        section=142,
        location_code=820,
        spawn_number=1,
        kind=IndexKind.SURFACE,
        spawn_index_t=12.5,
    )

    assert result.egg_layers is None
    assert result.kind is IndexKind.SURFACE


class TestReferenceTables:
    def test_intensity_lookup_defaults(self):
        frame = IntensityLookup().to_frame()

        assert frame["intensity"].tolist() == list(range(1, 10))
        assert frame.loc[frame["intensity"] == 1, "layers"].item() == 0.5529

    def test_algae_codes_upper_cased(self):
        table = AlgaeCoefficientTable(coefficients={"gr": 0.9715, " ke ": 0.9119})
        assert set(table.coefficients) == {"GR", "KE"}

    def test_algae_missing_sorted(self):
        table = AlgaeCoefficientTable()
        assert table.missing(["ZZ", "GR", "AA", "ZZ"]) == ["AA", "ZZ"]

    def test_width_corrections_from_wide(self):
        wide = pd.DataFrame({"Year": [2003, 2004], "SoG": [1.1, None], "HG": [1.2, 1.3]})

        table = WidthCorrectionTable.from_wide(wide)
        frame = table.to_frame().sort_values(["year", "region"]).reset_index(drop=True)

        assert len(frame) == 3
        assert frame.loc[0].to_dict() == {"year": 2003, "region": "HG", "width_fac": 1.2}

    def test_width_corrections_reject_duplicates(self):
        with pytest.raises(pydantic.ValidationError):
            WidthCorrectionTable(
                corrections=(
                    WidthCorrection(year=2003, region="SoG", factor=1.1),
                    WidthCorrection(year=2003, region="SoG", factor=1.2),
                )
            )

    def test_width_reference_resolves_levels(self, areas):
        widths = WidthReference(
            regions={"SoG": 30.0},
            sections={142: 25.0},
            pools=(PoolWidth(section=142, pool=1, width=15.0),),
        )

        frame = widths.to_frame(areas).sort_values("pool").reset_index(drop=True)

        assert frame["width_region"].tolist() == [30.0, 30.0]
        assert frame["width_section"].tolist() == [25.0, 25.0]
        assert frame.loc[0, "width_pool"] == 15.0
        assert math.isnan(frame.loc[1, "width_pool"])

    def test_width_reference_without_pools(self, areas):
        frame = WidthReference(regions={"SoG": 30.0}).to_frame(areas)

        assert frame["width_pool"].isna().all()
        assert frame["width_section"].isna().all()
