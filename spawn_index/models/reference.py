"""Reference tables consumed by the spawn index pipelines.

Reference tables are immutable configuration: loaded once by the caller and
passed explicitly to each pipeline invocation. Defaults for the intensity
lookup and algae coefficients reproduce the published tables.
"""

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from spawn_index.config import AreaColumns, SurfaceColumns
from spawn_index.models.enums import AlgaeType

# Intensity category -> number of egg layers (9-category scale)
DEFAULT_INTENSITY_LAYERS: dict[int, float] = {
    1: 0.5529,
    2: 0.9444,
    3: 1.3360,
    4: 2.1496,
    5: 2.9633,
    6: 4.1318,
    7: 5.3002,
    8: 6.5647,
    9: 7.8291,
}

# Algae type code -> coefficient for the effect of algae morphology on egg density
DEFAULT_ALGAE_COEFFICIENTS: dict[str, float] = {
    AlgaeType.GRASSES.value: 0.9715,
    AlgaeType.GRUNGE.value: 1.0000,
    AlgaeType.KELP.value: 0.9119,
    AlgaeType.LEAFY_ALGAE.value: 0.6766,
    AlgaeType.LARGE_KELP.value: 0.9119,
    AlgaeType.ROCKWEED.value: 0.7222,
    AlgaeType.SARGASSUM.value: 1.0000,
    AlgaeType.STRINGY_ALGAE.value: 1.0389,
}


class IntensityLookup(BaseModel):
    """Spawn intensity category to number of egg layers."""

    model_config = ConfigDict(frozen=True)

    layers: dict[int, float] = Field(default_factory=lambda: dict(DEFAULT_INTENSITY_LAYERS))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                SurfaceColumns.INTENSITY: list(self.layers.keys()),
                SurfaceColumns.LAYERS: list(self.layers.values()),
            }
        )


class AlgaeCoefficientTable(BaseModel):
    """Algae type code to empirical egg density coefficient."""

    model_config = ConfigDict(frozen=True)

    coefficients: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_ALGAE_COEFFICIENTS)
    )

    @field_validator("coefficients")
    @classmethod
    def upper_case_codes(cls, v: dict[str, float]) -> dict[str, float]:
        return {AlgaeType.normalise(code): coef for code, coef in v.items()}

    def missing(self, algae_types) -> list[str]:
        """Return the sorted distinct algae types with no coefficient."""
        return sorted({t for t in algae_types if t not in self.coefficients})

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"alg_type": list(self.coefficients.keys()), "coef": list(self.coefficients.values())}
        )


class WidthCorrection(BaseModel):
    """Understory width correction factor for one region and year."""

    model_config = ConfigDict(frozen=True)

    year: int
    region: str
    factor: float = Field(gt=0)


class WidthCorrectionTable(BaseModel):
    """Understory transect width correction factors by region and year.

    Corrects the underestimated widths caused by lead line shrinkage.
    Region/year combinations without an entry use a factor of 1.0.
    """

    model_config = ConfigDict(frozen=True)

    corrections: tuple[WidthCorrection, ...] = ()

    @model_validator(mode="after")
    def unique_region_years(self) -> "WidthCorrectionTable":
        seen = set()
        for item in self.corrections:
            key = (item.year, item.region)
            if key in seen:
                msg = f"Duplicate width correction for year {item.year}, region {item.region}"
                raise ValueError(msg)
            seen.add(key)
        return self

    @classmethod
    def from_wide(cls, table: pd.DataFrame, year_column: str = "Year") -> "WidthCorrectionTable":
        """Build from a table with one row per year and one column per region."""
        long = table.melt(id_vars=year_column, var_name="region", value_name="factor").dropna(
            subset=["factor"]
        )
        return cls(
            corrections=tuple(
                WidthCorrection(year=int(row[year_column]), region=row["region"], factor=row["factor"])
                for _, row in long.iterrows()
            )
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "year": [item.year for item in self.corrections],
                AreaColumns.REGION: [item.region for item in self.corrections],
                "width_fac": [item.factor for item in self.corrections],
            },
        ).astype({"year": "int64", "width_fac": "float64"})


class PoolWidth(BaseModel):
    """Median spawn width for one pool."""

    model_config = ConfigDict(frozen=True)

    section: int
    pool: int
    width: float = Field(ge=0)


class WidthReference(BaseModel):
    """Median surface spawn widths at region, section and pool level.

    Attributes:
        regions: Region -> median width (m)
        sections: Section -> median width (m)
        pools: Median width (m) per section and pool
    """

    model_config = ConfigDict(frozen=True)

    regions: dict[str, float] = Field(default_factory=dict)
    sections: dict[int, float] = Field(default_factory=dict)
    pools: tuple[PoolWidth, ...] = ()

    def to_frame(self, areas: pd.DataFrame) -> pd.DataFrame:
        """Resolve widths for every (region, section, pool) in the area table."""
        keys = [AreaColumns.REGION, AreaColumns.SECTION, AreaColumns.POOL]
        widths = areas[keys].drop_duplicates().reset_index(drop=True)
        widths[SurfaceColumns.WIDTH_REGION] = (
            widths[AreaColumns.REGION].map(self.regions).astype(float)
        )
        widths[SurfaceColumns.WIDTH_SECTION] = (
            widths[AreaColumns.SECTION].map(self.sections).astype(float)
        )
        pools = pd.DataFrame(
            {
                AreaColumns.SECTION: [item.section for item in self.pools],
                AreaColumns.POOL: [item.pool for item in self.pools],
                SurfaceColumns.WIDTH_POOL: [item.width for item in self.pools],
            }
        )
        if pools.empty:
            widths[SurfaceColumns.WIDTH_POOL] = float("nan")
            return widths
        return widths.merge(pools, on=[AreaColumns.SECTION, AreaColumns.POOL], how="left")
