"""Core domain models for spawn index calculations.

These models represent survey observations and results as immutable value
objects. The pipelines work on pandas DataFrames; these records are the typed
form of one row of each input table and of the result table.

Includes models for:
- Area reference and spawn survey events
- Surface, Macrocystis and understory observations
- Spawn index results
"""

from collections.abc import Iterable

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from spawn_index.models.enums import AlgaeType, IndexKind, Substrate, SurveyMethod


class AreaReference(BaseModel):
    """Where an observation occurred.

    Attributes:
        region: Stock assessment region (e.g., "HG", "WCVI")
        stat_area: Statistical area
        section: Section within the statistical area
        location_code: Location code (determines region, stat_area and section)
        pool: Pool within the section (None if not pooled)
    """

    model_config = ConfigDict(frozen=True)

    region: str = Field(description="Region")
    stat_area: int = Field(description="Statistical area")
    section: int = Field(description="Section")
    location_code: int = Field(description="Location code")
    pool: int | None = Field(default=None, description="Pool")
    location_name: str | None = Field(default=None, description="Location name")
    longitude: float | None = Field(default=None, description="Longitude (decimal degrees)")
    latitude: float | None = Field(default=None, description="Latitude (decimal degrees)")


class SpawnRecord(BaseModel):
    """A spawn survey event, the parent of every survey observation.

    Attributes:
        year: Survey year
        location_code: Location code
        spawn_number: Spawn number within the location and year
        method: Survey method
        length: Observed spawn length (metres)
        width_obs: Observed spawn width (metres)
        length_macro: Spawn length for Macrocystis (None falls back to length)
        length_algae: Spawn length for understory (None falls back to length)
    """

    model_config = ConfigDict(frozen=True)

    year: int
    location_code: int
    spawn_number: int
    method: SurveyMethod
    length: float | None = Field(default=None, ge=0, description="Spawn length (m)")
    width_obs: float | None = Field(default=None, ge=0, description="Observed width (m)")
    length_macro: float | None = Field(default=None, ge=0, description="Macrocystis length (m)")
    length_algae: float | None = Field(default=None, ge=0, description="Understory length (m)")


class SubstrateLayers(BaseModel):
    """Egg layers and percent cover on one substrate type."""

    model_config = ConfigDict(frozen=True)

    substrate: Substrate
    layers: float | None = Field(default=None, ge=0)
    percent: float | None = Field(default=None, ge=0)


class SurfaceObservation(BaseModel):
    """A surface spawn survey observation.

    Percent cover bounds are checked by the surface pipeline rather than here so
    that a bad record produces a pipeline ValidationError with a record count.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    location_code: int
    spawn_number: int
    intensity: int | None = Field(default=None, ge=0, description="Intensity category")
    substrates: tuple[SubstrateLayers, ...] = Field(default=())

    def to_row(self) -> dict:
        row = {
            "year": self.year,
            "location_code": self.location_code,
            "spawn_number": self.spawn_number,
            "intensity": self.intensity,
        }
        for substrate in Substrate:
            row[substrate.layers_column] = None
            row[substrate.percent_column] = None
        for item in self.substrates:
            row[item.substrate.layers_column] = item.layers
            row[item.substrate.percent_column] = item.percent
        return row


class MacrocystisTransect(BaseModel):
    """A Macrocystis spawn transect."""

    model_config = ConfigDict(frozen=True)

    year: int
    location_code: int
    spawn_number: int
    transect: int
    height: float | None = Field(default=None, ge=0, description="Plant height (m)")
    width: float | None = Field(default=None, ge=0, description="Transect width (m)")
    layers: float | None = Field(default=None, ge=0, description="Egg layers")


class MacrocystisPlant(BaseModel):
    """A Macrocystis plant; mature holds the stalk count (0 when not mature)."""

    model_config = ConfigDict(frozen=True)

    year: int
    location_code: int
    spawn_number: int
    transect: int
    mature: int | None = Field(default=None, ge=0, description="Mature stalks")


class UnderstoryTransect(BaseModel):
    """An understory spawn (algae) transect."""

    model_config = ConfigDict(frozen=True)

    year: int
    location_code: int
    spawn_number: int
    transect: int
    width_obs: float | None = Field(default=None, ge=0, description="Recorded width (m)")
    quadrat_size: float = Field(description="Quadrat size (m^2)")


class UnderstoryStation(BaseModel):
    """Substrate egg layers and bottom coverage in one quadrat."""

    model_config = ConfigDict(frozen=True)

    year: int
    location_code: int
    spawn_number: int
    transect: int
    station: int
    sub_lyrs: float | None = Field(default=None, ge=0, description="Substrate egg layers")
    percent_bottom: float | None = Field(default=None, ge=0, description="Bottom coverage (%)")


class UnderstoryAlgaeObservation(BaseModel):
    """Egg layers and coverage of one algae type in one quadrat.

    Known codes parse to AlgaeType; unknown codes are kept as upper-case strings.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    location_code: int
    spawn_number: int
    transect: int
    station: int
    alg_type: AlgaeType | str = Field(description="Algae type code")
    alg_lyrs: float | None = Field(default=None, ge=0, description="Algae egg layers")
    percent_algae: float | None = Field(default=None, ge=0, description="Algae coverage (%)")

    @field_validator("alg_type", mode="before")
    @classmethod
    def parse_alg_type(cls, v):
        return AlgaeType.parse(v)


class SpawnIndexResult(BaseModel):
    """Spawn index for one spawn number.

    Attributes:
        kind: Survey type the index was calculated from
        spawn_index_t: Spawn index in tonnes (None when inputs were incomplete)
        egg_layers: Mean egg layers, for diagnostics only
    """

    model_config = ConfigDict(frozen=True)

    year: int
    region: str
    stat_area: int
    section: int
    location_code: int
    spawn_number: int
    kind: IndexKind
    spawn_index_t: float | None = Field(default=None, description="Spawn index (tonnes)")
    egg_layers: float | None = Field(default=None, description="Mean egg layers")


def records_to_frame(records: Iterable[BaseModel]) -> pd.DataFrame:
    """Convert domain records into a pipeline input DataFrame.

    Enum fields are stored by value so the frame matches raw survey tables.
    """
    rows = []
    for record in records:
        if isinstance(record, SurfaceObservation):
            rows.append(record.to_row())
        else:
            rows.append(record.model_dump(mode="json"))
    return pd.DataFrame(rows)
