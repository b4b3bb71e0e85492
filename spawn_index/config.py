"""Configuration and constants for the spawn index calculations.

This module defines the regression parameter groups, fixed conversion
constants and column names used by the spawn index pipelines.

Includes configuration for:
- Egg to biomass conversion (ConversionParameters with CONVERSION_ prefix)
- Spawn-on-kelp conversion (SokParameters with SOK_ prefix)
- Surface spawn (SurfaceParameters with SURFACE_ prefix)
- Macrocystis spawn (MacrocystisParameters with MACRO_ prefix)
- Understory spawn (UnderstoryParameters with UNDER_ prefix)

Configuration can be overridden via:
1. Environment variables (e.g., CONVERSION_PHI=0.55, MACRO_SWATH_M=2.5)
2. .env file in the current directory
3. Default values in code
"""

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class PhysicalConstants:
    """Fixed unit conversion factors used in spawn index calculations.

    These are NOT configurable. Egg densities are expressed in thousands of
    eggs per square metre, so a factor of 1000 converts them back to eggs.
    """

    KILOGRAMS_PER_TONNE: float = 1_000.0
    EGGS_PER_THOUSAND: float = 1_000.0
    PERCENT: float = 100.0


CONSTANTS = PhysicalConstants()


class ConversionParameters(BaseSettings):
    """Parameters for converting eggs to spawning biomass.

    Can be overridden via environment variables with CONVERSION_ prefix:
    - CONVERSION_OMEGA
    - CONVERSION_PHI

    Attributes:
        omega: Number of eggs per kilogram of female spawners
        phi: Proportion of spawners that are female
    """

    model_config = SettingsConfigDict(
        env_prefix="CONVERSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    omega: float = Field(default=200_560.0, gt=0, description="Eggs per kg of female spawners")
    phi: float = Field(default=0.5, gt=0, le=1, description="Proportion of spawners that are female")


class SokParameters(BaseSettings):
    """Parameters for spawn-on-kelp (SOK) harvest conversion.

    Attributes:
        nu: Proportion of SOK product that is kelp
        upsilon: SOK product weight increase due to brining (proportion)
        egg_weight_kg: Average weight of a fertilized egg (kg)
    """

    model_config = SettingsConfigDict(
        env_prefix="SOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    nu: float = Field(default=0.12, ge=0, le=1, description="Proportion of SOK product that is kelp")
    upsilon: float = Field(default=0.10, gt=-1, description="Weight increase due to brining")
    egg_weight_kg: float = Field(default=2.38e-6, gt=0, description="Weight of a fertilized egg (kg)")


class SurfaceParameters(BaseSettings):
    """Regression parameters for the surface spawn index.

    Egg density (thousands of eggs per square metre) is a linear function of
    the number of egg layers.

    Attributes:
        alpha: Regression intercept
        beta: Regression slope
        intensity_cutoff_year: Egg layers come from intensity categories before this year
        rescale_cutoff_year: Intensity is on the 5-category scale before this year
    """

    model_config = SettingsConfigDict(
        env_prefix="SURFACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    alpha: float = Field(default=14.698, description="Regression intercept")
    beta: float = Field(default=212.218, description="Regression slope")
    intensity_cutoff_year: int = Field(
        default=1979, description="First year with directly estimated egg layers"
    )
    rescale_cutoff_year: int = Field(
        default=1951, description="First year with the 9-category intensity scale"
    )

    def intensity_years(self, years: list[int]) -> list[int]:
        """Years where intensity categories determine egg layers."""
        return [year for year in years if year < self.intensity_cutoff_year]

    def rescale_years(self, years: list[int]) -> list[int]:
        """Intensity years where categories need rescaling from 5 to 9 categories."""
        return [year for year in self.intensity_years(years) if year < self.rescale_cutoff_year]


class MacrocystisParameters(BaseSettings):
    """Regression parameters for the Macrocystis spawn index.

    Attributes:
        beta: Regression slope
        gamma: Regression exponent on egg layers
        delta: Regression exponent on plant height
        epsilon: Regression exponent on number of stalks per plant
        swath_m: Transect swath (i.e., width) in metres
    """

    model_config = SettingsConfigDict(
        env_prefix="MACRO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    beta: float = Field(default=0.073, description="Regression slope")
    gamma: float = Field(default=0.673, description="Exponent on egg layers")
    delta: float = Field(default=0.932, description="Exponent on plant height")
    epsilon: float = Field(default=0.703, description="Exponent on stalks per plant")
    swath_m: float = Field(default=2.0, gt=0, description="Transect swath width (metres)")


class UnderstoryParameters(BaseSettings):
    """Regression parameters for the understory spawn index.

    Attributes:
        alpha: Regression slope for substrate
        beta: Regression slope for algae
        gamma: Regression exponent on number of egg layers
        delta: Regression exponent on proportion of algae
        quadrat_size_m2: Mandated quadrat size (square metres)
        quadrat_factor: Algae egg density normalisation for the mandated quadrat size
    """

    model_config = SettingsConfigDict(
        env_prefix="UNDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    alpha: float = Field(default=340.0, description="Regression slope for substrate")
    beta: float = Field(default=600.567, description="Regression slope for algae")
    gamma: float = Field(default=0.6355, description="Exponent on number of egg layers")
    delta: float = Field(default=1.413, description="Exponent on proportion of algae")
    quadrat_size_m2: float = Field(default=0.5, gt=0, description="Mandated quadrat size (m^2)")
    quadrat_factor: float = Field(
        default=1.0512, gt=0, description="Algae egg density factor for 0.5 m^2 quadrats"
    )


class SpawnIndexConfig(BaseSettings):
    """All parameter groups for a spawn index run.

    Attributes:
        conversion: Egg to biomass conversion parameters
        sok: Spawn-on-kelp parameters
        surface: Surface spawn regression parameters
        macrocystis: Macrocystis spawn regression parameters
        understory: Understory spawn regression parameters
    """

    model_config = SettingsConfigDict(
        env_prefix="SI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    conversion: ConversionParameters = Field(default_factory=ConversionParameters)
    sok: SokParameters = Field(default_factory=SokParameters)
    surface: SurfaceParameters = Field(default_factory=SurfaceParameters)
    macrocystis: MacrocystisParameters = Field(default_factory=MacrocystisParameters)
    understory: UnderstoryParameters = Field(default_factory=UnderstoryParameters)


DEFAULT_CONFIG = SpawnIndexConfig()


class AreaColumns:
    """Column names in the area reference table."""

    REGION = "region"
    STAT_AREA = "stat_area"
    SECTION = "section"
    LOCATION_CODE = "location_code"
    POOL = "pool"
    LOCATION_NAME = "location_name"
    LONGITUDE = "longitude"
    LATITUDE = "latitude"

    @classmethod
    def required(cls) -> list[str]:
        return [cls.REGION, cls.STAT_AREA, cls.SECTION, cls.LOCATION_CODE, cls.POOL]


class SpawnColumns:
    """Column names in the spawn (survey event) table."""

    YEAR = "year"
    LOCATION_CODE = "location_code"
    SPAWN_NUMBER = "spawn_number"
    METHOD = "method"
    LENGTH = "length"
    WIDTH_OBS = "width_obs"
    LENGTH_MACRO = "length_macro"
    LENGTH_ALGAE = "length_algae"

    @classmethod
    def keys(cls) -> list[str]:
        """Join keys shared by every survey table."""
        return [cls.YEAR, cls.LOCATION_CODE, cls.SPAWN_NUMBER]


class SurfaceColumns:
    """Column names in the surface observation table (substrate columns come from Substrate)."""

    INTENSITY = "intensity"
    EGG_LYRS = "egg_lyrs"
    EGG_DENS = "egg_dens"
    LAYERS = "layers"
    WIDTH_REGION = "width_region"
    WIDTH_SECTION = "width_section"
    WIDTH_POOL = "width_pool"
    WIDTH = "width"


class MacrocystisColumns:
    """Column names in the Macrocystis transect and plant tables."""

    TRANSECT = "transect"
    HEIGHT = "height"
    WIDTH = "width"
    LAYERS = "layers"
    MATURE = "mature"


class UnderstoryColumns:
    """Column names in the understory transect, station and algae tables."""

    TRANSECT = "transect"
    STATION = "station"
    WIDTH_OBS = "width_obs"
    QUADRAT_SIZE = "quadrat_size"
    SUB_LYRS = "sub_lyrs"
    PERCENT_BOTTOM = "percent_bottom"
    ALG_TYPE = "alg_type"
    ALG_LYRS = "alg_lyrs"
    PERCENT_ALGAE = "percent_algae"


class OutputColumns:
    """Column names in the spawn index result table and the legacy CSV output."""

    YEAR = "year"
    REGION = "region"
    STAT_AREA = "stat_area"
    SECTION = "section"
    LOCATION_CODE = "location_code"
    SPAWN_NUMBER = "spawn_number"

    @classmethod
    def keys(cls) -> list[str]:
        """Spawn number level grouping keys."""
        return [
            cls.YEAR,
            cls.REGION,
            cls.STAT_AREA,
            cls.SECTION,
            cls.LOCATION_CODE,
            cls.SPAWN_NUMBER,
        ]

    @classmethod
    def legacy_names(cls) -> dict[str, str]:
        """Map result columns to the legacy CSV column names."""
        return {
            cls.YEAR: "Year",
            cls.REGION: "Region",
            cls.STAT_AREA: "StatArea",
            cls.SECTION: "Section",
            cls.LOCATION_CODE: "LocationCode",
            cls.SPAWN_NUMBER: "SpawnNumber",
        }


class DebugConfig:
    """Debug output configuration.

    WARNING: For local development only.
    - Adds disk I/O overhead
    - Consumes storage space
    """

    def __init__(
        self,
        enabled: bool = False,
        output_dir: Path = Path("/tmp/spawn-index-debug"),
    ):
        self.enabled = enabled
        self.output_dir = output_dir

    @classmethod
    def from_env(cls) -> "DebugConfig":
        return cls(
            enabled=os.environ.get("DEBUG_OUTPUT", "false").lower() == "true",
            output_dir=Path(os.environ.get("DEBUG_OUTPUT_DIR", "/tmp/spawn-index-debug")),
        )
