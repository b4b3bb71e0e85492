"""Surface spawn index pipeline.

Calculates the spawn index (tonnes) from surface and dive spawn surveys,
using either directly estimated egg layers on each substrate or, in early
years, subjective spawn intensity categories.
"""

import logging
import time
from dataclasses import dataclass

import pandas as pd

from spawn_index.calculators import (
    calculate_egg_conversion,
    calculate_spawn_biomass,
    calculate_substrate_layers,
    calculate_surface_egg_density,
    rescale_intensity,
    resolve_width,
)
from spawn_index.config import (
    CONSTANTS,
    AreaColumns,
    ConversionParameters,
    DebugConfig,
    OutputColumns,
    SpawnColumns,
    SurfaceColumns,
    SurfaceParameters,
)
from spawn_index.debug import save_debug_frame
from spawn_index.models.enums import IndexKind, Substrate
from spawn_index.models.reference import IntensityLookup, WidthReference
from spawn_index.tables import (
    distinct_areas,
    mean_na,
    prepare_spawn,
    scope_to_area,
    select_indexed_methods,
    sum_na,
)
from spawn_index.validation import check_egg_layers, check_upper_bound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntensityOverride:
    """A documented manual correction to the intensity of specific surface records.

    Attributes:
        description: Why the correction exists
        year: Survey year
        stat_area: Statistical area
        section: Section
        location_code: Location code
        from_intensity: Recorded intensity to replace
        to_intensity: Corrected intensity
    """

    description: str
    year: int
    stat_area: int
    section: int
    location_code: int
    from_intensity: int
    to_intensity: int


SURFACE_INTENSITY_OVERRIDES: tuple[IntensityOverride, ...] = (
    IntensityOverride(
        description="SoG 1962: spawn was surveyed but intensity was not reported",
        year=1962,
        stat_area=14,
        section=142,
        location_code=820,
        from_intensity=0,
        to_intensity=1,
    ),
)


def apply_intensity_overrides(
    surface: pd.DataFrame,
    overrides: tuple[IntensityOverride, ...] = SURFACE_INTENSITY_OVERRIDES,
) -> pd.DataFrame:
    """Apply named intensity corrections, logging every record changed.

    Args:
        surface: Surface observations with area attributes and intensity
        overrides: Corrections to apply

    Returns:
        Copy of surface with corrected intensities
    """
    surface = surface.copy()
    for override in overrides:
        mask = (
            (surface[SpawnColumns.YEAR] == override.year)
            & (surface[AreaColumns.STAT_AREA] == override.stat_area)
            & (surface[AreaColumns.SECTION] == override.section)
            & (surface[SpawnColumns.LOCATION_CODE] == override.location_code)
            & (surface[SurfaceColumns.INTENSITY] == override.from_intensity)
        )
        if mask.any():
            logger.info(
                f"Intensity override '{override.description}': {int(mask.sum())} record(s) "
                f"{override.from_intensity} -> {override.to_intensity}"
            )
            surface.loc[mask, SurfaceColumns.INTENSITY] = override.to_intensity
    return surface


class SurfaceIndexPipeline:
    """Surface spawn index.

    This pipeline estimates spawning biomass from surface spawn surveys by:
    - Weighting egg layers on each substrate by its percent cover
    - Substituting intensity-category egg layers for early years
    - Converting egg layers to egg density with a linear regression
    - Resolving spawn width from pool, section, region or observed width
    - Summing pool-level biomass to the spawn number
    """

    def __init__(
        self,
        spawn: pd.DataFrame,
        surface: pd.DataFrame,
        areas: pd.DataFrame,
        widths: WidthReference | pd.DataFrame,
        years: list[int],
        intensity: IntensityLookup | None = None,
        intensity_years: list[int] | None = None,
        rescale_years: list[int] | None = None,
        params: SurfaceParameters | None = None,
        theta: float | None = None,
        overrides: tuple[IntensityOverride, ...] = SURFACE_INTENSITY_OVERRIDES,
        metadata: dict | None = None,
    ):
        """Initialize surface spawn index pipeline.

        Args:
            spawn: Spawn survey events (year, location_code, spawn_number, method, length, width_obs)
            surface: Surface observations (intensity and substrate layers/percent cover)
            areas: Area reference table for the area of interest
            widths: Median widths, or a resolved table keyed by (region, section, pool)
            years: Years to include
            intensity: Intensity category to egg layers lookup
            intensity_years: Years where intensity determines egg layers
                (default: years before params.intensity_cutoff_year)
            rescale_years: Years where intensity is rescaled from 5 to 9 categories
                (default: intensity years before params.rescale_cutoff_year)
            params: Regression parameters
            theta: Egg conversion factor (default: from ConversionParameters)
            overrides: Named intensity corrections
            metadata: Optional run metadata ("run_id" names debug output)
        """
        self.spawn = spawn
        self.surface = surface
        self.areas = areas
        self.widths = widths
        self.years = list(years)
        self.intensity = intensity or IntensityLookup()
        self.params = params or SurfaceParameters()
        self.intensity_years = (
            list(intensity_years)
            if intensity_years is not None
            else self.params.intensity_years(self.years)
        )
        self.rescale_years = (
            list(rescale_years)
            if rescale_years is not None
            else self.params.rescale_years(self.years)
        )
        if theta is None:
            conversion = ConversionParameters()
            theta = calculate_egg_conversion(conversion.omega, conversion.phi)
        self.theta = theta
        self.overrides = overrides
        self.metadata = metadata or {}
        self._debug_config = DebugConfig.from_env()

    def run(self) -> dict[str, pd.DataFrame]:
        """Run surface spawn index calculation.

        Returns:
            Dictionary with:
            - "surface": Observations with substrate egg layers
            - "eggs": Observations with egg layers and egg density
            - "eggs_spawn": Mean egg density by spawn number and pool
            - "biomass_pool": Width and biomass by spawn number and pool
            - "biomass_spawn": Biomass and mean egg layers by spawn number
            - "spawn_index": Surface spawn index (surf_si) by spawn number

        Raises:
            ValidationError: If any percent cover exceeds 100
            MissingDataError: If any record has no egg layers after intensity lookup
            ConsistencyError: If a location maps to more than one area
        """
        logger.info(f"Running surface spawn index for {len(self.years)} year(s)")
        t_total = time.perf_counter()

        t0 = time.perf_counter()
        surface = self._prepare_surface()
        logger.info(f"[timing] prepare_surface: {time.perf_counter() - t0:.3f}s")

        t0 = time.perf_counter()
        eggs = self._calculate_egg_density(surface)
        logger.info(f"[timing] calculate_egg_density: {time.perf_counter() - t0:.3f}s")

        t0 = time.perf_counter()
        eggs_spawn, biomass_pool, biomass_spawn = self._calculate_biomass(eggs)
        logger.info(f"[timing] calculate_biomass: {time.perf_counter() - t0:.3f}s")

        spawn_index = biomass_spawn[OutputColumns.keys() + [IndexKind.SURFACE.value_column]]

        run_id = self.metadata.get("run_id", "surface")
        save_debug_frame(eggs, "surface_eggs", run_id, self._debug_config)
        save_debug_frame(biomass_spawn, "surface_biomass_spawn", run_id, self._debug_config)

        logger.info(
            f"Surface spawn index complete in {time.perf_counter() - t_total:.3f}s "
            f"({len(spawn_index)} spawn number(s))"
        )
        return {
            "surface": surface,
            "eggs": eggs,
            "eggs_spawn": eggs_spawn,
            "biomass_pool": biomass_pool,
            "biomass_spawn": biomass_spawn,
            "spawn_index": spawn_index,
        }

    def _prepare_surface(self) -> pd.DataFrame:
        """Join observations to areas and spawn events and sum substrate egg layers.

        Steps:
        - Scope spawn and surface tables to the years and area
        - Replace missing substrate layers and percent cover with 0
        - Check percent cover does not exceed 100
        - Sum substrate egg layers weighted by percent cover
        - Rescale intensity for years on the 5-category scale
        - Keep surface and dive surveys, then apply named intensity overrides
        """
        self._areas = distinct_areas(self.areas, AreaColumns.required())
        location_codes = self._areas[AreaColumns.LOCATION_CODE]
        self._spawn = prepare_spawn(
            self.spawn,
            self.years,
            location_codes,
            [SpawnColumns.LENGTH, SpawnColumns.WIDTH_OBS],
        )

        surface = scope_to_area(self.surface, self.years, location_codes)
        substrate_columns = Substrate.layers_columns() + Substrate.percent_columns()
        for column in substrate_columns + [SurfaceColumns.INTENSITY]:
            if column not in surface.columns:
                surface[column] = float("nan")
        surface = surface[
            SpawnColumns.keys() + [SurfaceColumns.INTENSITY] + substrate_columns
        ].merge(self._areas, on=AreaColumns.LOCATION_CODE, how="left").merge(
            self._spawn, on=SpawnColumns.keys(), how="left"
        )
        # All-missing columns from typed records or database reads arrive as object dtype
        for column in substrate_columns + [SurfaceColumns.INTENSITY]:
            surface[column] = pd.to_numeric(surface[column])
        surface[substrate_columns] = surface[substrate_columns].fillna(0)

        check_upper_bound(
            surface,
            Substrate.percent_columns(),
            CONSTANTS.PERCENT,
            "Percent cover",
            OutputColumns.keys(),
        )

        for substrate in Substrate:
            surface[substrate.value] = calculate_substrate_layers(
                surface[substrate.layers_column], surface[substrate.percent_column]
            )
        surface[SurfaceColumns.EGG_LYRS] = surface[[s.value for s in Substrate]].sum(axis=1)

        rescale = surface[SpawnColumns.YEAR].isin(self.rescale_years)
        surface[SurfaceColumns.INTENSITY] = surface[SurfaceColumns.INTENSITY].where(
            ~rescale, rescale_intensity(surface[SurfaceColumns.INTENSITY])
        )

        surface = select_indexed_methods(surface)
        surface = apply_intensity_overrides(surface, self.overrides)

        return surface[
            OutputColumns.keys()
            + [
                AreaColumns.POOL,
                SpawnColumns.LENGTH,
                SpawnColumns.WIDTH_OBS,
                SurfaceColumns.INTENSITY,
                SurfaceColumns.EGG_LYRS,
            ]
        ]

    def _calculate_egg_density(self, surface: pd.DataFrame) -> pd.DataFrame:
        """Resolve egg layers from intensity where needed and calculate egg density.

        Raises:
            MissingDataError: If egg layers are zero or missing for any record
        """
        eggs = surface.merge(self.intensity.to_frame(), on=SurfaceColumns.INTENSITY, how="left")
        use_intensity = eggs[SpawnColumns.YEAR].isin(self.intensity_years)
        eggs[SurfaceColumns.EGG_LYRS] = eggs[SurfaceColumns.EGG_LYRS].where(
            ~use_intensity, eggs[SurfaceColumns.LAYERS]
        )
        eggs[SurfaceColumns.EGG_DENS] = calculate_surface_egg_density(
            eggs[SurfaceColumns.EGG_LYRS], self.params.alpha, self.params.beta
        )

        check_egg_layers(eggs, SurfaceColumns.EGG_LYRS, OutputColumns.keys())

        return eggs

    def _calculate_biomass(
        self, eggs: pd.DataFrame
    ) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
        """Calculate biomass by pool and sum it to the spawn number.

        Width is set to the pool, section, region, or observed width (in that order).
        """
        keys = OutputColumns.keys()
        layers_column = IndexKind.SURFACE.layers_column
        value_column = IndexKind.SURFACE.value_column

        egg_layers = mean_na(eggs, keys, [SurfaceColumns.EGG_LYRS]).rename(
            columns={SurfaceColumns.EGG_LYRS: layers_column}
        )
        eggs_spawn = mean_na(eggs, keys + [AreaColumns.POOL], [SurfaceColumns.EGG_DENS])

        biomass_pool = eggs_spawn.merge(
            self._spawn[SpawnColumns.keys() + [SpawnColumns.LENGTH, SpawnColumns.WIDTH_OBS]],
            on=SpawnColumns.keys(),
            how="left",
        ).merge(
            self._resolve_widths(),
            on=[AreaColumns.REGION, AreaColumns.SECTION, AreaColumns.POOL],
            how="left",
        )
        biomass_pool[SurfaceColumns.WIDTH] = resolve_width(
            biomass_pool[SurfaceColumns.WIDTH_POOL],
            biomass_pool[SurfaceColumns.WIDTH_SECTION],
            biomass_pool[SurfaceColumns.WIDTH_REGION],
            biomass_pool[SpawnColumns.WIDTH_OBS],
        )
        biomass_pool[value_column] = calculate_spawn_biomass(
            biomass_pool[SurfaceColumns.EGG_DENS],
            biomass_pool[SpawnColumns.LENGTH],
            biomass_pool[SurfaceColumns.WIDTH],
            self.theta,
        )

        biomass_spawn = (
            sum_na(biomass_pool, keys, [value_column])
            .merge(egg_layers, on=keys, how="outer")
            .sort_values(keys)
            .reset_index(drop=True)
        )
        return eggs_spawn, biomass_pool, biomass_spawn

    def _resolve_widths(self) -> pd.DataFrame:
        """Median widths by (region, section, pool)."""
        if isinstance(self.widths, WidthReference):
            return self.widths.to_frame(self._areas)
        widths = self.widths.copy()
        for column in (
            SurfaceColumns.WIDTH_REGION,
            SurfaceColumns.WIDTH_SECTION,
            SurfaceColumns.WIDTH_POOL,
        ):
            if column not in widths.columns:
                widths[column] = float("nan")
        return widths[
            [
                AreaColumns.REGION,
                AreaColumns.SECTION,
                AreaColumns.POOL,
                SurfaceColumns.WIDTH_REGION,
                SurfaceColumns.WIDTH_SECTION,
                SurfaceColumns.WIDTH_POOL,
            ]
        ].drop_duplicates()
