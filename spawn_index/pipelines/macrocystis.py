"""Macrocystis spawn index pipeline."""

import logging
import time

import pandas as pd

from spawn_index.calculators import (
    calculate_egg_conversion,
    calculate_eggs_per_plant,
    calculate_macrocystis_egg_density,
    calculate_spawn_biomass,
)
from spawn_index.config import (
    AreaColumns,
    ConversionParameters,
    DebugConfig,
    MacrocystisColumns,
    MacrocystisParameters,
    OutputColumns,
    SpawnColumns,
)
from spawn_index.debug import save_debug_frame
from spawn_index.models.enums import IndexKind
from spawn_index.tables import (
    count_where,
    distinct_areas,
    mean_na,
    prepare_spawn,
    scope_to_area,
    select_indexed_methods,
    sum_na,
    unique_per_group,
)

logger = logging.getLogger(__name__)


class MacrocystisIndexPipeline:
    """Macrocystis spawn index.

    Spawn on giant kelp (Macrocystis) is surveyed along transects. Only mature
    plants carry eggs, so plant height and egg layers come from mature plants,
    while transect area includes every transect surveyed.
    """

    def __init__(
        self,
        spawn: pd.DataFrame,
        transects: pd.DataFrame,
        plants: pd.DataFrame,
        areas: pd.DataFrame,
        years: list[int],
        params: MacrocystisParameters | None = None,
        theta: float | None = None,
        metadata: dict | None = None,
    ):
        """Initialize Macrocystis spawn index pipeline.

        Args:
            spawn: Spawn survey events (year, location_code, spawn_number, method, length, length_macro)
            transects: Transect records (transect, height, width, layers)
            plants: Plant records (transect, mature stalk count)
            areas: Area reference table for the area of interest
            years: Years to include
            params: Regression parameters and transect swath
            theta: Egg conversion factor (default: from ConversionParameters)
            metadata: Optional run metadata ("run_id" names debug output)
        """
        self.spawn = spawn
        self.transects = transects
        self.plants = plants
        self.areas = areas
        self.years = list(years)
        self.params = params or MacrocystisParameters()
        if theta is None:
            conversion = ConversionParameters()
            theta = calculate_egg_conversion(conversion.omega, conversion.phi)
        self.theta = theta
        self.metadata = metadata or {}
        self._debug_config = DebugConfig.from_env()

    def run(self) -> dict[str, pd.DataFrame]:
        """Run Macrocystis spawn index calculation.

        Returns:
            Dictionary with:
            - "dat": Transects joined to plants (mature stalks, swath)
            - "dat_trans": Area, height, egg layers, stalks and plants by transect
            - "biomass_spawn": Egg density and biomass by spawn number
            - "spawn_index": Macrocystis spawn index (macro_si) by spawn number

        Raises:
            ConsistencyError: If a transect has more than one width, height or
                egg layer value, or a spawn number has more than one length
        """
        logger.info(f"Running Macrocystis spawn index for {len(self.years)} year(s)")
        t_total = time.perf_counter()

        t0 = time.perf_counter()
        dat = self._prepare_transects()
        logger.info(f"[timing] prepare_transects: {time.perf_counter() - t0:.3f}s")

        t0 = time.perf_counter()
        dat_trans = self._summarise_transects(dat)
        logger.info(f"[timing] summarise_transects: {time.perf_counter() - t0:.3f}s")

        t0 = time.perf_counter()
        biomass_spawn = self._calculate_biomass(dat_trans)
        logger.info(f"[timing] calculate_biomass: {time.perf_counter() - t0:.3f}s")

        spawn_index = biomass_spawn[
            OutputColumns.keys() + [IndexKind.MACROCYSTIS.value_column]
        ]

        run_id = self.metadata.get("run_id", "macrocystis")
        save_debug_frame(dat_trans, "macrocystis_dat_trans", run_id, self._debug_config)
        save_debug_frame(biomass_spawn, "macrocystis_biomass_spawn", run_id, self._debug_config)

        logger.info(
            f"Macrocystis spawn index complete in {time.perf_counter() - t_total:.3f}s "
            f"({len(spawn_index)} spawn number(s))"
        )
        return {
            "dat": dat,
            "dat_trans": dat_trans,
            "biomass_spawn": biomass_spawn,
            "spawn_index": spawn_index,
        }

    def _prepare_transects(self) -> pd.DataFrame:
        """Join mature stalk counts to transects.

        Plants with no maturity record are dropped; transects with no plants get 0.
        """
        areas = distinct_areas(
            self.areas,
            [
                AreaColumns.REGION,
                AreaColumns.STAT_AREA,
                AreaColumns.SECTION,
                AreaColumns.LOCATION_CODE,
            ],
        )
        location_codes = areas[AreaColumns.LOCATION_CODE]
        self._spawn = prepare_spawn(
            self.spawn,
            self.years,
            location_codes,
            [SpawnColumns.LENGTH_MACRO, SpawnColumns.LENGTH],
        )

        transect_keys = SpawnColumns.keys() + [MacrocystisColumns.TRANSECT]

        scoped = scope_to_area(self.plants, self.years, location_codes)
        plants = scoped.loc[
            scoped[MacrocystisColumns.MATURE].notna(),
            transect_keys + [MacrocystisColumns.MATURE],
        ]
        dropped = len(scoped) - len(plants)
        if dropped:
            logger.info(f"Dropped {dropped} plant record(s) with no maturity recorded")

        transects = scope_to_area(self.transects, self.years, location_codes)
        transects = transects.merge(areas, on=AreaColumns.LOCATION_CODE, how="left")[
            OutputColumns.keys()
            + [
                MacrocystisColumns.TRANSECT,
                MacrocystisColumns.HEIGHT,
                MacrocystisColumns.WIDTH,
                MacrocystisColumns.LAYERS,
            ]
        ]

        dat = transects.merge(plants, on=transect_keys, how="left")
        dat[MacrocystisColumns.MATURE] = dat[MacrocystisColumns.MATURE].fillna(0)
        dat["swath"] = self.params.swath_m
        return dat

    def _summarise_transects(self, dat: pd.DataFrame) -> pd.DataFrame:
        """Transect area for all transects; plant metrics for mature plants only."""
        keys = OutputColumns.keys() + [MacrocystisColumns.TRANSECT]
        mature = dat.loc[dat[MacrocystisColumns.MATURE] > 0]

        dat_trans = unique_per_group(dat, keys, MacrocystisColumns.WIDTH)
        dat_trans["swath"] = self.params.swath_m
        dat_trans["area"] = dat_trans[MacrocystisColumns.WIDTH] * dat_trans["swath"]

        height = unique_per_group(mature, keys, MacrocystisColumns.HEIGHT)
        egg_lyrs = unique_per_group(mature, keys, MacrocystisColumns.LAYERS).rename(
            columns={MacrocystisColumns.LAYERS: "egg_lyrs"}
        )
        stalks = sum_na(mature, keys, [MacrocystisColumns.MATURE]).rename(
            columns={MacrocystisColumns.MATURE: "stalks"}
        )
        plants = count_where(dat, keys, dat[MacrocystisColumns.MATURE] > 0, "plants")

        for frame in (height, egg_lyrs, stalks, plants):
            dat_trans = dat_trans.merge(frame, on=keys, how="left")
        return dat_trans

    def _calculate_biomass(self, dat_trans: pd.DataFrame) -> pd.DataFrame:
        """Aggregate transects to the spawn number and calculate biomass.

        Formula:
            stalks_per_plant = stalks / plants
            macro_si = egg_dens * length_macro * width * 1000 / theta
        """
        keys = OutputColumns.keys()
        value_column = IndexKind.MACROCYSTIS.value_column

        trans = dat_trans.merge(self._spawn, on=SpawnColumns.keys(), how="left")
        trans[SpawnColumns.LENGTH_MACRO] = trans[SpawnColumns.LENGTH_MACRO].fillna(
            trans[SpawnColumns.LENGTH]
        )
        trans = select_indexed_methods(trans)

        biomass_spawn = (
            unique_per_group(trans, keys, SpawnColumns.LENGTH_MACRO)
            .merge(
                mean_na(trans, keys, [MacrocystisColumns.WIDTH, MacrocystisColumns.HEIGHT, "egg_lyrs"]),
                on=keys,
            )
            .merge(sum_na(trans, keys, ["area", "plants", "stalks"]), on=keys)
        )
        biomass_spawn["stalks_per_plant"] = biomass_spawn["stalks"] / biomass_spawn["plants"]
        biomass_spawn["eggs_per_plant"] = calculate_eggs_per_plant(
            biomass_spawn["egg_lyrs"],
            biomass_spawn[MacrocystisColumns.HEIGHT],
            biomass_spawn["stalks_per_plant"],
            self.params.beta,
            self.params.gamma,
            self.params.delta,
            self.params.epsilon,
        )
        biomass_spawn["egg_dens"] = calculate_macrocystis_egg_density(
            biomass_spawn["eggs_per_plant"], biomass_spawn["plants"], biomass_spawn["area"]
        )
        biomass_spawn[value_column] = calculate_spawn_biomass(
            biomass_spawn["egg_dens"],
            biomass_spawn[SpawnColumns.LENGTH_MACRO],
            biomass_spawn[MacrocystisColumns.WIDTH],
            self.theta,
        )
        return (
            biomass_spawn.rename(columns={"egg_lyrs": IndexKind.MACROCYSTIS.layers_column})
            .sort_values(keys)
            .reset_index(drop=True)
        )
