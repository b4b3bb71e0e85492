"""Understory spawn index pipeline.

Calculates the spawn index (tonnes) from dive surveys of spawn on the bottom
substrate and on understory algae, sampled in quadrats (stations) along
transects.
"""

import logging
import time

import pandas as pd

from spawn_index.calculators import (
    calculate_algae_egg_density,
    calculate_egg_conversion,
    calculate_spawn_biomass,
    calculate_substrate_egg_density,
)
from spawn_index.config import (
    CONSTANTS,
    AreaColumns,
    ConversionParameters,
    DebugConfig,
    OutputColumns,
    SpawnColumns,
    UnderstoryColumns,
    UnderstoryParameters,
)
from spawn_index.debug import save_debug_frame
from spawn_index.models.enums import AlgaeType, IndexKind
from spawn_index.models.reference import AlgaeCoefficientTable, WidthCorrectionTable
from spawn_index.tables import (
    distinct_areas,
    mean_na,
    prepare_spawn,
    scope_to_area,
    select_indexed_methods,
    sum_na,
    unique_per_group,
    weighted_mean_na,
)
from spawn_index.validation import check_algae_types, check_quadrat_size, check_upper_bound

logger = logging.getLogger(__name__)

TRANSECT_KEYS = SpawnColumns.keys() + [UnderstoryColumns.TRANSECT]


class UnderstoryIndexPipeline:
    """Understory spawn index.

    This pipeline estimates spawning biomass from understory dive surveys by:
    - Correcting transect widths for lead line shrinkage
    - Calculating substrate egg density in each quadrat
    - Calculating algae egg density for each algae type and summing by quadrat
    - Averaging quadrats to the transect, and weighting transects by width
    """

    def __init__(
        self,
        spawn: pd.DataFrame,
        transects: pd.DataFrame,
        stations: pd.DataFrame,
        algae: pd.DataFrame,
        areas: pd.DataFrame,
        years: list[int],
        algae_coefficients: AlgaeCoefficientTable | None = None,
        width_corrections: WidthCorrectionTable | None = None,
        params: UnderstoryParameters | None = None,
        theta: float | None = None,
        metadata: dict | None = None,
    ):
        """Initialize understory spawn index pipeline.

        Args:
            spawn: Spawn survey events (year, location_code, spawn_number, method, length, length_algae)
            transects: Algae transects (transect, width_obs, quadrat_size)
            stations: Quadrat substrate records (transect, station, sub_lyrs, percent_bottom)
            algae: Quadrat algae records (transect, station, alg_type, alg_lyrs, percent_algae)
            areas: Area reference table for the area of interest
            years: Years to include
            algae_coefficients: Algae type coefficients (default: published table)
            width_corrections: Width correction factors by year and region (default: none)
            params: Regression parameters
            theta: Egg conversion factor (default: from ConversionParameters)
            metadata: Optional run metadata ("run_id" names debug output)
        """
        self.spawn = spawn
        self.transects = transects
        self.stations = stations
        self.algae = algae
        self.areas = areas
        self.years = list(years)
        self.algae_coefficients = algae_coefficients or AlgaeCoefficientTable()
        self.width_corrections = width_corrections or WidthCorrectionTable()
        self.params = params or UnderstoryParameters()
        if theta is None:
            conversion = ConversionParameters()
            theta = calculate_egg_conversion(conversion.omega, conversion.phi)
        self.theta = theta
        self.metadata = metadata or {}
        self._debug_config = DebugConfig.from_env()

    def run(self) -> dict[str, pd.DataFrame]:
        """Run understory spawn index calculation.

        Returns:
            Dictionary with:
            - "stations": Quadrat substrate records with substrate proportion
            - "algae": Quadrat algae records with algae proportion
            - "eggs": Substrate and algae egg density by quadrat
            - "eggs_station": Total egg density by quadrat
            - "eggs_trans": Mean egg density and width by transect
            - "eggs_spawn": Width-weighted egg density by spawn number
            - "biomass_spawn": Biomass and mean egg layers by spawn number
            - "spawn_index": Understory spawn index (under_si) by spawn number

        Raises:
            ValidationError: If a quadrat is not the mandated size, or a
                substrate or algae proportion exceeds 1
            AlgaeLookupError: If any algae type has no coefficient
            ConsistencyError: If a transect has more than one width
        """
        logger.info(f"Running understory spawn index for {len(self.years)} year(s)")
        t_total = time.perf_counter()

        t0 = time.perf_counter()
        transects = self._prepare_transects()
        stations = self._prepare_stations()
        algae = self._prepare_algae()
        logger.info(f"[timing] prepare_inputs: {time.perf_counter() - t0:.3f}s")

        under_lyrs = self._calculate_egg_layers(stations, algae)

        t0 = time.perf_counter()
        eggs = self._calculate_quadrat_egg_density(transects, stations, algae)
        logger.info(f"[timing] calculate_quadrat_egg_density: {time.perf_counter() - t0:.3f}s")

        t0 = time.perf_counter()
        eggs_station, eggs_trans, eggs_spawn = self._aggregate(eggs)
        logger.info(f"[timing] aggregate: {time.perf_counter() - t0:.3f}s")

        value_column = IndexKind.UNDERSTORY.value_column
        biomass_spawn = eggs_spawn.copy()
        biomass_spawn[value_column] = calculate_spawn_biomass(
            biomass_spawn["egg_dens"],
            biomass_spawn[SpawnColumns.LENGTH_ALGAE],
            biomass_spawn["width_bar"],
            self.theta,
        )
        biomass_spawn = biomass_spawn.merge(under_lyrs, on=SpawnColumns.keys(), how="left")
        spawn_index = biomass_spawn[OutputColumns.keys() + [value_column]]

        run_id = self.metadata.get("run_id", "understory")
        save_debug_frame(eggs_station, "understory_eggs_station", run_id, self._debug_config)
        save_debug_frame(eggs_trans, "understory_eggs_trans", run_id, self._debug_config)

        logger.info(
            f"Understory spawn index complete in {time.perf_counter() - t_total:.3f}s "
            f"({len(spawn_index)} spawn number(s))"
        )
        return {
            "stations": stations,
            "algae": algae,
            "eggs": eggs,
            "eggs_station": eggs_station,
            "eggs_trans": eggs_trans,
            "eggs_spawn": eggs_spawn,
            "biomass_spawn": biomass_spawn,
            "spawn_index": spawn_index,
        }

    def _prepare_transects(self) -> pd.DataFrame:
        """Scope algae transects, check quadrat size and correct widths.

        Returns:
            One row per transect with region and corrected width
        """
        self._areas = distinct_areas(
            self.areas,
            [
                AreaColumns.REGION,
                AreaColumns.STAT_AREA,
                AreaColumns.SECTION,
                AreaColumns.LOCATION_CODE,
            ],
        )
        location_codes = self._areas[AreaColumns.LOCATION_CODE]
        self._spawn = prepare_spawn(
            self.spawn,
            self.years,
            location_codes,
            [SpawnColumns.LENGTH_ALGAE, SpawnColumns.LENGTH],
        )

        transects = scope_to_area(self.transects, self.years, location_codes)
        transects = transects[
            TRANSECT_KEYS + [UnderstoryColumns.WIDTH_OBS, UnderstoryColumns.QUADRAT_SIZE]
        ].merge(
            self._areas[[AreaColumns.REGION, AreaColumns.LOCATION_CODE]],
            on=AreaColumns.LOCATION_CODE,
            how="left",
        )

        check_quadrat_size(
            transects,
            UnderstoryColumns.QUADRAT_SIZE,
            self.params.quadrat_size_m2,
            TRANSECT_KEYS,
        )

        transects = transects.merge(
            self.width_corrections.to_frame(),
            on=[SpawnColumns.YEAR, AreaColumns.REGION],
            how="left",
        )
        transects["width_fac"] = transects["width_fac"].fillna(1.0)
        transects["width"] = transects[UnderstoryColumns.WIDTH_OBS] * transects["width_fac"]

        corrected = int((transects["width_fac"] != 1.0).sum())
        if corrected:
            logger.info(f"Applied width correction to {corrected} transect(s)")

        return unique_per_group(transects, TRANSECT_KEYS + [AreaColumns.REGION], "width")

    def _prepare_stations(self) -> pd.DataFrame:
        """Scope quadrat substrate records and convert percent bottom to a proportion.

        Raises:
            ValidationError: If any substrate proportion exceeds 1
        """
        stations = scope_to_area(
            self.stations, self.years, self._areas[AreaColumns.LOCATION_CODE]
        )
        stations["sub_prop"] = stations[UnderstoryColumns.PERCENT_BOTTOM] / CONSTANTS.PERCENT
        stations = stations[
            TRANSECT_KEYS
            + [UnderstoryColumns.STATION, UnderstoryColumns.SUB_LYRS, "sub_prop"]
        ]
        check_upper_bound(stations, ["sub_prop"], 1.0, "Substrate proportion", TRANSECT_KEYS)
        return stations

    def _prepare_algae(self) -> pd.DataFrame:
        """Scope quadrat algae records, check algae types and proportions.

        The raw proportion is checked before it is capped at 1.

        Raises:
            ValidationError: If any raw algae proportion exceeds 1
            AlgaeLookupError: If any algae type has no coefficient
        """
        algae = scope_to_area(self.algae, self.years, self._areas[AreaColumns.LOCATION_CODE])
        algae[UnderstoryColumns.ALG_TYPE] = algae[UnderstoryColumns.ALG_TYPE].map(
            AlgaeType.normalise
        )
        algae["alg_prop"] = algae[UnderstoryColumns.PERCENT_ALGAE] / CONSTANTS.PERCENT
        algae = algae[
            TRANSECT_KEYS
            + [
                UnderstoryColumns.STATION,
                UnderstoryColumns.ALG_TYPE,
                UnderstoryColumns.ALG_LYRS,
                "alg_prop",
            ]
        ].copy()

        check_upper_bound(algae, ["alg_prop"], 1.0, "Algae proportion", TRANSECT_KEYS)
        algae["alg_prop"] = algae["alg_prop"].clip(upper=1.0)

        check_algae_types(
            algae[UnderstoryColumns.ALG_TYPE].dropna().unique(), self.algae_coefficients
        )
        return algae

    def _calculate_egg_layers(self, stations: pd.DataFrame, algae: pd.DataFrame) -> pd.DataFrame:
        """Mean egg layers by spawn number (diagnostic).

        Layers are averaged by transect for substrate and algae separately,
        the two sources averaged by transect, then transects by spawn number.
        """
        layers_sub = mean_na(stations, TRANSECT_KEYS, [UnderstoryColumns.SUB_LYRS]).rename(
            columns={UnderstoryColumns.SUB_LYRS: "layers"}
        )
        layers_sub["source"] = "substrate"
        layers_alg = mean_na(algae, TRANSECT_KEYS, [UnderstoryColumns.ALG_LYRS]).rename(
            columns={UnderstoryColumns.ALG_LYRS: "layers"}
        )
        layers_alg["source"] = "algae"

        layers = mean_na(pd.concat([layers_sub, layers_alg], ignore_index=True), TRANSECT_KEYS, ["layers"])
        return mean_na(layers, SpawnColumns.keys(), ["layers"]).rename(
            columns={"layers": IndexKind.UNDERSTORY.layers_column}
        )

    def _calculate_quadrat_egg_density(
        self,
        transects: pd.DataFrame,
        stations: pd.DataFrame,
        algae: pd.DataFrame,
    ) -> pd.DataFrame:
        """Substrate and algae egg density by quadrat.

        Formula:
            egg_dens_sub = alpha * sub_lyrs * sub_prop
            egg_dens_alg = sum over algae types of
                           beta * alg_lyrs^gamma * alg_prop^delta * coef * quadrat_factor

        Width comes from the transect; substrate egg density is 0 where width
        is 0 or missing.
        """
        quadrat_keys = OutputColumns.keys() + [UnderstoryColumns.TRANSECT, UnderstoryColumns.STATION]
        areas = self._areas

        eggs_sub = stations.merge(areas, on=AreaColumns.LOCATION_CODE, how="left")
        eggs_sub["egg_dens_sub"] = calculate_substrate_egg_density(
            eggs_sub[UnderstoryColumns.SUB_LYRS], eggs_sub["sub_prop"], self.params.alpha
        ).fillna(0)
        eggs_sub = eggs_sub[quadrat_keys + ["egg_dens_sub"]]

        eggs_alg = algae.merge(
            self.algae_coefficients.to_frame(), on=UnderstoryColumns.ALG_TYPE, how="left"
        ).merge(areas, on=AreaColumns.LOCATION_CODE, how="left")
        eggs_alg["egg_dens_alg"] = calculate_algae_egg_density(
            eggs_alg[UnderstoryColumns.ALG_LYRS],
            eggs_alg["alg_prop"],
            eggs_alg["coef"],
            self.params.beta,
            self.params.gamma,
            self.params.delta,
            self.params.quadrat_factor,
        )
        eggs_alg = sum_na(eggs_alg, quadrat_keys, ["egg_dens_alg"])
        eggs_alg["egg_dens_alg"] = eggs_alg["egg_dens_alg"].fillna(0)

        eggs = eggs_sub.merge(eggs_alg, on=quadrat_keys, how="outer").merge(
            transects[TRANSECT_KEYS + ["width"]], on=TRANSECT_KEYS, how="left"
        )
        eggs[["width", "egg_dens_sub", "egg_dens_alg"]] = eggs[
            ["width", "egg_dens_sub", "egg_dens_alg"]
        ].fillna(0)
        eggs["egg_dens_sub"] = eggs["egg_dens_sub"].where(eggs["width"] > 0, 0.0)
        return eggs.sort_values(quadrat_keys).reset_index(drop=True)

    def _aggregate(self, eggs: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
        """Aggregate quadrats to transects and transects to the spawn number.

        Transects with zero width count towards the mean width (width_bar) but
        not towards egg density.
        """
        keys = OutputColumns.keys()
        transect_keys = keys + [UnderstoryColumns.TRANSECT]

        eggs_station = eggs.copy()
        eggs_station["egg_dens"] = eggs_station["egg_dens_sub"] + eggs_station["egg_dens_alg"]
        eggs_station = eggs_station.loc[eggs_station[UnderstoryColumns.STATION].notna()].reset_index(
            drop=True
        )

        widths = mean_na(
            unique_per_group(eggs_station, transect_keys, "width"), keys, ["width"]
        ).rename(columns={"width": "width_bar"})

        with_width = eggs_station.loc[eggs_station["width"] > 0]
        eggs_trans = mean_na(with_width, transect_keys, ["egg_dens"]).merge(
            unique_per_group(with_width, transect_keys, "width"), on=transect_keys
        )

        trans = eggs_trans.merge(self._spawn, on=SpawnColumns.keys(), how="left")
        trans[SpawnColumns.LENGTH_ALGAE] = trans[SpawnColumns.LENGTH_ALGAE].fillna(
            trans[SpawnColumns.LENGTH]
        )
        trans = select_indexed_methods(trans).merge(widths, on=keys, how="left")

        eggs_spawn = (
            unique_per_group(trans, keys, "width_bar")
            .merge(unique_per_group(trans, keys, SpawnColumns.LENGTH_ALGAE), on=keys)
            .merge(weighted_mean_na(trans, keys, "egg_dens", "width"), on=keys)
            .sort_values(keys)
            .reset_index(drop=True)
        )
        return eggs_station, eggs_trans, eggs_spawn
