"""Convert spawn index pipeline results to domain models.

This adapter transforms the DataFrame results of any spawn index pipeline into
typed Pydantic domain models for output.
"""

import pandas as pd

from spawn_index.config import OutputColumns
from spawn_index.models.domain import SpawnIndexResult
from spawn_index.models.enums import IndexKind


def to_domain_models(dataframes: dict, kind: IndexKind) -> dict:
    """Convert spawn index DataFrames to Pydantic models.

    Args:
        dataframes: Dict from a pipeline's run() with keys:
            - "biomass_spawn": DataFrame with spawn index and mean egg layers
        kind: Survey type the results were calculated from

    Returns:
        Dict with typed domain models:
        {
            "spawn_index_results": List[SpawnIndexResult]
        }
    """
    biomass_df = dataframes["biomass_spawn"]

    results = [_row_to_result(row, kind) for _, row in biomass_df.iterrows()]

    return {"spawn_index_results": results}


def _optional_float(value) -> float | None:
    return float(value) if pd.notna(value) else None


def _row_to_result(row: pd.Series, kind: IndexKind) -> SpawnIndexResult:
    """Convert a single DataFrame row to SpawnIndexResult.

    Args:
        row: Single row from the biomass_spawn DataFrame
        kind: Survey type

    Returns:
        SpawnIndexResult domain model
    """
    return SpawnIndexResult(
        year=int(row[OutputColumns.YEAR]),
        region=str(row[OutputColumns.REGION]),
        stat_area=int(row[OutputColumns.STAT_AREA]),
        section=int(row[OutputColumns.SECTION]),
        location_code=int(row[OutputColumns.LOCATION_CODE]),
        spawn_number=int(row[OutputColumns.SPAWN_NUMBER]),
        kind=kind,
        spawn_index_t=_optional_float(row[kind.value_column]),
        egg_layers=_optional_float(row.get(kind.layers_column)),
    )
