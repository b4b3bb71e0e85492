"""Shared join and aggregation helpers for the spawn index pipelines.

Aggregations exclude missing values rather than treating them as zero, and a
group whose values are all missing aggregates to missing. Sums use
``math.fsum`` so that aggregated values do not depend on input row order.
Every grouping keeps rows with missing key values (``dropna=False``).
"""

import logging
import math
from collections.abc import Iterable

import numpy as np
import pandas as pd

from spawn_index.config import AreaColumns, SpawnColumns
from spawn_index.models.enums import SurveyMethod
from spawn_index.validation.errors import ConsistencyError

logger = logging.getLogger(__name__)


def _fsum_na(values: pd.Series) -> float:
    values = values.dropna()
    if values.empty:
        return np.nan
    return math.fsum(values)


def _fmean_na(values: pd.Series) -> float:
    values = values.dropna()
    if values.empty:
        return np.nan
    return math.fsum(values) / len(values)


def _group_keys(frame: pd.DataFrame, keys: list[str]) -> list[dict]:
    return frame.reset_index()[keys].to_dict("records")


def scope_to_area(
    df: pd.DataFrame,
    years: Iterable[int],
    location_codes: Iterable[int],
) -> pd.DataFrame:
    """Keep rows within the requested years and the area's location codes."""
    mask = df[SpawnColumns.YEAR].isin(list(years)) & df[SpawnColumns.LOCATION_CODE].isin(
        list(location_codes)
    )
    return df.loc[mask].copy().reset_index(drop=True)


def normalise_method(df: pd.DataFrame) -> pd.DataFrame:
    """Replace raw survey method strings with SurveyMethod values."""
    df = df.copy()
    df[SpawnColumns.METHOD] = df[SpawnColumns.METHOD].map(lambda v: SurveyMethod.parse(v).value)
    return df


def select_indexed_methods(df: pd.DataFrame) -> pd.DataFrame:
    """Keep surface and dive survey rows only."""
    indexed = [method.value for method in SurveyMethod if method.is_indexed]
    return df.loc[df[SpawnColumns.METHOD].isin(indexed)].copy().reset_index(drop=True)


def prepare_spawn(
    spawn: pd.DataFrame,
    years: Iterable[int],
    location_codes: Iterable[int],
    columns: list[str],
) -> pd.DataFrame:
    """Scope the spawn table and normalise its survey methods.

    Args:
        spawn: Spawn (survey event) table
        years: Years to include
        location_codes: Location codes in the area of interest
        columns: Numeric spawn columns to keep in addition to the join keys and method

    Returns:
        Spawn table with one row per (year, location_code, spawn_number)

    Raises:
        ConsistencyError: If a spawn number appears more than once
    """
    spawn = scope_to_area(spawn, years, location_codes)
    keep = SpawnColumns.keys() + [c for c in columns if c not in SpawnColumns.keys()]
    for column in keep + [SpawnColumns.METHOD]:
        if column not in spawn.columns:
            spawn[column] = np.nan
    spawn = normalise_method(spawn[list(dict.fromkeys(keep + [SpawnColumns.METHOD]))])
    for column in keep[len(SpawnColumns.keys()) :]:
        spawn[column] = pd.to_numeric(spawn[column])
    duplicated = spawn.duplicated(subset=SpawnColumns.keys(), keep=False)
    if duplicated.any():
        dupes = spawn.loc[duplicated, SpawnColumns.keys()].drop_duplicates()
        msg = f"Spawn table has {len(dupes)} duplicated spawn number(s)"
        raise ConsistencyError(
            msg,
            column=SpawnColumns.SPAWN_NUMBER,
            count=len(dupes),
            keys=dupes.to_dict("records"),
        )
    return spawn


def distinct_areas(areas: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Select distinct area rows, one per location code.

    Args:
        areas: Area reference table
        columns: Area columns to keep (must include location_code)

    Returns:
        Distinct area rows keyed by location code

    Raises:
        ConsistencyError: If a location code maps to more than one area row
    """
    small = areas[columns].drop_duplicates().reset_index(drop=True)
    counts = small.groupby(AreaColumns.LOCATION_CODE, dropna=False).size()
    repeated = counts[counts > 1]
    if not repeated.empty:
        msg = (
            f"{len(repeated)} location code(s) map to more than one area: "
            f"{sorted(repeated.index.tolist())}"
        )
        raise ConsistencyError(
            msg,
            column=AreaColumns.LOCATION_CODE,
            count=len(repeated),
            keys=[{AreaColumns.LOCATION_CODE: code} for code in repeated.index.tolist()],
        )
    return small


def sum_na(df: pd.DataFrame, keys: list[str], columns: list[str]) -> pd.DataFrame:
    """Sum columns by group, ignoring missing values (all missing -> missing)."""
    return df.groupby(keys, dropna=False)[columns].agg(_fsum_na).reset_index()


def mean_na(df: pd.DataFrame, keys: list[str], columns: list[str]) -> pd.DataFrame:
    """Average columns by group, ignoring missing values (all missing -> missing)."""
    return df.groupby(keys, dropna=False)[columns].agg(_fmean_na).reset_index()


def count_where(df: pd.DataFrame, keys: list[str], mask: pd.Series, name: str) -> pd.DataFrame:
    """Count rows matching mask by group (groups with no match count 0)."""
    counted = df.assign(**{name: mask.astype(int)})
    return counted.groupby(keys, dropna=False)[name].sum().reset_index()


def weighted_mean_na(
    df: pd.DataFrame,
    keys: list[str],
    value: str,
    weight: str,
) -> pd.DataFrame:
    """Weighted mean of value by group, ignoring rows where value is missing."""
    present = df[value].notna() & df[weight].notna()
    data = df[keys].copy()
    data["_weighted"] = (df[value] * df[weight]).where(present)
    data["_weight"] = df[weight].where(present)
    grouped = data.groupby(keys, dropna=False)[["_weighted", "_weight"]].agg(_fsum_na)
    grouped[value] = grouped["_weighted"] / grouped["_weight"]
    return grouped[[value]].reset_index()


def unique_per_group(df: pd.DataFrame, keys: list[str], column: str) -> pd.DataFrame:
    """Take the single non-missing value of column in each group.

    Args:
        df: Input table
        keys: Grouping columns
        column: Column expected to hold one distinct value per group

    Returns:
        One row per group with the unique value (missing if the group has none)

    Raises:
        ConsistencyError: If any group holds more than one distinct value
    """
    grouped = df.groupby(keys, dropna=False)[column]
    counts = grouped.nunique()
    conflicting = counts[counts > 1]
    if not conflicting.empty:
        offending = _group_keys(conflicting, keys)
        msg = (
            f"Expected one '{column}' value per group but {len(conflicting)} "
            f"group(s) have several: {offending[:5]}"
        )
        logger.error(msg)
        raise ConsistencyError(msg, column=column, count=len(conflicting), keys=offending)
    return grouped.first().reset_index()
