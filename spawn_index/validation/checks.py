"""Input checks for bounded survey quantities and structural constants.

Each check raises on the first violation; the pipelines call them before any
biomass is computed. Exact boundary values (100 percent, proportion 1.0) are
valid, and missing values are not violations.
"""

import logging
from collections.abc import Iterable

import pandas as pd

from spawn_index.models.reference import AlgaeCoefficientTable
from spawn_index.validation.errors import AlgaeLookupError, MissingDataError, ValidationError

logger = logging.getLogger(__name__)


def _offending_keys(df: pd.DataFrame, mask: pd.Series, key_columns: list[str]) -> list[dict]:
    present = [c for c in key_columns if c in df.columns]
    return df.loc[mask, present].drop_duplicates().to_dict("records")


def check_upper_bound(
    df: pd.DataFrame,
    columns: list[str],
    bound: float,
    label: str,
    key_columns: list[str],
) -> None:
    """Raise ValidationError if any value in columns exceeds bound.

    Args:
        df: Table to check
        columns: Columns holding the bounded quantity
        bound: Largest valid value (inclusive)
        label: Description used in the error message (e.g., "Percent cover")
        key_columns: Columns identifying a record in the error payload

    Raises:
        ValidationError: If any value is greater than bound
    """
    over = (df[columns] > bound).any(axis=1)
    count = int(over.sum())
    if count:
        msg = f"{label} > {bound:g} in {count} record(s)"
        logger.error(msg)
        raise ValidationError(
            msg,
            field=columns[0] if len(columns) == 1 else ", ".join(columns),
            count=count,
            keys=_offending_keys(df, over, key_columns),
        )


def check_quadrat_size(
    df: pd.DataFrame,
    column: str,
    expected: float,
    key_columns: list[str],
) -> None:
    """Raise ValidationError unless every quadrat has exactly the mandated size."""
    wrong = df[column] != expected
    count = int(wrong.sum())
    if count:
        msg = f"All quadrats must be {expected:g} m^2: {count} record(s) differ"
        logger.error(msg)
        raise ValidationError(
            msg,
            field=column,
            count=count,
            keys=_offending_keys(df, wrong, key_columns),
        )


def check_algae_types(algae_types: Iterable[str], table: AlgaeCoefficientTable) -> None:
    """Raise AlgaeLookupError naming every algae type missing from the coefficient table."""
    missing = table.missing(algae_types)
    if missing:
        logger.error(f"Missing algae type(s): {missing}")
        raise AlgaeLookupError(missing)


def check_egg_layers(df: pd.DataFrame, column: str, key_columns: list[str]) -> None:
    """Raise MissingDataError if any record has zero or undefined egg layers."""
    missing = df[column].isna() | (df[column] == 0)
    count = int(missing.sum())
    if count:
        keys = _offending_keys(df, missing, key_columns)
        msg = f"Missing egg layers for {count} record(s): {keys[:10]}"
        logger.error(msg)
        raise MissingDataError(msg, count=count, keys=keys)
