"""Validation for spawn survey inputs.

This module provides:
1. The error taxonomy raised by the pipelines (validation, missing data,
   lookup and consistency errors)
2. Checks for bounded quantities, quadrat sizes, algae types and egg layers
"""

from spawn_index.validation.checks import (
    check_algae_types,
    check_egg_layers,
    check_quadrat_size,
    check_upper_bound,
)
from spawn_index.validation.errors import (
    AlgaeLookupError,
    ConsistencyError,
    MissingDataError,
    SpawnIndexError,
    ValidationError,
)

__all__ = [
    "SpawnIndexError",
    "ValidationError",
    "MissingDataError",
    "AlgaeLookupError",
    "ConsistencyError",
    "check_upper_bound",
    "check_quadrat_size",
    "check_algae_types",
    "check_egg_layers",
]
