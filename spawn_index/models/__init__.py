"""Domain models and reference tables for spawn index calculations."""

from spawn_index.models.domain import (
    AreaReference,
    MacrocystisPlant,
    MacrocystisTransect,
    SpawnIndexResult,
    SpawnRecord,
    SubstrateLayers,
    SurfaceObservation,
    UnderstoryAlgaeObservation,
    UnderstoryStation,
    UnderstoryTransect,
    records_to_frame,
)
from spawn_index.models.reference import (
    AlgaeCoefficientTable,
    IntensityLookup,
    WidthCorrectionTable,
    WidthReference,
)

__all__ = [
    "AreaReference",
    "SpawnRecord",
    "SubstrateLayers",
    "SurfaceObservation",
    "MacrocystisTransect",
    "MacrocystisPlant",
    "UnderstoryTransect",
    "UnderstoryStation",
    "UnderstoryAlgaeObservation",
    "SpawnIndexResult",
    "records_to_frame",
    "IntensityLookup",
    "AlgaeCoefficientTable",
    "WidthCorrectionTable",
    "WidthReference",
]
