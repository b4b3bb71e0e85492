"""Formula calculators for spawn index estimation.

This package contains pure functions implementing the empirical egg density
models and biomass conversions. All calculators are stateless and testable
without any survey tables.
"""

from spawn_index.calculators.conversion import calculate_egg_conversion, calculate_sok_biomass
from spawn_index.calculators.macrocystis import (
    calculate_eggs_per_plant,
    calculate_macrocystis_egg_density,
)
from spawn_index.calculators.surface import (
    calculate_spawn_biomass,
    calculate_substrate_layers,
    calculate_surface_egg_density,
    rescale_intensity,
    resolve_width,
)
from spawn_index.calculators.understory import (
    calculate_algae_egg_density,
    calculate_substrate_egg_density,
)

__all__ = [
    "calculate_egg_conversion",
    "calculate_sok_biomass",
    "calculate_substrate_layers",
    "rescale_intensity",
    "calculate_surface_egg_density",
    "resolve_width",
    "calculate_spawn_biomass",
    "calculate_eggs_per_plant",
    "calculate_macrocystis_egg_density",
    "calculate_substrate_egg_density",
    "calculate_algae_egg_density",
]
