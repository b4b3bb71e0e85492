"""Surface spawn egg layer, egg density and biomass calculations.

Calculators accept scalars or pandas Series and perform no joins.
"""

import numpy as np
import pandas as pd

from spawn_index.config import CONSTANTS


def calculate_substrate_layers(layers, percent_cover):
    """Egg layers on one substrate weighted by its percent cover.

    Formula:
        contribution = layers * percent_cover / 100

    Args:
        layers: Number of egg layers on the substrate
        percent_cover: Percent of the sample covered by the substrate (0-100)

    Returns:
        Egg layer contribution of the substrate.
    """
    return layers * percent_cover / CONSTANTS.PERCENT


def rescale_intensity(intensity):
    """Rescale intensity categories from the 5-category to the 9-category scale.

    Category 0 (no intensity recorded) is left unchanged.

    Formula:
        rescaled = intensity * 2 - 1   (for intensity > 0)
    """
    if isinstance(intensity, pd.Series):
        return intensity.where(~(intensity > 0), intensity * 2 - 1)
    return intensity * 2 - 1 if intensity > 0 else intensity


def calculate_surface_egg_density(egg_layers, alpha: float, beta: float):
    """Calculate surface egg density in thousands of eggs per square metre.

    Formula:
        egg_density = alpha + beta * egg_layers

    Args:
        egg_layers: Number of egg layers
        alpha: Regression intercept
        beta: Regression slope

    Returns:
        Egg density (eggs * 10^3 / m^2).
    """
    return alpha + beta * egg_layers


def resolve_width(width_pool, width_section, width_region, width_obs):
    """Pick the spawn width using pool, section, region, then observed width.

    The first non-missing value wins.
    """
    if isinstance(width_pool, pd.Series):
        return (
            width_pool.fillna(width_section).fillna(width_region).fillna(width_obs)
        )
    for width in (width_pool, width_section, width_region, width_obs):
        if width is not None and not np.isnan(width):
            return width
    return np.nan


def calculate_spawn_biomass(egg_density, length, width, theta: float):
    """Calculate spawning biomass in tonnes from egg density and spawn area.

    Shared by the surface, Macrocystis and understory spawn indices.

    Formula:
        biomass_t = egg_density * length * width * 1000 / theta

    Args:
        egg_density: Egg density in thousands of eggs per square metre
        length: Spawn length (m)
        width: Spawn width (m)
        theta: Egg conversion factor (eggs per tonne)

    Returns:
        Spawning biomass in tonnes.
    """
    return egg_density * length * width * CONSTANTS.EGGS_PER_THOUSAND / theta
