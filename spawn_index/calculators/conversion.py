"""Egg to biomass conversion and spawn-on-kelp (SOK) biomass calculations."""

import numpy as np

from spawn_index.config import CONSTANTS, ConversionParameters, SokParameters
from spawn_index.validation.errors import ValidationError


def calculate_egg_conversion(omega: float, phi: float) -> float:
    """Calculate the conversion factor from number of eggs to biomass in tonnes.

    Divide a number of eggs by this factor to get spawning biomass in tonnes.
    The factor should be computed once per run and passed to every pipeline so
    all spawn index components use the same value.

    Formula:
        theta = omega * phi * kilograms_per_tonne

    Args:
        omega: Number of eggs per kilogram of female spawners
        phi: Proportion of spawners that are female

    Returns:
        Eggs per tonne of spawners (theta).
    """
    return omega * phi * CONSTANTS.KILOGRAMS_PER_TONNE


def calculate_sok_biomass(
    sok_kg,
    nu: float | None = None,
    upsilon: float | None = None,
    egg_weight_kg: float | None = None,
    theta: float | None = None,
):
    """Calculate spawning biomass in tonnes from spawn-on-kelp (SOK) harvest.

    A proportion nu of the harvested product is kelp, and brining increases the
    product weight by a proportion upsilon. The remaining egg mass divided by the
    weight of one egg gives a number of eggs, which theta converts to biomass.

    Formula:
        egg_mass_kg = sok_kg * (1 - nu) / (1 + upsilon)
        biomass_t = egg_mass_kg / (egg_weight_kg * theta)

    Args:
        sok_kg: Weight of SOK harvest in kilograms (scalar or array-like)
        nu: Proportion of SOK product that is kelp (default: SokParameters)
        upsilon: SOK product weight increase due to brining as a proportion
            (default: SokParameters)
        egg_weight_kg: Average weight in kilograms of a fertilized egg
            (default: SokParameters)
        theta: Egg conversion factor from calculate_egg_conversion()
            (default: from ConversionParameters)

    Returns:
        Spawning biomass in tonnes (same shape as sok_kg).

    Raises:
        ValidationError: If a denominator is not positive or nu is not a proportion
    """
    if None in (nu, upsilon, egg_weight_kg):
        params = SokParameters()
        nu = params.nu if nu is None else nu
        upsilon = params.upsilon if upsilon is None else upsilon
        egg_weight_kg = params.egg_weight_kg if egg_weight_kg is None else egg_weight_kg
    if theta is None:
        conversion = ConversionParameters()
        theta = calculate_egg_conversion(conversion.omega, conversion.phi)

    if egg_weight_kg <= 0:
        raise ValidationError(f"Egg weight must be positive, got {egg_weight_kg}", field="egg_weight_kg")
    if theta <= 0:
        raise ValidationError(f"Egg conversion factor must be positive, got {theta}", field="theta")
    if 1 + upsilon <= 0:
        raise ValidationError(f"Brining factor 1 + upsilon must be positive, got {1 + upsilon}", field="upsilon")
    if not 0 <= nu <= 1:
        raise ValidationError(f"Kelp proportion must be between 0 and 1, got {nu}", field="nu")
    if np.any(np.asarray(sok_kg) < 0):
        raise ValidationError("SOK harvest weight must not be negative", field="sok_kg")

    egg_mass_kg = sok_kg * (1 - nu) / (1 + upsilon)
    return egg_mass_kg / (egg_weight_kg * theta)
