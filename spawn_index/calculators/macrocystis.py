"""Macrocystis spawn egg calculations."""

from spawn_index.config import CONSTANTS


def calculate_eggs_per_plant(
    egg_layers,
    height,
    stalks_per_plant,
    beta: float,
    gamma: float,
    delta: float,
    epsilon: float,
):
    """Calculate eggs per Macrocystis plant in thousands.

    Formula:
        eggs_per_plant = beta * egg_layers^gamma * height^delta
                         * stalks_per_plant^epsilon * 1000

    Args:
        egg_layers: Mean number of egg layers on mature plants
        height: Mean mature plant height (m)
        stalks_per_plant: Mature stalks per mature plant
        beta: Regression slope
        gamma: Exponent on egg layers
        delta: Exponent on plant height
        epsilon: Exponent on stalks per plant

    Returns:
        Eggs per plant (eggs * 10^3 / plant).
    """
    return (
        beta
        * egg_layers**gamma
        * height**delta
        * stalks_per_plant**epsilon
        * CONSTANTS.EGGS_PER_THOUSAND
    )


def calculate_macrocystis_egg_density(eggs_per_plant, plants, area):
    """Egg density in thousands of eggs per square metre.

    Formula:
        egg_density = eggs_per_plant * plants / area
    """
    return eggs_per_plant * plants / area
