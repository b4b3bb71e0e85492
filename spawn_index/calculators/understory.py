"""Understory spawn egg density calculations."""


def calculate_substrate_egg_density(substrate_layers, substrate_proportion, alpha: float):
    """Calculate substrate egg density in one quadrat.

    Formula:
        egg_density_sub = alpha * substrate_layers * substrate_proportion

    Args:
        substrate_layers: Number of egg layers on the bottom substrate
        substrate_proportion: Proportion of the quadrat bottom covered (0-1)
        alpha: Regression slope for substrate

    Returns:
        Egg density (eggs * 10^3 / m^2).
    """
    return alpha * substrate_layers * substrate_proportion


def calculate_algae_egg_density(
    algae_layers,
    algae_proportion,
    coefficient,
    beta: float,
    gamma: float,
    delta: float,
    quadrat_factor: float,
):
    """Calculate egg density on one algae type in one quadrat.

    The quadrat factor normalises for the mandated 0.5 m^2 quadrat size.

    Formula:
        egg_density_alg = beta * algae_layers^gamma * algae_proportion^delta
                          * coefficient * quadrat_factor

    Args:
        algae_layers: Number of egg layers on the algae
        algae_proportion: Proportion of the quadrat covered by the algae (0-1)
        coefficient: Algae type coefficient
        beta: Regression slope for algae
        gamma: Exponent on number of egg layers
        delta: Exponent on proportion of algae
        quadrat_factor: Quadrat size normalisation constant

    Returns:
        Egg density (eggs * 10^3 / m^2).
    """
    return (
        beta
        * algae_layers**gamma
        * algae_proportion**delta
        * coefficient
        * quadrat_factor
    )
