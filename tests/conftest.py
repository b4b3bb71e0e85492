"""Shared fixtures for spawn index tests."""

import pandas as pd
import pytest

from spawn_index.calculators import calculate_egg_conversion


@pytest.fixture
def theta():
    """Egg conversion factor from the default conversion parameters."""
    return calculate_egg_conversion(200_560.0, 0.5)


@pytest.fixture
def areas():
    """Two locations in one section, each in its own pool."""
    return pd.DataFrame(
        {
            "region": ["SoG", "SoG"],
            "stat_area": [14, 14],
            "section": [142, 142],
            "location_code": [820, 821],
            "pool": [1, 2],
            "location_name": ["Qualicum", "Nile Creek"],
        }
    )


@pytest.fixture(autouse=True)
def no_debug_output(monkeypatch):
    """Keep debug CSV output off regardless of the developer's environment."""
    monkeypatch.delenv("DEBUG_OUTPUT", raising=False)
