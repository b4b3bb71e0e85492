"""Base output strategy interface for spawn index results."""

from pathlib import Path
from typing import Protocol

from spawn_index.models.domain import SpawnIndexResult


class OutputStrategy(Protocol):
    """Protocol for output strategies that serialize spawn index results.

    Pipelines return DataFrames, adapters convert them to
    List[SpawnIndexResult] domain models, and the caller decides when and
    where to write output using an appropriate strategy.
    """

    def write(self, results: list[SpawnIndexResult], output_path: Path) -> Path:
        """Write spawn index results to a file.

        Args:
            results: List of spawn index results (domain models)
            output_path: Path where output file should be written

        Returns:
            Path to the written output file

        Raises:
            IOError: If writing fails
            ValueError: If results cannot be serialized
        """
        ...
