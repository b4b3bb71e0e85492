"""CSV output strategy for spawn index results.

This strategy writes domain models in the legacy spawn index table layout,
one row per spawn number with a column per survey type (SurfSI, MacroSI,
UnderSI). Survey types absent from the results are left out.
"""

from pathlib import Path

import pandas as pd

from spawn_index.config import OutputColumns
from spawn_index.models.domain import SpawnIndexResult
from spawn_index.models.enums import IndexKind


class CSVOutputStrategy:
    """Writes spawn index results to CSV in legacy format.

    Results for the same spawn number from different survey types are
    combined onto one row.
    """

    def write(self, results: list[SpawnIndexResult], output_path: Path) -> Path:
        """Write spawn index results to CSV file.

        Args:
            results: List of spawn index results (domain models)
            output_path: Path where CSV file should be written

        Returns:
            Path to the written CSV file

        Raises:
            IOError: If writing fails
            ValueError: If results are empty or a spawn number is repeated
                for the same survey type
        """
        if not results:
            raise ValueError("Cannot write CSV: results list is empty")

        df = pd.DataFrame([self._result_to_row(result) for result in results])
        key_columns = list(OutputColumns.legacy_names().values())

        if df.duplicated(subset=key_columns + ["kind"]).any():
            raise ValueError("Cannot write CSV: spawn number repeated for a survey type")

        df = df.pivot(index=key_columns, columns="kind", values="value").reset_index()
        df.columns.name = None

        df = df[key_columns + [c for c in self._get_value_columns() if c in df.columns]]
        df = df.sort_values(key_columns).reset_index(drop=True)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)

        return output_path

    def _result_to_row(self, result: SpawnIndexResult) -> dict:
        """Convert a single SpawnIndexResult to a long-format row dictionary."""
        names = OutputColumns.legacy_names()
        return {
            names[OutputColumns.YEAR]: result.year,
            names[OutputColumns.REGION]: result.region,
            names[OutputColumns.STAT_AREA]: result.stat_area,
            names[OutputColumns.SECTION]: result.section,
            names[OutputColumns.LOCATION_CODE]: result.location_code,
            names[OutputColumns.SPAWN_NUMBER]: result.spawn_number,
            "kind": result.kind.legacy_name,
            "value": result.spawn_index_t,
        }

    def _get_value_columns(self) -> list[str]:
        return [kind.legacy_name for kind in IndexKind]
