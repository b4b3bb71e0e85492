"""Output strategies for spawn index results."""

from spawn_index.outputs.base import OutputStrategy
from spawn_index.outputs.csv import CSVOutputStrategy

__all__ = ["OutputStrategy", "CSVOutputStrategy"]
