"""Spawn index execution infrastructure.

This package provides the runner for executing pipelines:
- run_pipeline(): Run a single registered pipeline type
- run_spawn_index(): Run several pipelines with one shared egg conversion factor

Pipelines follow a simple pattern:
- Constructor: __init__(spawn, <survey tables>, areas, years, ..., theta, metadata)
- Run method: run() -> dict[str, DataFrame]
"""

from spawn_index.runner.runner import PIPELINE_TYPES, run_pipeline, run_spawn_index

__all__ = [
    "PIPELINE_TYPES",
    "run_pipeline",
    "run_spawn_index",
]
