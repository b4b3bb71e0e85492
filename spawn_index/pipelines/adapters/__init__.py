"""Adapters from pipeline DataFrames to domain models."""

from spawn_index.pipelines.adapters.results_adapter import to_domain_models

__all__ = ["to_domain_models"]
