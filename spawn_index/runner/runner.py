"""Spawn index execution

This module provides a runner for the survey-specific spawn index pipelines.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import pandas as pd

from spawn_index.calculators import calculate_egg_conversion
from spawn_index.common.log_utils import ctx_pipeline
from spawn_index.config import SpawnIndexConfig
from spawn_index.pipelines.macrocystis import MacrocystisIndexPipeline
from spawn_index.pipelines.surface import SurfaceIndexPipeline
from spawn_index.pipelines.understory import UnderstoryIndexPipeline
from spawn_index.validation.errors import SpawnIndexError

logger = logging.getLogger(__name__)


PIPELINE_TYPES: dict[str, type] = {
    "surface": SurfaceIndexPipeline,
    "macrocystis": MacrocystisIndexPipeline,
    "understory": UnderstoryIndexPipeline,
}


def run_pipeline(
    pipeline_type: str,
    inputs: dict,
    theta: float,
) -> dict[str, pd.DataFrame]:
    """Run one spawn index pipeline and return its results as DataFrames.

    Args:
        pipeline_type: Pipeline identifier ("surface", "macrocystis", "understory")
        inputs: Keyword arguments for the pipeline constructor (survey tables,
            areas, years, reference tables, parameters)
        theta: Egg conversion factor shared by every pipeline in a run

    Returns:
        Dictionary of DataFrames from the pipeline, e.g.:
        {
            "biomass_spawn": DataFrame(...),
            "spawn_index": DataFrame(...)
        }

    Raises:
        KeyError: If pipeline type is not registered
        SpawnIndexError: If the survey data fail validation (propagated unchanged)
        ValueError: If the pipeline cannot be built, fails unexpectedly, or
            returns invalid data
    """
    logger.info(f"Running pipeline: {pipeline_type}")

    pipeline_class = PIPELINE_TYPES.get(pipeline_type)
    if pipeline_class is None:
        msg = f"Pipeline type {pipeline_type} not supported"
        raise KeyError(msg)

    token = ctx_pipeline.set(pipeline_type)
    try:
        logger.info(f"Instantiating {pipeline_class.__name__}")
        try:
            pipeline = pipeline_class(**inputs, theta=theta)
        except Exception as e:
            logger.error(f"Pipeline instantiation failed: {e}")
            msg = f"Failed to instantiate pipeline '{pipeline_type}'"
            raise ValueError(msg) from e

        logger.info(f"Executing {pipeline_type}.run()")
        try:
            dataframes = pipeline.run()
        except SpawnIndexError as e:
            logger.error(f"Pipeline '{pipeline_type}' rejected survey data: {e}")
            raise
        except Exception as e:
            logger.error(f"Pipeline execution failed: {e}")
            msg = f"Pipeline '{pipeline_type}' execution failed"
            raise ValueError(msg) from e
    finally:
        ctx_pipeline.reset(token)

    if not isinstance(dataframes, dict):
        msg = (
            f"Pipeline '{pipeline_type}'.run() must return a dict, "
            f"got {type(dataframes).__name__}"
        )
        raise ValueError(msg)

    for key, value in dataframes.items():
        if not isinstance(value, pd.DataFrame):
            msg = (
                f"Pipeline '{pipeline_type}'.run() returned invalid value for key '{key}': "
                f"expected DataFrame, got {type(value).__name__}"
            )
            raise ValueError(msg)

    logger.info(f"Pipeline returned {len(dataframes)} result set(s): {list(dataframes.keys())}")

    return dataframes


def _with_params(pipeline_type: str, inputs: dict, config: SpawnIndexConfig) -> dict:
    params = {
        "surface": config.surface,
        "macrocystis": config.macrocystis,
        "understory": config.understory,
    }.get(pipeline_type)
    if params is None or "params" in inputs:
        return inputs
    return {**inputs, "params": params}


def run_spawn_index(
    inputs_by_type: dict[str, dict],
    config: SpawnIndexConfig | None = None,
    parallel: bool = False,
) -> dict[str, dict[str, pd.DataFrame]]:
    """Run several spawn index pipelines with a single egg conversion factor.

    Theta is calculated once from the conversion parameters and passed to
    every pipeline. Pipelines share no state, so they may run in parallel.

    Args:
        inputs_by_type: Pipeline type -> constructor keyword arguments
        config: Parameter groups (default: loaded from environment)
        parallel: Run pipelines on a thread pool

    Returns:
        Pipeline type -> dictionary of result DataFrames

    Raises:
        KeyError: If any pipeline type is not registered
        SpawnIndexError: From the first pipeline whose survey data fail validation
    """
    config = config or SpawnIndexConfig()
    unknown = sorted(set(inputs_by_type) - set(PIPELINE_TYPES))
    if unknown:
        msg = f"Pipeline type(s) {unknown} not supported"
        raise KeyError(msg)

    theta = calculate_egg_conversion(config.conversion.omega, config.conversion.phi)
    logger.info(f"Egg conversion factor theta = {theta:.6g} eggs/tonne")

    jobs = {
        pipeline_type: _with_params(pipeline_type, inputs, config)
        for pipeline_type, inputs in inputs_by_type.items()
    }

    if not parallel or len(jobs) < 2:
        return {
            pipeline_type: run_pipeline(pipeline_type, inputs, theta)
            for pipeline_type, inputs in jobs.items()
        }

    with ThreadPoolExecutor(max_workers=len(jobs)) as executor:
        futures = {
            pipeline_type: executor.submit(run_pipeline, pipeline_type, inputs, theta)
            for pipeline_type, inputs in jobs.items()
        }
        return {pipeline_type: future.result() for pipeline_type, future in futures.items()}
