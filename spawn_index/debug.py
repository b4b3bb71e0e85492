"""Debug output helpers for inspecting intermediate pipeline tables.

WARNING: For local development and debugging only.
"""

import logging
from datetime import UTC, datetime

import pandas as pd

from spawn_index.config import DebugConfig

logger = logging.getLogger(__name__)


def save_debug_frame(
    df: pd.DataFrame,
    name: str,
    run_id: str,
    config: DebugConfig,
) -> None:
    """Save an intermediate table as CSV if debug output is enabled.

    Args:
        df: Table to save
        name: Descriptive name (e.g., "surface_eggs", "understory_eggs_trans")
        run_id: Run identifier for organizing output
        config: Debug configuration
    """
    if not config.enabled:
        return

    output_dir = config.output_dir / run_id
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now(UTC).strftime("%H%M%S")
    output_path = output_dir / f"{timestamp}_{name}.csv"

    try:
        df.to_csv(output_path, index=False)
        logger.debug(f"Saved debug output: {output_path} ({len(df)} rows)")
    except OSError as e:
        logger.warning(f"Failed to save debug output {name}: {e}")
