"""
Local Storage - Load Layer

Pure functions for local file storage operations.
"""

import polars as pl
import os
import logging

logger = logging.getLogger(__name__)


def save_csv(df: pl.DataFrame, filepath: str) -> str:
    """
    Save DataFrame to a comma-delimited CSV file

    Args:
        df: DataFrame to save
        filepath: Path to save file

    Returns:
        str: Path to saved file

    Raises:
        OSError: If the destination cannot be written
    """
    logger.info(f"Saving DataFrame to CSV: {filepath}")

    # Ensure directory exists
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    df.write_csv(filepath)

    logger.info(f"Saved {df.height} records to {filepath}")
    return filepath
