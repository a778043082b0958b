"""
File Reader - Extract Layer

Pure functions for reading the raw input files.
No business logic, just I/O operations that return raw tables.
"""

import glob
import os
import re
from typing import List

import polars as pl
import logging

from .schemas import (
    RAW_CARDIO_SCHEMA,
    OPTIONAL_CARDIO_COLUMNS,
    CARDIO_SEPARATOR,
    RAW_MORTALITY_SCHEMA,
    MORTALITY_SEPARATOR,
)

logger = logging.getLogger(__name__)


class ParseError(ValueError):
    """Raised when a file does not match its expected delimiter or schema."""


def clean_column_names(df: pl.DataFrame) -> pl.DataFrame:
    """
    Normalise column names to snake_case

    "Location" -> "location", "measureName" -> "measure_name",
    "Upper Bound" -> "upper_bound".

    Args:
        df: DataFrame with raw column names

    Returns:
        pl.DataFrame: Same data with normalised column names
    """

    def to_snake_case(name: str) -> str:
        name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name.strip())
        name = re.sub(r"[^0-9a-zA-Z]+", "_", name)
        return name.strip("_").lower()

    return df.rename({column: to_snake_case(column) for column in df.columns})


def _read_csv(filepath: str, separator: str) -> pl.DataFrame:
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"CSV file not found: {filepath}")

    try:
        return pl.read_csv(filepath, separator=separator, infer_schema_length=10000)
    except pl.exceptions.PolarsError as e:
        raise ParseError(f"Could not parse {filepath}: {e}") from e


def _coerce(df: pl.DataFrame, schema: dict, filepath: str) -> pl.DataFrame:
    try:
        return df.cast({name: dtype for name, dtype in schema.items()}, strict=True)
    except pl.exceptions.PolarsError as e:
        raise ParseError(f"Unexpected column types in {filepath}: {e}") from e


def load_cardio_data(filepath: str) -> pl.DataFrame:
    """
    Load the cardiovascular patient records

    Args:
        filepath: Path to the semicolon-delimited cardio CSV

    Returns:
        pl.DataFrame: Record table typed with RAW_CARDIO_SCHEMA

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If the delimiter or columns do not match
    """
    logger.info(f"Loading cardio records from: {filepath}")

    df = _read_csv(filepath, CARDIO_SEPARATOR)

    missing = [column for column in RAW_CARDIO_SCHEMA.names() if column not in df.columns]
    if missing:
        raise ParseError(
            f"{filepath} is missing columns {missing} "
            f"(expected '{CARDIO_SEPARATOR}'-delimited file, got columns {df.columns})"
        )

    expected_columns = [
        column for column in OPTIONAL_CARDIO_COLUMNS if column in df.columns
    ] + RAW_CARDIO_SCHEMA.names()
    extra = [column for column in df.columns if column not in expected_columns]
    if extra:
        raise ParseError(f"{filepath} has unexpected columns: {extra}")

    schema = {
        column: dtype
        for column, dtype in OPTIONAL_CARDIO_COLUMNS.items()
        if column in df.columns
    }
    schema.update(RAW_CARDIO_SCHEMA)
    df = _coerce(df.select(expected_columns), schema, filepath)

    logger.info(f"Loaded {df.height} records with {df.width} columns from {filepath}")
    return df


def list_mortality_files(directory: str) -> List[str]:
    """
    List the mortality source files in a directory

    Args:
        directory: Folder holding the IHME CSV exports

    Returns:
        List[str]: Sorted CSV paths

    Raises:
        FileNotFoundError: If the folder is missing or holds no CSV files
    """
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Mortality data directory not found: {directory}")

    files = sorted(glob.glob(os.path.join(directory, "*.csv")))
    if not files:
        raise FileNotFoundError(f"No mortality CSV files found in {directory}")

    logger.info(f"Found {len(files)} mortality files in {directory}")
    return files


def load_mortality_file(filepath: str) -> pl.DataFrame:
    """
    Load one IHME death-rate export with snake_case column names

    Args:
        filepath: Path to a comma-delimited IHME CSV

    Returns:
        pl.DataFrame: Raw mortality rows
    """
    df = clean_column_names(_read_csv(filepath, MORTALITY_SEPARATOR))

    missing = [
        column for column in RAW_MORTALITY_SCHEMA.names() if column not in df.columns
    ]
    if missing:
        raise ParseError(
            f"{filepath} is missing columns {missing} (got columns {df.columns})"
        )

    df = _coerce(df, RAW_MORTALITY_SCHEMA, filepath)
    logger.info(f"Loaded {df.height} mortality rows from {filepath}")
    return df


def load_mortality_files(filepaths: List[str]) -> pl.DataFrame:
    """
    Load and concatenate mortality exports sharing one schema

    Args:
        filepaths: CSV paths, usually from list_mortality_files()

    Returns:
        pl.DataFrame: All rows stacked in file order

    Raises:
        ParseError: If the files do not share the same columns
    """
    if not filepaths:
        raise ValueError("No mortality files given")

    frames = [load_mortality_file(filepath) for filepath in filepaths]

    # Columns are matched by name, like a row bind
    reference = frames[0].columns
    for filepath, frame in zip(filepaths[1:], frames[1:]):
        if set(frame.columns) != set(reference):
            raise ParseError(
                f"{filepath} columns {frame.columns} do not match {filepaths[0]} columns {reference}"
            )

    combined = pl.concat(
        [frame.select(reference) for frame in frames], how="vertical_relaxed"
    )

    logger.info(
        f"Concatenated {len(frames)} mortality files into {combined.height} rows, "
        f"{combined.width} columns"
    )
    return combined
