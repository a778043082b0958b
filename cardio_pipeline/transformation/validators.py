"""
Data Validators - Transform Layer

Audits for the record table: missing values, duplicates, row counts and
schema checks. Problems are logged and returned as metrics for the operator
to inspect; only schema violations raise.
"""

import polars as pl
from typing import Dict, Any, Optional, Sequence
from cardio_pipeline.extract.schemas import RAW_CARDIO_SCHEMA
import logging

logger = logging.getLogger(__name__)


def count_missing(df: pl.DataFrame) -> Dict[str, int]:
    """
    Count null values per column

    Args:
        df: DataFrame to audit

    Returns:
        Dict: column name -> null count
    """
    null_counts = df.null_count().row(0, named=True)

    for column, null_count in null_counts.items():
        if null_count > 0:
            logger.warning(f"Column '{column}' has {null_count} null values")

    logger.info(f"Missing-value audit: {sum(null_counts.values())} nulls in {df.width} columns")
    return null_counts


def count_duplicates(df: pl.DataFrame, subset: Optional[Sequence[str]] = None) -> int:
    """
    Count rows that repeat an earlier row

    Args:
        df: DataFrame to audit
        subset: Columns that define a duplicate (all columns if None)

    Returns:
        int: total rows minus distinct rows
    """
    distinct = df.unique(subset=list(subset) if subset else None).height
    duplicate_count = df.height - distinct

    if duplicate_count > 0:
        logger.warning(f"Duplicate records found: {duplicate_count} of {df.height}")
    else:
        logger.info(f"No duplicate records in {df.height} rows")
    return duplicate_count


def check_row_count(df: pl.DataFrame, expected: Optional[int], step: str) -> bool:
    """
    Compare a table's row count with the expected count

    Args:
        df: Table produced by the step
        expected: Expected row count (None skips the check)
        step: Step name for the log

    Returns:
        bool: True if the count matches or no expectation was given
    """
    if expected is None:
        logger.info(f"{step}: {df.height} rows")
        return True

    if df.height != expected:
        logger.warning(f"⚠️ {step}: expected {expected} rows, got {df.height}")
        return False

    logger.info(f"✅ {step}: {df.height} rows as expected")
    return True


def validate_raw_schema(df: pl.DataFrame) -> bool:
    """
    Validate the record table carries every raw column with its declared type

    Args:
        df: Record table from the extract layer

    Returns:
        bool: True if valid, raises exception if invalid
    """
    for column, dtype in RAW_CARDIO_SCHEMA.items():
        if column not in df.columns:
            raise ValueError(f"Missing required column '{column}'")
        if df.schema[column] != dtype:
            raise ValueError(
                f"Column '{column}' has type {df.schema[column]}, expected {dtype}"
            )

    logger.info(f"Raw schema validation passed: {df.height} records")
    return True


def validate_data_quality(
    df: pl.DataFrame, data_type: str, subset: Optional[Sequence[str]] = None
) -> Dict[str, Any]:
    """
    Validate data quality and return quality metrics

    Args:
        df: DataFrame to validate
        data_type: Name of the table, used in the log
        subset: Columns that define a duplicate (all columns if None)

    Returns:
        Dict: Quality metrics and validation results
    """
    logger.info(f"Validating data quality for {data_type}")

    null_counts = count_missing(df)
    duplicate_count = count_duplicates(df, subset)

    quality_metrics = {
        "total_records": df.height,
        "null_counts": null_counts,
        "duplicate_count": duplicate_count,
        "data_types": df.schema,
        "complete": sum(null_counts.values()) == 0,
    }

    logger.info(f"Data quality validation completed for {data_type}")
    return quality_metrics
