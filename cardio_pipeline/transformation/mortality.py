"""
Mortality Transforms - Transform Layer

Cleans the concatenated IHME death-rate exports and joins mean rates onto
the cardio group summary.
"""

import polars as pl
import duckdb
from typing import Sequence
from .schemas import (
    GENDER_LEVELS,
    SDI_LOCATIONS,
    MORTALITY_SCHEMA,
    MORTALITY_RATE_KEYS,
)
import logging

logger = logging.getLogger(__name__)


def clean_mortality(
    raw_df: pl.DataFrame, locations: Sequence[str] = SDI_LOCATIONS
) -> pl.DataFrame:
    """
    Keep SDI rows and normalise sex and age labels

    sex "Female" becomes gender "female", any other value "male" (null
    stays null), matching the cardio gender codebook. The " years" suffix
    is stripped from age so bands read "15-49", "70+", ...

    Args:
        raw_df: Concatenated mortality exports with snake_case columns
        locations: Location categories to keep

    Returns:
        pl.DataFrame: Mortality table (location, year, age, gender, value)
    """
    logger.info(f"Cleaning {raw_df.height} mortality rows")

    try:
        mortality_df = (
            raw_df.filter(pl.col("location").is_in(list(locations)))
            .with_columns(
                [
                    pl.when(pl.col("sex").is_null())
                    .then(pl.lit(None, dtype=pl.String))
                    .when(pl.col("sex") == "Female")
                    .then(pl.lit("female"))
                    .otherwise(pl.lit("male"))
                    .cast(pl.Enum(GENDER_LEVELS))
                    .alias("gender"),
                    pl.col("age").str.replace_all(" years", "", literal=True),
                ]
            )
            .select(MORTALITY_SCHEMA.names())
        )

        if mortality_df.schema != MORTALITY_SCHEMA:
            logger.warning(
                f"Schema mismatch: expected {MORTALITY_SCHEMA}, got {mortality_df.schema}"
            )

        logger.info(f"Kept {mortality_df.height} mortality rows for {len(locations)} locations")
        return mortality_df

    except Exception as e:
        logger.error(f"❌ Error cleaning mortality data: {e}")
        raise


def mean_mortality_rates(mortality_df: pl.DataFrame) -> pl.DataFrame:
    """
    Mean death rate per (age band, gender)

    Args:
        mortality_df: Cleaned mortality table

    Returns:
        pl.DataFrame: age, gender, mean_death_rate
    """
    rates_df = mortality_df.group_by(MORTALITY_RATE_KEYS).agg(
        pl.col("value").mean().alias("mean_death_rate")
    )

    logger.info(f"Computed {rates_df.height} mean mortality rates")
    return rates_df


def _stringify_categories(df: pl.DataFrame) -> pl.DataFrame:
    return df.with_columns(
        [
            pl.col(name).cast(pl.String)
            for name, dtype in df.schema.items()
            if isinstance(dtype, (pl.Enum, pl.Categorical))
        ]
    )


def join_mortality(groups_df: pl.DataFrame, rates_df: pl.DataFrame) -> pl.DataFrame:
    """
    Attach mean death rates to the cardio group summary

    Right outer join from the rates onto the groups on
    (age_group = age, gender): every group row is kept and
    mean_death_rate is null where no rate exists for its key.

    Args:
        groups_df: Aggregate table from summarise_cardio_groups()
        rates_df: Rates from mean_mortality_rates()

    Returns:
        pl.DataFrame: Group summary plus mean_death_rate
    """
    logger.info("Joining mean mortality rates onto cardio groups")

    try:
        sql = """
            SELECT
                g.*
                , m.mean_death_rate
            FROM mortality_rates m
            RIGHT JOIN cardio_groups g
                ON m.age = g.age_group
                AND m.gender = g.gender
        """

        with duckdb.connect() as conn:
            # DuckDB compares labels, not category codes
            conn.register("cardio_groups", _stringify_categories(groups_df))
            conn.register("mortality_rates", _stringify_categories(rates_df))

            joined_df = conn.execute(sql).pl()

        unmatched = joined_df["mean_death_rate"].null_count()
        if joined_df.height > 0 and unmatched == joined_df.height:
            logger.warning(
                "⚠️ No group matched a mortality rate, check age band and gender labels"
            )
        elif unmatched > 0:
            logger.warning(f"⚠️ {unmatched} groups have no matching mortality rate")

        logger.info(f"Created {joined_df.height} joined records from {groups_df.height} groups")
        return joined_df

    except Exception as e:
        logger.error(f"❌ Error joining mortality rates: {e}")
        raise
