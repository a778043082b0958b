"""
Extract Layer Schemas

Raw data schemas for the input files.
These represent the structure of data as it comes off disk.
"""

import polars as pl

# Kaggle cardiovascular disease dataset (cardio_train.csv)
RAW_CARDIO_SCHEMA = pl.Schema(
    [
        ("age", pl.Int64()),  # days
        ("gender", pl.Int64()),
        ("height", pl.Int64()),  # cm
        ("weight", pl.Float64()),  # kg
        ("ap_hi", pl.Int64()),
        ("ap_lo", pl.Int64()),
        ("cholesterol", pl.Int64()),
        ("gluc", pl.Int64()),
        ("smoke", pl.Int64()),
        ("alco", pl.Int64()),
        ("active", pl.Int64()),
        ("cardio", pl.Int64()),
    ]
)

# Kept when present, not required
OPTIONAL_CARDIO_COLUMNS = {"id": pl.Int64()}

CARDIO_SEPARATOR = ";"

# IHME export columns after snake_case normalisation
RAW_MORTALITY_SCHEMA = pl.Schema(
    [
        ("location", pl.String()),
        ("sex", pl.String()),
        ("age", pl.String()),
        ("year", pl.Int64()),
        ("value", pl.Float64()),
    ]
)

MORTALITY_SEPARATOR = ","
