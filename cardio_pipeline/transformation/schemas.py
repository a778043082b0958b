"""
Transformation Layer Schemas

Codebooks, category levels and the key tuples used by the transforms.
The code -> label tables follow the dataset codebook exactly.
"""

import polars as pl

GENDER_CODES = {1: "female", 2: "male"}
GENDER_LEVELS = ["female", "male"]

EXAM_LEVEL_CODES = {1: "normal", 2: "above normal", 3: "well above normal"}
EXAM_LEVELS = ["normal", "above normal", "well above normal"]

BINARY_CODES = {0: "0", 1: "1"}
BINARY_LEVELS = ["0", "1"]

# column -> (code table, ordered levels)
CATEGORY_CODEBOOK = {
    "gender": (GENDER_CODES, GENDER_LEVELS),
    "cholesterol": (EXAM_LEVEL_CODES, EXAM_LEVELS),
    "gluc": (EXAM_LEVEL_CODES, EXAM_LEVELS),
    "smoke": (BINARY_CODES, BINARY_LEVELS),
    "alco": (BINARY_CODES, BINARY_LEVELS),
    "active": (BINARY_CODES, BINARY_LEVELS),
    "cardio": (BINARY_CODES, BINARY_LEVELS),
}

# Positional labels for the four equal-width age bins
AGE_GROUP_LABELS = ["5-14", "15-49", "50-69", "70+"]

DAYS_PER_YEAR = 365.25

CARDIO_GROUP_KEYS = ["cardio", "age_group", "gender", "smoke", "cholesterol", "gluc"]

EXAM_COLUMNS = ["cholesterol", "gluc"]

SDI_LOCATIONS = [
    "High SDI",
    "High-middle SDI",
    "Low SDI",
    "Low-middle SDI",
    "Middle SDI",
]

MORTALITY_SCHEMA = pl.Schema(
    [
        ("location", pl.String()),
        ("year", pl.Int64()),
        ("age", pl.String()),
        ("gender", pl.Enum(GENDER_LEVELS)),
        ("value", pl.Float64()),
    ]
)

MORTALITY_RATE_KEYS = ["age", "gender"]
