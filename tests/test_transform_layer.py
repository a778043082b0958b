"""
Test Transform Layer - Verify derivations, recoding, bucketing, aggregation
and reshaping on small in-memory tables
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import polars as pl
import pytest
from polars.testing import assert_frame_equal
from cardio_pipeline.transformation.transformers import (
    drop_duplicates,
    add_age_years,
    add_bmi,
    recode_categories,
    apply_category_levels,
    filter_rows,
    select_columns,
    sort_rows,
    compute_bin_edges,
    add_age_groups,
    aggregate_groups,
    summarise_cardio_groups,
    to_long,
    to_wide,
    get_summary_stats,
)
from cardio_pipeline.transformation.schemas import (
    AGE_GROUP_LABELS,
    GENDER_LEVELS,
    EXAM_LEVELS,
)
from sample_data import cohort_records, make_record, records_frame, scenario_records
import logging

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def tidy_cohort() -> pl.DataFrame:
    """Cohort with every derivation applied"""
    return add_age_groups(recode_categories(add_bmi(add_age_years(records_frame(cohort_records())))))


def test_end_to_end_scenario():
    """Ages 20/30/60, bmi 24.2/19.5/27.8, bmi > 25 keeps the third patient"""
    print("🧪 Testing three-patient scenario...")

    df = add_bmi(add_age_years(records_frame(scenario_records())))

    assert df["age_years"].to_list() == [20, 30, 60]
    assert [round(v, 1) for v in df["bmi"].to_list()] == [24.2, 19.5, 27.8]

    heavy = filter_rows(df, pl.col("bmi") > 25)
    assert heavy.height == 1
    assert heavy["id"].to_list() == [2]

    print("✅ Scenario matches expected derivations")


def test_age_years_matches_rounded_division():
    df = add_age_years(records_frame(cohort_records()))

    for days, years in zip(df["age"].to_list(), df["age_years"].to_list()):
        assert years == round(days / 365.25)
    assert df.schema["age_years"] == pl.Int64()


def test_bmi_formula_and_filter():
    df = add_bmi(records_frame(cohort_records()))

    for height, weight, bmi in df.select(["height", "weight", "bmi"]).iter_rows():
        assert bmi == pytest.approx(weight / (height / 100) ** 2)

    obese = filter_rows(df, pl.col("bmi") > 30)
    assert obese.height > 0
    assert all(value > 30 for value in obese["bmi"].to_list())
    assert obese.height == sum(1 for value in df["bmi"].to_list() if value > 30)


def test_filter_excludes_nulls():
    df = pl.DataFrame({"bmi": [31.0, None, 20.0], "age_years": [40, 50, None]})

    assert filter_rows(df, pl.col("bmi") > 30).height == 1
    assert filter_rows(df, pl.col("bmi") > 10, pl.col("age_years") > 30).height == 1
    assert filter_rows(df).height == 3


def test_sort_rows_is_stable():
    df = pl.DataFrame({"age_years": [50, 60, 50, 60], "order": [1, 2, 3, 4]})

    sorted_df = sort_rows(df, by=["age_years"], descending=True)

    assert sorted_df["order"].to_list() == [2, 4, 1, 3]

    multi = sort_rows(df, by=["age_years", "order"], descending=[False, True])
    assert multi["order"].to_list() == [3, 1, 4, 2]


def test_select_columns():
    df = add_bmi(records_frame(scenario_records()))

    assert select_columns(df, ["bmi", "id"]).columns == ["bmi", "id"]


def test_drop_duplicates_is_idempotent():
    records = scenario_records() + [scenario_records()[0], scenario_records()[0]]
    df = records_frame(records)

    once = drop_duplicates(df)
    twice = drop_duplicates(once)

    assert once.height == 3
    assert twice.height == once.height
    assert once["id"].to_list() == [0, 1, 2]


def test_drop_duplicates_subset():
    records = [make_record(0, 7305, 1, 170, 70.0), make_record(1, 7305, 1, 170, 70.0)]
    df = records_frame(records)

    assert drop_duplicates(df).height == 2
    assert drop_duplicates(df, subset=["age", "gender", "height", "weight"]).height == 1


def test_recode_categories():
    records = scenario_records() + [make_record(3, 9000, 3, 150, 45.0, cholesterol=3)]
    df = recode_categories(records_frame(records))

    assert df.schema["gender"] == pl.Enum(GENDER_LEVELS)
    assert df.schema["cholesterol"] == pl.Enum(EXAM_LEVELS)
    assert df.schema["smoke"] == pl.Enum(["0", "1"])
    assert df["gender"].to_list() == ["female", "female", "male", None]
    assert df["cholesterol"].to_list()[-1] == "well above normal"
    assert df["cardio"].cast(pl.String).to_list() == ["0", "0", "1", "0"]

    # Levels sort in codebook order
    assert sort_rows(df.drop_nulls("gender"), by=["gender"], descending=True)[
        "gender"
    ].to_list()[0] == "male"


def test_apply_category_levels_restores_enums():
    df = pl.DataFrame(
        {"gender": ["male", "female"], "gluc": ["normal", "well above normal"], "age_group": ["70+", "5-14"]}
    )

    restored = apply_category_levels(df)

    assert restored.schema["gender"] == pl.Enum(GENDER_LEVELS)
    assert restored.schema["gluc"] == pl.Enum(EXAM_LEVELS)
    assert restored.schema["age_group"] == pl.Enum(AGE_GROUP_LABELS)


def test_compute_bin_edges():
    edges = compute_bin_edges(pl.Series("age_years", [20, 30, 35, 45, 60]))

    assert len(edges) == 5
    assert edges[0] == pytest.approx(19.96)
    assert edges[1:4] == pytest.approx([30.0, 40.0, 50.0])
    assert edges[-1] == pytest.approx(60.04)


def test_compute_bin_edges_constant_and_empty():
    edges = compute_bin_edges(pl.Series("age_years", [50, 50]))
    assert edges[0] == pytest.approx(49.95)
    assert edges[-1] == pytest.approx(50.05)
    assert edges == sorted(edges)

    zero_edges = compute_bin_edges(pl.Series("x", [0, 0]))
    assert zero_edges[0] == pytest.approx(-0.001)

    with pytest.raises(ValueError):
        compute_bin_edges(pl.Series("age_years", [None, None], dtype=pl.Int64))


def test_add_age_groups():
    df = tidy_cohort()

    assert df.schema["age_group"] == pl.Enum(AGE_GROUP_LABELS)
    assert df["age_group"].to_list() == ["5-14", "5-14", "15-49", "50-69", "70+"]


def test_add_age_groups_keeps_nulls_and_checks_labels():
    df = pl.DataFrame({"age_years": [20, None, 60]})

    grouped = add_age_groups(df)
    assert grouped["age_group"].to_list() == ["5-14", None, "70+"]

    with pytest.raises(ValueError):
        add_age_groups(df, labels=["young", "old"])


def test_aggregate_groups_ignores_nulls():
    df = pl.DataFrame({"k": ["a", "a", "b", "b"], "v": [1.0, None, 3.0, 5.0]})

    means = aggregate_groups(df, ["k"], "v").sort("k")
    assert means["mean_v"].to_list() == [1.0, 4.0]

    medians = aggregate_groups(df, ["k"], "v", how="median").sort("k")
    assert medians["median_v"].to_list() == [1.0, 4.0]

    counts = aggregate_groups(df, ["k"], "v", how="count", alias="n").sort("k")
    assert counts["n"].to_list() == [1, 2]

    with pytest.raises(ValueError):
        aggregate_groups(df, ["k"], "v", how="mode")


def test_summarise_cardio_groups():
    df = tidy_cohort()
    repeated = pl.concat([df, df.head(1)])

    groups = summarise_cardio_groups(repeated)

    assert groups.height == 5
    assert set(groups.columns) >= {"mean_bmi", "mean_weight", "mean_height", "count"}
    assert groups["count"].sum() == repeated.height

    first = groups.filter(
        (pl.col("age_group") == "5-14") & (pl.col("cholesterol") == "normal")
    )
    assert first["count"].to_list() == [2]
    assert first["mean_weight"].to_list() == [70.0]


def test_long_wide_round_trip():
    df = pl.DataFrame(
        {
            "id": [1, 2, 3],
            "cholesterol": ["normal", "above normal", "well above normal"],
            "gluc": ["normal", "normal", "above normal"],
        }
    )

    long_df = to_long(df)
    assert long_df.height == 6
    assert set(long_df.columns) == {"row_id", "id", "exam_type", "result"}
    assert set(long_df["exam_type"].to_list()) == {"cholesterol", "gluc"}

    wide_df = to_wide(long_df)
    assert_frame_equal(wide_df.select(df.columns).sort("id"), df)


def test_long_wide_round_trip_keeps_duplicate_rows():
    """Identical wide rows survive unpivot then pivot when nothing is de-duplicated"""
    df = pl.DataFrame(
        {
            "gender": ["female", "female", "male"],
            "cholesterol": ["normal", "normal", "above normal"],
            "gluc": ["normal", "normal", "well above normal"],
        }
    )

    wide_df = to_wide(to_long(df))

    assert wide_df.height == 3
    assert_frame_equal(wide_df.select(df.columns), df)


def test_to_wide_with_explicit_index():
    df = pl.DataFrame({"gender": ["male", "male"], "cholesterol": ["normal", "normal"], "gluc": ["normal", "normal"]})

    wide_df = to_wide(to_long(df), index=["gender"])

    assert "row_id" not in wide_df.columns
    assert_frame_equal(wide_df.select(df.columns), df)


def test_add_age_groups_edge_values_fall_in_lower_bin():
    df = pl.DataFrame({"age_years": [20, 30, 40, 50, 60]})

    grouped = add_age_groups(df)

    assert grouped["age_group"].to_list() == ["5-14", "5-14", "15-49", "50-69", "70+"]


def test_long_format_of_group_summary():
    groups = summarise_cardio_groups(tidy_cohort())

    long_df = to_long(groups)

    assert long_df.height == 2 * groups.height
    assert "cholesterol" not in long_df.columns
    assert "gluc" not in long_df.columns

    wide_df = to_wide(long_df)
    assert wide_df.height == groups.height


def test_get_summary_stats():
    df = tidy_cohort()

    stats = get_summary_stats(df, "records")
    assert stats["total_records"] == 5
    assert stats["age_years_mean"] == pytest.approx(38.0)

    group_stats = get_summary_stats(summarise_cardio_groups(df), "cardio_groups")
    assert group_stats["total_patients"] == 5

    with pytest.raises(ValueError):
        get_summary_stats(df, "unknown")
