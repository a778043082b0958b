"""
Test Load Layer - CSV export
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import polars as pl
import pytest
from cardio_pipeline.load.local_storage import save_csv
from cardio_pipeline.transformation.schemas import GENDER_LEVELS


def test_save_csv(tmp_path):
    df = pl.DataFrame(
        {"id": [1, 2, 3], "gender": ["female", "male", "female"], "bmi": [24.2, 19.5, 27.8]}
    ).with_columns(pl.col("gender").cast(pl.Enum(GENDER_LEVELS)))

    target = str(tmp_path / "nested" / "output" / "final.csv")
    saved = save_csv(df, target)

    assert saved == target
    assert os.path.exists(target)

    with open(target) as f:
        header = f.readline().strip()
    assert header == "id,gender,bmi"

    loaded = pl.read_csv(target)
    assert loaded.height == 3
    assert loaded["gender"].to_list() == ["female", "male", "female"]


def test_save_csv_unwritable_destination(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a folder")

    with pytest.raises(OSError):
        save_csv(pl.DataFrame({"a": [1]}), str(blocker / "final.csv"))
