"""
Pipeline Configuration

File locations and run options for the cardio pipeline.
Defaults match the tutorial's data/ and output/ folders; every path can be
overridden through environment variables (or a local .env file).
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cardio_pipeline.coreutils.env import env_get, env_get_int


class PipelineConfig(BaseModel):
    """Run configuration for the cardio pipeline"""

    cardio_data_path: str = Field(
        "data/cardio_train.csv",
        description="Semicolon-delimited cardiovascular patient records",
    )
    mortality_data_dir: str = Field(
        "data/ihme_data", description="Folder holding the IHME death-rate CSVs"
    )
    mortality_output_path: str = Field(
        "data/cardio_deaths.csv",
        description="Concatenated mortality table written by the aggregation job",
    )
    output_path: str = Field(
        "output/cardio_final.csv", description="Final long-format table"
    )
    log_dir: str = Field("logs", description="Directory for dated log files")
    obesity_bmi_threshold: float = Field(
        30.0, description="BMI above which a patient lands in the obese view"
    )
    apply_deduplication: bool = Field(
        False, description="Drop duplicate records instead of only counting them"
    )
    expected_rows: Optional[int] = Field(
        None, description="Row count the loaded table is expected to have"
    )

    @field_validator(
        "cardio_data_path",
        "mortality_data_dir",
        "mortality_output_path",
        "output_path",
        "log_dir",
    )
    @classmethod
    def validate_paths(cls, v):
        """Paths must be non-empty"""
        if not v or not v.strip():
            raise ValueError("Path settings must not be empty")
        return v

    @field_validator("obesity_bmi_threshold")
    @classmethod
    def validate_threshold(cls, v):
        if v <= 0:
            raise ValueError("BMI threshold must be positive")
        return v

    @field_validator("expected_rows")
    @classmethod
    def validate_expected_rows(cls, v):
        if v is not None and v < 0:
            raise ValueError("Expected row count must be non-negative")
        return v

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """
        Build configuration from environment variables

        Unset variables keep the field defaults.
        """
        overrides = {
            "cardio_data_path": env_get("CARDIO_DATA_PATH"),
            "mortality_data_dir": env_get("MORTALITY_DATA_DIR"),
            "mortality_output_path": env_get("MORTALITY_OUTPUT_PATH"),
            "output_path": env_get("CARDIO_OUTPUT_PATH"),
            "log_dir": env_get("LOG_DIR"),
            "expected_rows": env_get_int("EXPECTED_ROWS"),
        }
        return cls(**{key: value for key, value in overrides.items() if value is not None})
