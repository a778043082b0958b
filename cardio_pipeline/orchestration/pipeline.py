"""
Pipeline Orchestrator - Cardio Tidy Pipeline

Two workflows:
1. Mortality Aggregation (auxiliary job):
   - Lists the IHME death-rate exports in the mortality data folder
   - Concatenates, cleans and writes cardio_deaths.csv

2. Cardio Pipeline:
   - Load -> audit -> derive -> recode -> filter/sort -> bucket ->
     aggregate -> mortality join -> reshape -> export
   - Each step produces a new named table; any failure aborts the run
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any
import logging
import polars as pl

from cardio_pipeline.config import PipelineConfig
from cardio_pipeline.coreutils.logging import log_function_call

# Extract layer imports
from cardio_pipeline.extract.file_reader import (
    load_cardio_data,
    list_mortality_files,
    load_mortality_files,
)

# Transform layer imports
from cardio_pipeline.transformation.transformers import (
    drop_duplicates,
    add_age_years,
    add_bmi,
    recode_categories,
    apply_category_levels,
    filter_rows,
    select_columns,
    sort_rows,
    add_age_groups,
    summarise_cardio_groups,
    to_long,
    get_summary_stats,
)
from cardio_pipeline.transformation.mortality import (
    clean_mortality,
    mean_mortality_rates,
    join_mortality,
)
from cardio_pipeline.transformation.validators import (
    count_missing,
    count_duplicates,
    check_row_count,
    validate_raw_schema,
)

# Load layer imports
from cardio_pipeline.load.local_storage import save_csv

logger = logging.getLogger(__name__)

OBESE_VIEW_COLUMNS = ["age_years", "gender", "height", "weight", "bmi", "cardio"]


@dataclass(frozen=True)
class PipelineResult:
    """Named tables produced by one pipeline run"""

    records: pl.DataFrame
    missing_counts: Dict[str, int]
    duplicate_count: int
    tidy_records: pl.DataFrame
    obese_patients: pl.DataFrame
    cardio_groups: pl.DataFrame
    mortality: pl.DataFrame
    mortality_rates: pl.DataFrame
    joined: pl.DataFrame
    final: pl.DataFrame
    output_path: str


class PipelineOrchestrator:
    """Orchestrates the cardio pipeline and the mortality aggregation job"""

    def __init__(self, config: Optional[PipelineConfig] = None):
        """
        Initialize the Pipeline orchestrator

        Args:
            config: Run configuration (built from environment if not provided)
        """
        self.config = config or PipelineConfig.from_env()
        log_function_call("PipelineOrchestrator", **self.config.model_dump())

    def load_mortality(self) -> pl.DataFrame:
        """
        List, concatenate and clean the mortality exports

        Returns:
            pl.DataFrame: Cleaned mortality table
        """
        files = list_mortality_files(self.config.mortality_data_dir)
        raw_mortality_df = load_mortality_files(files)
        return clean_mortality(raw_mortality_df)

    def run_mortality_aggregation(self) -> pl.DataFrame:
        """
        Build the companion mortality CSV

        Returns:
            pl.DataFrame: Cleaned mortality table that was written
        """
        logger.info("🚀 Starting Mortality Aggregation")
        logger.info("=" * 50)

        try:
            mortality_df = self.load_mortality()

            stats = get_summary_stats(mortality_df, "mortality")
            logger.info(
                f"Mortality Stats: {stats['total_records']} rows, "
                f"{stats['location_unique']} locations, years {stats['year_range']}"
            )

            save_csv(mortality_df, self.config.mortality_output_path)
            logger.info(
                f"✅ Mortality aggregation completed: {self.config.mortality_output_path}"
            )
            return mortality_df

        except Exception as e:
            logger.error(f"❌ Mortality aggregation failed: {e}")
            raise

    def run(self, mortality_df: Optional[pl.DataFrame] = None) -> PipelineResult:
        """
        Run the cardio pipeline end to end

        Args:
            mortality_df: Cleaned mortality table (loaded from the mortality
                data folder if not provided)

        Returns:
            PipelineResult: Every named table of the run
        """
        logger.info("🚀 Starting Cardio Pipeline")
        logger.info("=" * 50)

        try:
            # Step 1: Load
            logger.info("🔄 Step 1: Loading cardio records...")
            records_df = load_cardio_data(self.config.cardio_data_path)
            validate_raw_schema(records_df)
            check_row_count(records_df, self.config.expected_rows, "load")

            # Step 2: Missing-value audit
            logger.info("🔄 Step 2: Auditing missing values...")
            missing_counts = count_missing(records_df)

            # Step 3: De-duplication check
            logger.info("🔄 Step 3: Checking duplicates...")
            duplicate_count = count_duplicates(records_df)
            if self.config.apply_deduplication:
                records_df = drop_duplicates(records_df)
                expected = (
                    self.config.expected_rows - duplicate_count
                    if self.config.expected_rows is not None
                    else None
                )
                check_row_count(records_df, expected, "de-duplication")

            # Steps 4-6: Derive and recode
            logger.info("🔄 Steps 4-6: Deriving age_years, bmi and recoding categories...")
            tidy_df = recode_categories(add_bmi(add_age_years(records_df)))

            # Step 7: Filter / select / sort
            logger.info("🔄 Step 7: Selecting obese patients...")
            obese_df = sort_rows(
                select_columns(
                    filter_rows(tidy_df, pl.col("bmi") > self.config.obesity_bmi_threshold),
                    OBESE_VIEW_COLUMNS,
                ),
                by=["age_years"],
                descending=True,
            )

            # Step 8: Bucketing
            logger.info("🔄 Step 8: Bucketing age groups...")
            tidy_df = add_age_groups(tidy_df)

            records_stats = get_summary_stats(tidy_df, "records")
            logger.info(
                f"Record Stats: {records_stats['total_records']} records, "
                f"mean age {records_stats['age_years_mean']}, mean bmi {records_stats['bmi_mean']}"
            )

            # Step 9: Group / aggregate
            logger.info("🔄 Step 9: Aggregating cardio groups...")
            groups_df = summarise_cardio_groups(tidy_df)

            # Step 10: External merge
            logger.info("🔄 Step 10: Joining mortality rates...")
            if mortality_df is None:
                mortality_df = self.load_mortality()
            rates_df = mean_mortality_rates(mortality_df)
            joined_df = apply_category_levels(join_mortality(groups_df, rates_df))
            check_row_count(joined_df, groups_df.height, "mortality join")

            # Step 11: Reshape
            logger.info("🔄 Step 11: Reshaping to long format...")
            final_df = to_long(joined_df)

            # Step 12: Export
            logger.info("🔄 Step 12: Exporting final table...")
            output_path = save_csv(final_df, self.config.output_path)

            logger.info("🎉 Cardio Pipeline completed successfully!")

            return PipelineResult(
                records=records_df,
                missing_counts=missing_counts,
                duplicate_count=duplicate_count,
                tidy_records=tidy_df,
                obese_patients=obese_df,
                cardio_groups=groups_df,
                mortality=mortality_df,
                mortality_rates=rates_df,
                joined=joined_df,
                final=final_df,
                output_path=output_path,
            )

        except Exception as e:
            logger.error(f"❌ Cardio Pipeline failed: {e}")
            raise

    def run_full(self) -> PipelineResult:
        """Run the mortality aggregation, then the cardio pipeline on its output"""
        mortality_df = self.run_mortality_aggregation()
        return self.run(mortality_df)

    def get_pipeline_status(self) -> Dict[str, Any]:
        """
        Get current pipeline status

        Returns:
            dict: Configured inputs and whether they exist
        """
        import os

        return {
            "cardio_data_present": os.path.exists(self.config.cardio_data_path),
            "mortality_dir_present": os.path.isdir(self.config.mortality_data_dir),
            "output_path": self.config.output_path,
            "mortality_output_path": self.config.mortality_output_path,
            "apply_deduplication": self.config.apply_deduplication,
        }
