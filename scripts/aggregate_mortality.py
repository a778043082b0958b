"""
Aggregate IHME cardiovascular death rates into one CSV.
Reads every CSV in the mortality data folder (data/ihme_data by default),
keeps the five SDI location categories and writes data/cardio_deaths.csv.
"""

import sys

from cardio_pipeline.config import PipelineConfig
from cardio_pipeline.coreutils.logging import setup_logging
from cardio_pipeline.orchestration.pipeline import PipelineOrchestrator


def main() -> int:
    """Build cardio_deaths.csv from the IHME exports"""
    config = PipelineConfig.from_env()
    setup_logging(log_dir=config.log_dir)

    print("Aggregating IHME death-rate files...")

    try:
        mortality_df = PipelineOrchestrator(config).run_mortality_aggregation()
    except FileNotFoundError as e:
        print(f"\n❌ {e}")
        print(" Download the IHME exports into that folder first")
        raise
    except Exception as e:
        print(f"\n❌ Aggregation failed: {e}")
        raise

    print(f"\n📊 Output file information:")
    print(f"  File: {config.mortality_output_path}")
    print(f"  Rows: {mortality_df.height}")
    print(f"  Columns: {mortality_df.columns}")
    print(f"✅ Aggregation completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
