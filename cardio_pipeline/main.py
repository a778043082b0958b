"""
Main Entry Point - Cardio Tidy Pipeline

Provides simple interfaces to run the complete pipeline or the mortality
aggregation job on its own.
"""

import logging

from cardio_pipeline.config import PipelineConfig
from cardio_pipeline.coreutils.logging import setup_logging
from cardio_pipeline.orchestration.pipeline import PipelineOrchestrator

logger = logging.getLogger(__name__)


def run_pipeline(mode: str = "full", config: PipelineConfig | None = None) -> dict:
    """
    Run the pipeline or the mortality aggregation job

    Args:
        mode: "full" or "mortality"
        config: Run configuration (built from environment if not provided)

    Returns:
        dict: Results and statistics
    """
    logger.info(f"🚀 Running {mode} pipeline")

    orchestrator = PipelineOrchestrator(config)

    if mode == "full":
        result = orchestrator.run_full()
        return {
            "records": result.records.height,
            "duplicates": result.duplicate_count,
            "obese_patients": result.obese_patients.height,
            "cardio_groups": result.cardio_groups.height,
            "final": result.final.height,
            "output_path": result.output_path,
        }

    elif mode == "mortality":
        mortality_df = orchestrator.run_mortality_aggregation()
        return {
            "mortality": mortality_df.height,
            "output_path": orchestrator.config.mortality_output_path,
        }

    elif mode == "status":
        return orchestrator.get_pipeline_status()

    else:
        raise ValueError(f"Unknown mode: {mode}")


def main():
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Cardio Tidy Pipeline")
    parser.add_argument(
        "--mode",
        choices=["full", "mortality", "status"],
        default="full",
        help="'full' runs both jobs, 'mortality' only builds cardio_deaths.csv, "
        "'status' reports configured inputs",
    )
    parser.add_argument(
        "--dedupe",
        action="store_true",
        help="Drop duplicate records instead of only counting them",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args()

    config = PipelineConfig.from_env()
    if args.dedupe:
        config = config.model_copy(update={"apply_deduplication": True})

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO, log_dir=config.log_dir
    )

    try:
        results = run_pipeline(args.mode, config)
        print(f"✅ Pipeline completed: {results}")
        return 0

    except Exception as e:
        logger.error(f"❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
