#!/usr/bin/env python3
"""
Run Pipeline Script

Main entry point for building the Home Credit feature tables.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from homecredit_features.config.loader import load_config
from homecredit_features.core.exceptions import PipelineException
from homecredit_features.core.logger import setup_logging, get_logger
from homecredit_features.pipeline.orchestrator import PipelineOrchestrator


DEFAULT_CONFIG = Path(__file__).parent.parent / "config" / "pipeline_config.yaml"


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Home Credit Feature Engineering Pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with the default configuration
  python scripts/run_pipeline.py

  # Read the five CSV files from another directory
  python scripts/run_pipeline.py --data-dir /data/home-credit

  # Build the tables without writing anything
  python scripts/run_pipeline.py --no-persist

  # Check that the configuration and input files are in place
  python scripts/run_pipeline.py --dry-run
        """
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=str(DEFAULT_CONFIG),
        help='Path to the YAML configuration file'
    )

    parser.add_argument(
        '--data-dir', '-d',
        type=str,
        default=None,
        help='Directory holding the five input CSV files (overrides data.data_dir)'
    )

    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=None,
        help='Base directory for run outputs (overrides output.base_dir)'
    )

    parser.add_argument(
        '--no-persist',
        action='store_true',
        help='Run all stages but do not write any output'
    )

    parser.add_argument(
        '--save-aggregates',
        action='store_true',
        help='Also write the three aggregate tables'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate configuration and input files without running the pipeline'
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    cli_overrides = {
        'data.data_dir': args.data_dir,
        'output.base_dir': args.output_dir,
        'output.persist': False if args.no_persist else None,
        'output.save_aggregates': True if args.save_aggregates else None,
        'logging.level': 'DEBUG' if args.verbose else None,
    }
    config_path = args.config if Path(args.config).exists() else None
    config = load_config(config_path, cli_overrides=cli_overrides)

    setup_logging(config=config.logging.model_dump())

    logger = get_logger('run_pipeline')
    logger.info(f"Config: {config_path or 'built-in defaults'}")
    logger.info(f"Data directory: {config.data.data_dir}")

    try:
        orchestrator = PipelineOrchestrator(config)

        # Dry run - validate only
        if args.dry_run:
            logger.info("Dry run mode - validating configuration and inputs")
            orchestrator.check_inputs()
            logger.info(f"Derived columns: {len(orchestrator.derived_columns)}")
            logger.info("Configuration valid!")
            return 0

        result = orchestrator.run()

        logger.info("Pipeline completed successfully!")
        print(result.summary())
        return 0

    except PipelineException as e:
        logger.error(f"Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
