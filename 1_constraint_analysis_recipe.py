#!/usr/bin/env python3
"""
Recipe: Treatable Area Constraint Analysis

Reproduces all constraint analysis results from the raw datasets:
1. Treatable area analysis (per-stage statistics, treatable polygons)
2. Land-cover area per class and region
3. HUC-12 watershed intersection report

Usage:
    python 1_constraint_analysis_recipe.py [OPTIONS]

Examples:
    # Run complete analysis
    python 1_constraint_analysis_recipe.py

    # Skip the watershed report
    python 1_constraint_analysis_recipe.py --skip-watersheds

Author: Diego Bengochea
"""

import argparse
import sys
import time
from pathlib import Path

# Add repo root to path for absolute imports
sys.path.insert(0, str(Path(__file__).parent))

# Import utilities
from shared_utils.central_data_paths_constants import REGIONS_FILE, LANDCOVER_FILE, HUC12_FILE
from shared_utils.logging_utils import setup_logging

# Import component scripts
from constraint_model.scripts.run_constraint_analysis import main as run_constraint_analysis_main
from constraint_model.scripts.run_landcover_areas import main as run_landcover_areas_main
from constraint_model.scripts.run_watershed_intersection import main as run_watershed_intersection_main


class ConstraintAnalysisRecipe:
    """
    Recipe for the complete constraint analysis.

    Runs the component scripts with their default configuration and tracks
    the outcome of every stage.
    """

    def __init__(self, log_level: str = "INFO"):
        """
        Initialize constraint analysis recipe.

        Args:
            log_level: Logging level
        """
        self.logger = setup_logging(
            level=log_level,
            component_name='constraint_recipe'
        )

        # Track stage results
        self.stage_results = {}

        self.logger.info("Initialized Constraint Analysis Recipe")

    def validate_prerequisites(self, need_watersheds: bool = True) -> bool:
        """
        Validate that required input data exists.

        Returns:
            bool: True if prerequisites are met
        """
        self.logger.info("Validating prerequisites for constraint analysis...")

        for description, path in [("Regions file", REGIONS_FILE), ("Land cover raster", LANDCOVER_FILE)]:
            if not path.exists():
                self.logger.error(f"{description} not found: {path}")
                return False
            self.logger.info(f"✅ {description} found")

        if need_watersheds and not HUC12_FILE.exists():
            self.logger.warning(f"HUC-12 watersheds not found: {HUC12_FILE}")
            self.logger.warning("Watershed intersection report will fail")

        return True

    def run_stage(self, stage_name: str, stage_main) -> bool:
        """
        Run one component script with its default arguments.

        Returns:
            bool: True if the stage succeeded
        """
        self.logger.info(f"\n{'='*60}")
        self.logger.info(f"Starting {stage_name}")
        self.logger.info(f"{'='*60}")

        stage_start = time.time()
        saved_argv = sys.argv
        sys.argv = [saved_argv[0]]
        try:
            success = bool(stage_main())
        except Exception as e:
            self.logger.error(f"{stage_name} failed with error: {str(e)}")
            success = False
        finally:
            sys.argv = saved_argv

        stage_time = time.time() - stage_start
        self.stage_results[stage_name] = {
            'success': success,
            'duration_minutes': stage_time / 60,
        }

        if success:
            self.logger.info(f"{stage_name} completed successfully in {stage_time/60:.2f} minutes")
        else:
            self.logger.error(f"{stage_name} failed after {stage_time/60:.2f} minutes")
        return success


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Treatable area constraint analysis recipe")
    parser.add_argument('--skip-landcover', action='store_true', help='Skip the land-cover area table')
    parser.add_argument('--skip-watersheds', action='store_true', help='Skip the watershed report')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO')
    return parser.parse_args()


def main():
    """Main entry point for constraint analysis recipe."""
    args = parse_arguments()
    start_time = time.time()

    recipe = ConstraintAnalysisRecipe(log_level=args.log_level)

    if not recipe.validate_prerequisites(need_watersheds=not args.skip_watersheds):
        recipe.logger.error("Prerequisites validation failed")
        sys.exit(1)

    overall_success = recipe.run_stage("Treatable Area Analysis", run_constraint_analysis_main)

    if not args.skip_landcover:
        success = recipe.run_stage("Land-Cover Areas", run_landcover_areas_main)
        overall_success = overall_success and success

    if not args.skip_watersheds:
        success = recipe.run_stage("Watershed Intersection", run_watershed_intersection_main)
        overall_success = overall_success and success

    if overall_success:
        elapsed_time = time.time() - start_time
        recipe.logger.info(f"Constraint analysis recipe completed successfully in {elapsed_time/60:.2f} minutes!")
    else:
        recipe.logger.error("Constraint analysis recipe failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
