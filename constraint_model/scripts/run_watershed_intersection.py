#!/usr/bin/env python3
"""
Watershed Intersection Script

Reports the HUC-12 subwatersheds substantially covered by each region of
interest, with subwatershed area, intersected area and covered share.

Usage:
    python run_watershed_intersection.py [OPTIONS]

Examples:
    python run_watershed_intersection.py
    python run_watershed_intersection.py --min-fraction 0.5

Author: Diego Bengochea
"""

import sys
import argparse
import time
from pathlib import Path

import geopandas as gpd

# Add repo root to path for absolute imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from constraint_model.core.constraint_pipeline import regions_from_config
from constraint_model.core.exporter import export_table
from constraint_model.core.watersheds import DEFAULT_MIN_FRACTION, watershed_report
from shared_utils import setup_logging, load_config, get_config_value, validate_file_exists
from shared_utils.central_data_paths_constants import HUC12_FILE, WATERSHED_RESULTS_DIR


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="HUC-12 watershed intersection with regions of interest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file'
    )

    parser.add_argument(
        '--watersheds-file',
        type=str,
        help='HUC-12 polygons (overrides config)'
    )

    parser.add_argument(
        '--min-fraction',
        type=float,
        help='Minimum share of a watershed inside a region (0-1)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Output directory (overrides config)'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level'
    )

    return parser.parse_args()


def validate_arguments(args: argparse.Namespace) -> bool:
    """Validate command line arguments."""
    if args.config and not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        return False

    if args.min_fraction is not None and not 0 <= args.min_fraction <= 1:
        print("Error: --min-fraction must be within [0, 1]")
        return False

    return True


def main():
    """Main entry point."""
    args = parse_arguments()

    if not validate_arguments(args):
        return False

    logger = setup_logging(level=args.log_level, component_name='watersheds')

    try:
        start_time = time.time()
        config = load_config(args.config, component_name='constraint_model')

        watersheds_file = validate_file_exists(
            args.watersheds_file or get_config_value(config, 'data.watersheds_file') or HUC12_FILE,
            "HUC-12 watersheds"
        )
        min_fraction = args.min_fraction
        if min_fraction is None:
            min_fraction = get_config_value(config, 'watersheds.min_fraction', DEFAULT_MIN_FRACTION)
        output_dir = (args.output_dir or get_config_value(config, 'output.watershed_output_dir')
                      or WATERSHED_RESULTS_DIR)
        prefix = get_config_value(config, 'output.prefix', 'constraints')

        regions = regions_from_config(config)
        if not regions:
            logger.error("No regions selected, nothing to report")
            return False

        bounds = gpd.GeoSeries([r.geometry for r in regions]).total_bounds
        watersheds = gpd.read_file(watersheds_file, bbox=tuple(bounds))
        logger.info(f"Loaded {len(watersheds)} watersheds around {len(regions)} regions")

        report = watershed_report(watersheds, regions, min_fraction)
        export_table(report, output_dir, prefix, 'watersheds')

        logger.info(f"Watershed intersection completed in {time.time() - start_time:.2f} seconds")
        return True

    except Exception as e:
        logger.error(f"Watershed intersection failed: {str(e)}")
        return False


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
