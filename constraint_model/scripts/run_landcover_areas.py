#!/usr/bin/env python3
"""
Land-Cover Area Script

Tabulates the area of every land-cover class inside each region of interest.

Usage:
    python run_landcover_areas.py [OPTIONS]

Examples:
    python run_landcover_areas.py
    python run_landcover_areas.py --landcover-file nlcd_2021.tif --output-dir ./tables

Author: Diego Bengochea
"""

import sys
import argparse
import time
from pathlib import Path

# Add repo root to path for absolute imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from constraint_model.core.constraint_pipeline import regions_from_config
from constraint_model.core.data_model import DEFAULT_TILE_SIZE
from constraint_model.core.data_sources import GeoTiffRasterSource
from constraint_model.core.exporter import export_landcover_areas
from constraint_model.core.landcover import landcover_area_report
from shared_utils import setup_logging, load_config, get_config_value, resolve_path
from shared_utils.central_data_paths_constants import LANDCOVER_FILE, LANDCOVER_RESULTS_DIR


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Land-cover area per class and region",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file'
    )

    parser.add_argument(
        '--landcover-file',
        type=str,
        help='Land-cover raster (overrides config)'
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

    if args.landcover_file and not Path(args.landcover_file).exists():
        print(f"Error: Land cover file not found: {args.landcover_file}")
        return False

    return True


def main():
    """Main entry point."""
    args = parse_arguments()

    if not validate_arguments(args):
        return False

    logger = setup_logging(level=args.log_level, component_name='landcover_areas')

    try:
        start_time = time.time()
        config = load_config(args.config, component_name='constraint_model')

        landcover_file = args.landcover_file or get_config_value(config, 'data.landcover_file') or LANDCOVER_FILE
        output_dir = (args.output_dir or get_config_value(config, 'output.landcover_output_dir')
                      or LANDCOVER_RESULTS_DIR)
        prefix = get_config_value(config, 'output.prefix', 'constraints')
        tile_size = int(get_config_value(config, 'processing.tile_size', DEFAULT_TILE_SIZE))

        regions = regions_from_config(config)
        logger.info(f"Tabulating land-cover areas of {len(regions)} regions from {landcover_file}")

        landcover = GeoTiffRasterSource(resolve_path(landcover_file), name='land cover')
        report = landcover_area_report(regions, landcover, tile_size=tile_size)
        export_landcover_areas(report, output_dir, prefix)

        logger.info(f"Land-cover areas completed in {time.time() - start_time:.2f} seconds")
        return len(report) > 0

    except Exception as e:
        logger.error(f"Land-cover area tabulation failed: {str(e)}")
        return False


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
