#!/usr/bin/env python3
"""
Treatable Area Constraint Analysis Script

Main entry point for running the constraint analysis over the configured
regions of interest. Writes the per-region statistics table, the treatable
area polygons, the land-cover area breakdown and a run summary.

Usage:
    python run_constraint_analysis.py [OPTIONS]

Examples:
    # Run with default config
    python run_constraint_analysis.py

    # Only some states, steeper slope limit
    python run_constraint_analysis.py --filter-field STATE --filter-values Montana Idaho --max-slope 40

    # Shapefile output in a custom directory
    python run_constraint_analysis.py --output-dir ./results --vector-driver "ESRI Shapefile"

Author: Diego Bengochea
"""

import sys
import argparse
import time
from pathlib import Path
from typing import Any, Dict

# Add repo root to path for absolute imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Component imports
from constraint_model.core.constraint_pipeline import ConstraintAnalysisPipeline
from constraint_model.core.errors import InvalidParameter
from shared_utils import setup_logging, load_config, merge_config


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Treatable Area Constraint Analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                          # Run with default settings
  %(prog)s --config custom.yaml                     # Custom configuration
  %(prog)s --filter-field STATE --filter-values Montana
  %(prog)s --road-buffer 1000 --riparian-buffer 150 # Buffers in feet
        """
    )

    # Core configuration
    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file'
    )

    # Regions
    parser.add_argument(
        '--regions-file',
        type=str,
        help='Vector file with the regions of interest (overrides config)'
    )

    parser.add_argument(
        '--filter-field',
        type=str,
        help='Region attribute used to select regions (e.g. STATE, NAME)'
    )

    parser.add_argument(
        '--filter-values',
        type=str,
        nargs='+',
        help='Values of --filter-field to keep'
    )

    # Constraint parameters
    parser.add_argument(
        '--landcover-classes',
        type=int,
        nargs='+',
        help='Land-cover class codes treated as candidate cover'
    )

    parser.add_argument(
        '--max-slope',
        type=float,
        help='Maximum percent slope'
    )

    parser.add_argument(
        '--road-buffer',
        type=float,
        help='Road buffer distance in feet'
    )

    parser.add_argument(
        '--riparian-buffer',
        type=float,
        help='Riparian buffer distance in feet'
    )

    parser.add_argument(
        '--gap-status',
        type=int,
        nargs='+',
        help='PAD-US GAP status codes excluded in the protected stage'
    )

    # Processing and output
    parser.add_argument(
        '--num-workers',
        type=int,
        help='Number of regions processed in parallel'
    )

    parser.add_argument(
        '--tile-size',
        type=int,
        help='Tile size in cells for processing large regions'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Output directory (overrides config)'
    )

    parser.add_argument(
        '--prefix',
        type=str,
        help='Prefix of the exported files'
    )

    parser.add_argument(
        '--vector-driver',
        choices=['GPKG', 'ESRI Shapefile', 'GeoJSON'],
        help='Vector output format'
    )

    # Logging
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level'
    )

    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )

    return parser.parse_args()


def validate_arguments(args: argparse.Namespace) -> bool:
    """Validate command line arguments."""
    if args.config and not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        return False

    if args.regions_file and not Path(args.regions_file).exists():
        print(f"Error: Regions file not found: {args.regions_file}")
        return False

    if bool(args.filter_field) != bool(args.filter_values):
        print("Error: --filter-field and --filter-values must be given together")
        return False

    if args.num_workers is not None and args.num_workers < 1:
        print("Error: --num-workers must be at least 1")
        return False

    if args.tile_size is not None and args.tile_size < 1:
        print("Error: --tile-size must be at least 1")
        return False

    return True


class ConstraintAnalysisRunner:
    """
    Constraint analysis runner.

    Loads the configuration, applies command line overrides and runs the
    pipeline over every configured region.
    """

    def __init__(self, args: argparse.Namespace):
        """Initialize pipeline runner."""
        self.log_level = 'ERROR' if args.quiet else args.log_level
        self.logger = setup_logging(
            level=self.log_level,
            component_name='constraint_analysis'
        )

        self.args = args

        self.logger.info("ConstraintAnalysisRunner initialized")

    def _collect_overrides(self) -> Dict[str, Any]:
        """Configuration overrides from the command line."""
        args = self.args
        overrides: Dict[str, Any] = {'logging': {'level': self.log_level}}

        constraints = {
            'landcover_classes': args.landcover_classes,
            'max_slope_percent': args.max_slope,
            'road_buffer_distance': args.road_buffer,
            'riparian_buffer_distance': args.riparian_buffer,
            'gap_status_codes': args.gap_status,
        }
        overrides['constraints'] = {k: v for k, v in constraints.items() if v is not None}

        regions = {
            'file': args.regions_file,
            'filter_field': args.filter_field,
            'filter_values': args.filter_values,
        }
        overrides['regions'] = {k: v for k, v in regions.items() if v is not None}

        processing = {'num_workers': args.num_workers, 'tile_size': args.tile_size}
        overrides['processing'] = {k: v for k, v in processing.items() if v is not None}

        output = {
            'output_dir': args.output_dir,
            'prefix': args.prefix,
            'vector_driver': args.vector_driver,
        }
        overrides['output'] = {k: v for k, v in output.items() if v is not None}

        return overrides

    def create_pipeline_config(self) -> dict:
        """Create pipeline configuration with argument overrides."""
        config = load_config(self.args.config, component_name='constraint_model')
        return merge_config(config, self._collect_overrides())

    def run_pipeline(self) -> bool:
        """
        Execute the constraint analysis pipeline.

        Returns:
            bool: True if every region was processed
        """
        try:
            self.logger.info("Starting constraint analysis pipeline...")
            start_time = time.time()

            config = self.create_pipeline_config()
            pipeline = ConstraintAnalysisPipeline(config)
            success = pipeline.run_full_pipeline()

            duration = time.time() - start_time
            status = "completed successfully" if success else "completed with skipped regions"
            pipeline.logger.info(f"Constraint analysis {status} in {duration:.2f} seconds")
            return success

        except InvalidParameter as e:
            self.logger.error(f"Invalid constraint parameters: {e}")
            return False
        except Exception as e:
            self.logger.error(f"Pipeline execution failed: {str(e)}")
            return False


def main():
    """Main entry point."""
    args = parse_arguments()

    if not validate_arguments(args):
        return False

    try:
        runner = ConstraintAnalysisRunner(args)
        success = runner.run_pipeline()

        if success:
            print("\n✅ Constraint analysis completed successfully")
            return True
        else:
            print("\n❌ Constraint analysis failed or skipped regions")
            return False

    except KeyboardInterrupt:
        print("\n⚠️ Pipeline interrupted by user")
        return False
    except Exception as e:
        print(f"\n💥 Pipeline failed with error: {str(e)}")
        return False


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
