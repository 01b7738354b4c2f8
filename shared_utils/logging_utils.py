"""
Standardized logging utilities for the forest treatment constraint analysis.

This module provides consistent logging configuration across the constraint
components while allowing per-component loggers and optional log files.

Author: Diego Bengochea
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = 'forest_constraints'


def setup_logging(
    level: Union[str, int] = 'INFO',
    component_name: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    format_style: str = 'standard'
) -> logging.Logger:
    """
    Setup standardized logging configuration for analysis components.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        component_name: Name of the component (for logger identification)
        log_file: Optional file path for logging output
        format_style: Logging format style ('standard', 'detailed', 'simple')

    Returns:
        logging.Logger: Configured logger instance

    Examples:
        >>> logger = setup_logging('INFO', 'constraint_analysis')
        >>> logger = setup_logging('DEBUG', 'watersheds', 'watersheds.log')
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    formats = {
        'standard': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'detailed': '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
        'simple': '%(levelname)s: %(message)s'
    }

    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplication
    if root_logger.handlers:
        root_logger.handlers.clear()

    root_logger.setLevel(level)

    formatter = logging.Formatter(
        formats.get(format_style, formats['standard']),
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return get_logger(component_name) if component_name else logging.getLogger(ROOT_LOGGER_NAME)


def get_logger(component_name: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        component_name: Name of the component

    Returns:
        logging.Logger: Component logger

    Examples:
        >>> logger = get_logger('constraint_analysis')
        >>> logger = get_logger('constraint_analysis.masks')
    """
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{component_name}')


def log_pipeline_start(logger: logging.Logger, pipeline_name: str, config: dict = None) -> None:
    """
    Log standardized pipeline start message.

    Args:
        logger: Logger instance
        pipeline_name: Name of the pipeline being started
        config: Optional configuration dictionary to log key parameters
    """
    logger.info("=" * 80)
    logger.info(f"STARTING PIPELINE: {pipeline_name.upper()}")
    logger.info("=" * 80)

    if config:
        logger.info("Pipeline configuration:")
        for key, value in config.items():
            if key.startswith('_'):
                continue
            if isinstance(value, dict) and key != 'constraints':
                logger.info(f"  {key}: {len(value)} parameters")
            else:
                logger.info(f"  {key}: {value}")


def log_pipeline_end(logger: logging.Logger, pipeline_name: str, success: bool = True, elapsed_time: float = None) -> None:
    """
    Log standardized pipeline completion message.

    Args:
        logger: Logger instance
        pipeline_name: Name of the completed pipeline
        success: Whether pipeline completed successfully
        elapsed_time: Optional elapsed time in seconds
    """
    logger.info("=" * 80)

    if success:
        status_msg = f"✅ PIPELINE COMPLETED SUCCESSFULLY: {pipeline_name.upper()}"
    else:
        status_msg = f"❌ PIPELINE FINISHED WITH SKIPPED REGIONS OR ERRORS: {pipeline_name.upper()}"

    logger.info(status_msg)

    if elapsed_time:
        hours = int(elapsed_time // 3600)
        minutes = int((elapsed_time % 3600) // 60)
        seconds = int(elapsed_time % 60)
        logger.info(f"Total execution time: {hours:02d}:{minutes:02d}:{seconds:02d}")

    logger.info("=" * 80)


def log_section(logger: logging.Logger, section_name: str) -> None:
    """Log a standardized section header."""
    logger.info(f"{'='*20} {section_name.upper()} {'='*20}")
