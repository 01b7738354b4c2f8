"""
Shared utilities for the forest treatment constraint analysis.

This package provides common functionality used across components:
- Standardized logging configuration
- Configuration file loading utilities
- Path handling utilities
- Central default data paths

Author: Diego Bengochea
"""

from .logging_utils import setup_logging, get_logger, log_pipeline_start, log_pipeline_end, log_section
from .config_utils import load_config, validate_config, get_config_value, merge_config, save_config
from .path_utils import ensure_directory, resolve_path, resolve_paths, validate_file_exists

__version__ = "1.0.0"

__all__ = [
    "setup_logging",
    "get_logger",
    "log_pipeline_start",
    "log_pipeline_end",
    "log_section",
    "load_config",
    "validate_config",
    "get_config_value",
    "merge_config",
    "save_config",
    "ensure_directory",
    "resolve_path",
    "resolve_paths",
    "validate_file_exists"
]
