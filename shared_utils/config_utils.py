"""
Configuration utilities for the forest treatment constraint analysis.

This module provides YAML configuration loading, validation and dot-path
lookup shared by the constraint components and their scripts.

Author: Diego Bengochea
"""

import yaml
import os
import copy
from pathlib import Path
from typing import Dict, Any, Optional, Union
import logging

CONFIG_ENV_VAR = 'FOREST_CONSTRAINTS_CONFIG'


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    component_name: Optional[str] = None,
    default_config_name: str = "config.yaml"
) -> Dict[str, Any]:
    """
    Load configuration from YAML file with standardized search patterns.

    Search order:
    1. Explicit config_path if provided
    2. Component package directory + default_config_name
    3. Current directory + default_config_name
    4. Environment variable FOREST_CONSTRAINTS_CONFIG

    Args:
        config_path: Explicit path to configuration file
        component_name: Name of component package (for automatic config discovery)
        default_config_name: Default config filename to search for

    Returns:
        Dict[str, Any]: Configuration dictionary

    Raises:
        FileNotFoundError: If no configuration file is found
        yaml.YAMLError: If configuration file is invalid YAML

    Examples:
        >>> config = load_config()
        >>> config = load_config("custom_config.yaml")
        >>> config = load_config(component_name="constraint_model")
    """
    logger = logging.getLogger(__name__)

    search_paths = []

    if config_path:
        search_paths.append(Path(config_path))

    if component_name:
        repo_root = Path(__file__).resolve().parent.parent
        search_paths.extend([
            repo_root / component_name / default_config_name,
            Path(component_name) / default_config_name,
        ])

    search_paths.append(Path(default_config_name))

    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        search_paths.append(Path(env_config))

    config_file = None
    for path in search_paths:
        if path.exists():
            config_file = path
            logger.debug(f"Found configuration file: {config_file}")
            break
        # An explicit path that does not exist is an error, not a fallback
        if config_path and path == Path(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if not config_file:
        searched_paths = [str(p) for p in search_paths]
        raise FileNotFoundError(
            f"Configuration file not found. Searched paths: {searched_paths}"
        )

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in {config_file}: {e}")

    config['_meta'] = {
        'config_file': str(config_file.absolute()),
        'component_name': component_name,
    }

    logger.info(f"Loaded configuration from: {config_file}")
    return config


def validate_config(config: Dict[str, Any], required_sections: list = None) -> bool:
    """
    Validate configuration dictionary structure.

    Args:
        config: Configuration dictionary to validate
        required_sections: List of required top-level sections

    Returns:
        bool: True if configuration is valid

    Raises:
        ValueError: If configuration is invalid

    Examples:
        >>> validate_config(config, ['constraints', 'processing', 'logging'])
    """
    logger = logging.getLogger(__name__)

    if not isinstance(config, dict):
        raise ValueError("Configuration must be a dictionary")

    if required_sections:
        missing_sections = [s for s in required_sections if s not in config]
        if missing_sections:
            raise ValueError(f"Missing required configuration sections: {missing_sections}")

    if isinstance(config.get('data'), dict):
        _validate_paths_in_section(config['data'], 'data', logger)

    logger.debug("Configuration validation passed")
    return True


def _validate_paths_in_section(section: dict, section_name: str, logger: logging.Logger) -> None:
    """
    Warn about configured input files that do not exist.

    Entries may be a single path or a list of paths (unioned sources).
    """
    for key, value in section.items():
        if not any(indicator in key.lower() for indicator in ['dir', 'path', 'file']):
            continue
        values = value if isinstance(value, list) else [value]
        for item in values:
            if isinstance(item, str) and not Path(item).exists():
                logger.warning(f"Input path does not exist: {section_name}.{key} = {item}")


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated path to the value (e.g., 'data.landcover_file')
        default: Default value if key is not found

    Returns:
        Any: Configuration value or default

    Examples:
        >>> landcover = get_config_value(config, 'data.landcover_file')
        >>> workers = get_config_value(config, 'processing.num_workers', 1)
    """
    keys = key_path.split('.')
    value = config

    try:
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default


def merge_config(base: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Recursively merge override values into a copy of a base configuration.

    Examples:
        >>> config = merge_config(config, {'constraints': {'max_slope_percent': 40}})
    """
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def save_config(config: Dict[str, Any], output_path: Union[str, Path]) -> None:
    """
    Save configuration dictionary to YAML file.

    Examples:
        >>> save_config(config, "results/run_config.yaml")
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Remove metadata before saving
    config_to_save = {k: v for k, v in config.items() if not k.startswith('_')}

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config_to_save, f, default_flow_style=False, sort_keys=False)

    logging.getLogger(__name__).info(f"Configuration saved to: {output_path}")
