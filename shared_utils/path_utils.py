"""
Path utilities for the forest treatment constraint analysis.

This module provides consistent path handling for input datasets and
export directories.

Author: Diego Bengochea
"""

from pathlib import Path
from typing import List, Union, Optional


def ensure_directory(path: Union[str, Path], parents: bool = True) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to create
        parents: Whether to create parent directories

    Returns:
        Path: Created directory path

    Examples:
        >>> output_dir = ensure_directory("data/results/constraints")
    """
    path = Path(path)
    path.mkdir(parents=parents, exist_ok=True)
    return path


def resolve_path(path: Union[str, Path], base_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve path to absolute path, optionally relative to base_path.

    Args:
        path: Path to resolve
        base_path: Base path for relative resolution (default: current directory)

    Returns:
        Path: Resolved absolute path

    Examples:
        >>> abs_path = resolve_path("data/raw/landcover/nlcd_2019.tif")
        >>> abs_path = resolve_path("roads.gpkg", base_path="/project/data/raw")
    """
    path = Path(path)

    if path.is_absolute():
        return path

    if base_path:
        return (Path(base_path) / path).resolve()

    return path.resolve()


def resolve_paths(paths: Union[str, Path, List[Union[str, Path]]],
                  base_path: Optional[Union[str, Path]] = None) -> List[Path]:
    """Resolve a single path or a list of paths (unioned vector sources)."""
    if isinstance(paths, (str, Path)):
        paths = [paths]
    return [resolve_path(p, base_path) for p in paths]


def validate_file_exists(path: Union[str, Path], description: str = "") -> Path:
    """
    Validate that file exists and return Path object.

    Args:
        path: File path to validate
        description: Description for error messages

    Returns:
        Path: Validated file path

    Raises:
        FileNotFoundError: If file doesn't exist

    Examples:
        >>> dem_file = validate_file_exists("data/raw/elevation/dem.tif", "Elevation model")
    """
    path = Path(path)
    desc = f" ({description})" if description else ""

    if not path.exists():
        raise FileNotFoundError(f"File not found{desc}: {path}")

    if not path.is_file():
        raise ValueError(f"Path is not a file{desc}: {path}")

    return path
