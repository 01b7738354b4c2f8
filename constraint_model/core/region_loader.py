"""
Region loading for the constraint analysis.

Reads the regions of interest (national forests, wildfire crisis strategy
landscapes, states) from a vector file, optionally keeping only rows whose
attribute value is in a configured list, and turns them into immutable
Region records.

Author: Diego Bengochea
"""

from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import geopandas as gpd
from shapely.geometry import MultiPolygon, Polygon, box
from shapely.validation import explain_validity

from shared_utils import get_logger
from .data_model import AnalysisGrid, Region
from .errors import GeometryError

logger = get_logger('constraint_analysis.regions')


def validate_region(region: Region) -> None:
    """
    Check that a region geometry can be analysed.

    Raises:
        GeometryError: If the geometry is missing, empty, not polygonal or
            invalid (e.g. self-intersecting)
    """
    geometry = region.geometry
    if geometry is None or geometry.is_empty:
        raise GeometryError(f"Region {region.region_id} has an empty geometry")
    if not isinstance(geometry, (Polygon, MultiPolygon)):
        raise GeometryError(
            f"Region {region.region_id} geometry must be a polygon, got {geometry.geom_type}"
        )
    if not geometry.is_valid:
        raise GeometryError(
            f"Region {region.region_id} geometry is invalid: {explain_validity(geometry)}"
        )


def split_region(region: Region, footprint: AnalysisGrid, tile_size: int) -> List[Region]:
    """
    Cut a region into parts along the tile windows of its analysis grid.

    Regions whose grid fits in one tile are returned whole. Tiles the region
    does not overlap with any area are left out. Every part keeps the
    region's identifier, name and attributes.
    """
    if max(footprint.shape) <= tile_size:
        return [region]

    parts = []
    for tile in footprint.tiles(tile_size):
        part = region.geometry.intersection(box(*tile.bounds))
        if part.is_empty or part.area == 0:
            continue
        parts.append(Region(region.region_id, region.name, part, region.attributes))
    return parts


def regions_from_geodataframe(
    gdf: gpd.GeoDataFrame,
    id_field: Optional[str] = None,
    name_field: Optional[str] = None,
    filter_field: Optional[str] = None,
    filter_values: Optional[Iterable[Any]] = None,
) -> List[Region]:
    """
    Build regions from a GeoDataFrame.

    Args:
        gdf: Region polygons with their attributes
        id_field: Column holding the region identifier (row index when absent)
        name_field: Column holding the region name (identifier when absent)
        filter_field: Optional column used to select regions
        filter_values: Values of ``filter_field`` to keep

    Returns:
        List of regions, in file order
    """
    if filter_field and filter_values is not None:
        if filter_field not in gdf.columns:
            raise KeyError(f"Region filter field not found: {filter_field}")
        wanted = list(filter_values)
        gdf = gdf[gdf[filter_field].isin(wanted)]
        logger.info(f"Selected {len(gdf)} regions where {filter_field} in {wanted}")

    for field_name in (id_field, name_field):
        if field_name and field_name not in gdf.columns:
            raise KeyError(f"Region field not found: {field_name}")

    attribute_columns = [c for c in gdf.columns if c != gdf.geometry.name]
    regions = []
    for index, row in gdf.iterrows():
        region_id = str(row[id_field]) if id_field else str(index)
        name = str(row[name_field]) if name_field else region_id
        attributes = {c: row[c] for c in attribute_columns}
        regions.append(Region(
            region_id=region_id,
            name=name,
            geometry=row[gdf.geometry.name],
            attributes=attributes,
        ))

    return regions


def load_regions(
    path: Union[str, Path],
    id_field: Optional[str] = None,
    name_field: Optional[str] = None,
    filter_field: Optional[str] = None,
    filter_values: Optional[Iterable[Any]] = None,
    layer: Optional[str] = None,
) -> List[Region]:
    """
    Load regions of interest from a vector file.

    Examples:
        >>> regions = load_regions("landscapes.gpkg", "OBJECTID", "NAME", "STATE", ["Montana"])
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Regions file not found: {path}")

    gdf = gpd.read_file(path, layer=layer) if layer else gpd.read_file(path)
    logger.info(f"Loaded {len(gdf)} region features from {path}")

    return regions_from_geodataframe(gdf, id_field, name_field, filter_field, filter_values)
