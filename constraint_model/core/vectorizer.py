"""
Vectorization of the treatable area.

Polygonizes the final stage of a region into treatable / not treatable
patches. Only cells of candidate land cover are polygonized. Cells are merged
with 4-connectivity: patches touching only at a corner stay separate polygons.

Author: Diego Bengochea
"""

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
import geopandas as gpd
import rasterio.features
from affine import Affine
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

TREATABLE = 1
NOT_TREATABLE = 0
OUTSIDE_CANDIDATE = -1


def empty_vectors(crs: Optional[str] = None) -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame({'region_id': [], 'treatable': [], 'geometry': []}, geometry='geometry', crs=crs)


def classify_treatable(candidate: np.ndarray, treatable: np.ndarray) -> np.ndarray:
    """
    Three-state raster of a region.

    1 for treatable cells, 0 for candidate cells removed by a constraint and
    -1 for cells that were never candidates.
    """
    classified = np.full(candidate.shape, OUTSIDE_CANDIDATE, dtype='int16')
    classified[candidate] = NOT_TREATABLE
    classified[candidate & treatable] = TREATABLE
    return classified


def vectorize_treatable(classified: np.ndarray, transform: Affine, region_id: str,
                        crs: Optional[str] = None) -> gpd.GeoDataFrame:
    """
    Polygonize a classified raster.

    Args:
        classified: Output of classify_treatable
        transform: Affine transform of the analysis grid
        region_id: Identifier attached to every polygon
        crs: CRS of the output frame

    Returns:
        GeoDataFrame with columns region_id, treatable, geometry
    """
    polygons = rasterio.features.shapes(
        classified,
        mask=classified != OUTSIDE_CANDIDATE,
        transform=transform,
        connectivity=4,
    )

    records = [
        {'region_id': region_id, 'treatable': int(value), 'geometry': shape(geom)}
        for geom, value in polygons
    ]
    if not records:
        return empty_vectors(crs)
    return gpd.GeoDataFrame(records, geometry='geometry', crs=crs)


def merge_tile_vectors(frames: List[gpd.GeoDataFrame], seams: Sequence[BaseGeometry],
                       crs: Optional[str] = None) -> gpd.GeoDataFrame:
    """
    Join the polygons of a region vectorized tile by tile.

    Polygons touching a tile seam are dissolved with their same-state
    neighbours and split back into connected parts, so a patch cut by a seam
    comes out as one polygon. Patches meeting only at a corner stay separate.
    """
    frames = [f for f in frames if f is not None and len(f)]
    if not frames:
        return empty_vectors(crs)
    combined = gpd.GeoDataFrame(pd.concat(frames, ignore_index=True), geometry='geometry', crs=crs)
    if not seams:
        return combined

    on_seam = combined.geometry.intersects(unary_union(list(seams)))
    if not on_seam.any():
        return combined

    joined = (
        combined[on_seam]
        .dissolve(by=['region_id', 'treatable'])
        .reset_index()
        .explode(index_parts=False)
    )
    merged = pd.concat([combined[~on_seam], joined[['region_id', 'treatable', 'geometry']]], ignore_index=True)
    return gpd.GeoDataFrame(merged, geometry='geometry', crs=crs)
