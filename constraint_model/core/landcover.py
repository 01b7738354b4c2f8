"""
Land-cover classification for the constraint analysis.

Turns the land-cover raster of a region into the candidate mask (cells whose
class is one of the configured treatment cover types) and provides the
area-by-class breakdown of a region.

Author: Diego Bengochea
"""

from typing import Dict, Iterable

import numpy as np
import pandas as pd

from shared_utils import get_logger
from .data_model import DEFAULT_TILE_SIZE, AnalysisGrid, Raster
from .errors import GeometryError, MissingExternalData
from .region_loader import split_region, validate_region

logger = get_logger('constraint_analysis.landcover')


def classify_landcover(landcover: Raster, region_mask: np.ndarray, classes: Iterable[int]) -> np.ndarray:
    """
    Candidate mask of a region.

    A cell is a candidate iff it lies inside the region, holds data and its
    class code is in ``classes``. Nodata cells are never candidates.

    Args:
        landcover: Land-cover class codes on the analysis grid
        region_mask: Cells inside the region
        classes: Class codes treated as candidate cover

    Returns:
        Boolean candidate mask
    """
    if landcover.shape != region_mask.shape:
        raise ValueError(
            f"Land cover shape {landcover.shape} does not match region mask {region_mask.shape}"
        )
    in_class = np.isin(landcover.data, list(classes))
    return in_class & landcover.valid_mask() & region_mask


def landcover_class_areas(landcover: Raster, region_mask: np.ndarray) -> Dict[int, float]:
    """
    Area (m²) of every land-cover class present inside a region.

    Returns:
        Mapping class code -> area, sorted by class code
    """
    cells = landcover.data[landcover.valid_mask() & region_mask]
    if cells.size == 0:
        return {}
    codes, counts = np.unique(cells, return_counts=True)
    return {int(code): float(count) * landcover.cell_area for code, count in zip(codes, counts)}


def landcover_area_report(regions, landcover_source, tile_size: int = DEFAULT_TILE_SIZE) -> pd.DataFrame:
    """
    Land-cover area breakdown of many regions, one ``area_m2_lc_cl_<code>``
    column per class present.

    Large regions are read in ``tile_size`` cell tiles. Regions without
    land-cover coverage or with an unusable geometry are logged and left out.
    """
    rows = []
    for region in regions:
        try:
            validate_region(region)
            footprint = landcover_source.footprint(region)
        except (GeometryError, MissingExternalData) as e:
            logger.warning(f"Skipping land-cover areas of region {region.region_id}: {e}")
            continue

        class_areas: Dict[int, float] = {}
        for part in split_region(region, footprint, tile_size):
            landcover = landcover_source.classify(part)
            region_mask = AnalysisGrid.from_raster(landcover).rasterize([region.geometry])
            for code, area in landcover_class_areas(landcover, region_mask).items():
                class_areas[code] = class_areas.get(code, 0.0) + area

        row = {'region_id': region.region_id, 'region_name': region.name,
               'landcover_area_m2': sum(class_areas.values())}
        for code, area in sorted(class_areas.items()):
            row[f'area_m2_lc_cl_{code}'] = area
        rows.append(row)

    df = pd.DataFrame(rows)
    if len(df):
        class_columns = sorted((c for c in df.columns if c.startswith('area_m2_lc_cl_')),
                               key=lambda c: int(c.rsplit('_', 1)[1]))
        df = df[['region_id', 'region_name', 'landcover_area_m2'] + class_columns]
        df[class_columns] = df[class_columns].fillna(0.0)
    return df
