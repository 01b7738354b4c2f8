"""
Watershed intersection report.

For every subwatershed (HUC-12) touching a region, measures how much of the
subwatershed falls inside the region and keeps the subwatersheds that are
substantially covered.

Author: Diego Bengochea
"""

from typing import Iterable, List

import pandas as pd
import geopandas as gpd

from shared_utils import get_logger
from .data_model import Region

logger = get_logger('constraint_analysis.watersheds')

DEFAULT_MIN_FRACTION = 0.25


def intersect_watersheds(watersheds: gpd.GeoDataFrame, region: Region,
                         min_fraction: float = DEFAULT_MIN_FRACTION) -> gpd.GeoDataFrame:
    """
    Subwatershed pieces inside a region.

    Args:
        watersheds: Subwatershed polygons with their attributes
        region: Region to intersect with
        min_fraction: Minimum share of a subwatershed's area inside the region

    Returns:
        GeoDataFrame of intersection geometries carrying the subwatershed
        attributes plus huc_area_m2, huc_intrsct_area_m2, pct_huc_intrsct,
        region_id and region_name
    """
    if not 0 <= min_fraction <= 1:
        raise ValueError(f"min_fraction must be within [0, 1], got {min_fraction}")

    touching = watersheds[watersheds.geometry.intersects(region.geometry)].copy()
    if len(touching) == 0:
        logger.info(f"Region {region.region_id}: no intersecting watersheds")
        return touching.assign(huc_area_m2=[], huc_intrsct_area_m2=[], pct_huc_intrsct=[],
                               region_id=[], region_name=[])

    huc_area = touching.geometry.area
    pieces = touching.geometry.intersection(region.geometry)
    intersect_area = pieces.area

    touching['huc_area_m2'] = huc_area
    touching['huc_intrsct_area_m2'] = intersect_area
    touching['pct_huc_intrsct'] = (intersect_area / huc_area).where(huc_area > 0)
    touching['region_id'] = region.region_id
    touching['region_name'] = region.name
    touching[touching.geometry.name] = pieces

    kept = touching[touching['pct_huc_intrsct'] >= min_fraction]
    logger.info(f"Region {region.region_id}: {len(kept)} of {len(touching)} watersheds "
                f"at least {min_fraction:.0%} inside")
    return kept


def watershed_report(watersheds: gpd.GeoDataFrame, regions: Iterable[Region],
                     min_fraction: float = DEFAULT_MIN_FRACTION) -> pd.DataFrame:
    """Attribute table (no geometry) of the kept subwatershed pieces of all regions."""
    frames: List[pd.DataFrame] = []
    for region in regions:
        kept = intersect_watersheds(watersheds, region, min_fraction)
        if len(kept):
            frames.append(pd.DataFrame(kept.drop(columns=kept.geometry.name)))
    if not frames:
        return pd.DataFrame(columns=['region_id', 'region_name', 'huc_area_m2',
                                     'huc_intrsct_area_m2', 'pct_huc_intrsct'])
    return pd.concat(frames, ignore_index=True)
