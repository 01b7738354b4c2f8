"""
Exclusion mask builders for the constraint analysis.

Five independent builders, each deriving one binary mask for a region from
one external dataset and one parameter:

- protected lands:  exclude PAD-US areas with a configured GAP status, plus
                    GAP 3 Inventoried Roadless Areas
- slope:            include cells with slope <= maximum percent slope
- administrative:   exclude GAP status 2 areas and critical habitat
- riparian:         exclude cells within the riparian buffer of waterways
- roads:            include cells within the road buffer of roads and trails

Buffer-based builders select source features within twice the buffer
distance of the region before buffering, so features lying outside the region
still reach into it.

Author: Diego Bengochea
"""

from typing import Iterable, Optional

import numpy as np
import pandas as pd
import geopandas as gpd

from shared_utils import get_logger
from .data_model import AnalysisGrid, ExclusionMask, MASK_EXCLUDE, MASK_INCLUDE, Region
from .data_sources import DEFAULT_CRS, align_to_grid
from .errors import MissingExternalData

logger = get_logger('constraint_analysis.masks')

# PAD-US attribute names
GAP_STATUS_FIELD = 'GAP_Sts'
DESIGNATION_TYPE_FIELD = 'Des_Tp'

ADMINISTRATIVE_GAP_STATUS = 2
ROADLESS_GAP_STATUS = 3
ROADLESS_DESIGNATION = 'IRA'


def _query_features(source, region: Region, dataset_name: str, margin: float = 0.0) -> Optional[gpd.GeoDataFrame]:
    """Features of a dataset near a region, or None when the dataset has nothing."""
    if source is None:
        logger.warning(f"Region {region.region_id}: no {dataset_name} source configured, mask left empty")
        return None
    try:
        features = source.query(region, margin=margin)
    except MissingExternalData as e:
        logger.warning(f"Region {region.region_id}: {e}; mask left empty")
        return None
    if features is None or len(features) == 0:
        logger.debug(f"Region {region.region_id}: no {dataset_name} features")
        return None
    return features


def gap_status_codes_of(features: gpd.GeoDataFrame) -> pd.Series:
    """GAP status parsed to integers (PAD-US stores it as text); unparseable values become NaN."""
    if GAP_STATUS_FIELD not in features.columns:
        return pd.Series(np.nan, index=features.index)
    return pd.to_numeric(features[GAP_STATUS_FIELD], errors='coerce')


def select_protected_features(features: gpd.GeoDataFrame, gap_status_codes: Iterable[int]) -> gpd.GeoDataFrame:
    """Protected areas excluded from treatment: configured GAP status, or GAP 3 roadless areas."""
    status = gap_status_codes_of(features)
    if DESIGNATION_TYPE_FIELD in features.columns:
        designation = features[DESIGNATION_TYPE_FIELD].astype(str)
    else:
        designation = pd.Series('', index=features.index)
    keep = status.isin(list(gap_status_codes)) | (
        (status == ROADLESS_GAP_STATUS) & (designation == ROADLESS_DESIGNATION)
    )
    return features[keep]


def select_features_for_buffer(features: gpd.GeoDataFrame, region: Region, buffer_m: float) -> gpd.GeoSeries:
    """
    Buffered footprints of the features that can reach into a region.

    Features are selected within ``2 * buffer_m`` of the region before each is
    buffered by ``buffer_m``; buffers not touching the region are dropped.
    Selecting on the region alone would miss features just outside its
    boundary whose buffer still covers cells inside it.
    """
    search_area = region.geometry.buffer(2 * buffer_m) if buffer_m > 0 else region.geometry
    selected = features[features.geometry.intersects(search_area)]
    if len(selected) == 0:
        return gpd.GeoSeries([], crs=features.crs)
    buffered = selected.geometry.buffer(buffer_m)
    return buffered[buffered.intersects(region.geometry) & ~buffered.is_empty]


def build_protected_mask(region: Region, grid: AnalysisGrid, region_mask: np.ndarray,
                         protected_lands, gap_status_codes: Iterable[int]) -> ExclusionMask:
    """Cells excluded because they fall in protected lands."""
    features = _query_features(protected_lands, region, 'protected lands')
    if features is None:
        return ExclusionMask('protected', np.zeros(grid.shape, dtype=bool), MASK_EXCLUDE)

    protected = select_protected_features(features, gap_status_codes)
    excluded = grid.rasterize(protected.geometry) & region_mask
    logger.debug(f"Region {region.region_id}: {len(protected)} protected features, "
                 f"{int(excluded.sum()):,} cells excluded")
    return ExclusionMask('protected', excluded, MASK_EXCLUDE)


def build_slope_mask(region: Region, grid: AnalysisGrid, region_mask: np.ndarray,
                     slope_source, max_slope_percent: float, crs: str = DEFAULT_CRS) -> ExclusionMask:
    """
    Cells gentle enough for treatment.

    Cells without slope data are never included.
    """
    if slope_source is None:
        logger.warning(f"Region {region.region_id}: no slope source configured, no cell passes the slope test")
        return ExclusionMask('slope', np.zeros(grid.shape, dtype=bool), MASK_INCLUDE)
    try:
        slope = slope_source.slope_percent(region)
    except MissingExternalData as e:
        logger.warning(f"Region {region.region_id}: {e}; no cell passes the slope test")
        return ExclusionMask('slope', np.zeros(grid.shape, dtype=bool), MASK_INCLUDE)

    slope_values = align_to_grid(slope, grid, crs=crs)
    with np.errstate(invalid='ignore'):
        included = np.isfinite(slope_values) & (slope_values <= max_slope_percent)
    return ExclusionMask('slope', included & region_mask, MASK_INCLUDE)


def build_administrative_mask(region: Region, grid: AnalysisGrid, region_mask: np.ndarray,
                              protected_lands, critical_habitat) -> ExclusionMask:
    """
    Cells excluded by administrative boundaries.

    GAP status 2 areas (wildlife refuges, state parks, preserves) and critical
    habitat polygons. The GAP 3 roadless-area rule of the protected stage does
    not apply here.
    """
    geometries = []

    features = _query_features(protected_lands, region, 'protected lands')
    if features is not None:
        status = gap_status_codes_of(features)
        geometries.extend(features[status == ADMINISTRATIVE_GAP_STATUS].geometry)

    habitat = _query_features(critical_habitat, region, 'critical habitat')
    if habitat is not None:
        geometries.extend(habitat.geometry)

    excluded = grid.rasterize(geometries) & region_mask
    return ExclusionMask('administrative', excluded, MASK_EXCLUDE)


def build_buffer_footprint(region: Region, grid: AnalysisGrid, region_mask: np.ndarray,
                           source, buffer_m: float, dataset_name: str) -> np.ndarray:
    """Cells of a region within ``buffer_m`` of any feature of a dataset."""
    features = _query_features(source, region, dataset_name, margin=2 * buffer_m)
    if features is None:
        return np.zeros(grid.shape, dtype=bool)
    buffered = select_features_for_buffer(features, region, buffer_m)
    return grid.rasterize(buffered) & region_mask


def build_riparian_mask(region: Region, grid: AnalysisGrid, region_mask: np.ndarray,
                        hydrography, riparian_buffer_m: float) -> ExclusionMask:
    """Cells excluded because they lie in a riparian buffer."""
    excluded = build_buffer_footprint(region, grid, region_mask, hydrography, riparian_buffer_m, 'hydrography')
    return ExclusionMask('riparian', excluded, MASK_EXCLUDE)


def build_roads_mask(region: Region, grid: AnalysisGrid, region_mask: np.ndarray,
                     roads, road_buffer_m: float) -> ExclusionMask:
    """Cells close enough to a road or trail for treatment access."""
    included = build_buffer_footprint(region, grid, region_mask, roads, road_buffer_m, 'roads')
    return ExclusionMask('roads', included, MASK_INCLUDE)
