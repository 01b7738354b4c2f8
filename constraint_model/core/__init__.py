"""
Core constraint analysis modules.

This package contains the core processing logic for the treatable area analysis:
- ConstraintAnalysisPipeline: Per-region orchestration and batch runner
- ConstraintParameters: Run options and unit conversion
- Land-cover classification and the five exclusion mask builders
- Sequential compositor and area accountant
- Vectorizer and exporters
- Watershed intersection report

Author: Diego Bengochea
"""

from .constraint_pipeline import ConstraintAnalysisPipeline, sources_from_config, regions_from_config
from .parameters import ConstraintParameters, feet_to_meters, FEET_PER_METER
from .errors import (
    ConstraintAnalysisError,
    InvalidParameter,
    MissingExternalData,
    GeometryError,
    ZeroCandidateArea
)
from .data_model import (
    Region,
    Raster,
    AnalysisGrid,
    ExclusionMask,
    StageResult,
    AreaStatistics,
    RegionResult,
    RegionOutcome,
    ConstraintRunResult,
    STAGE_ORDER
)
from .data_sources import (
    DataSources,
    InMemoryRasterSource,
    InMemoryFeatureSource,
    GeoTiffRasterSource,
    DemSlopeSource,
    VectorFileSource
)
from .region_loader import load_regions, regions_from_geodataframe, split_region, validate_region
from .landcover import classify_landcover, landcover_class_areas, landcover_area_report
from .exclusion_masks import (
    build_protected_mask,
    build_slope_mask,
    build_administrative_mask,
    build_riparian_mask,
    build_roads_mask,
    select_features_for_buffer
)
from .compositor import compose_stages, check_monotonic
from .area_accounting import area_statistics_from_counts, compute_area_statistics, stage_cell_counts
from .vectorizer import classify_treatable, merge_tile_vectors, vectorize_treatable
from .watersheds import intersect_watersheds, watershed_report

__all__ = [
    # Pipeline
    "ConstraintAnalysisPipeline",
    "sources_from_config",
    "regions_from_config",

    # Parameters and errors
    "ConstraintParameters",
    "feet_to_meters",
    "FEET_PER_METER",
    "ConstraintAnalysisError",
    "InvalidParameter",
    "MissingExternalData",
    "GeometryError",
    "ZeroCandidateArea",

    # Data model
    "Region",
    "Raster",
    "AnalysisGrid",
    "ExclusionMask",
    "StageResult",
    "AreaStatistics",
    "RegionResult",
    "RegionOutcome",
    "ConstraintRunResult",
    "STAGE_ORDER",

    # Data sources
    "DataSources",
    "InMemoryRasterSource",
    "InMemoryFeatureSource",
    "GeoTiffRasterSource",
    "DemSlopeSource",
    "VectorFileSource",

    # Processing steps
    "load_regions",
    "regions_from_geodataframe",
    "validate_region",
    "split_region",
    "classify_landcover",
    "landcover_class_areas",
    "landcover_area_report",
    "build_protected_mask",
    "build_slope_mask",
    "build_administrative_mask",
    "build_riparian_mask",
    "build_roads_mask",
    "select_features_for_buffer",
    "compose_stages",
    "check_monotonic",
    "compute_area_statistics",
    "area_statistics_from_counts",
    "stage_cell_counts",
    "classify_treatable",
    "vectorize_treatable",
    "merge_tile_vectors",
    "intersect_watersheds",
    "watershed_report",
]
