"""
Data model for the treatable area analysis.

Immutable records passed between the pipeline stages: regions, rasters on the
analysis grid, exclusion masks, stage snapshots and the per-region statistics
and outcomes.

Author: Diego Bengochea
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import geopandas as gpd
import rasterio.features
import rasterio.windows
from rasterio.windows import Window
from affine import Affine
from shapely.geometry import LineString
from shapely.geometry.base import BaseGeometry

# Ordered exclusion stages. The order encodes regulatory priority: legal
# protections, physical feasibility, administrative, ecological, access.
STAGE_ORDER = ("protected", "slope", "administrative", "riparian", "roads")
CANDIDATE_STAGE = "candidate"

MASK_EXCLUDE = "exclude"
MASK_INCLUDE = "include"

# Cells per side of the windows large regions are processed in
DEFAULT_TILE_SIZE = 4096


@dataclass(frozen=True)
class Region:
    """One polygon unit of analysis (forest, priority landscape, state)."""
    region_id: str
    name: str
    geometry: BaseGeometry
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def area_m2(self) -> float:
        return float(self.geometry.area)


@dataclass(frozen=True)
class Raster:
    """A single band grid with its affine transform and optional nodata value."""
    data: np.ndarray
    transform: Affine
    nodata: Optional[float] = None

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def cell_area(self) -> float:
        return abs(self.transform.a * self.transform.e)

    def valid_mask(self) -> np.ndarray:
        """Cells holding data (not nodata and, for float grids, finite)."""
        valid = np.ones(self.data.shape, dtype=bool)
        if np.issubdtype(self.data.dtype, np.floating):
            valid &= np.isfinite(self.data)
        if self.nodata is not None:
            if np.isnan(self.nodata):
                valid &= ~np.isnan(self.data)
            else:
                valid &= self.data != self.nodata
        return valid


@dataclass(frozen=True)
class AnalysisGrid:
    """The cell grid every mask of a region is built on."""
    transform: Affine
    shape: Tuple[int, int]

    @classmethod
    def from_raster(cls, raster: Raster) -> "AnalysisGrid":
        return cls(transform=raster.transform, shape=tuple(raster.shape))

    @property
    def cell_area(self) -> float:
        return abs(self.transform.a * self.transform.e)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        height, width = self.shape
        left, top = self.transform @ (0, 0)
        right, bottom = self.transform @ (width, height)
        return (min(left, right), min(bottom, top), max(left, right), max(bottom, top))

    def tiles(self, tile_size: int) -> List["AnalysisGrid"]:
        """
        Split the grid into windows of at most ``tile_size`` x ``tile_size`` cells.

        Tiles share cell edges with their neighbours and together cover every
        cell of the grid exactly once.
        """
        if tile_size < 1:
            raise ValueError(f"tile_size must be positive, got {tile_size}")
        height, width = self.shape
        tiles = []
        for row_off in range(0, height, tile_size):
            for col_off in range(0, width, tile_size):
                window = Window(col_off, row_off, min(tile_size, width - col_off), min(tile_size, height - row_off))
                tiles.append(AnalysisGrid(
                    transform=rasterio.windows.transform(window, self.transform),
                    shape=(int(window.height), int(window.width)),
                ))
        return tiles

    def seams(self, tile_size: int) -> List[LineString]:
        """Inner tile edges of ``tiles(tile_size)``, as lines across the grid."""
        height, width = self.shape
        left, bottom, right, top = self.bounds
        lines = []
        for col in range(tile_size, width, tile_size):
            x, _ = self.transform @ (col, 0)
            lines.append(LineString([(x, bottom), (x, top)]))
        for row in range(tile_size, height, tile_size):
            _, y = self.transform @ (0, row)
            lines.append(LineString([(left, y), (right, y)]))
        return lines

    def rasterize(self, geometries: Iterable[BaseGeometry]) -> np.ndarray:
        """
        Burn geometries onto the grid.

        A cell is covered when its centre falls inside a geometry. A centre
        lying exactly on a geometry's right or top edge counts as covered
        (GDAL scanline rule). Returns an all-False array when no non-empty
        geometry is given.
        """
        shapes = [g for g in geometries if g is not None and not g.is_empty]
        if not shapes:
            return np.zeros(self.shape, dtype=bool)
        return rasterio.features.geometry_mask(
            shapes,
            out_shape=self.shape,
            transform=self.transform,
            invert=True,
        )


@dataclass(frozen=True)
class ExclusionMask:
    """
    Binary mask produced by one constraint.

    For ``kind == "exclude"`` True marks cells removed by the constraint; for
    ``kind == "include"`` True marks cells allowed by it.
    """
    name: str
    array: np.ndarray
    kind: str = MASK_EXCLUDE


@dataclass(frozen=True)
class StageResult:
    """Cells still treatable right after one stage was applied."""
    name: str
    included: np.ndarray

    @property
    def cell_count(self) -> int:
        return int(np.count_nonzero(self.included))


def stage_area_column(stage_name: str) -> str:
    """Export column holding the remaining area after a stage."""
    index = STAGE_ORDER.index(stage_name) + 1
    return f"rmn{index}_{stage_name}_area_m2"


def stage_fraction_column(stage_name: str) -> str:
    """Export column holding the retained fraction of candidate area after a stage."""
    index = STAGE_ORDER.index(stage_name) + 1
    return f"pct_rmn{index}_{stage_name}"


@dataclass(frozen=True)
class AreaStatistics:
    """Area accounting for one region."""
    region_id: str
    region_name: str
    region_area_m2: float
    landcover_area_m2: float
    candidate_area_m2: float
    stage_areas_m2: Dict[str, float]
    stage_fractions: Dict[str, Optional[float]]

    @property
    def fractions_defined(self) -> bool:
        return self.candidate_area_m2 > 0

    def to_row(self) -> Dict[str, Any]:
        row = {
            'region_id': self.region_id,
            'region_name': self.region_name,
            'feature_area_m2': self.region_area_m2,
            'landcover_area_m2': self.landcover_area_m2,
            'covertype_area_m2': self.candidate_area_m2,
        }
        for stage in STAGE_ORDER:
            row[stage_area_column(stage)] = self.stage_areas_m2[stage]
        for stage in STAGE_ORDER:
            row[stage_fraction_column(stage)] = self.stage_fractions[stage]
        return row


@dataclass
class RegionResult:
    """
    Everything produced for one successfully processed region.

    ``stage_cells`` holds the included cell count after each stage, candidate
    first, summed over the tiles the region was processed in.
    """
    region: Region
    statistics: AreaStatistics
    stage_cells: Dict[str, int]
    vectors: gpd.GeoDataFrame
    landcover_areas: Dict[int, float] = field(default_factory=dict)
    tile_count: int = 1
    note: str = ""


@dataclass(frozen=True)
class RegionOutcome:
    """Whether a region was processed or skipped, and why."""
    region_id: str
    region_name: str
    status: str
    reason: str = ""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"


@dataclass
class ConstraintRunResult:
    """Results of a batch run over many regions."""
    results: List[RegionResult] = field(default_factory=list)
    outcomes: List[RegionOutcome] = field(default_factory=list)

    @property
    def statistics(self) -> List[AreaStatistics]:
        return [r.statistics for r in self.results]

    @property
    def succeeded(self) -> List[RegionOutcome]:
        return [o for o in self.outcomes if o.status == RegionOutcome.SUCCEEDED]

    @property
    def skipped(self) -> List[RegionOutcome]:
        return [o for o in self.outcomes if o.status == RegionOutcome.SKIPPED]
