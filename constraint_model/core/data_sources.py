"""
External data sources for the constraint analysis.

Each constraint dataset is reached through a small collaborator object so the
pipeline can be driven by GeoTIFF / vector files in production and by
in-memory rasters and GeoDataFrames in tests:

- land cover:        ``classify(region) -> Raster``, ``footprint(region) -> AnalysisGrid``
- slope (percent):   ``slope_percent(region) -> Raster``
- vector datasets:   ``query(region, margin=0.0) -> GeoDataFrame``

Sources raise MissingExternalData when they have no coverage for a region.
All inputs are expected in one projected CRS with metre units.

Author: Diego Bengochea
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
import geopandas as gpd
import rasterio
from rasterio.warp import reproject, Resampling
from rasterio.windows import Window, from_bounds

from shared_utils import get_logger
from .data_model import AnalysisGrid, Raster, Region
from .errors import MissingExternalData

logger = get_logger('constraint_analysis.sources')

DEFAULT_CRS = "EPSG:5070"


def _region_window(bounds, transform, height: int, width: int) -> Optional[Window]:
    """Cell window covering ``bounds``, clipped to the raster extent."""
    window = from_bounds(*bounds, transform=transform)
    # Round away float noise before snapping outwards to whole cells
    col_start = max(int(math.floor(round(window.col_off, 6))), 0)
    row_start = max(int(math.floor(round(window.row_off, 6))), 0)
    col_stop = min(int(math.ceil(round(window.col_off + window.width, 6))), width)
    row_stop = min(int(math.ceil(round(window.row_off + window.height, 6))), height)
    if col_stop <= col_start or row_stop <= row_start:
        return None
    return Window(col_start, row_start, col_stop - col_start, row_stop - row_start)


def _window_grid(window: Window, transform) -> AnalysisGrid:
    return AnalysisGrid(
        transform=rasterio.windows.transform(window, transform),
        shape=(int(window.height), int(window.width)),
    )


def window_raster(raster: Raster, bounds) -> Optional[Raster]:
    """Cut the part of an in-memory raster covering ``bounds``."""
    height, width = raster.shape
    window = _region_window(bounds, raster.transform, height, width)
    if window is None:
        return None
    row_off, col_off = int(window.row_off), int(window.col_off)
    rows, cols = int(window.height), int(window.width)
    data = raster.data[row_off:row_off + rows, col_off:col_off + cols]
    transform = rasterio.windows.transform(window, raster.transform)
    return Raster(data=data.copy(), transform=transform, nodata=raster.nodata)


def align_to_grid(raster: Raster, grid: AnalysisGrid, crs: str = DEFAULT_CRS,
                  fill_value: float = np.nan) -> np.ndarray:
    """
    Return raster values on the analysis grid.

    Rasters already on the grid are returned unchanged; others are resampled
    with nearest neighbour. Cells without source data get ``fill_value``.
    """
    if tuple(raster.shape) == tuple(grid.shape) and raster.transform == grid.transform:
        data = raster.data.astype('float64')
        data[~raster.valid_mask()] = fill_value
        return data

    logger.debug("Grid mismatch detected, resampling raster onto analysis grid...")
    source = raster.data.astype('float64')
    source[~raster.valid_mask()] = np.nan
    destination = np.full(grid.shape, np.nan, dtype='float64')

    reproject(
        source=source,
        destination=destination,
        src_transform=raster.transform,
        src_crs=crs,
        src_nodata=np.nan,
        dst_transform=grid.transform,
        dst_crs=crs,
        dst_nodata=np.nan,
        resampling=Resampling.nearest
    )

    if not np.isnan(fill_value):
        destination[np.isnan(destination)] = fill_value
    return destination


def slope_percent_from_elevation(elevation: np.ndarray, cell_width: float, cell_height: float) -> np.ndarray:
    """
    Percent slope of an elevation grid.

    Rise over run in percent, ``100 * sqrt((dz/dx)^2 + (dz/dy)^2)``; equal to
    ``100 * tan(slope_degrees)``. NaN elevations propagate to their neighbours.
    """
    dz_dy, dz_dx = np.gradient(elevation.astype('float64'), abs(cell_height), abs(cell_width))
    return 100.0 * np.hypot(dz_dx, dz_dy)


class InMemoryRasterSource:
    """Raster collaborator backed by an in-memory Raster."""

    def __init__(self, raster: Raster, name: str = "raster"):
        self.raster = raster
        self.name = name

    def footprint(self, region: Region) -> AnalysisGrid:
        height, width = self.raster.shape
        window = _region_window(region.geometry.bounds, self.raster.transform, height, width)
        if window is None:
            raise MissingExternalData(self.name, region.region_id, "region outside raster extent")
        return _window_grid(window, self.raster.transform)

    def read(self, region: Region) -> Raster:
        clipped = window_raster(self.raster, region.geometry.bounds)
        if clipped is None:
            raise MissingExternalData(self.name, region.region_id, "region outside raster extent")
        return clipped

    def classify(self, region: Region) -> Raster:
        return self.read(region)

    def slope_percent(self, region: Region) -> Raster:
        return self.read(region)


class GeoTiffRasterSource:
    """
    Raster collaborator reading a region window from a GeoTIFF.

    Used for the land-cover raster and for precomputed percent slope rasters.
    """

    def __init__(self, path: Union[str, Path], name: str = "raster", band: int = 1):
        self.path = Path(path)
        self.name = name
        self.band = band

    def footprint(self, region: Region) -> AnalysisGrid:
        """Analysis grid of the region window, without reading any cell."""
        if not self.path.exists():
            raise MissingExternalData(self.name, region.region_id, f"file not found: {self.path}")

        with rasterio.open(self.path) as src:
            window = _region_window(region.geometry.bounds, src.transform, src.height, src.width)
            if window is None:
                raise MissingExternalData(self.name, region.region_id, "region outside raster extent")
            return _window_grid(window, src.transform)

    def read(self, region: Region) -> Raster:
        if not self.path.exists():
            raise MissingExternalData(self.name, region.region_id, f"file not found: {self.path}")

        with rasterio.open(self.path) as src:
            window = _region_window(region.geometry.bounds, src.transform, src.height, src.width)
            if window is None:
                raise MissingExternalData(self.name, region.region_id, "region outside raster extent")
            data = src.read(self.band, window=window)
            transform = src.window_transform(window)
            nodata = src.nodata

        logger.debug(f"Read {self.name} window {data.shape} for region {region.region_id}")
        return Raster(data=data, transform=transform, nodata=nodata)

    def classify(self, region: Region) -> Raster:
        return self.read(region)

    def slope_percent(self, region: Region) -> Raster:
        return self.read(region)


class DemSlopeSource:
    """
    Slope collaborator deriving percent slope from a digital elevation model.

    The DEM window is padded by one cell on each side so gradients at the
    region edge use real neighbours.
    """

    def __init__(self, path: Union[str, Path], name: str = "slope"):
        self.path = Path(path)
        self.name = name

    def slope_percent(self, region: Region) -> Raster:
        if not self.path.exists():
            raise MissingExternalData(self.name, region.region_id, f"file not found: {self.path}")

        with rasterio.open(self.path) as src:
            cell_width, cell_height = abs(src.transform.a), abs(src.transform.e)
            minx, miny, maxx, maxy = region.geometry.bounds
            padded = (minx - cell_width, miny - cell_height, maxx + cell_width, maxy + cell_height)
            window = _region_window(padded, src.transform, src.height, src.width)
            if window is None:
                raise MissingExternalData(self.name, region.region_id, "region outside DEM extent")
            elevation = src.read(1, window=window).astype('float64')
            if src.nodata is not None:
                elevation[elevation == src.nodata] = np.nan
            transform = src.window_transform(window)

        slope = slope_percent_from_elevation(elevation, cell_width, cell_height)
        return Raster(data=slope, transform=transform, nodata=np.nan)


def _empty_frame(crs=None) -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame({'geometry': gpd.GeoSeries([], crs=crs)}, geometry='geometry', crs=crs)


def _select_intersecting(frame: gpd.GeoDataFrame, region: Region, margin: float) -> gpd.GeoDataFrame:
    if not len(frame):
        return frame
    search_area = region.geometry.buffer(margin) if margin > 0 else region.geometry
    positions = np.sort(frame.sindex.query(search_area, predicate='intersects'))
    candidates = frame.iloc[positions]
    return candidates[candidates.geometry.notna() & ~candidates.geometry.is_empty]


class InMemoryFeatureSource:
    """
    Vector collaborator backed by one or more GeoDataFrames.

    Several frames (e.g. designation / easement / fee / proclamation, or road
    and trail layers) are unioned into a single collection.
    """

    def __init__(self, frames: Union[gpd.GeoDataFrame, Sequence[gpd.GeoDataFrame]], name: str = "features"):
        if isinstance(frames, gpd.GeoDataFrame):
            frames = [frames]
        frames = [f for f in frames if f is not None]
        self.name = name
        if frames:
            self.features = gpd.GeoDataFrame(
                pd.concat(frames, ignore_index=True), geometry='geometry', crs=frames[0].crs
            )
        else:
            self.features = _empty_frame()

    def query(self, region: Region, margin: float = 0.0) -> gpd.GeoDataFrame:
        return _select_intersecting(self.features, region, margin)


class VectorFileSource:
    """
    Vector collaborator reading features from one or more files.

    Only features inside the bounding box of the (optionally expanded) region
    are read; files that do not exist are skipped with a warning.
    """

    def __init__(self, paths: Union[str, Path, Sequence[Union[str, Path]]], name: str = "features",
                 layer: Optional[str] = None):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self.name = name
        self.layer = layer
        self.paths: List[Path] = []
        for path in map(Path, paths):
            if path.exists():
                self.paths.append(path)
            else:
                logger.warning(f"{name} source file not found, skipping: {path}")

    def query(self, region: Region, margin: float = 0.0) -> gpd.GeoDataFrame:
        if not self.paths:
            raise MissingExternalData(self.name, region.region_id, "no source files available")

        search_area = region.geometry.buffer(margin) if margin > 0 else region.geometry
        frames = []
        for path in self.paths:
            kwargs = {'bbox': search_area.bounds}
            if self.layer:
                kwargs['layer'] = self.layer
            frame = gpd.read_file(path, **kwargs)
            if len(frame):
                frames.append(frame)

        if not frames:
            return _empty_frame()

        features = gpd.GeoDataFrame(pd.concat(frames, ignore_index=True), geometry='geometry', crs=frames[0].crs)
        return _select_intersecting(features, region, margin)


@dataclass
class DataSources:
    """
    Collaborators used by the pipeline, injected at construction.

    ``None`` for a constraint dataset means the dataset is not available; the
    matching mask builder then logs a warning and returns an empty mask.
    """
    landcover: object
    slope: Optional[object] = None
    protected_lands: Optional[object] = None
    critical_habitat: Optional[object] = None
    hydrography: Optional[object] = None
    roads: Optional[object] = None
    crs: str = DEFAULT_CRS
