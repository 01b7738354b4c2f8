"""Pytest configuration and shared fixtures.

Synthetic datasets on a 10 m grid covering x, y in [0, 200]. The default
region is the 100 m x 100 m square [50, 150] x [50, 150], which holds exactly
100 cell centres (10,000 m²).
"""

import numpy as np
import pytest
import geopandas as gpd
from rasterio.transform import from_origin
from shapely.geometry import LineString, box

from constraint_model.core.data_model import AnalysisGrid, Raster, Region
from constraint_model.core.data_sources import DataSources, InMemoryFeatureSource, InMemoryRasterSource
from constraint_model.core.parameters import FEET_PER_METER

CELL_SIZE = 10.0
GRID_SIZE = 20
TEST_CRS = "EPSG:5070"


def feet(metres):
    """Distance in feet that converts back to ``metres``."""
    return metres * FEET_PER_METER


def make_raster(value, dtype='uint8', nodata=0):
    data = np.full((GRID_SIZE, GRID_SIZE), value, dtype=dtype)
    return Raster(data=data, transform=from_origin(0, GRID_SIZE * CELL_SIZE, CELL_SIZE, CELL_SIZE), nodata=nodata)


def make_frame(geometries, **columns):
    return gpd.GeoDataFrame(dict(columns, geometry=list(geometries)), geometry='geometry')


@pytest.fixture
def region():
    return Region(region_id="r1", name="Test Forest", geometry=box(50, 50, 150, 150),
                  attributes={"STATE": "Montana", "NAME": "Test Forest"})


@pytest.fixture
def forest_raster():
    """Land cover of evergreen forest (42) everywhere."""
    return make_raster(42)


@pytest.fixture
def gentle_slope():
    """Percent slope of 10 everywhere."""
    return make_raster(10.0, dtype='float64', nodata=np.nan)


@pytest.fixture
def grid(forest_raster, region):
    """Analysis grid of the default region."""
    return AnalysisGrid.from_raster(InMemoryRasterSource(forest_raster).classify(region))


@pytest.fixture
def region_mask(grid, region):
    return grid.rasterize([region.geometry])


@pytest.fixture
def centre_road():
    """A road crossing the grid through the region centre."""
    return InMemoryFeatureSource(make_frame([LineString([(0, 100), (200, 100)])]), name="roads")


@pytest.fixture
def make_sources(forest_raster, gentle_slope, centre_road):
    """Factory for DataSources; unspecified datasets default to the fixtures above."""
    def _make(landcover=None, slope=None, roads=None, protected_lands=None,
              critical_habitat=None, hydrography=None):
        return DataSources(
            landcover=InMemoryRasterSource(landcover if landcover is not None else forest_raster, "land cover"),
            slope=InMemoryRasterSource(slope if slope is not None else gentle_slope, "slope"),
            protected_lands=protected_lands,
            critical_habitat=critical_habitat,
            hydrography=hydrography,
            roads=roads if roads is not None else centre_road,
            crs=TEST_CRS,
        )
    return _make


@pytest.fixture
def base_config(tmp_path):
    return {
        'constraints': {
            'landcover_classes': [41, 42, 43],
            'max_slope_percent': 35,
            'road_buffer_distance': feet(600),
            'riparian_buffer_distance': 100,
            'gap_status_codes': [1],
        },
        'processing': {'num_workers': 1, 'mask_workers': 5, 'crs': TEST_CRS},
        'output': {'output_dir': str(tmp_path / 'results'), 'prefix': 'test'},
        'logging': {'level': 'WARNING'},
    }
