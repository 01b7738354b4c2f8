"""
Central Data Paths - Constants

Default locations of the input datasets and exports used by the constraint
analysis. Configuration entries under `data` and `output` override these.

Usage:
    from shared_utils.central_data_paths_constants import LANDCOVER_FILE, CONSTRAINT_RESULTS_DIR

Author: Diego Bengochea
"""

from pathlib import Path

# Root directories
DATA_ROOT = Path("data")

RAW_DIR = DATA_ROOT / "raw"
PROCESSED_DIR = DATA_ROOT / "processed"
RESULTS_DIR = DATA_ROOT / "results"

# Regions of interest (national forests, wildfire priority landscapes, states)
REGIONS_DIR = RAW_DIR / "regions"
REGIONS_FILE = REGIONS_DIR / "wildfire_crisis_strategy_landscapes.gpkg"

# Land cover (NLCD 2019)
LANDCOVER_DIR = RAW_DIR / "landcover"
LANDCOVER_FILE = LANDCOVER_DIR / "nlcd_2019_landcover.tif"

# Elevation (3DEP 10 m)
ELEVATION_DIR = RAW_DIR / "elevation"
DEM_FILE = ELEVATION_DIR / "3dep_10m.tif"

# Protected areas (PAD-US designation, easement, fee, proclamation)
PADUS_DIR = RAW_DIR / "padus"
PADUS_FILES = [
    PADUS_DIR / "padus_designation.gpkg",
    PADUS_DIR / "padus_easement.gpkg",
    PADUS_DIR / "padus_fee.gpkg",
    PADUS_DIR / "padus_proclamation.gpkg",
]

# USFWS critical habitat
CRITICAL_HABITAT_DIR = RAW_DIR / "critical_habitat"
CRITICAL_HABITAT_FILE = CRITICAL_HABITAT_DIR / "crithab_poly.gpkg"

# National Hydrography Dataset flowlines and waterbodies
HYDROGRAPHY_DIR = RAW_DIR / "nhd"
HYDROGRAPHY_FILES = [
    HYDROGRAPHY_DIR / "nhd_flowline.gpkg",
    HYDROGRAPHY_DIR / "nhd_waterbody.gpkg",
]

# Roads and trails (NFS roads/trails, MVUM roads/trails, TIGER roads)
ROADS_DIR = RAW_DIR / "roads"
ROADS_FILES = [
    ROADS_DIR / "road_core_fs.gpkg",
    ROADS_DIR / "trail_nfs_publish.gpkg",
    ROADS_DIR / "road_mvum.gpkg",
    ROADS_DIR / "trail_mvum.gpkg",
    ROADS_DIR / "tiger_roads.gpkg",
]

# HUC-12 subwatersheds
WATERSHEDS_DIR = RAW_DIR / "watersheds"
HUC12_FILE = WATERSHEDS_DIR / "wbd_huc12.gpkg"

# Outputs
CONSTRAINT_RESULTS_DIR = RESULTS_DIR / "constraints"
WATERSHED_RESULTS_DIR = RESULTS_DIR / "watersheds"
LANDCOVER_RESULTS_DIR = RESULTS_DIR / "landcover"
