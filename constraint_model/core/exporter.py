"""
Exports of the constraint analysis results.

Writes the per-region statistics table, the treatable area polygons, the
land-cover area breakdown and the run summary listing processed and skipped
regions.

Author: Diego Bengochea
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd
import geopandas as gpd

from shared_utils import get_logger, ensure_directory
from .data_model import AreaStatistics, Region, RegionOutcome, RegionResult

logger = get_logger('constraint_analysis.export')

VECTOR_EXTENSIONS = {
    'GPKG': '.gpkg',
    'ESRI Shapefile': '.shp',
    'GeoJSON': '.geojson',
}


def statistics_to_dataframe(
    records: Iterable[AreaStatistics],
    regions: Optional[Sequence[Region]] = None,
    attribute_fields: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    One row per region with total, land-cover and candidate areas and the
    remaining area and retained fraction after each stage.

    Region attributes listed in ``attribute_fields`` are copied next to the
    region id and name. Undefined fractions stay missing.
    """
    rows = [record.to_row() for record in records]
    df = pd.DataFrame(rows)

    if attribute_fields and regions and len(df):
        by_id = {r.region_id: r for r in regions}
        region_ids = list(df['region_id']) if 'region_id' in df.columns else []
        for field_name in reversed(attribute_fields):
            if field_name in df.columns:
                continue
            values = [by_id[rid].attributes.get(field_name) if rid in by_id else None
                      for rid in region_ids]
            df.insert(2, field_name, values)

    return df


def landcover_areas_to_dataframe(results: Iterable[RegionResult]) -> pd.DataFrame:
    """Area of every land-cover class per region, one ``area_m2_lc_cl_<code>`` column per class."""
    rows = []
    for result in results:
        row = {'region_id': result.region.region_id, 'region_name': result.region.name}
        for code, area in sorted(result.landcover_areas.items()):
            row[f'area_m2_lc_cl_{code}'] = area
        rows.append(row)
    return pd.DataFrame(rows)


def outcomes_to_dataframe(outcomes: Iterable[RegionOutcome]) -> pd.DataFrame:
    return pd.DataFrame(
        [{'region_id': o.region_id, 'region_name': o.region_name, 'status': o.status, 'reason': o.reason}
         for o in outcomes],
        columns=['region_id', 'region_name', 'status', 'reason']
    )


def combine_vectors(frames: List[gpd.GeoDataFrame], crs=None) -> gpd.GeoDataFrame:
    """Concatenate the per-region treatable polygons into one layer."""
    frames = [f for f in frames if f is not None and len(f)]
    if not frames:
        return gpd.GeoDataFrame({'region_id': [], 'treatable': [], 'geometry': []},
                                geometry='geometry', crs=crs)
    return gpd.GeoDataFrame(pd.concat(frames, ignore_index=True), geometry='geometry', crs=crs or frames[0].crs)


def export_table(df: pd.DataFrame, output_dir: Union[str, Path], prefix: str, suffix: str) -> Path:
    output_file = ensure_directory(output_dir) / f"{prefix}_{suffix}.csv"
    df.to_csv(output_file, index=False, na_rep='')
    logger.info(f"Wrote {len(df)} rows to {output_file}")
    return output_file


def export_statistics(df: pd.DataFrame, output_dir: Union[str, Path], prefix: str) -> Path:
    return export_table(df, output_dir, prefix, 'statistics')


def export_landcover_areas(df: pd.DataFrame, output_dir: Union[str, Path], prefix: str) -> Path:
    return export_table(df, output_dir, prefix, 'landcover_area')


def export_run_summary(outcomes: Iterable[RegionOutcome], output_dir: Union[str, Path], prefix: str) -> Path:
    return export_table(outcomes_to_dataframe(outcomes), output_dir, prefix, 'run_summary')


def export_vectors(gdf: gpd.GeoDataFrame, output_dir: Union[str, Path], prefix: str,
                   driver: str = 'GPKG') -> Optional[Path]:
    """
    Write the treatable area polygons.

    Returns None without writing when there are no polygons.
    """
    if driver not in VECTOR_EXTENSIONS:
        raise ValueError(f"Unsupported vector driver: {driver}. Choose from {list(VECTOR_EXTENSIONS)}")
    if len(gdf) == 0:
        logger.warning("No treatable area polygons to export")
        return None

    output_file = ensure_directory(output_dir) / f"{prefix}_vectors{VECTOR_EXTENSIONS[driver]}"
    gdf.to_file(output_file, driver=driver)
    logger.info(f"Wrote {len(gdf)} polygons to {output_file}")
    return output_file


def export_all(statistics: pd.DataFrame, vectors: gpd.GeoDataFrame, outcomes: Iterable[RegionOutcome],
               output_dir: Union[str, Path], prefix: str, driver: str = 'GPKG',
               landcover_areas: Optional[pd.DataFrame] = None) -> Dict[str, Optional[Path]]:
    """Write every output of a run; returns the written paths by output name."""
    written = {
        'statistics': export_statistics(statistics, output_dir, prefix),
        'vectors': export_vectors(vectors, output_dir, prefix, driver),
        'run_summary': export_run_summary(outcomes, output_dir, prefix),
    }
    if landcover_areas is not None:
        written['landcover_area'] = export_landcover_areas(landcover_areas, output_dir, prefix)
    return written
