"""
Area accounting for the constraint stages.

Converts the stage snapshots of a region into remaining areas and the
fraction of candidate area retained after each stage. Regions processed in
tiles are accounted from the cell counts summed over their tiles.

Author: Diego Bengochea
"""

import warnings
from typing import Dict, List, Optional

from shared_utils import get_logger
from .data_model import CANDIDATE_STAGE, STAGE_ORDER, AreaStatistics, Region, StageResult
from .errors import ZeroCandidateArea

logger = get_logger('constraint_analysis.areas')


def stage_cell_counts(stages: List[StageResult]) -> Dict[str, int]:
    """Included cell count of every stage, keyed by stage name."""
    return {stage.name: stage.cell_count for stage in stages}


def area_statistics_from_counts(
    region: Region,
    stage_cells: Dict[str, int],
    cell_area: float,
    landcover_area_m2: Optional[float] = None,
) -> AreaStatistics:
    """
    Compute the area statistics record of a region from stage cell counts.

    Area of a stage is its included cell count times the cell ground area.
    Retained fractions are relative to the candidate area and are None when
    the candidate area is zero.

    Args:
        region: Region the counts belong to
        stage_cells: Cell count per stage name, including the candidate stage
        cell_area: Ground area of one cell in m²
        landcover_area_m2: Area of all land-cover cells in the region, if known

    Returns:
        AreaStatistics
    """
    missing = [n for n in (CANDIDATE_STAGE,) + STAGE_ORDER if n not in stage_cells]
    if missing:
        raise ValueError(f"Missing stage results: {missing}")

    candidate_area = stage_cells[CANDIDATE_STAGE] * cell_area
    stage_areas = {name: stage_cells[name] * cell_area for name in STAGE_ORDER}

    if candidate_area > 0:
        stage_fractions = {name: stage_areas[name] / candidate_area for name in STAGE_ORDER}
    else:
        message = f"Region {region.region_id} has no candidate land cover; retained fractions undefined"
        logger.warning(message)
        warnings.warn(message, ZeroCandidateArea)
        stage_fractions = {name: None for name in STAGE_ORDER}

    return AreaStatistics(
        region_id=region.region_id,
        region_name=region.name,
        region_area_m2=region.area_m2,
        landcover_area_m2=float(landcover_area_m2) if landcover_area_m2 is not None else float('nan'),
        candidate_area_m2=float(candidate_area),
        stage_areas_m2={k: float(v) for k, v in stage_areas.items()},
        stage_fractions=stage_fractions,
    )


def compute_area_statistics(
    region: Region,
    stages: List[StageResult],
    cell_area: float,
    landcover_area_m2: Optional[float] = None,
) -> AreaStatistics:
    """Area statistics record of a region from its stage snapshots (candidate first)."""
    return area_statistics_from_counts(region, stage_cell_counts(stages), cell_area, landcover_area_m2)
