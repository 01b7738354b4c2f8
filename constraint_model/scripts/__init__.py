"""
Executable scripts for the constraint analysis component.

Scripts:
    run_constraint_analysis.py: Treatable area analysis over all regions
    run_landcover_areas.py: Land-cover area per class and region
    run_watershed_intersection.py: HUC-12 watershed intersection report

Author: Diego Bengochea
"""

from .run_constraint_analysis import main as run_constraint_analysis
from .run_landcover_areas import main as run_landcover_areas
from .run_watershed_intersection import main as run_watershed_intersection

__all__ = [
    "run_constraint_analysis",
    "run_landcover_areas",
    "run_watershed_intersection"
]
