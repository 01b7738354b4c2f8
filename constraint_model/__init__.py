"""
Treatable Area Constraint Component

This component estimates how much forest in a region of interest can be
treated once legal, physical, administrative, ecological and access
constraints are applied, including:

- Land-cover classification of candidate forest cover
- Protected lands, slope, administrative, riparian and road proximity masks
- Sequential compositing with per-stage area accounting
- Treatable / not treatable polygons and tabular exports
- Land-cover area breakdown and watershed intersection reports

Components:
    core/: Core processing modules
    scripts/: Executable entry points
    config.yaml: Component configuration

Author: Diego Bengochea
"""

from .core.constraint_pipeline import ConstraintAnalysisPipeline
from .core.parameters import ConstraintParameters
from .core.data_sources import DataSources

__version__ = "1.0.0"
__component__ = "constraint_analysis"

__all__ = [
    "ConstraintAnalysisPipeline",
    "ConstraintParameters",
    "DataSources"
]
