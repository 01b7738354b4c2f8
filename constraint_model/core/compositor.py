"""
Sequential compositing of the constraint masks.

Applies the five masks to the candidate land-cover mask in a fixed order and
keeps a snapshot after every step, so the area lost to each constraint can be
accounted for. Changing the order changes the per-stage results.

Author: Diego Bengochea
"""

from typing import Dict, List

import numpy as np

from .data_model import CANDIDATE_STAGE, MASK_EXCLUDE, MASK_INCLUDE, STAGE_ORDER, ExclusionMask, StageResult


def apply_mask(included: np.ndarray, mask: ExclusionMask) -> np.ndarray:
    """Cells of ``included`` that survive one mask; never adds cells."""
    if mask.array.shape != included.shape:
        raise ValueError(
            f"Mask '{mask.name}' shape {mask.array.shape} does not match stage shape {included.shape}"
        )
    if mask.kind == MASK_EXCLUDE:
        return included & ~mask.array.astype(bool)
    if mask.kind == MASK_INCLUDE:
        return included & mask.array.astype(bool)
    raise ValueError(f"Unknown mask kind for '{mask.name}': {mask.kind}")


def compose_stages(candidate: np.ndarray, masks: Dict[str, ExclusionMask]) -> List[StageResult]:
    """
    Build the ordered stage snapshots.

    Args:
        candidate: Candidate land-cover mask
        masks: Masks keyed by stage name; one per entry of STAGE_ORDER

    Returns:
        Six StageResults: ``candidate`` then protected, slope, administrative,
        riparian and roads. The last one is the treatable area.
    """
    missing = [name for name in STAGE_ORDER if name not in masks]
    if missing:
        raise ValueError(f"Missing constraint masks: {missing}")

    current = candidate.astype(bool)
    stages = [StageResult(CANDIDATE_STAGE, current)]
    for name in STAGE_ORDER:
        current = apply_mask(current, masks[name])
        stages.append(StageResult(name, current))
    return stages


def check_monotonic(stages: List[StageResult]) -> bool:
    """True when every stage keeps a subset of the previous stage's cells."""
    for previous, current in zip(stages, stages[1:]):
        if np.any(current.included & ~previous.included):
            return False
    return True


def final_stage(stages: List[StageResult]) -> StageResult:
    """The treatable area snapshot (after the roads stage)."""
    return stages[-1]
