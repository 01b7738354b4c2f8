"""
Constraint parameters for the treatable area analysis.

Holds the per-run options that drive the land-cover classifier and the five
exclusion mask builders, their validation, and the feet to metre conversion
used for every buffer distance.

Author: Diego Bengochea
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .errors import InvalidParameter

# Exact conversion factor used for configured buffer distances
FEET_PER_METER = 3.2808

# GAP status codes defined by PAD-US
VALID_GAP_STATUS_CODES = (1, 2, 3, 4)

# NLCD deciduous, evergreen and mixed forest
DEFAULT_LANDCOVER_CLASSES = (41, 42, 43)


def feet_to_meters(feet: float) -> float:
    """Convert a distance in feet to metres (1 m = 3.2808 ft)."""
    return float(feet) / FEET_PER_METER


@dataclass(frozen=True)
class ConstraintParameters:
    """
    Options for one constraint analysis run.

    Buffer distances are expressed in feet, as configured; use the
    ``*_buffer_m`` properties wherever a distance reaches a geometry operation.
    """
    landcover_classes: Tuple[int, ...] = DEFAULT_LANDCOVER_CLASSES
    max_slope_percent: float = 35.0
    road_buffer_distance: float = 2000.0
    riparian_buffer_distance: float = 100.0
    gap_status_codes: Tuple[int, ...] = (1,)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ConstraintParameters":
        """
        Build parameters from the ``constraints`` section of a configuration.

        Accepts either the full configuration dictionary or the section itself.
        Unknown keys raise InvalidParameter so typos do not silently fall back
        to defaults.
        """
        section = config.get('constraints', config) if isinstance(config, dict) else None
        if not isinstance(section, dict):
            raise InvalidParameter("Constraint configuration must be a mapping")

        known = {f for f in cls.__dataclass_fields__}
        unknown = sorted(set(section) - known)
        if unknown:
            raise InvalidParameter(f"Unknown constraint parameters: {unknown}")

        values = dict(section)
        try:
            for key in ('landcover_classes', 'gap_status_codes'):
                if key in values:
                    values[key] = tuple(int(v) for v in (values[key] or []))
            for key in ('max_slope_percent', 'road_buffer_distance', 'riparian_buffer_distance'):
                if key in values:
                    values[key] = float(values[key])
        except (TypeError, ValueError) as e:
            raise InvalidParameter(f"Malformed constraint parameter: {e}")

        params = cls(**values)
        params.validate()
        return params

    def validate(self) -> None:
        """
        Check parameter values.

        Raises:
            InvalidParameter: On an empty class set, negative thresholds or
                buffers or unknown GAP status codes
        """
        if not self.landcover_classes:
            raise InvalidParameter("landcover_classes must contain at least one class code")
        if self.max_slope_percent < 0:
            raise InvalidParameter(f"max_slope_percent must be >= 0, got {self.max_slope_percent}")
        if self.road_buffer_distance < 0:
            raise InvalidParameter(f"road_buffer_distance must be >= 0, got {self.road_buffer_distance}")
        if self.riparian_buffer_distance < 0:
            raise InvalidParameter(
                f"riparian_buffer_distance must be >= 0, got {self.riparian_buffer_distance}"
            )
        invalid_codes = [c for c in self.gap_status_codes if c not in VALID_GAP_STATUS_CODES]
        if invalid_codes:
            raise InvalidParameter(
                f"gap_status_codes must be drawn from {VALID_GAP_STATUS_CODES}, got {invalid_codes}"
            )

    @property
    def road_buffer_m(self) -> float:
        return feet_to_meters(self.road_buffer_distance)

    @property
    def riparian_buffer_m(self) -> float:
        return feet_to_meters(self.riparian_buffer_distance)

    def as_dict(self) -> Dict[str, Any]:
        return {
            'landcover_classes': list(self.landcover_classes),
            'max_slope_percent': self.max_slope_percent,
            'road_buffer_distance': self.road_buffer_distance,
            'riparian_buffer_distance': self.riparian_buffer_distance,
            'gap_status_codes': list(self.gap_status_codes),
        }
