"""
Exception types for the constraint analysis.

Author: Diego Bengochea
"""


class ConstraintAnalysisError(Exception):
    """Base class for constraint analysis errors."""


class InvalidParameter(ConstraintAnalysisError, ValueError):
    """Constraint parameters are unusable; raised before any region is processed."""


class MissingExternalData(ConstraintAnalysisError):
    """A data source has no features or raster coverage for a region."""

    def __init__(self, source_name: str, region_id: str, detail: str = ""):
        self.source_name = source_name
        self.region_id = region_id
        message = f"No {source_name} data for region {region_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class GeometryError(ConstraintAnalysisError):
    """A region polygon is empty, malformed or self-intersecting."""


class ZeroCandidateArea(UserWarning):
    """No qualifying land cover inside a region; retained fractions are undefined."""
