"""Domain errors raised inside the aggregation pipeline.

Fatal errors are converted into ``AggregationResult(success=False)`` by the
service layer; only ``RepositoryError`` crosses the repository boundary.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """A material repository read failed."""


class AggregationError(Exception):
    """Base class for fatal aggregation failures."""

    code = "aggregation_failed"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FetchFailure(AggregationError):
    """A repository read errored."""

    code = "fetch_failed"


class MaterialsFetchFailed(FetchFailure):
    """The materials read errored."""

    code = "materials_fetch_failed"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to fetch materials: {reason}")


class NoMaterialsFound(AggregationError):
    """The PCF has no material rows, which is distinct from a broken fetch."""

    code = "no_materials_found"

    def __init__(self, pcf_id: str | None = None) -> None:
        message = "No materials found for this LCA"
        super().__init__(f"{message} ({pcf_id})" if pcf_id else message)
        self.pcf_id = pcf_id
