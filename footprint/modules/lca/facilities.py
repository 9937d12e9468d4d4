"""Facility-to-product emission allocation with scope routing."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from footprint.core.logging import get_logger
from footprint.modules.lca.schemas import FacilityEmissionsAllocation

logger = get_logger(__name__)

VOLUME_FLOOR = 1.0


@dataclass(frozen=True)
class FacilityAllocationTotals:
    """Per-unit facility emissions summed over all allocations."""

    processing: float = 0.0
    scope1: float = 0.0
    scope2: float = 0.0
    scope3: float = 0.0
    sites_count: int = 0


def volume_divisor(product_volume: float) -> float:
    """Divisor for per-unit conversion, floored at one unit.

    A zero volume therefore reports the facility's raw total as the
    per-unit figure. That inflated number is the only signal callers get.
    """
    return max(product_volume, VOLUME_FLOOR)


def allocate_facility_emissions(
    allocations: Sequence[FacilityEmissionsAllocation],
) -> FacilityAllocationTotals:
    """Convert facility totals to per-unit figures and route them to scopes.

    Owned facilities contribute their own scope 1 and 2 split. Contract
    manufacturers are value-chain suppliers, so their whole per-unit figure
    is scope 3 whatever their own split says.
    """
    processing = scope1 = scope2 = scope3 = 0.0

    for allocation in allocations:
        if allocation.product_volume <= 0:
            logger.warning(
                "zero_production_volume",
                facility_id=allocation.facility_id,
                allocated_emissions=allocation.allocated_emissions,
            )
        divisor = volume_divisor(allocation.product_volume)
        per_unit = allocation.allocated_emissions / divisor
        processing += per_unit

        if allocation.is_contract_manufacturer:
            scope3 += per_unit
        else:
            scope1 += allocation.scope1_emissions / divisor
            scope2 += allocation.scope2_emissions / divisor

    return FacilityAllocationTotals(
        processing=processing,
        scope1=scope1,
        scope2=scope2,
        scope3=scope3,
        sites_count=len(allocations),
    )
