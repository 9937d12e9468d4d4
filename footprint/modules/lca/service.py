"""LCA service: entry point that wires the repository to the engine.

Fetches a PCF's material rows, header and product concurrently, resolves
the system boundary and hands everything to the stateless
``ImpactAggregationEngine``. Expected failures come back as
``AggregationResult(success=False)``; anything else propagates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TypeVar

from footprint.core.config import get_settings
from footprint.core.logging import aggregation_context, get_logger
from footprint.db.session import ReadSessionFactory
from footprint.modules.lca.boundary import resolve_boundary
from footprint.modules.lca.engine import ImpactAggregationEngine
from footprint.modules.lca.errors import (
    AggregationError,
    FetchFailure,
    MaterialsFetchFailed,
    NoMaterialsFound,
    RepositoryError,
)
from footprint.modules.lca.factors.loader import FactorDatabase
from footprint.modules.lca.repository import MaterialRepository, SqlAlchemyMaterialRepository
from footprint.modules.lca.schemas import (
    AggregationResult,
    EndOfLifeConfig,
    FacilityEmissionsAllocation,
    MaterialImpactRow,
    PCFRecord,
    ProductRecord,
    SystemBoundary,
    UsePhaseConfig,
)

logger = get_logger(__name__)

T = TypeVar("T")

# Module-level singleton engine (factor tables loaded once)
_engine: ImpactAggregationEngine | None = None


def _get_engine() -> ImpactAggregationEngine:
    """Return the module-level engine singleton built from settings."""
    global _engine  # noqa: PLW0603
    if _engine is None:
        settings = get_settings()
        factor_db = FactorDatabase(yaml_path=settings.lca_factor_database_path or None)
        _engine = ImpactAggregationEngine(
            factor_db.factors,
            calculation_version=settings.lca_calculation_version,
            process_addition_markers=settings.lca_process_addition_marker_list,
        )
    return _engine


async def aggregate_product_impacts(
    repository: MaterialRepository,
    pcf_id: str,
    facility_allocations: Sequence[FacilityEmissionsAllocation] = (),
    system_boundary: SystemBoundary | str | None = None,
    use_phase_config: UsePhaseConfig | None = None,
    eol_config: EndOfLifeConfig | None = None,
    *,
    engine: ImpactAggregationEngine | None = None,
) -> AggregationResult:
    """Aggregate the footprint of one PCF.

    The boundary is taken from *system_boundary*, then the PCF record, then
    the configured default.

    Usage::

        result = await aggregate_product_impacts(
            repository,
            pcf_id,
            facility_allocations=[allocation],
            system_boundary="cradle-to-grave",
            use_phase_config=UsePhaseConfig(needs_refrigeration=True),
            eol_config=build_regional_eol_config(factors, "eu", ["aluminium"]),
        )
    """
    engine = engine or _get_engine()
    warnings: list[str] = []

    with aggregation_context(pcf_id, calculation_version=engine.calculation_version):
        try:
            materials, pcf, product = await _fetch(repository, pcf_id)

            settings = get_settings()
            boundary, boundary_warnings = resolve_boundary(
                system_boundary,
                pcf.system_boundary if pcf is not None else None,
                default=SystemBoundary(settings.lca_default_boundary),
            )
            warnings.extend(boundary_warnings)

            if not materials:
                raise NoMaterialsFound(pcf_id)

            return engine.aggregate(
                materials,
                facility_allocations=facility_allocations,
                boundary=boundary,
                use_phase_config=use_phase_config,
                eol_config=eol_config,
                product=product,
                warnings=warnings,
            )
        except AggregationError as exc:
            logger.warning("aggregation_failed", code=exc.code, error=exc.message)
            return AggregationResult(
                success=False,
                error=exc.message,
                error_code=exc.code,
                warnings=warnings,
            )


async def aggregate_stored_product_impacts(
    pcf_id: str,
    facility_allocations: Sequence[FacilityEmissionsAllocation] = (),
    system_boundary: SystemBoundary | str | None = None,
    use_phase_config: UsePhaseConfig | None = None,
    eol_config: EndOfLifeConfig | None = None,
    *,
    session_factory: ReadSessionFactory | None = None,
    engine: ImpactAggregationEngine | None = None,
) -> AggregationResult:
    """Aggregate a PCF read straight from the database.

    Reads go through *session_factory*, or the process-wide read session
    factory when none is given.
    """
    return await aggregate_product_impacts(
        SqlAlchemyMaterialRepository(session_factory),
        pcf_id,
        facility_allocations,
        system_boundary,
        use_phase_config,
        eol_config,
        engine=engine,
    )


async def _fetch(
    repository: MaterialRepository,
    pcf_id: str,
) -> tuple[list[MaterialImpactRow], PCFRecord | None, ProductRecord | None]:
    materials, pcf, product = await asyncio.gather(
        repository.get_materials(pcf_id),
        repository.get_pcf(pcf_id),
        repository.get_product(pcf_id),
        return_exceptions=True,
    )

    if isinstance(materials, RepositoryError):
        logger.error("materials_fetch_failed", pcf_id=pcf_id, error=str(materials))
        raise MaterialsFetchFailed(str(materials)) from materials

    return (
        _unwrap(materials, pcf_id, "materials"),
        _unwrap(pcf, pcf_id, "PCF record"),
        _unwrap(product, pcf_id, "product"),
    )


def _unwrap(value: T | BaseException, pcf_id: str, what: str) -> T:
    if isinstance(value, RepositoryError):
        logger.error("repository_fetch_failed", pcf_id=pcf_id, what=what, error=str(value))
        raise FetchFailure(f"Failed to fetch {what}: {value}") from value
    if isinstance(value, BaseException):
        raise value
    return value
