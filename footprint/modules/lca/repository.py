"""Material repository: the read interface the aggregation service depends on.

Implementations raise ``RepositoryError`` for any failed read. A missing
PCF header or product record is not an error and is returned as ``None``.
"""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError

from footprint.core.logging import get_logger
from footprint.db.models import (
    MATERIAL_ROW_COLUMNS,
    Product,
    ProductCarbonFootprint,
    ProductCarbonFootprintMaterial,
)
from footprint.db.session import ReadSessionFactory, read_session
from footprint.modules.lca.errors import RepositoryError
from footprint.modules.lca.schemas import MaterialImpactRow, PCFRecord, ProductRecord

logger = get_logger(__name__)


class MaterialRepository(Protocol):
    """Async reads of a PCF's material rows, header and product."""

    async def get_materials(self, pcf_id: str) -> list[MaterialImpactRow]: ...

    async def get_pcf(self, pcf_id: str) -> PCFRecord | None: ...

    async def get_product(self, pcf_id: str) -> ProductRecord | None: ...


class SqlAlchemyMaterialRepository:
    """``MaterialRepository`` backed by the PCF tables.

    Each read opens its own session from *session_factory*, so the
    service's concurrent reads never share a session.

    Usage::

        repository = SqlAlchemyMaterialRepository()
        result = await aggregate_product_impacts(repository, pcf_id)
    """

    def __init__(self, session_factory: ReadSessionFactory | None = None) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_materials(self, pcf_id: str) -> list[MaterialImpactRow]:
        footprint_id = _parse_pcf_id(pcf_id)
        records = await self._fetch_all(
            select(ProductCarbonFootprintMaterial).where(
                ProductCarbonFootprintMaterial.product_carbon_footprint_id == footprint_id
            ),
            pcf_id=pcf_id,
            event="materials_query_failed",
        )
        return [MaterialImpactRow.model_validate(_material_values(record)) for record in records]

    async def get_pcf(self, pcf_id: str) -> PCFRecord | None:
        footprint_id = _parse_pcf_id(pcf_id)
        record = await self._fetch_one(
            select(ProductCarbonFootprint).where(ProductCarbonFootprint.id == footprint_id),
            pcf_id=pcf_id,
            event="pcf_query_failed",
        )
        if record is None:
            return None
        return PCFRecord(
            organization_id=record.organization_id,
            product_id=record.product_id,
            system_boundary=record.system_boundary,
        )

    async def get_product(self, pcf_id: str) -> ProductRecord | None:
        footprint_id = _parse_pcf_id(pcf_id)
        record = await self._fetch_one(
            select(Product)
            .join(ProductCarbonFootprint, ProductCarbonFootprint.product_id == Product.id)
            .where(ProductCarbonFootprint.id == footprint_id),
            pcf_id=pcf_id,
            event="product_query_failed",
        )
        if record is None:
            return None
        return ProductRecord(
            unit_size_value=record.unit_size_value,
            unit_size_unit=record.unit_size_unit,
            functional_unit=record.functional_unit,
            product_category=record.product_category,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_all(self, statement: Select[Any], *, pcf_id: str, event: str) -> list[Any]:
        try:
            async with read_session(self._session_factory) as session:
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error(event, pcf_id=pcf_id, error=str(exc))
            raise RepositoryError(str(exc)) from exc

    async def _fetch_one(self, statement: Select[Any], *, pcf_id: str, event: str) -> Any:
        try:
            async with read_session(self._session_factory) as session:
                result = await session.execute(statement)
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error(event, pcf_id=pcf_id, error=str(exc))
            raise RepositoryError(str(exc)) from exc


def _parse_pcf_id(pcf_id: str) -> UUID:
    try:
        return UUID(str(pcf_id))
    except ValueError as exc:
        raise RepositoryError(f"Invalid PCF id: {pcf_id!r}") from exc


def _material_values(record: ProductCarbonFootprintMaterial) -> dict[str, Any]:
    return {column: getattr(record, column) for column in MATERIAL_ROW_COLUMNS}
