"""Unit tests for the async aggregation entry point."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog

from footprint.modules.lca.engine import ImpactAggregationEngine
from footprint.modules.lca.errors import RepositoryError
from footprint.modules.lca.schemas import (
    EndOfLifeConfig,
    MaterialImpactRow,
    PCFRecord,
    ProductRecord,
    SystemBoundary,
    UsePhaseConfig,
)
from footprint.modules.lca.service import (
    aggregate_product_impacts,
    aggregate_stored_product_impacts,
)
from tests.factories import BEER_MATERIALS, MALT, OWNED_FACILITY, FakeMaterialRepository

PCF_ID = "0193a5b2-7c1e-7d4f-8a21-5f0c3e9b1d42"


@pytest.mark.asyncio
async def test_successful_aggregation_reads_all_three_sources(
    engine: ImpactAggregationEngine,
    beer_product: ProductRecord,
) -> None:
    repository = FakeMaterialRepository(
        materials=BEER_MATERIALS,
        pcf=PCFRecord(organization_id="org-1", product_id=42),
        product=beer_product,
    )

    result = await aggregate_product_impacts(
        repository, PCF_ID, facility_allocations=[OWNED_FACILITY], engine=engine
    )

    assert result.success is True
    assert result.error is None
    assert result.materials_count == 5
    assert result.production_sites_count == 1
    assert result.system_boundary is SystemBoundary.CRADLE_TO_GATE
    assert sorted(repository.calls) == ["materials", "pcf", "product"]


@pytest.mark.asyncio
async def test_boundary_from_pcf_record(
    engine: ImpactAggregationEngine,
    beer_product: ProductRecord,
    use_phase_config: UsePhaseConfig,
    eol_config: EndOfLifeConfig,
) -> None:
    repository = FakeMaterialRepository(
        materials=BEER_MATERIALS,
        pcf=PCFRecord(system_boundary="cradle-to-grave"),
        product=beer_product,
    )

    result = await aggregate_product_impacts(
        repository,
        PCF_ID,
        use_phase_config=use_phase_config,
        eol_config=eol_config,
        engine=engine,
    )

    assert result.system_boundary is SystemBoundary.CRADLE_TO_GRAVE
    assert result.impacts.breakdown.by_lifecycle_stage.end_of_life < 0


@pytest.mark.asyncio
async def test_explicit_boundary_wins_over_pcf_record(engine: ImpactAggregationEngine) -> None:
    repository = FakeMaterialRepository(
        materials=[MALT], pcf=PCFRecord(system_boundary="cradle-to-grave")
    )

    result = await aggregate_product_impacts(
        repository, PCF_ID, system_boundary="cradle-to-shelf", engine=engine
    )

    assert result.system_boundary is SystemBoundary.CRADLE_TO_SHELF
    assert result.warnings == []


@pytest.mark.asyncio
async def test_configured_default_boundary(
    engine: ImpactAggregationEngine,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LCA_DEFAULT_BOUNDARY", "cradle-to-consumer")
    repository = FakeMaterialRepository(materials=[MALT])

    result = await aggregate_product_impacts(repository, PCF_ID, engine=engine)

    assert result.system_boundary is SystemBoundary.CRADLE_TO_CONSUMER
    assert any("use_phase_config" in w for w in result.warnings)


@pytest.mark.asyncio
async def test_unrecognised_boundary_falls_back_with_warning(
    engine: ImpactAggregationEngine,
) -> None:
    repository = FakeMaterialRepository(materials=[MALT])

    result = await aggregate_product_impacts(
        repository, PCF_ID, system_boundary="cradle-to-moon", engine=engine
    )

    assert result.success is True
    assert result.system_boundary is SystemBoundary.CRADLE_TO_GATE
    assert any("cradle-to-moon" in w for w in result.warnings)


@pytest.mark.asyncio
async def test_unrecognised_boundary_does_not_inherit_wider_default(
    engine: ImpactAggregationEngine,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LCA_DEFAULT_BOUNDARY", "cradle-to-grave")
    repository = FakeMaterialRepository(materials=[MALT])

    result = await aggregate_product_impacts(
        repository, PCF_ID, system_boundary="cradle-to-moon", engine=engine
    )

    assert result.system_boundary is SystemBoundary.CRADLE_TO_GATE
    assert not any("eol_config" in w for w in result.warnings)
    assert not any("use_phase_config" in w for w in result.warnings)


@pytest.mark.asyncio
async def test_materials_fetch_failure_returns_failure_result(
    engine: ImpactAggregationEngine,
    broken_repository: FakeMaterialRepository,
) -> None:
    result = await aggregate_product_impacts(broken_repository, PCF_ID, engine=engine)

    assert result.success is False
    assert "Failed to fetch materials" in result.error
    assert "connection reset" in result.error
    assert result.error_code == "materials_fetch_failed"
    assert result.impacts is None
    assert result.total_carbon_footprint == 0


@pytest.mark.asyncio
async def test_no_materials_returns_failure_result(engine: ImpactAggregationEngine) -> None:
    result = await aggregate_product_impacts(FakeMaterialRepository(), PCF_ID, engine=engine)

    assert result.success is False
    assert "No materials found" in result.error
    assert result.error_code == "no_materials_found"
    assert result.impacts is None


@pytest.mark.asyncio
async def test_pcf_fetch_failure_returns_failure_result(engine: ImpactAggregationEngine) -> None:
    repository = FakeMaterialRepository(
        materials=[MALT], pcf=RepositoryError("permission denied")
    )

    result = await aggregate_product_impacts(repository, PCF_ID, engine=engine)

    assert result.success is False
    assert result.error_code == "fetch_failed"
    assert "PCF record" in result.error
    assert result.impacts is None


@pytest.mark.asyncio
async def test_unexpected_repository_errors_propagate(engine: ImpactAggregationEngine) -> None:
    repository = FakeMaterialRepository(materials=RuntimeError("bug"))

    with pytest.raises(RuntimeError, match="bug"):
        await aggregate_product_impacts(repository, PCF_ID, engine=engine)


@pytest.mark.asyncio
async def test_async_mock_repository(engine: ImpactAggregationEngine) -> None:
    repository = AsyncMock()
    repository.get_materials.return_value = [MALT]
    repository.get_pcf.return_value = None
    repository.get_product.return_value = None

    result = await aggregate_product_impacts(repository, PCF_ID, engine=engine)

    assert result.success is True
    assert result.total_carbon_footprint == pytest.approx(0.450)
    repository.get_materials.assert_awaited_once_with(PCF_ID)
    repository.get_pcf.assert_awaited_once_with(PCF_ID)
    repository.get_product.assert_awaited_once_with(PCF_ID)


@pytest.mark.asyncio
async def test_default_engine_built_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LCA_CALCULATION_VERSION", "9.9.9")
    monkeypatch.setattr("footprint.modules.lca.service._engine", None)
    repository = FakeMaterialRepository(materials=[MALT])

    result = await aggregate_product_impacts(repository, PCF_ID)

    assert result.success is True
    assert result.calculation_version == "9.9.9"


@pytest.mark.asyncio
async def test_reads_run_inside_aggregation_context(engine: ImpactAggregationEngine) -> None:
    seen: list[dict[str, object]] = []

    async def get_materials(pcf_id: str) -> list[MaterialImpactRow]:
        seen.append(structlog.contextvars.get_contextvars())
        return [MALT]

    repository = AsyncMock()
    repository.get_materials.side_effect = get_materials
    repository.get_pcf.return_value = None
    repository.get_product.return_value = None

    await aggregate_product_impacts(repository, PCF_ID, engine=engine)

    assert seen == [{"pcf_id": PCF_ID, "calculation_version": engine.calculation_version}]
    assert structlog.contextvars.get_contextvars() == {}


@pytest.mark.asyncio
async def test_stored_aggregation_reads_through_session_factory(
    engine: ImpactAggregationEngine,
) -> None:
    factory = MagicMock()

    with patch(
        "footprint.modules.lca.service.SqlAlchemyMaterialRepository",
        return_value=FakeMaterialRepository(materials=[MALT]),
    ) as repository_cls:
        result = await aggregate_stored_product_impacts(
            PCF_ID, session_factory=factory, engine=engine
        )

    repository_cls.assert_called_once_with(factory)
    assert result.success is True
    assert result.total_carbon_footprint == pytest.approx(0.450)
