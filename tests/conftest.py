"""
Pytest fixtures for the aggregation engine.
Provides methodology factors, an engine with a fixed clock and lifecycle configs.
"""

import pytest

from footprint.core.config import get_settings
from footprint.modules.lca.engine import ImpactAggregationEngine
from footprint.modules.lca.errors import RepositoryError
from footprint.modules.lca.factors.loader import get_default_factors
from footprint.modules.lca.schemas import (
    EndOfLifeConfig,
    EndOfLifePathwayShares,
    MethodologyFactors,
    ProductRecord,
    UsePhaseConfig,
)
from tests.factories import FIXED_NOW, FakeMaterialRepository


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are re-read from the environment for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def factors() -> MethodologyFactors:
    return get_default_factors()


@pytest.fixture
def engine(factors: MethodologyFactors) -> ImpactAggregationEngine:
    return ImpactAggregationEngine(factors, clock=lambda: FIXED_NOW)


@pytest.fixture
def beer_product() -> ProductRecord:
    return ProductRecord(
        unit_size_value=330,
        unit_size_unit="ml",
        functional_unit="330ml can",
        product_category="Beer & Cider",
    )


@pytest.fixture
def eol_config() -> EndOfLifeConfig:
    return EndOfLifeConfig(
        region="eu",
        pathways={
            "aluminium": EndOfLifePathwayShares(recycling=75, landfill=10, incineration=15),
            "paper": EndOfLifePathwayShares(
                recycling=82, landfill=3, incineration=10, composting=3, anaerobic_digestion=2
            ),
        },
    )


@pytest.fixture
def use_phase_config() -> UsePhaseConfig:
    return UsePhaseConfig(
        needs_refrigeration=True,
        refrigeration_days=7,
        retail_refrigeration_split=0.5,
        is_carbonated=True,
        carbonation_type="beer",
        consumer_country_code="GB",
    )


@pytest.fixture
def broken_repository() -> FakeMaterialRepository:
    return FakeMaterialRepository(materials=RepositoryError("connection reset"))
