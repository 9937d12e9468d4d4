"""Stateless product impact aggregation engine.

Turns a PCF's material impact rows, facility allocations and optional
lifecycle configuration into a boundary-aware, scope-allocated footprint.

The headline ``total_carbon_footprint`` counts each material's
``impact_climate`` exactly once: transport is already embedded in it and is
only accumulated separately for display. Stage buckets, by contrast, are
(climate + transport) per row, so they do not sum to the headline.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from footprint.core.logging import get_logger
from footprint.modules.lca.boundary import apply_boundary_gate
from footprint.modules.lca.data_quality import score_data_quality
from footprint.modules.lca.end_of_life import EndOfLifeCalculator
from footprint.modules.lca.errors import NoMaterialsFound
from footprint.modules.lca.facilities import allocate_facility_emissions
from footprint.modules.lca.ghg import build_ghg_breakdown
from footprint.modules.lca.normalizer import (
    DEFAULT_PROCESS_ADDITION_MARKERS,
    NormalizedMaterial,
    normalize_materials,
)
from footprint.modules.lca.schemas import (
    AggregatedImpacts,
    AggregationResult,
    EndOfLifeConfig,
    EndOfLifeResult,
    FacilityEmissionsAllocation,
    ImpactBreakdown,
    LifecycleStage,
    LifecycleStageBreakdown,
    MaterialContribution,
    MaterialImpactRow,
    MethodologyFactors,
    ProductRecord,
    ScopeBreakdown,
    SystemBoundary,
    UsePhaseConfig,
    UsePhaseResult,
)
from footprint.modules.lca.use_phase import UsePhaseCalculator

logger = get_logger(__name__)

DEFAULT_CALCULATION_VERSION = "3.0.0"
_PRECISION = 6


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _r(value: float) -> float:
    return round(value, _PRECISION)


@dataclass
class MaterialTotals:
    """Accumulated material-row figures before boundary modules run."""

    climate: float = 0.0
    climate_fossil: float = 0.0
    climate_biogenic: float = 0.0
    climate_dluc: float = 0.0
    transport: float = 0.0
    water: float = 0.0
    water_scarcity: float = 0.0
    land: float = 0.0
    waste: float = 0.0
    terrestrial_ecotoxicity: float = 0.0
    freshwater_eutrophication: float = 0.0
    terrestrial_acidification: float = 0.0
    fossil_resource_scarcity: float = 0.0
    stages: dict[LifecycleStage, float] = field(
        default_factory=lambda: {stage: 0.0 for stage in LifecycleStage}
    )
    by_material: list[MaterialContribution] = field(default_factory=list)


def sum_material_impacts(materials: Sequence[NormalizedMaterial]) -> MaterialTotals:
    """Sum material impacts without adding transport to the climate total."""
    totals = MaterialTotals()
    contributions: list[MaterialContribution] = []

    for material in materials:
        row = material.row
        totals.climate += row.impact_climate
        totals.climate_fossil += row.impact_climate_fossil
        totals.climate_biogenic += row.impact_climate_biogenic
        totals.climate_dluc += row.impact_climate_dluc
        totals.transport += row.impact_transport
        totals.water += row.impact_water
        totals.water_scarcity += row.impact_water_scarcity
        totals.land += row.impact_land
        totals.waste += row.impact_waste
        totals.terrestrial_ecotoxicity += row.impact_terrestrial_ecotoxicity
        totals.freshwater_eutrophication += row.impact_freshwater_eutrophication
        totals.terrestrial_acidification += row.impact_terrestrial_acidification
        totals.fossil_resource_scarcity += row.impact_fossil_resource_scarcity

        totals.stages[material.stage] += row.impact_climate + row.impact_transport

        contributions.append(
            MaterialContribution(
                name=row.name,
                quantity=row.quantity,
                unit=row.unit,
                climate=row.impact_climate,
                source=row.data_source or "unknown",
            )
        )

    totals.by_material = sorted(contributions, key=lambda c: c.climate, reverse=True)
    return totals


class ImpactAggregationEngine:
    """Stateless footprint aggregator.

    Usage::

        engine = ImpactAggregationEngine(get_default_factors())
        result = engine.aggregate(rows, boundary=SystemBoundary.CRADLE_TO_GRAVE,
                                  use_phase_config=use_phase, eol_config=eol,
                                  product=product)
    """

    def __init__(
        self,
        factors: MethodologyFactors,
        *,
        calculation_version: str = DEFAULT_CALCULATION_VERSION,
        process_addition_markers: Sequence[str] = DEFAULT_PROCESS_ADDITION_MARKERS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._factors = factors
        self._calculation_version = calculation_version
        self._markers = tuple(process_addition_markers)
        self._clock = clock
        self._use_phase = UsePhaseCalculator(factors)
        self._end_of_life = EndOfLifeCalculator(factors)

    @property
    def factor_database_version(self) -> str:
        return self._factors.version

    @property
    def calculation_version(self) -> str:
        return self._calculation_version

    def aggregate(
        self,
        materials: Sequence[MaterialImpactRow],
        *,
        facility_allocations: Sequence[FacilityEmissionsAllocation] = (),
        boundary: SystemBoundary = SystemBoundary.CRADLE_TO_GATE,
        use_phase_config: UsePhaseConfig | None = None,
        eol_config: EndOfLifeConfig | None = None,
        product: ProductRecord | None = None,
        warnings: Sequence[str] = (),
    ) -> AggregationResult:
        """Aggregate *materials* into a footprint for *boundary*.

        Raises:
            NoMaterialsFound: If *materials* is empty.
        """
        if not materials:
            raise NoMaterialsFound()

        collected = list(warnings)
        normalized = normalize_materials(materials, self._markers)
        totals = sum_material_impacts(normalized)

        decision = apply_boundary_gate(boundary, use_phase_config, eol_config)
        collected.extend(decision.warnings)

        use_phase = self._run_use_phase(decision.use_phase_config, product, collected)
        end_of_life = self._run_end_of_life(normalized, decision.eol_config)
        facilities = allocate_facility_emissions(facility_allocations)

        use_phase_total = use_phase.total if use_phase is not None else 0.0
        end_of_life_total = end_of_life.total if end_of_life is not None else 0.0

        total_carbon_footprint = (
            totals.climate + facilities.processing + use_phase_total + end_of_life_total
        )

        stages = LifecycleStageBreakdown(
            raw_materials=_r(totals.stages[LifecycleStage.RAW_MATERIALS]),
            packaging=_r(totals.stages[LifecycleStage.PACKAGING]),
            processing=_r(totals.stages[LifecycleStage.PROCESSING] + facilities.processing),
            use_phase=_r(use_phase_total),
            end_of_life=_r(end_of_life_total),
        )
        # Materials and downstream stages sit in the value chain.
        scopes = ScopeBreakdown(
            scope1=_r(facilities.scope1),
            scope2=_r(facilities.scope2),
            scope3=_r(totals.climate + facilities.scope3 + use_phase_total + end_of_life_total),
        )
        by_material = [
            contribution.model_copy(update={"climate": _r(contribution.climate)})
            for contribution in totals.by_material
        ]

        rows = [material.row for material in normalized]
        calculated_at = self._clock()

        impacts = AggregatedImpacts(
            total_carbon_footprint=_r(total_carbon_footprint),
            total_climate=_r(total_carbon_footprint),
            total_climate_fossil=_r(totals.climate_fossil),
            total_climate_biogenic=_r(totals.climate_biogenic),
            total_climate_dluc=_r(totals.climate_dluc),
            total_transport=_r(totals.transport),
            total_water=_r(totals.water),
            total_water_scarcity=_r(totals.water_scarcity),
            total_land=_r(totals.land),
            total_waste=_r(totals.waste),
            terrestrial_ecotoxicity=_r(totals.terrestrial_ecotoxicity),
            freshwater_eutrophication=_r(totals.freshwater_eutrophication),
            terrestrial_acidification=_r(totals.terrestrial_acidification),
            fossil_resource_scarcity=_r(totals.fossil_resource_scarcity),
            breakdown=ImpactBreakdown(
                by_lifecycle_stage=stages,
                by_scope=scopes,
                by_material=by_material,
            ),
            ghg_breakdown=build_ghg_breakdown(rows, self._factors.gwp),
            data_quality=score_data_quality(rows),
            use_phase_detail=use_phase,
            end_of_life_detail=end_of_life,
            materials_count=len(rows),
            production_sites_count=facilities.sites_count,
            calculated_at=calculated_at,
            calculation_version=self._calculation_version,
        )

        logger.info(
            "aggregation_completed",
            boundary=boundary.value,
            total_carbon_footprint=impacts.total_carbon_footprint,
            materials=len(rows),
            production_sites=facilities.sites_count,
            warnings=len(collected),
        )

        return AggregationResult(
            success=True,
            total_carbon_footprint=impacts.total_carbon_footprint,
            impacts=impacts,
            materials_count=len(rows),
            production_sites_count=facilities.sites_count,
            system_boundary=boundary,
            calculated_at=calculated_at,
            calculation_version=self._calculation_version,
            warnings=collected,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_use_phase(
        self,
        config: UsePhaseConfig | None,
        product: ProductRecord | None,
        warnings: list[str],
    ) -> UsePhaseResult | None:
        if config is None:
            return None
        volume = product.volume_litres if product is not None else None
        if volume is None:
            logger.warning(
                "product_volume_unknown",
                unit_size_value=product.unit_size_value if product else None,
                unit_size_unit=product.unit_size_unit if product else None,
            )
            warnings.append(
                "Use-phase emissions set to 0: product unit size could not be "
                "converted to litres"
            )
            return UsePhaseResult()
        return self._use_phase.calculate(config, volume)

    def _run_end_of_life(
        self,
        materials: Sequence[NormalizedMaterial],
        config: EndOfLifeConfig | None,
    ) -> EndOfLifeResult | None:
        if config is None:
            return None
        return self._end_of_life.calculate(materials, config)
