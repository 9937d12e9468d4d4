"""Pydantic schemas for the product impact aggregation engine."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

EoLRegion = Literal["eu", "uk", "us"]
DataQualityRating = Literal["Good", "Fair", "Poor"]

EOL_PATHWAYS: tuple[str, ...] = (
    "recycling",
    "landfill",
    "incineration",
    "composting",
    "anaerobic_digestion",
)

_LITRES_PER_UNIT: dict[str, float] = {
    "l": 1.0,
    "litre": 1.0,
    "liter": 1.0,
    "litres": 1.0,
    "liters": 1.0,
    "cl": 0.01,
    "ml": 0.001,
}

_KG_PER_UNIT: dict[str, float] = {
    "kg": 1.0,
    "g": 0.001,
    "mg": 0.000001,
    "t": 1000.0,
    "tonne": 1000.0,
}


# =============================================================================
# Enums
# =============================================================================


class MaterialKind(str, Enum):
    """Resolved kind of a material impact row."""

    INGREDIENT = "ingredient"
    PACKAGING = "packaging"
    PROCESS_ADDITION = "process_addition"


class LifecycleStage(str, Enum):
    """Lifecycle stage bucket of the footprint breakdown."""

    RAW_MATERIALS = "raw_materials"
    PACKAGING = "packaging"
    PROCESSING = "processing"
    USE_PHASE = "use_phase"
    END_OF_LIFE = "end_of_life"


class SystemBoundary(str, Enum):
    """Assessment boundary tier, declared from least to most inclusive."""

    CRADLE_TO_GATE = "cradle-to-gate"
    CRADLE_TO_SHELF = "cradle-to-shelf"
    CRADLE_TO_CONSUMER = "cradle-to-consumer"
    CRADLE_TO_GRAVE = "cradle-to-grave"

    @property
    def rank(self) -> int:
        return list(SystemBoundary).index(self)

    def includes(self, other: SystemBoundary) -> bool:
        """Return ``True`` when this boundary covers everything *other* covers."""
        return self.rank >= other.rank


# =============================================================================
# Inputs
# =============================================================================

_ROW_NUMERIC_FIELDS = (
    "quantity",
    "impact_climate",
    "impact_climate_fossil",
    "impact_climate_biogenic",
    "impact_climate_dluc",
    "impact_transport",
    "impact_water",
    "impact_water_scarcity",
    "impact_land",
    "impact_waste",
    "impact_terrestrial_ecotoxicity",
    "impact_freshwater_eutrophication",
    "impact_terrestrial_acidification",
    "impact_fossil_resource_scarcity",
    "ch4_fossil_kg",
    "ch4_biogenic_kg",
    "n2o_kg",
    "hfc_pfc_kg_co2e",
)


class MaterialImpactRow(BaseModel):
    """One ingredient, packaging or process-addition line of a PCF.

    ``impact_climate`` already includes transport; ``impact_transport`` is
    carried for reporting only.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    name: str = Field(alias="material_name")
    material_type: str | None = None
    category_type: str | None = None
    packaging_category: str | None = None

    quantity: float = 0.0
    unit: str = "kg"

    impact_climate: float = 0.0
    impact_climate_fossil: float = 0.0
    impact_climate_biogenic: float = 0.0
    impact_climate_dluc: float = 0.0
    impact_transport: float = 0.0
    impact_water: float = 0.0
    impact_water_scarcity: float = 0.0
    impact_land: float = 0.0
    impact_waste: float = 0.0
    impact_terrestrial_ecotoxicity: float = 0.0
    impact_freshwater_eutrophication: float = 0.0
    impact_terrestrial_acidification: float = 0.0
    impact_fossil_resource_scarcity: float = 0.0

    ch4_fossil_kg: float = 0.0
    ch4_biogenic_kg: float = 0.0
    n2o_kg: float = 0.0
    hfc_pfc_kg_co2e: float = 0.0

    confidence_score: float | None = Field(default=None, ge=0.0, le=100.0)
    data_quality_grade: str | None = None
    data_source: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator(*_ROW_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _coerce_missing_numbers(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("unit", mode="before")
    @classmethod
    def _default_unit(cls, value: Any) -> Any:
        return "kg" if value is None else value

    @property
    def is_mass_unit(self) -> bool:
        return self.unit.strip().lower() in _KG_PER_UNIT

    @property
    def mass_kg(self) -> float:
        """Quantity expressed in kilograms.

        Non-mass units (L, unit, ...) are taken as kilogram-equivalent.
        """
        return self.quantity * _KG_PER_UNIT.get(self.unit.strip().lower(), 1.0)


class FacilityEmissionsAllocation(BaseModel):
    """One facility's emissions attributed to one product for a period."""

    facility_id: str | None = None
    allocated_emissions: float = 0.0
    scope1_emissions: float = 0.0
    scope2_emissions: float = 0.0
    product_volume: float = Field(default=0.0, ge=0.0)
    is_contract_manufacturer: bool = False


class UsePhaseConfig(BaseModel):
    """Consumer use-phase assumptions."""

    needs_refrigeration: bool = False
    refrigeration_days: float = Field(default=7.0, ge=0.0)
    retail_refrigeration_split: float | None = Field(default=None, ge=0.0, le=1.0)
    is_carbonated: bool = False
    carbonation_type: str | None = None
    consumer_country_code: str | None = None


class EndOfLifePathwayShares(BaseModel):
    """Percent of a material sent to each disposal pathway."""

    recycling: float = Field(default=0.0, ge=0.0, le=100.0)
    landfill: float = Field(default=0.0, ge=0.0, le=100.0)
    incineration: float = Field(default=0.0, ge=0.0, le=100.0)
    composting: float = Field(default=0.0, ge=0.0, le=100.0)
    anaerobic_digestion: float = Field(default=0.0, ge=0.0, le=100.0)

    @property
    def total(self) -> float:
        return sum(getattr(self, pathway) for pathway in EOL_PATHWAYS)


class EndOfLifeConfig(BaseModel):
    """Regional end-of-life settings with per-category pathway shares."""

    region: EoLRegion = "eu"
    pathways: dict[str, EndOfLifePathwayShares] = Field(default_factory=dict)

    @field_validator("pathways", mode="before")
    @classmethod
    def _normalise_categories(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {normalise_category(key): shares for key, shares in value.items()}


class PCFRecord(BaseModel):
    """Product carbon footprint header record."""

    model_config = ConfigDict(extra="ignore")

    organization_id: str | None = None
    product_id: str | None = None
    system_boundary: str | None = None

    @field_validator("organization_id", "product_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return None if value is None else str(value)


class ProductRecord(BaseModel):
    """Product metadata needed for per-unit use-phase modelling."""

    model_config = ConfigDict(extra="ignore")

    unit_size_value: float | None = None
    unit_size_unit: str | None = None
    functional_unit: str | None = None
    product_category: str | None = None

    @property
    def volume_litres(self) -> float | None:
        """Unit size in litres, or ``None`` when it cannot be derived."""
        if self.unit_size_value is None or not self.unit_size_unit:
            return None
        factor = _LITRES_PER_UNIT.get(self.unit_size_unit.strip().lower())
        if factor is None:
            return None
        return self.unit_size_value * factor


def normalise_category(value: str) -> str:
    """Normalise a packaging category to its lookup key."""
    return re.sub(r"\s+", "_", value.strip().lower())


# =============================================================================
# Methodology factor tables
# =============================================================================


class GWPFactors(BaseModel):
    """100-year global warming potentials used for the gas inventory."""

    model_config = ConfigDict(frozen=True)

    method: str = "IPCC AR6"
    methane_gwp100: float = 27.9
    n2o_gwp100: float = 273.0


class EoLPathwayFactors(BaseModel):
    """kg CO2e per kg of material sent to each pathway."""

    model_config = ConfigDict(frozen=True)

    recycling: float = 0.0
    landfill: float = 0.0
    incineration: float = 0.0
    composting: float = 0.0
    anaerobic_digestion: float = 0.0


class EndOfLifeFactors(BaseModel):
    """End-of-life factors, category resolution rules and regional shares."""

    data_year: int = 2024
    materials: dict[str, EoLPathwayFactors] = Field(default_factory=dict)
    category_aliases: dict[str, str] = Field(default_factory=dict)
    name_keywords: list[tuple[str, str]] = Field(default_factory=list)
    regional_defaults: dict[str, dict[str, EndOfLifePathwayShares]] = Field(
        default_factory=dict
    )

    def factor_key(self, packaging_category: str | None, material_name: str = "") -> str:
        """Resolve a packaging category (or, failing that, a name) to a factor key."""
        if packaging_category:
            normalised = normalise_category(packaging_category)
            mapped = self.category_aliases.get(normalised)
            if mapped is not None:
                return mapped
            if normalised in self.materials:
                return normalised
        for pattern, key in self.name_keywords:
            if re.search(pattern, material_name, flags=re.IGNORECASE):
                return key
        return "other"

    def factors_for(self, key: str) -> EoLPathwayFactors:
        return self.materials.get(key) or self.materials.get("other") or EoLPathwayFactors()


class RefrigerationFactors(BaseModel):
    """Refrigeration energy demand, in kWh per litre per day."""

    model_config = ConfigDict(frozen=True)

    domestic_kwh_per_litre_per_day: float = 0.00356
    retail_kwh_per_litre_per_day: float = 0.00636
    default_days: float = 7.0
    default_retail_split: float = 0.5


class CarbonationFactor(BaseModel):
    """Dissolved CO2 released per reference container."""

    model_config = ConfigDict(frozen=True)

    kg_co2_per_container: float
    container_volume_l: float = Field(gt=0.0)

    @property
    def kg_co2_per_litre(self) -> float:
        return self.kg_co2_per_container / self.container_volume_l


class GridIntensityTable(BaseModel):
    """Electricity grid carbon intensity by ISO country code (kg CO2e/kWh)."""

    source: str = ""
    default_factor: float = 0.490
    countries: dict[str, float] = Field(default_factory=dict)

    def lookup(self, country_code: str | None) -> tuple[float, bool]:
        """Return ``(factor, is_estimated)`` for *country_code*."""
        if country_code:
            factor = self.countries.get(country_code.strip().upper())
            if factor is not None:
                return factor, False
        return self.default_factor, True


class MethodologyFactors(BaseModel):
    """All constant tables the calculators depend on."""

    version: str = "0.0"
    gwp: GWPFactors = Field(default_factory=GWPFactors)
    end_of_life: EndOfLifeFactors = Field(default_factory=EndOfLifeFactors)
    refrigeration: RefrigerationFactors = Field(default_factory=RefrigerationFactors)
    carbonation: dict[str, CarbonationFactor] = Field(default_factory=dict)
    carbonation_aliases: dict[str, str] = Field(default_factory=dict)
    grid: GridIntensityTable = Field(default_factory=GridIntensityTable)

    def carbonation_factor(self, carbonation_type: str | None) -> CarbonationFactor | None:
        if not carbonation_type:
            return None
        key = normalise_category(carbonation_type)
        key = self.carbonation_aliases.get(key, key)
        return self.carbonation.get(key)


# =============================================================================
# Outputs
# =============================================================================


class MaterialContribution(BaseModel):
    """Per-material row of the hotspot table."""

    name: str
    quantity: float
    unit: str
    climate: float
    source: str


class LifecycleStageBreakdown(BaseModel):
    raw_materials: float = 0.0
    packaging: float = 0.0
    processing: float = 0.0
    use_phase: float = 0.0
    end_of_life: float = 0.0


class ScopeBreakdown(BaseModel):
    scope1: float = 0.0
    scope2: float = 0.0
    scope3: float = 0.0


class ImpactBreakdown(BaseModel):
    by_lifecycle_stage: LifecycleStageBreakdown = Field(default_factory=LifecycleStageBreakdown)
    by_scope: ScopeBreakdown = Field(default_factory=ScopeBreakdown)
    by_material: list[MaterialContribution] = Field(default_factory=list)


class CarbonOrigin(BaseModel):
    fossil: float = 0.0
    biogenic: float = 0.0
    land_use_change: float = 0.0


class GasInventory(BaseModel):
    """Raw gas masses in kg (HFC/PFC already in kg CO2e)."""

    co2_fossil: float = 0.0
    co2_biogenic: float = 0.0
    methane: float = 0.0
    methane_fossil: float = 0.0
    methane_biogenic: float = 0.0
    nitrous_oxide: float = 0.0
    hfc_pfc: float = 0.0


class CO2eContributions(BaseModel):
    co2_fossil: float = 0.0
    co2_biogenic: float = 0.0
    ch4_as_co2e: float = 0.0
    n2o_as_co2e: float = 0.0
    hfc_pfc: float = 0.0


class GHGBreakdown(BaseModel):
    carbon_origin: CarbonOrigin
    gas_inventory: GasInventory
    gwp_factors: GWPFactors
    co2e_contributions: CO2eContributions


class DataQuality(BaseModel):
    score: float
    rating: DataQualityRating
    weighted_materials: int = 0


class UsePhaseResult(BaseModel):
    """Use-phase emissions per functional unit, in kg CO2e."""

    total: float = 0.0
    refrigeration: float = 0.0
    carbonation: float = 0.0
    domestic_refrigeration: float = 0.0
    retail_refrigeration: float = 0.0
    grid_factor: float | None = None
    grid_factor_estimated: bool = False


class EndOfLifeMaterialResult(BaseModel):
    name: str
    factor_key: str
    mass_kg: float
    net: float


class EndOfLifeResult(BaseModel):
    """Packaging end-of-life emissions; ``total`` may be negative."""

    total: float = 0.0
    gross: float = 0.0
    avoided: float = 0.0
    by_pathway: dict[str, float] = Field(
        default_factory=lambda: {pathway: 0.0 for pathway in EOL_PATHWAYS}
    )
    materials: list[EndOfLifeMaterialResult] = Field(default_factory=list)


class AggregatedImpacts(BaseModel):
    """Multi-capital totals plus all breakdowns of one aggregation."""

    total_carbon_footprint: float
    total_climate: float
    total_climate_fossil: float
    total_climate_biogenic: float
    total_climate_dluc: float
    total_transport: float
    total_water: float
    total_water_scarcity: float
    total_land: float
    total_waste: float
    terrestrial_ecotoxicity: float
    freshwater_eutrophication: float
    terrestrial_acidification: float
    fossil_resource_scarcity: float

    breakdown: ImpactBreakdown
    ghg_breakdown: GHGBreakdown
    data_quality: DataQuality
    use_phase_detail: UsePhaseResult | None = None
    end_of_life_detail: EndOfLifeResult | None = None

    materials_count: int
    production_sites_count: int
    calculated_at: datetime
    calculation_version: str


class AggregationResult(BaseModel):
    """Outcome of one aggregation run.

    Expected domain failures are reported with ``success=False`` and an
    ``error`` message instead of being raised.
    """

    success: bool
    total_carbon_footprint: float = 0.0
    impacts: AggregatedImpacts | None = None
    materials_count: int = 0
    production_sites_count: int = 0
    system_boundary: SystemBoundary | None = None
    calculated_at: datetime | None = None
    calculation_version: str | None = None
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None
    error_code: str | None = None
