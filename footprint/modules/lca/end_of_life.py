"""Packaging end-of-life emissions with avoided-burden recycling credits.

Only rows resolved as packaging are modelled; ingredients and process
additions never reach this calculator's accounting. Recycling factors are
negative, so a high-recycling material can make the stage net negative.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from footprint.core.logging import get_logger
from footprint.modules.lca.normalizer import NormalizedMaterial
from footprint.modules.lca.schemas import (
    EOL_PATHWAYS,
    EndOfLifeConfig,
    EndOfLifeMaterialResult,
    EndOfLifePathwayShares,
    EndOfLifeResult,
    EoLRegion,
    MaterialKind,
    MethodologyFactors,
    normalise_category,
)

logger = get_logger(__name__)

_SHARE_TOLERANCE = 0.5

_FALLBACK_SHARES = EndOfLifePathwayShares(recycling=30, landfill=40, incineration=30)


class EndOfLifeCalculator:
    """Disposal-pathway model for packaging rows.

    Usage::

        calculator = EndOfLifeCalculator(get_default_factors())
        result = calculator.calculate(normalized_materials, eol_config)
    """

    def __init__(self, factors: MethodologyFactors) -> None:
        self._factors = factors

    def calculate(
        self,
        materials: Sequence[NormalizedMaterial],
        config: EndOfLifeConfig,
    ) -> EndOfLifeResult:
        """Sum end-of-life kg CO2e over every packaging row in *materials*."""
        eol = self._factors.end_of_life
        by_pathway = {pathway: 0.0 for pathway in EOL_PATHWAYS}
        per_material: list[EndOfLifeMaterialResult] = []

        for material in materials:
            if material.kind is not MaterialKind.PACKAGING:
                continue
            row = material.row
            key = eol.factor_key(row.packaging_category, row.name)
            shares = self._shares_for(row.packaging_category, key, config)
            if shares is None:
                logger.debug(
                    "eol_pathways_missing_for_category",
                    material=row.name,
                    packaging_category=row.packaging_category,
                    factor_key=key,
                )
                continue

            if abs(shares.total - 100.0) > _SHARE_TOLERANCE:
                logger.warning(
                    "eol_pathway_shares_not_100",
                    material=row.name,
                    factor_key=key,
                    total=shares.total,
                )

            if not row.is_mass_unit:
                logger.warning(
                    "eol_non_mass_unit",
                    material=row.name,
                    unit=row.unit,
                    quantity=row.quantity,
                )

            factors = eol.factors_for(key)
            mass = row.mass_kg
            net = 0.0
            for pathway in EOL_PATHWAYS:
                emissions = mass * (getattr(shares, pathway) / 100) * getattr(factors, pathway)
                by_pathway[pathway] += emissions
                net += emissions

            per_material.append(
                EndOfLifeMaterialResult(name=row.name, factor_key=key, mass_kg=mass, net=net)
            )

        avoided = by_pathway["recycling"]
        gross = sum(value for pathway, value in by_pathway.items() if pathway != "recycling")
        return EndOfLifeResult(
            total=gross + avoided,
            gross=gross,
            avoided=avoided,
            by_pathway=by_pathway,
            materials=per_material,
        )

    @staticmethod
    def _shares_for(
        packaging_category: str | None,
        factor_key: str,
        config: EndOfLifeConfig,
    ) -> EndOfLifePathwayShares | None:
        if packaging_category:
            exact = config.pathways.get(normalise_category(packaging_category))
            if exact is not None:
                return exact
        return config.pathways.get(factor_key)


def build_regional_eol_config(
    factors: MethodologyFactors,
    region: EoLRegion,
    packaging_categories: Iterable[str],
) -> EndOfLifeConfig:
    """Build an ``EndOfLifeConfig`` from regional recycling statistics."""
    eol = factors.end_of_life
    regional = eol.regional_defaults.get(region, {})
    pathways: dict[str, EndOfLifePathwayShares] = {}

    for category in packaging_categories:
        key = eol.factor_key(category)
        shares = regional.get(key) or regional.get("other")
        if shares is None:
            logger.warning(
                "eol_regional_defaults_missing",
                region=region,
                factor_key=key,
                fallback=_FALLBACK_SHARES.model_dump(),
            )
            shares = _FALLBACK_SHARES
        pathways[normalise_category(category)] = shares

    return EndOfLifeConfig(region=region, pathways=pathways)
