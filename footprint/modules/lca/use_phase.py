"""Consumer use-phase emissions: refrigeration and carbonation release.

Refrigeration energy (kWh per litre per day) is converted with the
consumer country's grid intensity, falling back to the global average when
the country is unknown. Carbonation CO2 is the dissolved gas released on
opening, scaled per litre from a reference container.
"""

from __future__ import annotations

from footprint.modules.lca.schemas import MethodologyFactors, UsePhaseConfig, UsePhaseResult

_REFRIGERATED_CATEGORIES = ("beer_cider", "beer & cider", "rtd_cocktails", "rtd & cocktails")

_CARBONATED_CATEGORIES: dict[str, str] = {
    "beer_cider": "beer",
    "beer & cider": "beer",
    "rtd_cocktails": "soft_drink",
    "rtd & cocktails": "soft_drink",
}


class UsePhaseCalculator:
    """Deterministic use-phase model; performs no I/O.

    Usage::

        calculator = UsePhaseCalculator(get_default_factors())
        result = calculator.calculate(config, volume_litres=0.33)
    """

    def __init__(self, factors: MethodologyFactors) -> None:
        self._factors = factors

    def calculate(self, config: UsePhaseConfig, volume_litres: float) -> UsePhaseResult:
        """Return kg CO2e per functional unit of *volume_litres*."""
        refrigeration = self._factors.refrigeration
        domestic = 0.0
        retail = 0.0
        grid_factor: float | None = None
        grid_estimated = False

        if config.needs_refrigeration and volume_litres > 0:
            days = config.refrigeration_days or refrigeration.default_days
            retail_split = config.retail_refrigeration_split
            if retail_split is None:
                retail_split = refrigeration.default_retail_split
            grid_factor, grid_estimated = self._factors.grid.lookup(config.consumer_country_code)

            domestic = (
                volume_litres
                * refrigeration.domestic_kwh_per_litre_per_day
                * grid_factor
                * days
                * (1 - retail_split)
            )
            retail = (
                volume_litres
                * refrigeration.retail_kwh_per_litre_per_day
                * grid_factor
                * days
                * retail_split
            )

        carbonation = 0.0
        if config.is_carbonated and volume_litres > 0:
            factor = self._factors.carbonation_factor(config.carbonation_type)
            if factor is not None:
                carbonation = volume_litres * factor.kg_co2_per_litre

        return UsePhaseResult(
            total=domestic + retail + carbonation,
            refrigeration=domestic + retail,
            carbonation=carbonation,
            domestic_refrigeration=domestic,
            retail_refrigeration=retail,
            grid_factor=grid_factor,
            grid_factor_estimated=grid_estimated,
        )


def default_use_phase_config(product_category: str | None) -> UsePhaseConfig:
    """Derive a conservative use-phase config from a product category.

    Spirits are never refrigerated. Beer/cider and RTD cocktails are
    refrigerated and carbonated. Wine and non-alcoholic drinks default to
    neither, and should be confirmed by the user.
    """
    category = (product_category or "").strip().lower()
    if not category or "spirit" in category:
        return UsePhaseConfig()

    needs_refrigeration = any(key in category for key in _REFRIGERATED_CATEGORIES)
    carbonation_type = next(
        (value for key, value in _CARBONATED_CATEGORIES.items() if key in category),
        None,
    )
    return UsePhaseConfig(
        needs_refrigeration=needs_refrigeration,
        is_carbonated=carbonation_type is not None,
        carbonation_type=carbonation_type,
    )
