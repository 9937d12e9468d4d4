"""GHG inventory: carbon origin split and per-gas masses."""

from __future__ import annotations

from collections.abc import Iterable

from footprint.modules.lca.schemas import (
    CarbonOrigin,
    CO2eContributions,
    GasInventory,
    GHGBreakdown,
    GWPFactors,
    MaterialImpactRow,
)


def build_ghg_breakdown(rows: Iterable[MaterialImpactRow], gwp: GWPFactors) -> GHGBreakdown:
    """Sum origin components and raw gas masses over *rows*.

    The GWP factors are published alongside so reports can cite them.
    """
    fossil = biogenic = dluc = 0.0
    ch4_fossil = ch4_biogenic = n2o = hfc_pfc = 0.0

    for row in rows:
        fossil += row.impact_climate_fossil
        biogenic += row.impact_climate_biogenic
        dluc += row.impact_climate_dluc
        ch4_fossil += row.ch4_fossil_kg
        ch4_biogenic += row.ch4_biogenic_kg
        n2o += row.n2o_kg
        hfc_pfc += row.hfc_pfc_kg_co2e

    methane = ch4_fossil + ch4_biogenic
    return GHGBreakdown(
        carbon_origin=CarbonOrigin(fossil=fossil, biogenic=biogenic, land_use_change=dluc),
        gas_inventory=GasInventory(
            co2_fossil=fossil,
            co2_biogenic=biogenic,
            methane=methane,
            methane_fossil=ch4_fossil,
            methane_biogenic=ch4_biogenic,
            nitrous_oxide=n2o,
            hfc_pfc=hfc_pfc,
        ),
        gwp_factors=gwp,
        co2e_contributions=CO2eContributions(
            co2_fossil=fossil,
            co2_biogenic=biogenic,
            ch4_as_co2e=methane * gwp.methane_gwp100,
            n2o_as_co2e=n2o * gwp.n2o_gwp100,
            hfc_pfc=hfc_pfc,
        ),
    )
