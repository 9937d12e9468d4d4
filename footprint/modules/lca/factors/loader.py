"""YAML-based methodology factor loader.

Loads GWP, end-of-life, refrigeration, carbonation and grid-intensity
tables from a YAML file into a ``MethodologyFactors`` struct that the
calculators receive explicitly.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from footprint.core.logging import get_logger
from footprint.modules.lca.schemas import (
    CarbonationFactor,
    EndOfLifeFactors,
    EndOfLifePathwayShares,
    EoLPathwayFactors,
    GridIntensityTable,
    GWPFactors,
    MethodologyFactors,
    RefrigerationFactors,
    normalise_category,
)

logger = get_logger(__name__)


class FactorDatabase:
    """Methodology factor tables loaded from YAML.

    Usage::

        db = FactorDatabase()
        factors = db.factors
        grid, estimated = factors.grid.lookup("GB")
    """

    def __init__(self, yaml_path: str | Path | None = None) -> None:
        self._factors = MethodologyFactors()
        self._load(yaml_path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def version(self) -> str:
        """Return the version string from the loaded YAML."""
        return self._factors.version

    @property
    def factors(self) -> MethodologyFactors:
        return self._factors

    def list_eol_materials(self) -> list[str]:
        """Return all end-of-life material keys (sorted)."""
        return sorted(self._factors.end_of_life.materials)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self, yaml_path: str | Path | None = None) -> None:
        """Load factor tables from YAML file."""
        path = Path(yaml_path) if yaml_path is not None else self._default_path()

        if not path.is_file():
            logger.warning("factor_database_not_found", path=str(path))
            return

        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)

        if not isinstance(data, dict):
            logger.warning("invalid_factor_database", path=str(path))
            return

        use_phase = _section(data, "use_phase")
        carbonation = {
            normalise_category(str(key)): factor
            for key, factor in _parse_entries(
                _section(use_phase, "carbonation"), CarbonationFactor, "carbonation"
            ).items()
        }

        self._factors = MethodologyFactors(
            version=str(data.get("version", "0.0")),
            gwp=_parse_model(_section(data, "gwp"), GWPFactors, "gwp"),
            end_of_life=self._parse_end_of_life(_section(data, "end_of_life")),
            refrigeration=_parse_model(
                _section(use_phase, "refrigeration"), RefrigerationFactors, "refrigeration"
            ),
            carbonation=carbonation,
            carbonation_aliases=_parse_aliases(_section(use_phase, "carbonation_aliases")),
            grid=self._parse_grid(_section(data, "grid_intensity")),
        )

        logger.info(
            "factor_database_loaded",
            version=self._factors.version,
            eol_material_count=len(self._factors.end_of_life.materials),
            grid_country_count=len(self._factors.grid.countries),
            path=path.name,
        )

    @staticmethod
    def _parse_end_of_life(raw: dict[str, Any]) -> EndOfLifeFactors:
        keywords: list[tuple[str, str]] = []
        raw_keywords = raw.get("name_keywords", [])
        if isinstance(raw_keywords, list):
            for entry in raw_keywords:
                if isinstance(entry, list | tuple) and len(entry) == 2:
                    keywords.append((str(entry[0]), str(entry[1])))
                else:
                    logger.warning("skipping_invalid_eol_keyword", entry=entry)

        regional: dict[str, dict[str, EndOfLifePathwayShares]] = {}
        raw_regional = raw.get("regional_defaults", {})
        if isinstance(raw_regional, dict):
            for region, shares in raw_regional.items():
                if isinstance(shares, dict):
                    regional[str(region).lower()] = _parse_entries(
                        shares, EndOfLifePathwayShares, f"regional_defaults.{region}"
                    )

        return EndOfLifeFactors(
            data_year=int(raw.get("data_year", 2024)),
            materials=_parse_entries(
                _section(raw, "materials"), EoLPathwayFactors, "end_of_life"
            ),
            category_aliases=_parse_aliases(_section(raw, "category_aliases")),
            name_keywords=keywords,
            regional_defaults=regional,
        )

    @staticmethod
    def _parse_grid(raw: dict[str, Any]) -> GridIntensityTable:
        countries: dict[str, float] = {}
        for code, value in _section(raw, "countries").items():
            try:
                countries[str(code).strip().upper()] = float(value)
            except (TypeError, ValueError):
                logger.warning("skipping_invalid_grid_factor", country=code)
        return GridIntensityTable(
            source=str(raw.get("source", "")),
            default_factor=float(raw.get("default_factor", 0.490)),
            countries=countries,
        )

    @staticmethod
    def _default_path() -> Path:
        """Resolve the default methodology.yaml bundled with this package."""
        pkg = importlib_resources.files("footprint.modules.lca.factors")
        return Path(str(pkg)) / "methodology.yaml"


@lru_cache
def get_default_factors() -> MethodologyFactors:
    """Return the packaged methodology tables, loaded once."""
    return FactorDatabase().factors


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    return value if isinstance(value, dict) else {}


def _parse_aliases(raw: dict[str, Any]) -> dict[str, str]:
    return {normalise_category(str(key)): str(value) for key, value in raw.items()}


def _parse_model(raw: dict[str, Any], model: type[Any], section: str) -> Any:
    try:
        return model(**raw)
    except ValidationError:
        logger.warning("invalid_factor_section", section=section, exc_info=True)
        return model()


def _parse_entries(raw: dict[str, Any], model: type[Any], section: str) -> dict[str, Any]:
    entries: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            continue
        try:
            entries[str(key).lower().strip()] = model(**value)
        except ValidationError:
            logger.warning(
                "skipping_invalid_factor_entry",
                section=section,
                key=key,
                exc_info=True,
            )
    return entries
