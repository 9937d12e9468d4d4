"""System boundary gate.

Decides which optional lifecycle calculators run for a boundary tier and
records a warning for every configuration a tier needs but did not get.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from footprint.core.logging import get_logger
from footprint.modules.lca.schemas import EndOfLifeConfig, SystemBoundary, UsePhaseConfig

logger = get_logger(__name__)

DEFAULT_BOUNDARY = SystemBoundary.CRADLE_TO_GATE
UNRECOGNISED_FALLBACK = SystemBoundary.CRADLE_TO_GATE

# First tier at which each optional stage is in scope
USE_PHASE_FROM = SystemBoundary.CRADLE_TO_CONSUMER
END_OF_LIFE_FROM = SystemBoundary.CRADLE_TO_GRAVE


@dataclass(frozen=True)
class BoundaryDecision:
    """Which optional calculators run, plus the non-fatal warnings raised."""

    boundary: SystemBoundary
    use_phase_config: UsePhaseConfig | None
    eol_config: EndOfLifeConfig | None
    warnings: list[str] = field(default_factory=list)

    @property
    def run_use_phase(self) -> bool:
        return self.use_phase_config is not None

    @property
    def run_end_of_life(self) -> bool:
        return self.eol_config is not None


def resolve_boundary(
    *candidates: SystemBoundary | str | None,
    default: SystemBoundary = DEFAULT_BOUNDARY,
) -> tuple[SystemBoundary, list[str]]:
    """Return the first usable boundary among *candidates*.

    ``None`` and blank values are skipped silently and *default* applies
    when nothing is set. An unrecognised value stops the search and degrades
    to cradle-to-gate with a warning, regardless of *default*.
    """
    for candidate in candidates:
        if candidate is None:
            continue
        if isinstance(candidate, SystemBoundary):
            return candidate, []
        value = candidate.strip().lower()
        if not value:
            continue
        try:
            return SystemBoundary(value), []
        except ValueError:
            logger.warning(
                "unrecognised_system_boundary",
                value=candidate,
                fallback=UNRECOGNISED_FALLBACK.value,
            )
            return UNRECOGNISED_FALLBACK, [
                f"Unrecognised system boundary '{candidate}'; "
                f"calculated as {UNRECOGNISED_FALLBACK.value}"
            ]
    return default, []


def apply_boundary_gate(
    boundary: SystemBoundary,
    use_phase_config: UsePhaseConfig | None,
    eol_config: EndOfLifeConfig | None,
) -> BoundaryDecision:
    """Drop configurations outside *boundary* and warn on missing ones."""
    warnings: list[str] = []
    use_phase: UsePhaseConfig | None = None
    end_of_life: EndOfLifeConfig | None = None

    if boundary.includes(USE_PHASE_FROM):
        if use_phase_config is None:
            logger.warning("use_phase_config_missing", boundary=boundary.value)
            warnings.append(
                "Use-phase emissions set to 0: use_phase_config is required for the "
                f"{boundary.value} boundary but was not provided"
            )
        else:
            use_phase = use_phase_config

    if boundary.includes(END_OF_LIFE_FROM):
        if eol_config is None:
            logger.warning("eol_config_missing", boundary=boundary.value)
            warnings.append(
                "End-of-life emissions set to 0: eol_config is required for the "
                f"{boundary.value} boundary but was not provided"
            )
        else:
            end_of_life = eol_config

    return BoundaryDecision(
        boundary=boundary,
        use_phase_config=use_phase,
        eol_config=end_of_life,
        warnings=warnings,
    )
