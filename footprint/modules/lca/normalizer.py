"""Material kind and lifecycle-stage classification."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from footprint.modules.lca.schemas import LifecycleStage, MaterialImpactRow, MaterialKind

DEFAULT_PROCESS_ADDITION_MARKERS: tuple[str, ...] = ("[Maturation]",)

_KIND_ALIASES: dict[str, MaterialKind] = {
    "ingredient": MaterialKind.INGREDIENT,
    "packaging": MaterialKind.PACKAGING,
    "packaging_material": MaterialKind.PACKAGING,
    "process_addition": MaterialKind.PROCESS_ADDITION,
}

_STAGE_BY_KIND: dict[MaterialKind, LifecycleStage] = {
    MaterialKind.INGREDIENT: LifecycleStage.RAW_MATERIALS,
    MaterialKind.PACKAGING: LifecycleStage.PACKAGING,
    MaterialKind.PROCESS_ADDITION: LifecycleStage.PROCESSING,
}


@dataclass(frozen=True)
class NormalizedMaterial:
    """A material row with its resolved kind and lifecycle stage."""

    row: MaterialImpactRow
    kind: MaterialKind
    stage: LifecycleStage


def resolve_kind(
    row: MaterialImpactRow,
    markers: Sequence[str] = DEFAULT_PROCESS_ADDITION_MARKERS,
) -> MaterialKind:
    """Resolve the kind of *row*.

    A marker-prefixed name wins over whatever kind was stored; otherwise
    ``material_type`` then ``category_type`` are consulted, and anything
    unrecognised is an ingredient.
    """
    name = row.name.lstrip()
    if any(name.startswith(marker) for marker in markers):
        return MaterialKind.PROCESS_ADDITION

    for raw in (row.material_type, row.category_type):
        if not raw:
            continue
        kind = _KIND_ALIASES.get(raw.strip().lower())
        if kind is not None:
            return kind
    return MaterialKind.INGREDIENT


def normalize_materials(
    rows: Iterable[MaterialImpactRow],
    markers: Sequence[str] = DEFAULT_PROCESS_ADDITION_MARKERS,
) -> list[NormalizedMaterial]:
    """Annotate every row with its kind and lifecycle stage, preserving order."""
    normalized: list[NormalizedMaterial] = []
    for row in rows:
        kind = resolve_kind(row, markers)
        normalized.append(NormalizedMaterial(row=row, kind=kind, stage=_STAGE_BY_KIND[kind]))
    return normalized
