"""Impact-weighted data quality index."""

from __future__ import annotations

from collections.abc import Iterable

from footprint.modules.lca.schemas import DataQuality, DataQualityRating, MaterialImpactRow

# Unscored rows count as "Poor" rather than inflating the index.
DEFAULT_CONFIDENCE_SCORE = 40.0

GOOD_THRESHOLD = 80.0
FAIR_THRESHOLD = 50.0


def rate_score(score: float) -> DataQualityRating:
    if score >= GOOD_THRESHOLD:
        return "Good"
    if score >= FAIR_THRESHOLD:
        return "Fair"
    return "Poor"


def score_data_quality(rows: Iterable[MaterialImpactRow]) -> DataQuality:
    """Weight each row's confidence by the magnitude of its climate impact.

    Rows with zero climate impact carry no weight and are skipped.
    """
    weighted_sum = 0.0
    total_weight = 0.0
    weighted = 0

    for row in rows:
        weight = abs(row.impact_climate)
        if weight == 0:
            continue
        confidence = (
            row.confidence_score if row.confidence_score is not None else DEFAULT_CONFIDENCE_SCORE
        )
        weighted_sum += weight * confidence
        total_weight += weight
        weighted += 1

    score = weighted_sum / total_weight if total_weight > 0 else DEFAULT_CONFIDENCE_SCORE
    # Bands apply to the unrounded score; only the published figure is rounded.
    return DataQuality(
        score=round(score, 1),
        rating=rate_score(score),
        weighted_materials=weighted,
    )
