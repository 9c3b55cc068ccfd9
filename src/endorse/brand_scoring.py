"""
Brand alignment scoring against the per-value rank lists.
Each declared value contributes a rank-decayed score; a brand's raw score is
the mean of those contributions.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import RankingConfig, ScoringConfig
from .models import Brand, CauseSetError, Stance, UserCause, ValueAlignmentIndex, cause_map

LOGGER = logging.getLogger(__name__)


def value_contribution(
    brand_name: str,
    value_id: str,
    stance: Stance,
    matrix: ValueAlignmentIndex,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Score one brand against one declared value.

    Args:
        brand_name: Brand name as it appears in the rank lists
        value_id: Value the user declared a stance on
        stance: The user's stance on that value
        matrix: Value alignment index
        config: Scoring coefficients

    Returns:
        100 for rank 1 of the aligned list decaying towards 50 at its tail,
        0 for rank 1 of the opposed list rising towards 50, and exactly the
        neutral value when the value or brand carries no signal.
    """
    config = config or ScoringConfig()
    if value_id not in matrix:
        return config.neutral

    aligned = matrix.position(value_id, stance, brand_name)
    if aligned is not None:
        position, length = aligned
        return 100.0 - ((position - 1) / length) * config.rank_decay_span

    opposed = matrix.position(value_id, stance.opposite, brand_name)
    if opposed is not None:
        position, length = opposed
        return ((position - 1) / length) * config.rank_decay_span

    return config.neutral


def calculate_brand_score(
    brand_name: str,
    user_causes: Sequence[UserCause],
    matrix: ValueAlignmentIndex,
    config: Optional[ScoringConfig] = None,
) -> Optional[float]:
    """Mean per-value contribution, or None when the cause set is empty."""
    if not user_causes:
        return None
    contributions = [
        value_contribution(brand_name, cause.value_id, cause.stance, matrix, config)
        for cause in user_causes
    ]
    return sum(contributions) / len(contributions)


def score_brands(
    brands: Sequence[Brand],
    user_causes: Sequence[UserCause],
    matrix: ValueAlignmentIndex,
    config: Optional[ScoringConfig] = None,
    max_workers: Optional[int] = None,
) -> List[float]:
    """
    Compute raw scores for a whole brand catalog.

    Results are returned in catalog order regardless of ``max_workers``.

    Raises:
        CauseSetError: if ``user_causes`` is empty or repeats a value id
    """
    if not user_causes:
        raise CauseSetError("Cannot score brands against an empty cause set")
    cause_map(user_causes)

    missing = [cause.value_id for cause in user_causes if cause.value_id not in matrix]
    if missing:
        LOGGER.debug("No alignment lists for values %s; scoring them as neutral", missing)

    def _score(brand: Brand) -> float:
        return calculate_brand_score(brand.name, user_causes, matrix, config)

    if max_workers and max_workers > 1 and len(brands) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(_score, brands))
    return [_score(brand) for brand in brands]


@dataclass(frozen=True)
class BrandSuggestion:
    brand: Brand
    alignment_strength: int
    matched_values: int


def suggest_brands_for_values(
    brands: Sequence[Brand],
    selected: Sequence[UserCause],
    matrix: ValueAlignmentIndex,
    config: Optional[RankingConfig] = None,
) -> List[BrandSuggestion]:
    """
    Pick the brands that best represent a hand-picked set of value stances.

    Only hits in the stance's own list count; every other value contributes
    the neutral 50. Brands with no hit at all are dropped.

    Raises:
        CauseSetError: if fewer than ``suggestion_min_values`` stances are given
    """
    config = config or RankingConfig()
    if len(selected) < config.suggestion_min_values:
        raise CauseSetError(
            f"Select at least {config.suggestion_min_values} values (got {len(selected)})"
        )
    cause_map(selected)

    suggestions: List[BrandSuggestion] = []
    for brand in brands:
        per_value: List[float] = []
        hits = 0
        for cause in selected:
            found = matrix.position(cause.value_id, cause.stance, brand.name)
            if found is None:
                per_value.append(50.0)
                continue
            position, length = found
            per_value.append(round(100 - ((position - 1) / length) * 50))
            hits += 1
        if not hits:
            continue
        strength = round(sum(per_value) / len(per_value))
        suggestions.append(BrandSuggestion(brand=brand, alignment_strength=strength, matched_values=hits))

    suggestions.sort(key=lambda s: s.alignment_strength, reverse=True)
    return suggestions[: config.suggestion_limit]

