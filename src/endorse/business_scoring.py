"""
Business similarity scoring.
Businesses declare stances directly, so alignment is counted per shared value
instead of being read off a ranked list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import ScoringConfig
from .models import BusinessCause, Stance, UserCause, cause_map


def agreement_sum(user_causes: Sequence[UserCause], business_causes: Sequence[BusinessCause]) -> int:
    """+1 per shared value with the same stance, -1 per conflicting stance."""
    user = cause_map(user_causes)
    business = cause_map(business_causes)
    total = 0
    for value_id, stance in user.items():
        other = business.get(value_id)
        if other is None:
            continue
        total += 1 if other is stance else -1
    return total


def calculate_similarity_score(
    user_causes: Sequence[UserCause],
    business_causes: Sequence[BusinessCause],
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Raw alignment between a user and a business.

    Args:
        user_causes: The user's declared cause set
        business_causes: The business's declared cause set
        config: Scoring coefficients

    Returns:
        ``neutral + agreement_points * agreement_sum``; exactly the neutral
        value when the two sets share no value.
    """
    config = config or ScoringConfig()
    return config.neutral + config.agreement_points * agreement_sum(user_causes, business_causes)


@dataclass(frozen=True)
class StanceMatch:
    value_id: str
    user_stance: Stance
    business_stance: Stance


@dataclass(frozen=True)
class CauseComparison:
    aligned_values: Tuple[StanceMatch, ...]
    unaligned_values: Tuple[StanceMatch, ...]
    matching_values: Tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.matching_values


def compare_causes(user_causes: Sequence[UserCause], business_causes: Sequence[BusinessCause]) -> CauseComparison:
    """Split the values a user and a business share into agreements and conflicts."""
    user = cause_map(user_causes)
    business = cause_map(business_causes)
    aligned: List[StanceMatch] = []
    unaligned: List[StanceMatch] = []
    matching: List[str] = []
    for value_id, stance in user.items():
        other = business.get(value_id)
        if other is None:
            continue
        matching.append(value_id)
        match = StanceMatch(value_id=value_id, user_stance=stance, business_stance=other)
        (aligned if other is stance else unaligned).append(match)
    return CauseComparison(
        aligned_values=tuple(aligned),
        unaligned_values=tuple(unaligned),
        matching_values=tuple(matching),
    )


SIMILARITY_LABELS: Tuple[Tuple[int, str], ...] = (
    (80, "Highly Similar"),
    (60, "Similar"),
    (40, "Neutral"),
    (20, "Different"),
)


def similarity_label(score: Optional[int]) -> str:
    if score is None:
        return "Unscored"
    for floor, label in SIMILARITY_LABELS:
        if score >= floor:
            return label
    return "Highly Different"
