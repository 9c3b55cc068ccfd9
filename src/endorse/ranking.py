"""
Assembly of presentation-ready rankings.

Every call is a full recompute over the catalog snapshot: score every entity,
normalise, and only then sort and partition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

import pandas as pd

from .brand_scoring import BrandSuggestion, score_brands, suggest_brands_for_values
from .business_scoring import CauseComparison, calculate_similarity_score, compare_causes
from .config import RankingConfig, ScoringConfig
from .distance import RangeResult, evaluate
from .models import Brand, Business, Catalog, UserCause, cause_map
from .normalization import project_onto_reference, self_normalize

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class SortDirection(str, Enum):
    HIGH_TO_LOW = "highToLow"
    LOW_TO_HIGH = "lowToHigh"


@dataclass(frozen=True)
class ScoredBrand:
    brand: Brand
    alignment_score: Optional[int]
    raw_score: Optional[float]


@dataclass(frozen=True)
class ScoredBusiness:
    business: Business
    alignment_score: Optional[int]
    raw_score: Optional[float]
    distance: Optional[float] = None
    closest_location: Optional[str] = None


@dataclass
class RevealWindow(Generic[T]):
    """Incremental reveal over an already sorted list.

    The visible count starts at ``window`` and only ever grows by ``step``.
    """

    items: Sequence[T]
    window: int = 10
    step: int = 10
    count: int = field(init=False)

    def __post_init__(self) -> None:
        self.count = self.window

    @property
    def visible(self) -> List[T]:
        return list(self.items[: self.count])

    @property
    def has_more(self) -> bool:
        return self.count < len(self.items)

    def load_more(self) -> List[T]:
        if self.has_more:
            self.count += self.step
        return self.visible


@dataclass(frozen=True)
class BrandRanking:
    aligned: Tuple[ScoredBrand, ...]
    unaligned: Tuple[ScoredBrand, ...]
    all: Tuple[ScoredBrand, ...]
    score_by_brand_id: Dict[str, int]
    raw_scores: Tuple[float, ...]
    scoring_available: bool = True
    preview_size: int = 10

    @property
    def top_aligned(self) -> Tuple[ScoredBrand, ...]:
        return self.aligned[: self.preview_size]

    @property
    def top_unaligned(self) -> Tuple[ScoredBrand, ...]:
        return self.unaligned[: self.preview_size]

    def to_frame(self) -> pd.DataFrame:
        aligned_ids = {entry.brand.id for entry in self.aligned}
        unaligned_ids = {entry.brand.id for entry in self.unaligned}
        rows = [
            {
                "brand_id": entry.brand.id,
                "name": entry.brand.name,
                "category": entry.brand.category,
                "raw_score": entry.raw_score,
                "alignment_score": entry.alignment_score,
                "in_aligned": entry.brand.id in aligned_ids,
                "in_unaligned": entry.brand.id in unaligned_ids,
            }
            for entry in self.all
        ]
        columns = ["brand_id", "name", "category", "raw_score", "alignment_score", "in_aligned", "in_unaligned"]
        return pd.DataFrame(rows, columns=columns)


@dataclass(frozen=True)
class BusinessRanking:
    aligned: Tuple[ScoredBusiness, ...]
    unaligned: Tuple[ScoredBusiness, ...]
    all: Tuple[ScoredBusiness, ...]
    scoring_available: bool = True
    aligned_min: int = 60
    unaligned_max: int = 40

    @property
    def neutral(self) -> Tuple[ScoredBusiness, ...]:
        """Entries excluded from both bands but kept in ``all``."""
        banded = {entry.business.id for entry in self.aligned + self.unaligned}
        return tuple(entry for entry in self.all if entry.business.id not in banded)

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for entry in self.all:
            score = entry.alignment_score
            if score is None:
                band = None
            elif score >= self.aligned_min:
                band = "aligned"
            elif score < self.unaligned_max:
                band = "unaligned"
            else:
                band = "neutral"
            rows.append(
                {
                    "business_id": entry.business.id,
                    "name": entry.business.name,
                    "raw_score": entry.raw_score,
                    "alignment_score": score,
                    "band": band,
                    "distance_miles": entry.distance,
                    "closest_location": entry.closest_location,
                }
            )
        columns = ["business_id", "name", "raw_score", "alignment_score", "band", "distance_miles", "closest_location"]
        return pd.DataFrame(rows, columns=columns)


def _fallback_label(business: Business) -> Optional[str]:
    primary = business.primary_location
    if primary is None or not primary.address:
        return None
    return primary.address


def _alphabetical(entries: Sequence[ScoredBrand]) -> Tuple[ScoredBrand, ...]:
    return tuple(sorted(entries, key=lambda e: (e.brand.name or "").casefold()))


class RankingAssembler:
    """Turns a catalog snapshot and a cause set into sorted, partitioned results.

    The assembler keeps no scores between calls; any change to the causes,
    origin, range or catalog is handled by simply calling it again.
    """

    def __init__(
        self,
        catalog: Catalog,
        scoring: Optional[ScoringConfig] = None,
        ranking: Optional[RankingConfig] = None,
    ):
        self.catalog = catalog
        self.scoring = scoring or ScoringConfig()
        self.ranking = ranking or RankingConfig()

    # ------------------------------------------------------------------ brands

    def brand_raw_scores(self, user_causes: Sequence[UserCause]) -> List[float]:
        if not user_causes or not self.catalog.brands:
            return []
        return score_brands(
            self.catalog.brands,
            user_causes,
            self.catalog.matrix,
            self.scoring,
            max_workers=self.ranking.max_workers,
        )

    def rank_brands(self, user_causes: Sequence[UserCause]) -> BrandRanking:
        cause_map(user_causes)
        brands = self.catalog.brands
        if not user_causes:
            LOGGER.debug("No causes declared; returning unscored brand listing")
            unscored = [ScoredBrand(brand=b, alignment_score=None, raw_score=None) for b in brands]
            return BrandRanking(
                aligned=(),
                unaligned=(),
                all=_alphabetical(unscored),
                score_by_brand_id={},
                raw_scores=(),
                scoring_available=False,
                preview_size=self.ranking.reveal_window,
            )

        raw = self.brand_raw_scores(user_causes)
        normalized = self_normalize(raw, self.scoring)
        scored = [
            ScoredBrand(brand=brand, alignment_score=score, raw_score=raw_score)
            for brand, score, raw_score in zip(brands, normalized, raw)
        ]

        # Stable sort: equal scores keep catalog order.
        by_score = sorted(scored, key=lambda e: e.alignment_score, reverse=True)
        band = self.ranking.brand_band_size
        aligned = tuple(by_score[:band])
        unaligned = tuple(reversed(by_score[-band:])) if by_score else ()

        LOGGER.info("Ranked %d brands against %d causes", len(scored), len(user_causes))
        return BrandRanking(
            aligned=aligned,
            unaligned=unaligned,
            all=_alphabetical(scored),
            score_by_brand_id={e.brand.id: e.alignment_score for e in scored},
            raw_scores=tuple(raw),
            scoring_available=True,
            preview_size=self.ranking.reveal_window,
        )

    def reveal(self, items: Sequence[T]) -> RevealWindow[T]:
        return RevealWindow(items=items, window=self.ranking.reveal_window, step=self.ranking.reveal_step)

    # -------------------------------------------------------------- businesses

    def _project(self, raw: Sequence[float], reference: Sequence[float]) -> List[int]:
        return project_onto_reference(raw, reference, self.scoring)

    def rank_businesses(
        self,
        user_causes: Sequence[UserCause],
        origin: Optional[Tuple[float, float]],
        max_range_miles: Optional[float] = None,
        sort_direction: SortDirection | str = SortDirection.HIGH_TO_LOW,
    ) -> BusinessRanking:
        """
        Rank the businesses around ``origin``.

        Args:
            user_causes: The user's cause set
            origin: ``(lat, lng)`` of the user; None disables the local view
            max_range_miles: Range cutoff; None keeps every business, located or not
            sort_direction: Ordering of the ``all`` list

        Returns:
            BusinessRanking with aligned (>= 60, best first), unaligned
            (< 40, worst first) and every in-range business in ``all``.
        """
        direction = SortDirection(sort_direction)
        cause_map(user_causes)
        empty = BusinessRanking(
            aligned=(),
            unaligned=(),
            all=(),
            scoring_available=bool(user_causes),
            aligned_min=self.ranking.business_aligned_min,
            unaligned_max=self.ranking.business_unaligned_max,
        )
        if not user_causes or origin is None or not self.catalog.businesses:
            return empty

        origin_lat, origin_lng = origin
        in_range: List[Tuple[Business, RangeResult, float]] = []
        for business in self.catalog.businesses:
            result = evaluate(business, origin_lat, origin_lng, max_range_miles)
            # Without a cutoff the listing is not range-filtered at all.
            if max_range_miles is not None and not result.is_within_range:
                continue
            raw = calculate_similarity_score(user_causes, business.causes, self.scoring)
            in_range.append((business, result, raw))
        LOGGER.info(
            "Found %d of %d businesses within %s miles.",
            len(in_range),
            len(self.catalog.businesses),
            max_range_miles,
        )
        if not in_range:
            return empty

        reference = self.brand_raw_scores(user_causes)
        normalized = self._project([raw for _, _, raw in in_range], reference)
        scored = [
            ScoredBusiness(
                business=business,
                alignment_score=score,
                raw_score=raw,
                distance=result.closest_distance,
                closest_location=result.closest_location_label or _fallback_label(business),
            )
            for (business, result, raw), score in zip(in_range, normalized)
        ]

        aligned = sorted(
            (e for e in scored if e.alignment_score >= self.ranking.business_aligned_min),
            key=lambda e: e.alignment_score,
            reverse=True,
        )
        unaligned = sorted(
            (e for e in scored if e.alignment_score < self.ranking.business_unaligned_max),
            key=lambda e: e.alignment_score,
        )
        everything = sorted(
            scored,
            key=lambda e: e.alignment_score,
            reverse=direction is SortDirection.HIGH_TO_LOW,
        )
        return BusinessRanking(
            aligned=tuple(aligned),
            unaligned=tuple(unaligned),
            all=tuple(everything),
            scoring_available=True,
            aligned_min=self.ranking.business_aligned_min,
            unaligned_max=self.ranking.business_unaligned_max,
        )

    def score_businesses(self, user_causes: Sequence[UserCause]) -> Dict[str, int]:
        """Catalog-wide business scores, located or not, keyed by business id."""
        cause_map(user_causes)
        businesses = self.catalog.businesses
        if not user_causes or not businesses:
            return {}
        raw = [calculate_similarity_score(user_causes, b.causes, self.scoring) for b in businesses]
        normalized = self._project(raw, self.brand_raw_scores(user_causes))
        return {business.id: score for business, score in zip(businesses, normalized)}

    def score_business(self, user_causes: Sequence[UserCause], business: Business) -> Optional[int]:
        """Single-business score for detail views; None when no causes are declared."""
        cause_map(user_causes)
        if not user_causes:
            return None
        reference = self.brand_raw_scores(user_causes)
        if reference:
            raw = calculate_similarity_score(user_causes, business.causes, self.scoring)
            return self._project([raw], reference)[0]

        # Self-normalizing needs the rest of the business population.
        population = list(self.catalog.businesses)
        index = next((i for i, b in enumerate(population) if b.id == business.id), None)
        if index is None:
            index = len(population)
            population.append(business)
        else:
            population[index] = business
        raw = [calculate_similarity_score(user_causes, b.causes, self.scoring) for b in population]
        return self._project(raw, reference)[index]

    def compare(self, user_causes: Sequence[UserCause], business: Business) -> CauseComparison:
        return compare_causes(user_causes, business.causes)

    # ------------------------------------------------------------------ extras

    def suggest_brands(self, selected: Sequence[UserCause]) -> List[BrandSuggestion]:
        return suggest_brands_for_values(self.catalog.brands, selected, self.catalog.matrix, self.ranking)

    def search(self, query: str, endorsed_ids: AbstractSet[str] = frozenset()) -> Tuple[List[Brand], List[Business]]:
        return search_catalog(self.catalog, query, endorsed_ids, limit=self.ranking.search_limit)


def search_catalog(
    catalog: Catalog,
    query: str,
    endorsed_ids: AbstractSet[str] = frozenset(),
    limit: int = 10,
) -> Tuple[List[Brand], List[Business]]:
    """Case-insensitive name search over brands and businesses, skipping endorsed ids."""
    needle = query.strip().casefold()
    if not needle:
        return [], []
    brands = [
        b for b in catalog.brands
        if needle in (b.name or "").casefold() and b.id not in endorsed_ids
    ][:limit]
    businesses = [
        b for b in catalog.businesses
        if needle in (b.name or "").casefold() and b.id not in endorsed_ids
    ][:limit]
    return brands, businesses
