from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


@dataclass
class CatalogPaths:
    """Input/output paths required by the ranking pipeline."""

    data_dir: Path = Path("data/catalog")
    output_dir: Path = Path("output/endorse")
    user_causes_csv: Optional[Path] = None

    def values_csv(self) -> Path:
        return self.data_dir / "values.csv"

    def matrix_csv(self) -> Path:
        return self.data_dir / "value_matrix.csv"

    def brands_csv(self) -> Path:
        return self.data_dir / "brands.csv"

    def businesses_csv(self) -> Path:
        return self.data_dir / "businesses.csv"

    def business_causes_csv(self) -> Path:
        return self.data_dir / "business_causes.csv"

    def business_locations_csv(self) -> Path:
        return self.data_dir / "business_locations.csv"

    def causes_csv(self) -> Path:
        return self.user_causes_csv or self.data_dir / "user_causes.csv"


NEUTRAL_SCORE = 50.0

EARTH_RADIUS_MILES = 3958.8

# Selector values offered for the local range filter; None means "no filter".
DISTANCE_OPTIONS_MILES: Tuple[int, ...] = (100, 50, 10, 5, 1)

# Presentation colour cutoffs layered on top of an AlignmentScore.
SUCCESS_TONE_MIN = 56
DANGER_TONE_MAX = 44


@dataclass
class ScoringConfig:
    """Coefficients shared by the brand and business scorers."""

    neutral: float = NEUTRAL_SCORE
    # Rank 1 in an aligned list scores 100, decaying by up to this span.
    rank_decay_span: float = 50.0
    # Points added (or removed) per agreeing (or conflicting) business cause.
    agreement_points: float = 10.0
    band_min: int = 1
    band_max: int = 99


@dataclass
class RankingConfig:
    """Slicing and threshold parameters used when assembling result sets."""

    brand_band_size: int = 50
    business_aligned_min: int = 60
    business_unaligned_max: int = 40
    reveal_window: int = 10
    reveal_step: int = 10
    search_limit: int = 10
    suggestion_min_values: int = 5
    suggestion_limit: int = 20
    max_workers: Optional[int] = None


@dataclass
class PipelineConfig:
    paths: CatalogPaths = field(default_factory=CatalogPaths)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    max_range_miles: Optional[float] = None
    sort_direction: str = "highToLow"
