"""Catalog and cause-set types shared by every scoring stage.

Everything here is an immutable snapshot: the engine reads these objects
for the duration of a ranking pass and never writes to them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


class CauseSetError(ValueError):
    """Raised when a cause set cannot be scored (duplicate or unknown stance)."""


class ValueCategory(str, Enum):
    IDEOLOGY = "ideology"
    SOCIAL_ISSUE = "social_issue"
    PERSON = "person"
    RELIGION = "religion"
    NATION = "nation"
    LIFESTYLE = "lifestyle"
    ORGANIZATION = "organization"
    SPORTS = "sports"
    CORPORATION = "corporation"


class Stance(str, Enum):
    """Polarity of a declared position on a value."""

    SUPPORT = "support"
    AVOID = "avoid"

    @classmethod
    def parse(cls, raw: "Stance | str") -> "Stance":
        if isinstance(raw, Stance):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise CauseSetError(f"Unknown stance {raw!r}; expected 'support' or 'avoid'") from None

    @property
    def opposite(self) -> "Stance":
        return Stance.AVOID if self is Stance.SUPPORT else Stance.SUPPORT


@dataclass(frozen=True)
class Value:
    id: str
    name: str
    category: ValueCategory


@dataclass(frozen=True)
class UserCause:
    value_id: str
    stance: Stance


@dataclass(frozen=True)
class BusinessCause:
    value_id: str
    stance: Stance


@dataclass(frozen=True)
class Brand:
    id: str
    name: str
    category: str = ""
    website: str = ""


@dataclass(frozen=True)
class BusinessLocation:
    lat: Optional[float]
    lng: Optional[float]
    is_primary: bool = False
    address: str = ""

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


@dataclass(frozen=True)
class Business:
    id: str
    name: str = ""
    causes: Tuple[BusinessCause, ...] = ()
    locations: Tuple[BusinessLocation, ...] = ()

    @property
    def primary_location(self) -> Optional[BusinessLocation]:
        """The location flagged as primary, else the first one listed."""
        for location in self.locations:
            if location.is_primary:
                return location
        return self.locations[0] if self.locations else None


@dataclass(frozen=True)
class ValueRanking:
    """Rank-ordered brand names for one value, most aligned/opposed first."""

    support: Tuple[str, ...] = ()
    avoid: Tuple[str, ...] = ()

    def ranked(self, stance: Stance) -> Tuple[str, ...]:
        return self.support if stance is Stance.SUPPORT else self.avoid


def _first_positions(names: Sequence[str]) -> Dict[str, int]:
    positions: Dict[str, int] = {}
    for idx, name in enumerate(names, start=1):
        positions.setdefault(name, idx)
    return positions


class ValueAlignmentIndex:
    """Read-only per-value rank lists used to score brands.

    Lookups return the 1-based position of a brand inside a value's support or
    avoid list together with that list's length, so scorers never scan lists.
    """

    def __init__(self, matrix: Mapping[str, ValueRanking]):
        self._matrix: Dict[str, ValueRanking] = dict(matrix)
        self._positions: Dict[Tuple[str, Stance], Dict[str, int]] = {}
        for value_id, ranking in self._matrix.items():
            for stance in Stance:
                self._positions[(value_id, stance)] = _first_positions(ranking.ranked(stance))

    @classmethod
    def from_lists(cls, matrix: Mapping[str, Mapping[str, Sequence[str]]]) -> "ValueAlignmentIndex":
        """Build from the plain ``{value_id: {"support": [...], "avoid": [...]}}`` shape."""
        return cls(
            {
                value_id: ValueRanking(
                    support=tuple(lists.get("support", ()) or ()),
                    avoid=tuple(lists.get("avoid", ()) or ()),
                )
                for value_id, lists in matrix.items()
            }
        )

    def __contains__(self, value_id: object) -> bool:
        return value_id in self._matrix

    def __len__(self) -> int:
        return len(self._matrix)

    def position(self, value_id: str, stance: Stance, brand_name: str) -> Optional[Tuple[int, int]]:
        """Return ``(position, list_length)`` for ``brand_name`` or None if absent."""
        ranking = self._matrix.get(value_id)
        if ranking is None:
            return None
        pos = self._positions[(value_id, stance)].get(brand_name)
        if pos is None:
            return None
        return pos, len(ranking.ranked(stance))

    def conflicts(self) -> Dict[str, List[str]]:
        """Brands listed under both stances of the same value, keyed by value id."""
        found: Dict[str, List[str]] = {}
        for value_id, ranking in self._matrix.items():
            both = sorted(set(ranking.support) & set(ranking.avoid))
            if both:
                found[value_id] = both
        return found


def cause_map(causes: Iterable[UserCause | BusinessCause]) -> Dict[str, Stance]:
    """Key a cause set by value id, failing fast on duplicates."""
    keyed: Dict[str, Stance] = {}
    for cause in causes:
        if cause.value_id in keyed:
            raise CauseSetError(f"Duplicate value id {cause.value_id!r} in cause set")
        keyed[cause.value_id] = cause.stance
    return keyed


def parse_causes(records: Iterable[Mapping[str, object]]) -> Tuple[UserCause, ...]:
    """Turn ``{"value_id", "stance"}`` records into a validated user cause set.

    ``id``/``type`` keys are accepted as aliases because that is how profiles
    store them.
    """
    causes: List[UserCause] = []
    for record in records:
        value_id = record.get("value_id", record.get("id"))
        stance = record.get("stance", record.get("type"))
        if value_id is None or value_id == "" or stance is None:
            raise CauseSetError(f"Cause record is missing value_id or stance: {dict(record)!r}")
        causes.append(UserCause(value_id=str(value_id), stance=Stance.parse(stance)))
    cause_map(causes)
    return tuple(causes)


@dataclass(frozen=True)
class Catalog:
    """Read-only snapshot of everything a ranking pass consumes."""

    values: Tuple[Value, ...] = ()
    matrix: ValueAlignmentIndex = field(default_factory=lambda: ValueAlignmentIndex({}))
    brands: Tuple[Brand, ...] = ()
    businesses: Tuple[Business, ...] = ()

    def business(self, business_id: str) -> Optional[Business]:
        for business in self.businesses:
            if business.id == business_id:
                return business
        return None
