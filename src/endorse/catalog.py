from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .config import CatalogPaths
from .models import (
    Brand,
    Business,
    BusinessCause,
    BusinessLocation,
    Catalog,
    CauseSetError,
    Stance,
    UserCause,
    Value,
    ValueAlignmentIndex,
    ValueCategory,
    ValueRanking,
    cause_map,
    parse_causes,
)

LOGGER = logging.getLogger(__name__)

VALUE_COLUMNS = ["id", "name", "category"]
MATRIX_COLUMNS = ["value_id", "stance", "rank", "brand_name"]
BRAND_COLUMNS = ["id", "name", "category", "website"]
BUSINESS_COLUMNS = ["id", "name"]
BUSINESS_CAUSE_COLUMNS = ["business_id", "value_id", "stance"]
LOCATION_COLUMNS = ["business_id", "lat", "lng", "is_primary", "address"]
USER_CAUSE_COLUMNS = ["user_id", "value_id", "stance"]

_TRUTHY = {"1", "true", "yes", "y", "t"}


class CatalogError(ValueError):
    """Raised when catalog inputs are missing or malformed."""


def _read_table(path: Path, columns: Sequence[str], required: bool = False) -> pd.DataFrame:
    if not path.exists():
        if required:
            raise CatalogError(f"Required catalog file not found: {path}")
        return pd.DataFrame(columns=list(columns))
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise CatalogError(f"{path.name} is missing columns {missing}")
    return df


def _stance(raw: str, where: str) -> Stance:
    try:
        return Stance.parse(raw)
    except CauseSetError as exc:
        raise CatalogError(f"{where}: {exc}") from None


def _coordinate(raw) -> Optional[float]:
    value = pd.to_numeric(raw, errors="coerce")
    return None if pd.isna(value) else float(value)


def build_values(values: pd.DataFrame) -> Tuple[Value, ...]:
    built: List[Value] = []
    for row in values.itertuples(index=False):
        try:
            category = ValueCategory(str(row.category).strip().lower())
        except ValueError:
            raise CatalogError(f"Value {row.id!r} has unknown category {row.category!r}") from None
        built.append(Value(id=str(row.id), name=str(row.name), category=category))
    return tuple(built)


def build_matrix(matrix: pd.DataFrame) -> ValueAlignmentIndex:
    """Group ``value_id, stance, rank, brand_name`` rows into rank-ordered lists."""
    if matrix.empty:
        return ValueAlignmentIndex({})
    df = matrix.copy()
    df["rank"] = pd.to_numeric(df["rank"], errors="coerce")
    if df["rank"].isna().any():
        bad = df.loc[df["rank"].isna(), "value_id"].unique().tolist()
        raise CatalogError(f"Non-numeric rank in value_matrix for values {bad}")
    df["stance"] = [_stance(s, f"value_matrix[{v}]") for v, s in zip(df["value_id"], df["stance"])]
    df = df.sort_values(by=["value_id", "rank"], kind="mergesort")

    lists: Dict[str, Dict[str, List[str]]] = {}
    for row in df.itertuples(index=False):
        entry = lists.setdefault(str(row.value_id), {"support": [], "avoid": []})
        entry[row.stance.value].append(str(row.brand_name))

    index = ValueAlignmentIndex(
        {value_id: ValueRanking(support=tuple(l["support"]), avoid=tuple(l["avoid"])) for value_id, l in lists.items()}
    )
    for value_id, brands in index.conflicts().items():
        LOGGER.warning("Value %s lists %s under both support and avoid", value_id, brands)
    return index


def build_brands(brands: pd.DataFrame) -> Tuple[Brand, ...]:
    df = brands.reindex(columns=BRAND_COLUMNS, fill_value="")
    return tuple(
        Brand(id=str(row.id), name=str(row.name), category=str(row.category), website=str(row.website))
        for row in df.itertuples(index=False)
    )


def build_businesses(
    businesses: pd.DataFrame,
    business_causes: pd.DataFrame,
    locations: pd.DataFrame,
) -> Tuple[Business, ...]:
    causes_by_business: Dict[str, List[BusinessCause]] = {}
    for row in business_causes.itertuples(index=False):
        causes_by_business.setdefault(str(row.business_id), []).append(
            BusinessCause(value_id=str(row.value_id), stance=_stance(row.stance, f"business {row.business_id}"))
        )

    locations_by_business: Dict[str, List[BusinessLocation]] = {}
    for row in locations.reindex(columns=LOCATION_COLUMNS, fill_value="").itertuples(index=False):
        locations_by_business.setdefault(str(row.business_id), []).append(
            BusinessLocation(
                lat=_coordinate(row.lat),
                lng=_coordinate(row.lng),
                is_primary=str(row.is_primary).strip().lower() in _TRUTHY,
                address=str(row.address),
            )
        )

    built: List[Business] = []
    for row in businesses.itertuples(index=False):
        business_id = str(row.id)
        causes = causes_by_business.get(business_id, [])
        try:
            cause_map(causes)
        except CauseSetError as exc:
            raise CatalogError(f"business {business_id}: {exc}") from None
        built.append(
            Business(
                id=business_id,
                name=str(row.name),
                causes=tuple(causes),
                locations=tuple(locations_by_business.get(business_id, [])),
            )
        )
    return tuple(built)


def build_catalog(
    values: pd.DataFrame,
    matrix: pd.DataFrame,
    brands: pd.DataFrame,
    businesses: pd.DataFrame,
    business_causes: pd.DataFrame,
    locations: pd.DataFrame,
) -> Catalog:
    catalog = Catalog(
        values=build_values(values),
        matrix=build_matrix(matrix),
        brands=build_brands(brands),
        businesses=build_businesses(businesses, business_causes, locations),
    )
    LOGGER.info(
        "Catalog ready: %d values, %d ranked values, %d brands, %d businesses",
        len(catalog.values),
        len(catalog.matrix),
        len(catalog.brands),
        len(catalog.businesses),
    )
    return catalog


def load_catalog(paths: CatalogPaths) -> Catalog:
    return build_catalog(
        values=_read_table(paths.values_csv(), VALUE_COLUMNS),
        matrix=_read_table(paths.matrix_csv(), MATRIX_COLUMNS, required=True),
        brands=_read_table(paths.brands_csv(), BRAND_COLUMNS[:2], required=True),
        businesses=_read_table(paths.businesses_csv(), BUSINESS_COLUMNS),
        business_causes=_read_table(paths.business_causes_csv(), BUSINESS_CAUSE_COLUMNS),
        locations=_read_table(paths.business_locations_csv(), LOCATION_COLUMNS[:3]),
    )


def load_user_causes(paths: CatalogPaths, user_id: str) -> Tuple[UserCause, ...]:
    """Read one user's cause set; an unknown user has an empty cause set."""
    df = _read_table(paths.causes_csv(), USER_CAUSE_COLUMNS)
    subset = df[df["user_id"].astype(str) == str(user_id)]
    return parse_causes(subset[["value_id", "stance"]].to_dict("records"))
