"""Shared fixtures for ranking engine tests.

Two catalogs are provided:
    * ``catalog`` holds the brands only, for brand scoring scenarios.
    * ``local_catalog`` adds the businesses. Against ``local_causes`` its brand
      raw scores are roughly [50, 77.8, 47.2, 50, 33.3], so agree / neutral /
      conflict businesses (raw 70 / 50 / 40) project to 79 / 40 / 21.
"""

import pytest

from endorse.models import (
    Brand,
    Business,
    BusinessLocation,
    Catalog,
    Value,
    ValueAlignmentIndex,
    ValueCategory,
)
from tests import avoid, biz_cause, support


@pytest.fixture
def values():
    return (
        Value(id="v1", name="Renewable Energy", category=ValueCategory.SOCIAL_ISSUE),
        Value(id="v2", name="Local Farming", category=ValueCategory.LIFESTYLE),
        Value(id="v3", name="Fast Fashion", category=ValueCategory.CORPORATION),
    )


@pytest.fixture
def matrix():
    return ValueAlignmentIndex.from_lists(
        {
            "v1": {"support": ["Acme", "Birch", "Cobalt"], "avoid": ["Ember"]},
            "v2": {"support": ["Birch"], "avoid": ["Acme", "Cobalt"]},
        }
    )


@pytest.fixture
def brands():
    # Catalog order deliberately differs from alphabetical order.
    return (
        Brand(id="b-acme", name="Acme", category="energy", website="acme.example"),
        Brand(id="b-birch", name="Birch", category="grocery"),
        Brand(id="b-cobalt", name="Cobalt", category="mining"),
        Brand(id="b-dune", name="dune", category="apparel"),
        Brand(id="b-ember", name="Ember", category="energy"),
    )


@pytest.fixture
def catalog(values, matrix, brands):
    return Catalog(values=values, matrix=matrix, brands=brands, businesses=())


def _near(address: str, primary: bool = True) -> BusinessLocation:
    # About a third of a mile north of ORIGIN.
    return BusinessLocation(lat=40.005, lng=-75.0, is_primary=primary, address=address)


@pytest.fixture
def businesses():
    return (
        Business(
            id="agree",
            name="Green Grocer",
            causes=(biz_cause("v1", "support"), biz_cause("v2", "support")),
            locations=(_near("12 Market St"),),
        ),
        Business(
            id="conflict",
            name="Coal Corner",
            causes=(biz_cause("v1", "avoid"),),
            locations=(_near("3 Pit Rd"),),
        ),
        Business(
            id="neutral",
            name="Plain Bakery",
            causes=(biz_cause("v9", "support"),),
            locations=(_near("8 Oven Way"),),
        ),
        Business(
            id="far",
            name="Faraway Farm",
            causes=(biz_cause("v1", "support"),),
            # One degree of latitude, roughly 69 miles.
            locations=(BusinessLocation(lat=41.0, lng=-75.0, is_primary=True, address="1 Field Ln"),),
        ),
        Business(
            id="nowhere",
            name="Online Only",
            causes=(biz_cause("v1", "support"),),
            locations=(),
        ),
    )


@pytest.fixture
def local_catalog(values, matrix, brands, businesses):
    return Catalog(values=values, matrix=matrix, brands=brands, businesses=businesses)


@pytest.fixture
def local_causes():
    return [support("v1"), support("v2"), avoid("v3")]
