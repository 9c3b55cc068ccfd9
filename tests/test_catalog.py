"""Tests for loading catalog snapshots from CSV tables."""

import textwrap

import pandas as pd
import pytest

from endorse.catalog import CatalogError, build_matrix, load_catalog, load_user_causes
from endorse.config import CatalogPaths
from endorse.models import Stance, UserCause, ValueCategory


def _write(directory, name, body):
    (directory / name).write_text(textwrap.dedent(body).lstrip())


@pytest.fixture
def catalog_dir(tmp_path):
    _write(tmp_path, "values.csv", """
        id,name,category
        v1,Renewable Energy,social_issue
        v2,Local Farming,Lifestyle
    """)
    # Rows deliberately out of rank order.
    _write(tmp_path, "value_matrix.csv", """
        value_id,stance,rank,brand_name
        v1,support,2,Birch
        v1,support,1,Acme
        v1,avoid,1,Ember
        v2,Support,1,Birch
    """)
    _write(tmp_path, "brands.csv", """
        id,name,category,website
        b-acme,Acme,energy,acme.example
        b-birch,Birch,grocery,
        b-ember,Ember,energy,
    """)
    _write(tmp_path, "businesses.csv", """
        id,name
        shop,Corner Shop
        web,Web Store
    """)
    _write(tmp_path, "business_causes.csv", """
        business_id,value_id,stance
        shop,v1,support
        shop,v2,avoid
    """)
    _write(tmp_path, "business_locations.csv", """
        business_id,lat,lng,is_primary,address
        shop,40.0,-75.0,false,1 Side St
        shop,40.1,-75.1,TRUE,2 Main St
        web,,,false,
    """)
    _write(tmp_path, "user_causes.csv", """
        user_id,value_id,stance
        u1,v1,support
        u1,v2,avoid
        u2,v1,avoid
    """)
    return tmp_path


class TestLoadCatalog:
    def test_values_and_categories(self, catalog_dir):
        catalog = load_catalog(CatalogPaths(data_dir=catalog_dir))
        assert [v.id for v in catalog.values] == ["v1", "v2"]
        assert catalog.values[1].category is ValueCategory.LIFESTYLE

    def test_matrix_sorted_by_rank(self, catalog_dir):
        catalog = load_catalog(CatalogPaths(data_dir=catalog_dir))
        assert catalog.matrix.position("v1", Stance.SUPPORT, "Acme") == (1, 2)
        assert catalog.matrix.position("v1", Stance.SUPPORT, "Birch") == (2, 2)
        assert catalog.matrix.position("v1", Stance.AVOID, "Ember") == (1, 1)
        assert catalog.matrix.position("v2", Stance.SUPPORT, "Birch") == (1, 1)

    def test_brands_keep_file_order(self, catalog_dir):
        catalog = load_catalog(CatalogPaths(data_dir=catalog_dir))
        assert [b.id for b in catalog.brands] == ["b-acme", "b-birch", "b-ember"]
        assert catalog.brands[0].website == "acme.example"
        assert catalog.brands[1].website == ""

    def test_businesses_with_causes_and_locations(self, catalog_dir):
        catalog = load_catalog(CatalogPaths(data_dir=catalog_dir))
        shop = catalog.business("shop")
        assert [(c.value_id, c.stance) for c in shop.causes] == [("v1", Stance.SUPPORT), ("v2", Stance.AVOID)]
        assert shop.primary_location.address == "2 Main St"

        web = catalog.business("web")
        assert web.causes == ()
        assert not web.locations[0].has_coordinates

    def test_optional_tables_may_be_missing(self, catalog_dir):
        for name in ("values.csv", "businesses.csv", "business_causes.csv", "business_locations.csv"):
            (catalog_dir / name).unlink()
        catalog = load_catalog(CatalogPaths(data_dir=catalog_dir))
        assert catalog.values == () and catalog.businesses == ()
        assert len(catalog.brands) == 3

    def test_required_table_missing(self, catalog_dir):
        (catalog_dir / "brands.csv").unlink()
        with pytest.raises(CatalogError, match="brands.csv"):
            load_catalog(CatalogPaths(data_dir=catalog_dir))

    def test_missing_columns(self, catalog_dir):
        _write(catalog_dir, "value_matrix.csv", """
            value_id,brand_name
            v1,Acme
        """)
        with pytest.raises(CatalogError, match="missing columns"):
            load_catalog(CatalogPaths(data_dir=catalog_dir))

    def test_unknown_category(self, catalog_dir):
        _write(catalog_dir, "values.csv", """
            id,name,category
            v1,Mystery,astrology
        """)
        with pytest.raises(CatalogError, match="unknown category"):
            load_catalog(CatalogPaths(data_dir=catalog_dir))

    def test_unknown_stance(self, catalog_dir):
        _write(catalog_dir, "business_causes.csv", """
            business_id,value_id,stance
            shop,v1,boycott
        """)
        with pytest.raises(CatalogError, match="Unknown stance"):
            load_catalog(CatalogPaths(data_dir=catalog_dir))

    def test_duplicate_business_cause(self, catalog_dir):
        _write(catalog_dir, "business_causes.csv", """
            business_id,value_id,stance
            shop,v1,support
            shop,v1,avoid
        """)
        with pytest.raises(CatalogError, match="business shop"):
            load_catalog(CatalogPaths(data_dir=catalog_dir))


class TestBuildMatrix:
    def test_non_numeric_rank(self):
        frame = pd.DataFrame([{"value_id": "v1", "stance": "support", "rank": "first", "brand_name": "Acme"}])
        with pytest.raises(CatalogError, match="Non-numeric rank"):
            build_matrix(frame)

    def test_conflict_is_logged(self, caplog):
        frame = pd.DataFrame(
            [
                {"value_id": "v1", "stance": "support", "rank": "1", "brand_name": "Acme"},
                {"value_id": "v1", "stance": "avoid", "rank": "1", "brand_name": "Acme"},
            ]
        )
        with caplog.at_level("WARNING", logger="endorse.catalog"):
            index = build_matrix(frame)
        assert index.conflicts() == {"v1": ["Acme"]}
        assert "both support and avoid" in caplog.text

    def test_empty(self):
        assert len(build_matrix(pd.DataFrame(columns=["value_id", "stance", "rank", "brand_name"]))) == 0


class TestLoadUserCauses:
    def test_filters_by_user(self, catalog_dir):
        causes = load_user_causes(CatalogPaths(data_dir=catalog_dir), "u1")
        assert causes == (UserCause("v1", Stance.SUPPORT), UserCause("v2", Stance.AVOID))

    def test_unknown_user_has_no_causes(self, catalog_dir):
        assert load_user_causes(CatalogPaths(data_dir=catalog_dir), "nobody") == ()

    def test_explicit_file(self, catalog_dir, tmp_path_factory):
        other = tmp_path_factory.mktemp("profiles") / "causes.csv"
        other.write_text("user_id,value_id,stance\nu9,v2,support\n")
        paths = CatalogPaths(data_dir=catalog_dir, user_causes_csv=other)
        assert load_user_causes(paths, "u9") == (UserCause("v2", Stance.SUPPORT),)
