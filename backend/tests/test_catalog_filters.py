import pandas as pd
import pytest

from storefront.catalog import Catalog, apply_filters
from storefront.config import Settings
from storefront.errors import CatalogError
from storefront.models import ProductFilters
from helpers import make_product


@pytest.fixture(scope="module")
def catalog():
    return Catalog.from_csv(Settings().catalog_path)


# Helper to make a tiny catalog
def make_catalog():
    return Catalog([
        make_product("1", name="Oak Chair", category="seating", price=300, in_stock=True, tags=["chair", "oak"]),
        make_product("2", name="Brass Lamp", category="lighting", price=120, in_stock=False, tags=["lamp"]),
        make_product("3", name="Ash Console", category="storage", price=800, in_stock=True, tags=["console"]),
    ])


def test_loads_sample_catalog(catalog):
    assert len(catalog) == 20
    table = catalog.by_slug("linear-dining-table")
    assert table.price == 1899
    assert table.tags == ["table", "dining", "walnut", "solid wood"]
    assert table.specifications.dimensions == '84"L × 42"W × 30"H'
    assert table.specifications.weight == "180 lbs"
    assert catalog.by_id("2") is table

def test_helpers(catalog):
    assert [p.id for p in catalog.featured()] == ["1", "2", "3", "4", "5", "8", "11", "19", "20"]
    assert {p.category for p in catalog.by_category("decor")} == {"decor"}
    assert catalog.by_category("beds") == []
    assert catalog.by_slug("nope") is None

def test_related_excludes_self(catalog):
    related = catalog.related("1", "seating", limit=2)
    assert [p.slug for p in related] == ["cloud-ottoman", "slope-armchair"]

def test_duplicate_slug_rejected():
    with pytest.raises(CatalogError):
        Catalog([make_product("1", slug="x"), make_product("2", slug="x")])

def test_missing_catalog_file(tmp_path):
    with pytest.raises(CatalogError):
        Catalog.from_csv(str(tmp_path / "missing.csv"))

def test_bad_row_reports_line(tmp_path):
    path = tmp_path / "catalog.csv"
    pd.DataFrame([{
        "id": "1", "name": "X", "slug": "x", "description": "", "long_description": "",
        "price": "-5", "category": "seating", "images": "", "in_stock": "true", "featured": "false",
        "dimensions": "", "material": "", "color": "", "weight": "", "tags": "",
    }]).to_csv(path, index=False)
    with pytest.raises(CatalogError, match="line 2"):
        Catalog.from_csv(str(path))

# Test various filtering scenarios
def test_filters_by_category_and_price():
    c = make_catalog()
    out = apply_filters(c.df, ProductFilters(category="seating", max_price=500))
    assert list(out["id"]) == ["1"]

def test_filters_by_stock_and_search():
    c = make_catalog()
    assert [p.id for p in c.filter(ProductFilters(in_stock=True))] == ["1", "3"]
    assert [p.id for p in c.filter(ProductFilters(search="LAMP"))] == ["2"]

def test_sorting():
    c = make_catalog()
    assert [p.id for p in c.filter(ProductFilters(sort_by="price-asc"))] == ["2", "1", "3"]
    assert [p.id for p in c.filter(ProductFilters(sort_by="price-desc"))] == ["3", "1", "2"]
    assert [p.id for p in c.filter(ProductFilters(sort_by="name"))] == ["3", "2", "1"]
    assert [p.id for p in c.filter(ProductFilters(sort_by="newest"))] == ["3", "2", "1"]

def test_recommend_prefers_shared_tags_then_price():
    current = make_product("0", price=500, category="seating", tags=["oak", "chair"])
    c = Catalog([
        current,
        make_product("1", price=900, category="seating", tags=["oak", "chair"]),
        make_product("2", price=510, category="tables", tags=[]),
        make_product("3", price=450, category="seating", tags=["oak"]),
        make_product("4", price=600, category="seating", tags=["oak"]),
    ])
    recs = c.recommend(current=current, category="seating", limit=4)
    assert [p.id for p in recs] == ["1", "3", "4", "2"]

def test_recommend_without_current_puts_category_first():
    c = make_catalog()
    assert [p.id for p in c.recommend(category="storage", limit=2)] == ["3", "1"]
