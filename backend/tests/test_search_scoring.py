import pytest

from storefront.catalog import Catalog
from storefront.config import Settings
from storefront.errors import ValidationError
from storefront.models import SearchIntent, Specifications
from storefront.search import relevance_score, search_catalog, rank, tokenize, searchable_text
from helpers import make_product


@pytest.fixture(scope="module")
def catalog():
    return Catalog.from_csv(Settings().catalog_path)


# Anything over the ceiling is out no matter what else matches
def test_price_ceiling_is_hard_filter():
    p = make_product(price=600, category="seating", featured=True, in_stock=True, tags=["chair"])
    assert relevance_score(p, ["chair"], 500, "seating", None) == 0

def test_price_proximity_bonus():
    p = make_product(price=250)
    assert relevance_score(p, [], 1000) == pytest.approx(7.5)
    assert relevance_score(make_product(price=1000), [], 1000) == 0

def test_additive_bonuses():
    p = make_product(
        category="tables", featured=True, in_stock=True,
        specifications=Specifications(dimensions="", material="Solid walnut", color="Dark"),
        tags=["desk"],
    )
    # category 20 + material 10 + two keywords 10 + featured 2 + stock 1
    assert relevance_score(p, ["walnut", "desk", "missing"], None, "tables", "walnut") == 43

def test_keyword_hits_are_substrings():
    p = make_product(name="Tabletop Lamp")
    assert relevance_score(p, ["table"]) == 5

def test_searchable_text_fields():
    p = make_product(name="Orb", long_description="Hand blown", tags=["pendant", "glass"],
                     specifications=Specifications(dimensions="12in", material="Brass", color="Smoke"))
    text = searchable_text(p)
    for word in ("orb", "hand blown", "pendant glass", "brass", "smoke", "decor"):
        assert word in text
    assert "12in" not in text

def test_tokenize_drops_short_words():
    assert tokenize("a big oak tv stand") == ["big", "oak", "stand"]

# Equal scores keep catalog order
def test_rank_is_stable():
    products = [make_product(id=str(i), tags=["lamp"]) for i in range(5)]
    ranked = rank(products, ["lamp"], SearchIntent())
    assert [c.product.id for c in ranked] == ["0", "1", "2", "3", "4"]

def test_rank_drops_zero_scores_and_truncates():
    products = [make_product(id=str(i), tags=["lamp"] if i % 2 else []) for i in range(6)]
    ranked = rank(products, ["lamp"], SearchIntent(), limit=2)
    assert [c.product.id for c in ranked] == ["1", "3"]

def test_search_rejects_bad_queries():
    with pytest.raises(ValidationError) as e:
        search_catalog([], "   ")
    assert e.value.field == "query"
    with pytest.raises(ValidationError):
        search_catalog([], "x" * 201)
    assert search_catalog([], "x" * 200) == []

def test_walnut_dining_table_ranks_first(catalog):
    ranked = search_catalog(catalog, "walnut dining table for 6 people")
    assert ranked[0].product.slug == "linear-dining-table"
    assert ranked[0].score == 53
    mirror = next(c for c in ranked if c.product.slug == "wall-mirror")
    assert ranked[0].score - mirror.score > 0

def test_category_word_puts_category_on_top(catalog):
    ranked = search_catalog(catalog, "chair")
    assert [c.product.category for c in ranked[:4]] == ["seating"] * 4
    assert ranked[4].product.category != "seating"

def test_price_ceiling_on_catalog(catalog):
    ranked = search_catalog(catalog, "lamp under $300")
    assert ranked[0].product.slug == "table-lamp"
    assert all(c.product.price <= 300 for c in ranked)

def test_search_is_repeatable(catalog):
    a = search_catalog(catalog, "oak storage")
    b = search_catalog(catalog, "oak storage")
    assert [(c.product.id, c.score) for c in a] == [(c.product.id, c.score) for c in b]
