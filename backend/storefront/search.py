from __future__ import annotations
from typing import Iterable, List, Optional

from .errors import ValidationError
from .models import Product, ScoredCandidate, SearchIntent
from .logger import get_logger
from .router import extract_intents

log = get_logger("search")

MIN_KEYWORD_LENGTH = 3
MAX_RESULTS = 20
MAX_QUERY_LENGTH = 200

CATEGORY_BONUS = 20.0
MATERIAL_BONUS = 10.0
KEYWORD_BONUS = 5.0
PRICE_PROXIMITY_WEIGHT = 10.0
FEATURED_BONUS = 2.0
IN_STOCK_BONUS = 1.0


def searchable_text(p: Product) -> str:
    # Everything a keyword is allowed to hit, as one lowercased blob
    parts = [
        p.name,
        p.description,
        p.long_description,
        p.category,
        " ".join(p.tags),
        p.specifications.material,
        p.specifications.color,
    ]
    return "\n".join(parts).lower()


def tokenize(lower_query: str) -> List[str]:
    return [w for w in lower_query.split() if len(w) >= MIN_KEYWORD_LENGTH]


def relevance_score(
    product: Product,
    keywords: List[str],
    price_intent: Optional[int] = None,
    category_intent: Optional[str] = None,
    material_intent: Optional[str] = None,
) -> float:
    """Additive relevance score, 0 means the product is excluded

    A price ceiling is a hard filter; every other signal only adds points
    """
    text = searchable_text(product)
    score = 0.0

    if price_intent is not None:
        if product.price > price_intent:
            return 0.0
        # Well under budget scores closer to the full weight
        score += (1 - product.price / price_intent) * PRICE_PROXIMITY_WEIGHT

    if category_intent and product.category == category_intent:
        score += CATEGORY_BONUS

    if material_intent and material_intent in text:
        score += MATERIAL_BONUS

    score += KEYWORD_BONUS * sum(1 for k in keywords if k in text)

    if product.featured:
        score += FEATURED_BONUS
    if product.in_stock:
        score += IN_STOCK_BONUS
    return score


def validate_search_query(query) -> None:
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("Search query cannot be empty", "query")
    if len(query) > MAX_QUERY_LENGTH:
        raise ValidationError("Search query is too long", "query")


def rank(products: Iterable[Product], keywords: List[str], intent: SearchIntent, limit: int = MAX_RESULTS) -> List[ScoredCandidate]:
    scored = [
        ScoredCandidate(product=p, score=relevance_score(p, keywords, intent.price, intent.category, intent.material))
        for p in products
    ]
    # sorted() is stable, so equal scores keep catalog order
    ranked = sorted((c for c in scored if c.score > 0), key=lambda c: c.score, reverse=True)
    return ranked[:limit]


def search_catalog(products: Iterable[Product], query: str, limit: int = MAX_RESULTS) -> List[ScoredCandidate]:
    """Validate, parse and rank a free text query against the catalog"""
    validate_search_query(query)
    lower = query.strip().lower()
    keywords = tokenize(lower)
    intent = extract_intents(lower)
    log.debug("Search intents: price=%s category=%s material=%s keywords=%s",
              intent.price, intent.category, intent.material, keywords)
    return rank(products, keywords, intent, limit=limit)
