from __future__ import annotations
import os
from typing import Dict, List, Optional
import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from .errors import CatalogError
from .logger import get_logger
from .models import CATEGORIES, Product, ProductFilters, Specifications

log = get_logger("catalog")

REQUIRED_COLUMNS = [
    "id", "name", "slug", "description", "long_description", "price", "category",
    "images", "in_stock", "featured", "dimensions", "material", "color", "weight", "tags",
]
MAX_RECOMMENDATIONS = 8


def _split_multi(value: str) -> List[str]:
    # images and tags are stored as a|b|c in the csv
    return [v.strip() for v in str(value).split("|") if v.strip()]


def _truthy(value: str) -> bool:
    return str(value).strip().lower() in ("true", "1", "yes")


def _row_to_product(row: pd.Series) -> Product:
    return Product(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        description=row["description"],
        long_description=row["long_description"],
        price=float(row["price"]),
        category=row["category"],
        images=_split_multi(row["images"]),
        in_stock=_truthy(row["in_stock"]),
        featured=_truthy(row["featured"]),
        specifications=Specifications(
            dimensions=row["dimensions"],
            material=row["material"],
            color=row["color"],
            weight=row["weight"] or None,
        ),
        tags=_split_multi(row["tags"]),
    )


def apply_filters(df: pd.DataFrame, f: ProductFilters) -> pd.DataFrame:
    # Shop page filtering on the raw catalog frame
    out = df
    if f.category:
        out = out[out["category"] == f.category]
    if f.min_price is not None:
        out = out[out["price"] >= float(f.min_price)]
    if f.max_price is not None:
        out = out[out["price"] <= float(f.max_price)]
    if f.in_stock is not None:
        out = out[out["in_stock"] == f.in_stock]
    if f.featured is not None:
        out = out[out["featured"] == f.featured]
    if f.search:
        needle = f.search.strip()
        hay = out["name"] + " " + out["description"] + " " + out["tags"].str.replace("|", " ", regex=False)
        out = out[hay.str.contains(needle, case=False, regex=False, na=False)]
    if f.sort_by == "price-asc":
        out = out.sort_values("price", kind="stable")
    elif f.sort_by == "price-desc":
        out = out.sort_values("price", ascending=False, kind="stable")
    elif f.sort_by == "name":
        out = out.sort_values("name", key=lambda s: s.str.lower(), kind="stable")
    elif f.sort_by == "newest":
        out = out.sort_values("id", key=lambda s: pd.to_numeric(s, errors="coerce"), ascending=False, kind="stable")
    return out


class Catalog:
    """In-memory product catalog

    The frame keeps typed columns for filtering, the product list keeps catalog order
    """

    def __init__(self, products: List[Product]):
        self._check_unique(products)
        self.products: List[Product] = list(products)
        self._by_id: Dict[str, Product] = {p.id: p for p in self.products}
        self._by_slug: Dict[str, Product] = {p.slug: p for p in self.products}
        self.df = pd.DataFrame([
            {
                "id": p.id,
                "name": p.name,
                "description": p.description,
                "category": p.category,
                "price": p.price,
                "in_stock": p.in_stock,
                "featured": p.featured,
                "tags": "|".join(p.tags),
            }
            for p in self.products
        ], columns=["id", "name", "description", "category", "price", "in_stock", "featured", "tags"])

    @classmethod
    def from_csv(cls, csv_path: str) -> "Catalog":
        if not os.path.isfile(csv_path):
            raise CatalogError(f"catalog not found: {csv_path}")
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=False, engine="c")
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise CatalogError(f"catalog is missing columns: {', '.join(missing)}")
        products: List[Product] = []
        for lineno, (_, row) in enumerate(df.iterrows(), start=2):
            try:
                products.append(_row_to_product(row))
            except (PydanticValidationError, ValueError) as e:
                raise CatalogError(f"invalid catalog row at line {lineno}: {e}") from e
        log.info("Loaded %d products from %s", len(products), csv_path)
        return cls(products)

    @staticmethod
    def _check_unique(products: List[Product]) -> None:
        for attr in ("id", "slug"):
            seen = set()
            for p in products:
                value = getattr(p, attr)
                if value in seen:
                    raise CatalogError(f"duplicate product {attr}: {value}")
                seen.add(value)

    def __len__(self) -> int:
        return len(self.products)

    def __iter__(self):
        return iter(self.products)

    def by_id(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    def by_slug(self, slug: str) -> Optional[Product]:
        return self._by_slug.get(slug)

    def featured(self) -> List[Product]:
        return self.filter(ProductFilters(featured=True))

    def by_category(self, category: str) -> List[Product]:
        if category not in CATEGORIES:
            return []
        return [p for p in self.products if p.category == category]

    def related(self, product_id: str, category: str, limit: int = 4) -> List[Product]:
        return [p for p in self.products if p.category == category and p.id != product_id][:limit]

    def filter(self, filters: ProductFilters) -> List[Product]:
        out = apply_filters(self.df, filters)
        return [self._by_id[i] for i in out["id"].tolist()]

    def recommend(self, current: Optional[Product] = None, category: Optional[str] = None, limit: int = 4) -> List[Product]:
        """Pick products to show next to the one being viewed

        Same category first, then closest price, then most shared tags
        """
        limit = max(1, min(limit, MAX_RECOMMENDATIONS))
        pool = [p for p in self.products if current is None or p.id != current.id]
        if category:
            pool = [p for p in pool if p.category == category] + [p for p in pool if p.category != category]
        if current is not None:
            # Both sorts are stable so the tag sort keeps the price order among ties
            pool.sort(key=lambda p: abs(p.price - current.price))
            pool.sort(key=lambda p: len([t for t in p.tags if t in current.tags]), reverse=True)
        return pool[:limit]
