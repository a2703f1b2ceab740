from __future__ import annotations
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Category = Literal["seating", "tables", "storage", "lighting", "decor"]
CATEGORIES: List[str] = ["seating", "tables", "storage", "lighting", "decor"]

Role = Literal["user", "assistant", "system"]
SortBy = Literal["price-asc", "price-desc", "name", "newest"]


class _CamelModel(BaseModel):
    # The storefront frontend speaks camelCase, Python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Specifications(_CamelModel):
    dimensions: str
    material: str
    color: str
    weight: Optional[str] = None


class Product(_CamelModel):
    # One catalog row, loaded once at startup and never mutated
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    slug: str
    description: str
    long_description: str
    price: float = Field(gt=0)
    category: Category
    images: List[str] = Field(default_factory=list)
    in_stock: bool = True
    featured: bool = False
    specifications: Specifications
    tags: List[str] = Field(default_factory=list)


class ProductFilters(_CamelModel):
    category: Optional[Category] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None
    search: Optional[str] = None
    sort_by: Optional[SortBy] = None


class SearchIntent(BaseModel):
    # Signals pulled out of a lowercased query
    price: Optional[int] = None
    category: Optional[Category] = None
    material: Optional[str] = None


class ScoredCandidate(BaseModel):
    product: Product
    score: float


class ChatMessage(BaseModel):
    role: Role
    content: str


class SearchResponse(_CamelModel):
    results: List[Product]
    query: str
    count: int
    processing_time: int


class ProductsResponse(BaseModel):
    products: List[Product]
