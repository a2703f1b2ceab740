# FastAPI backend for the STUDIO furniture storefront
# Serves product browsing, keyword search and the shopping assistant chat
import asyncio
import os
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
import uvicorn

from storefront.catalog import Catalog
from storefront.chat import build_responder, validate_chat_messages
from storefront.config import Settings
from storefront.errors import AppError, NotFoundError, RateLimitError, format_error_response
from storefront.logger import get_logger
from storefront.models import Category, Product, ProductFilters, ProductsResponse, SearchResponse, SortBy
from storefront.rate_limit import PROFILES, RateLimiter, client_id_from_headers
from storefront.search import search_catalog, validate_search_query
from storefront.stream import CONTENT_TYPE, encode_stream

log = get_logger("api")

APP_VERSION = "2.0.0"

# Global state, swapped out by tests
SETTINGS = Settings.from_env()
CATALOG: Optional[Catalog] = None
LIMITER = RateLimiter()
RESPONDER = build_responder(SETTINGS)


async def _sweep_rate_limits():
    while True:
        await asyncio.sleep(SETTINGS.rate_limit_sweep_s)
        LIMITER.sweep()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Load the product catalog when the server starts
    global CATALOG
    CATALOG = Catalog.from_csv(SETTINGS.catalog_path)
    sweeper = asyncio.create_task(_sweep_rate_limits())
    try:
        yield
    finally:
        sweeper.cancel()


app = FastAPI(title="STUDIO Furniture Storefront API", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = None
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(format_error_response(exc, SETTINGS.development), status_code=exc.status_code, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Query string problems use the same error shape as everything else
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(p) for p in first.get("loc", []) if p not in ("query", "path", "body")]
    body: Dict[str, Any] = {"message": first.get("msg", "Invalid request"), "code": "VALIDATION_ERROR"}
    if loc:
        body["field"] = ".".join(loc)
    return JSONResponse({"error": body}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Last resort for anything a route did not turn into an AppError
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(format_error_response(exc, SETTINGS.development), status_code=500)


def _internal_error(e: Exception) -> AppError:
    log.exception("Unexpected error: %s", e)
    message = str(e) if SETTINGS.development else "Internal server error"
    return AppError(message, "INTERNAL_ERROR", 500, is_operational=False)


def _catalog() -> Catalog:
    if CATALOG is None:
        raise AppError("Catalog not ready", "INTERNAL_ERROR", 500)
    return CATALOG


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise AppError("Invalid request: body must be valid JSON", "INVALID_REQUEST", 400)
    if not isinstance(body, dict):
        raise AppError("Invalid request: body must be a JSON object", "INVALID_REQUEST", 400)
    return body


def _limit(request: Request, profile: str) -> Dict[str, str]:
    return LIMITER.admit_profile(client_id_from_headers(request.headers), PROFILES[profile])


@app.get("/health")
def health():
    return {
        "status": "ok",
        "catalog_size": len(CATALOG) if CATALOG else 0,
        "version": APP_VERSION,
        "mode": "openai" if SETTINGS.has_llm else "simulation",
    }


@app.get("/version")
def version():
    return {"version": APP_VERSION}


@app.post("/api/ai/search", response_model=SearchResponse)
async def ai_search(request: Request, response: Response):
    start = time.perf_counter()
    response.headers.update(_limit(request, "search"))
    body = await _json_body(request)
    query = body.get("query")
    if not query:
        raise AppError("Search query is required", "MISSING_QUERY", 400)
    validate_search_query(query)

    try:
        query = query.strip()
        log.info("AI search request: %r", query)
        if SETTINGS.has_llm:
            log.info("OpenAI API key detected, but semantic search is not implemented; using keyword scoring")
        ranked = search_catalog(_catalog(), query)
    except AppError:
        raise
    except Exception as e:
        raise _internal_error(e)

    processing_time = int((time.perf_counter() - start) * 1000)
    log.info("Search completed: %r -> %d results in %dms", query, len(ranked), processing_time)
    return SearchResponse(
        results=[c.product for c in ranked],
        query=query,
        count=len(ranked),
        processing_time=processing_time,
    )


@app.post("/api/ai/chat")
async def ai_chat(request: Request):
    headers = _limit(request, "chat")
    body = await _json_body(request)
    messages = validate_chat_messages(body)
    try:
        deltas = await RESPONDER.open(messages)
    except AppError:
        raise
    except Exception as e:
        raise _internal_error(e)
    return StreamingResponse(encode_stream(deltas), media_type=CONTENT_TYPE, headers=headers)


@app.get("/api/products", response_model=ProductsResponse)
def list_products(
    request: Request,
    response: Response,
    category: Optional[Category] = None,
    min_price: Optional[float] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(default=None, alias="maxPrice", ge=0),
    in_stock: Optional[bool] = Query(default=None, alias="inStock"),
    search: Optional[str] = Query(default=None, max_length=200),
    sort_by: Optional[SortBy] = Query(default=None, alias="sortBy"),
    featured: Optional[bool] = None,
):
    response.headers.update(_limit(request, "default"))
    catalog = _catalog()
    filters = ProductFilters(
        category=category, min_price=min_price, max_price=max_price,
        in_stock=in_stock, featured=featured, search=search, sort_by=sort_by,
    )
    return {"products": catalog.filter(filters)}


@app.get("/api/products/featured", response_model=ProductsResponse)
def featured_products(request: Request, response: Response):
    response.headers.update(_limit(request, "default"))
    return {"products": _catalog().featured()}


def _product_or_404(slug: str) -> Product:
    product = _catalog().by_slug(slug)
    if product is None:
        raise NotFoundError(f"Product not found: {slug}")
    return product


@app.get("/api/products/{slug}", response_model=Product)
def get_product(slug: str, request: Request, response: Response):
    response.headers.update(_limit(request, "default"))
    return _product_or_404(slug)


@app.get("/api/products/{slug}/related", response_model=ProductsResponse)
def related_products(slug: str, request: Request, response: Response, limit: int = Query(default=4, ge=1, le=20)):
    response.headers.update(_limit(request, "default"))
    product = _product_or_404(slug)
    return {"products": _catalog().related(product.id, product.category, limit)}


@app.get("/api/products/{slug}/recommendations", response_model=ProductsResponse)
def recommendations(slug: str, request: Request, response: Response, limit: int = Query(default=4, ge=1, le=8)):
    response.headers.update(_limit(request, "default"))
    product = _product_or_404(slug)
    return {"products": _catalog().recommend(current=product, category=product.category, limit=limit)}


if __name__ == "__main__":
    # python backend/app.py, or: uvicorn app:app --app-dir backend
    uvicorn.run(app, host=os.environ.get("HOST", "127.0.0.1"), port=int(os.environ.get("PORT", "8000")))
