from .models import Product, Specifications, ProductFilters, SearchIntent, ScoredCandidate, ChatMessage, SearchResponse, ProductsResponse
from .catalog import Catalog, apply_filters
from .router import extract_intents, extract_price_intent, extract_category_intent, extract_material_intent, canned_reply
from .search import relevance_score, search_catalog, validate_search_query
from .rate_limit import RateLimiter, InMemoryRateLimitStore, RateLimitEntry, LimiterProfile, PROFILES, client_id_from_headers
from .chat import SimulatedResponder, ProviderResponder, FallbackResponder, build_responder, validate_chat_messages
from .stream import encode_frame, FrameDecoder, AssistantReply, read_reply
from .errors import AppError, ValidationError, NotFoundError, RateLimitError, CatalogError, format_error_response

__all__ = [
    'Product','Specifications','ProductFilters','SearchIntent','ScoredCandidate','ChatMessage','SearchResponse','ProductsResponse',
    'Catalog','apply_filters',
    'extract_intents','extract_price_intent','extract_category_intent','extract_material_intent','canned_reply',
    'relevance_score','search_catalog','validate_search_query',
    'RateLimiter','InMemoryRateLimitStore','RateLimitEntry','LimiterProfile','PROFILES','client_id_from_headers',
    'SimulatedResponder','ProviderResponder','FallbackResponder','build_responder','validate_chat_messages',
    'encode_frame','FrameDecoder','AssistantReply','read_reply',
    'AppError','ValidationError','NotFoundError','RateLimitError','CatalogError','format_error_response',
]
