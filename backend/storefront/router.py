"""Rule based query understanding and canned assistant replies

Search turns a free text query into price, category and material signals
Chat in simulation mode picks the first topic whose words appear in the message
All matching is plain substring matching on lowercased text, so "tablet" counts as "table"
"""

from __future__ import annotations
import re
from typing import Callable, List, NamedTuple, Optional

from .models import SearchIntent

# Each pattern means "at most N"; the first pattern that matches wins
PRICE_PATTERNS = [
    re.compile(r"under\s+\$?(\d+)", re.IGNORECASE),
    re.compile(r"below\s+\$?(\d+)", re.IGNORECASE),
    re.compile(r"less\s+than\s+\$?(\d+)", re.IGNORECASE),
    re.compile(r"cheaper\s+than\s+\$?(\d+)", re.IGNORECASE),
    re.compile(r"\$?(\d+)\s+or\s+less", re.IGNORECASE),
]

# Order matters: the first category with any keyword in the query wins.
# "coffee table" and "side table" never decide anything on their own since "table" comes first.
CATEGORY_KEYWORDS = [
    ("seating", ["chair", "sofa", "couch", "ottoman", "seat", "armchair"]),
    ("tables", ["table", "desk", "dining", "coffee table", "side table"]),
    ("storage", ["storage", "shelf", "cabinet", "shelving", "bookcase", "console"]),
    ("lighting", ["light", "lamp", "pendant", "lighting", "chandelier"]),
    ("decor", ["decor", "decoration", "vase", "pillow", "rug", "mirror", "blanket"]),
]

MATERIALS = ["wood", "walnut", "oak", "leather", "fabric", "metal", "brass", "marble", "glass"]


def extract_price_intent(query: str) -> Optional[int]:
    for pattern in PRICE_PATTERNS:
        m = pattern.search(query)
        if m:
            return int(m.group(1))
    return None


def extract_category_intent(query: str) -> Optional[str]:
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in query for k in keywords):
            return category
    return None


def extract_material_intent(query: str) -> Optional[str]:
    for material in MATERIALS:
        if material in query:
            return material
    return None


def extract_intents(query: str) -> SearchIntent:
    """Return every signal found in an already lowercased query"""
    return SearchIntent(
        price=extract_price_intent(query),
        category=extract_category_intent(query),
        material=extract_material_intent(query),
    )


class CannedReply(NamedTuple):
    topic: str
    matches: Callable[[str], bool]
    text: str


def _any_of(*words: str) -> Callable[[str], bool]:
    return lambda t: any(w in t for w in words)


# Evaluated top to bottom, first hit answers. "shipping" contains "hi", so it lands on the greeting
CANNED_REPLIES: List[CannedReply] = [
    CannedReply(
        "seating",
        _any_of("chair", "seating"),
        "I'd recommend checking out our Arne Lounge Chair - it's perfect for creating a cozy reading nook "
        "with its curved oak frame and premium leather upholstery. We also have the Cloud Ottoman which "
        "works great as extra seating. Would you like to know more about either of these pieces?",
    ),
    CannedReply(
        "dining",
        _any_of("table", "dining"),
        "For dining tables, our Linear Dining Table is a customer favorite. It's crafted from solid walnut "
        "with clean lines and seats 6-8 comfortably. Perfect for both everyday meals and entertaining guests. "
        "Would you like to see more dining options?",
    ),
    CannedReply(
        "style",
        _any_of("modern", "minimalist"),
        "You'll love our minimalist collection! We focus on clean lines, natural materials like oak and walnut, "
        "and timeless Scandinavian-inspired design. Every piece is crafted to be both beautiful and functional. "
        "What type of furniture are you most interested in?",
    ),
    CannedReply(
        "pricing",
        _any_of("budget", "price", "cost"),
        "Our products range from $189 to $3,299, with most pieces between $500-$1,500. We offer free shipping "
        "on orders over $500! What's your budget range, and what type of furniture are you looking for?",
    ),
    CannedReply(
        "greeting",
        _any_of("hello", "hi", "hey"),
        "Hi there! I'm your AI furniture consultant. I can help you find the perfect pieces for your space. "
        "Are you looking for something specific, or would you like some recommendations?",
    ),
    CannedReply(
        "shipping",
        _any_of("shipping", "delivery"),
        "We offer free standard shipping on all orders over $500. Standard delivery typically takes 5-7 "
        "business days, and we also offer expedited shipping options. Is there a specific item you're interested in?",
    ),
    CannedReply(
        "policy",
        _any_of("warranty", "return"),
        "All our furniture pieces come with a 2-year warranty, and we offer a 30-day return policy. We stand "
        "behind the quality of our craftsmanship. Do you have questions about a specific product?",
    ),
]

DEFAULT_REPLY = "I'm here to help! Could you provide more details about what you're looking for?"


def match_canned_reply(text: str) -> Optional[CannedReply]:
    t = (text or "").lower()
    for reply in CANNED_REPLIES:
        if reply.matches(t):
            return reply
    return None


def canned_reply(text: str) -> str:
    """Canned answer for a user message, falling back to a clarifying question"""
    hit = match_canned_reply(text)
    return hit.text if hit else DEFAULT_REPLY
