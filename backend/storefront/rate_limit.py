"""Fixed window rate limiting keyed by limiter and client

Counters live in a RateLimitStore. The default store is a process local dict,
so counters reset on restart and are not shared between server instances.
"""

from __future__ import annotations
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Mapping, Optional, Protocol, Tuple

from .errors import RateLimitError
from .logger import get_logger

log = get_logger("rate_limit")

UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True)
class RateLimitEntry:
    count: int
    reset_time: float  # epoch milliseconds


@dataclass(frozen=True)
class LimiterProfile:
    identifier: str
    max_requests: int
    window_ms: int


PROFILES: Dict[str, LimiterProfile] = {
    "default": LimiterProfile("default", 100, 15 * 60 * 1000),
    "strict": LimiterProfile("strict", 10, 60 * 1000),
    "chat": LimiterProfile("ai-chat", 30, 5 * 60 * 1000),
    "search": LimiterProfile("search", 50, 5 * 60 * 1000),
}


class RateLimitStore(Protocol):
    def get(self, key: str) -> Optional[RateLimitEntry]: ...
    def set(self, key: str, entry: RateLimitEntry) -> None: ...
    def delete(self, key: str) -> None: ...
    def items(self) -> Iterator[Tuple[str, RateLimitEntry]]: ...


class InMemoryRateLimitStore:
    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def items(self) -> Iterator[Tuple[str, RateLimitEntry]]:
        # Snapshot so callers can delete while iterating
        return iter(list(self._entries.items()))

    def __len__(self) -> int:
        return len(self._entries)


def _now_ms() -> float:
    return time.time() * 1000


def client_id_from_headers(headers: Mapping[str, str]) -> str:
    """Identify the caller by proxy headers, first one present wins"""
    forwarded = (headers.get("x-forwarded-for") or "").split(",")[0].strip()
    return forwarded or headers.get("x-real-ip") or headers.get("cf-connecting-ip") or UNKNOWN_CLIENT


class RateLimiter:
    def __init__(self, store: Optional[RateLimitStore] = None, clock: Callable[[], float] = _now_ms):
        self.store: RateLimitStore = store if store is not None else InMemoryRateLimitStore()
        self.clock = clock
        # Sync routes run on a thread pool, so the read-modify-write below must not interleave
        self._lock = threading.Lock()

    @staticmethod
    def key(identifier: str, client_id: str) -> str:
        return f"{identifier}:{client_id}"

    def admit(self, client_id: str, identifier: str, max_requests: int, window_ms: int) -> RateLimitEntry:
        """Count one request, raising RateLimitError once the window is full

        An expired entry is replaced, not incremented, so the request opens a new window with count 1
        """
        key = self.key(identifier, client_id)
        with self._lock:
            now = self.clock()
            entry = self.store.get(key)
            if entry is None or now >= entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + window_ms)
            else:
                entry = RateLimitEntry(count=entry.count + 1, reset_time=entry.reset_time)
            self.store.set(key, entry)

        if entry.count > max_requests:
            retry_after = math.ceil((entry.reset_time - now) / 1000)
            log.warning("Rate limit exceeded for %s (retry in %ss)", key, retry_after)
            raise RateLimitError(f"Rate limit exceeded. Try again in {retry_after} seconds.", retry_after=retry_after)
        return entry

    def admit_profile(self, client_id: str, profile: LimiterProfile) -> Dict[str, str]:
        self.admit(client_id, profile.identifier, profile.max_requests, profile.window_ms)
        return self.headers(client_id, profile)

    def headers(self, client_id: str, profile: LimiterProfile) -> Dict[str, str]:
        entry = self.store.get(self.key(profile.identifier, client_id))
        if entry is None:
            return {
                "X-RateLimit-Limit": str(profile.max_requests),
                "X-RateLimit-Remaining": str(profile.max_requests),
            }
        return {
            "X-RateLimit-Limit": str(profile.max_requests),
            "X-RateLimit-Remaining": str(max(0, profile.max_requests - entry.count)),
            "X-RateLimit-Reset": str(math.ceil(entry.reset_time / 1000)),
        }

    def sweep(self) -> int:
        """Drop every entry whose window has already ended"""
        now = self.clock()
        removed = 0
        with self._lock:
            for key, entry in self.store.items():
                if entry.reset_time <= now:
                    self.store.delete(key)
                    removed += 1
        if removed:
            log.debug("Swept %d expired rate limit entries", removed)
        return removed
