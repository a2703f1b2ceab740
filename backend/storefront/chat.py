"""Chat responders

SimulatedResponder answers from canned replies and needs nothing external.
ProviderResponder streams a completion from OpenAI. FallbackResponder wraps a
primary responder and quietly switches to a secondary one when the primary fails.
"""

from __future__ import annotations
import asyncio
from typing import Any, AsyncIterator, List, Protocol

from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from .config import Settings
from .errors import AppError, ExternalServiceError
from .logger import get_logger
from .models import ChatMessage
from .router import canned_reply, match_canned_reply

log = get_logger("chat")

MAX_MESSAGE_LENGTH = 500

SYSTEM_PROMPT = (
    "You are a helpful furniture shopping assistant for 'STUDIO Furniture'. "
    "You are knowledgeable about modern, minimalist design. Be concise, friendly, and helpful. "
    "Focus on guiding customers to find furniture that matches their needs and style preferences."
)


def validate_chat_messages(body: Any) -> List[ChatMessage]:
    """Check a raw chat request body, failing on the first problem found"""
    messages = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(messages, list):
        raise AppError("Invalid request: messages array is required", "INVALID_REQUEST", 400)
    if not messages:
        raise AppError("Invalid request: messages array cannot be empty", "INVALID_REQUEST", 400)

    last = messages[-1]
    content = last.get("content") if isinstance(last, dict) else None
    if not content or not isinstance(content, str):
        raise AppError("Invalid request: message content is required", "INVALID_REQUEST", 400)
    if len(content) > MAX_MESSAGE_LENGTH:
        raise AppError(
            f"Message is too long. Maximum {MAX_MESSAGE_LENGTH} characters allowed",
            "MESSAGE_TOO_LONG",
            400,
        )
    try:
        return [ChatMessage.model_validate(m) for m in messages]
    except PydanticValidationError:
        raise AppError("Invalid request: every message needs a role and text content", "INVALID_REQUEST", 400)


class ChatResponder(Protocol):
    name: str

    async def open(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        """Start a reply and return its text deltas"""
        ...


async def _single(text: str) -> AsyncIterator[str]:
    yield text


class SimulatedResponder:
    name = "simulation"

    async def open(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        content = messages[-1].content
        hit = match_canned_reply(content)
        log.info("Simulated reply topic: %s", hit.topic if hit else "default")
        return _single(canned_reply(content))


_DONE = object()


async def _next_or_done(deltas: AsyncIterator[str]):
    try:
        return await deltas.__anext__()
    except StopAsyncIteration:
        return _DONE


class ProviderResponder:
    """Streams a completion, bounded by one deadline for the whole reply"""

    name = "openai"

    def __init__(self, client: Any, model: str = "gpt-4-turbo", system_prompt: str = SYSTEM_PROMPT,
                 deadline_s: float = 30.0):
        self.client = client
        self.model = model
        self.system_prompt = system_prompt
        self.deadline_s = deadline_s

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderResponder":
        client = AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.chat_timeout_s)
        return cls(client, model=settings.openai_model, deadline_s=settings.chat_timeout_s)

    async def open(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.deadline_s
        stream = await asyncio.wait_for(
            self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "system", "content": self.system_prompt}] + [m.model_dump() for m in messages],
                stream=True,
            ),
            self.deadline_s,
        )
        deltas = self._deltas(stream)
        # Pull the first token here so an early provider failure still lets the caller fall back
        first = await asyncio.wait_for(_next_or_done(deltas), max(0.0, deadline - loop.time()))
        if first is _DONE:
            raise ExternalServiceError("Provider returned an empty reply", self.name)
        return self._resume(first, deltas, deadline)

    @staticmethod
    async def _deltas(stream) -> AsyncIterator[str]:
        async for chunk in stream:
            if not chunk.choices:
                continue
            text = chunk.choices[0].delta.content
            if text:
                yield text

    @staticmethod
    async def _resume(first: str, rest: AsyncIterator[str], deadline: float) -> AsyncIterator[str]:
        loop = asyncio.get_running_loop()
        yield first
        try:
            while True:
                delta = await asyncio.wait_for(_next_or_done(rest), max(0.0, deadline - loop.time()))
                if delta is _DONE:
                    return
                yield delta
        except asyncio.TimeoutError:
            log.error("Provider stream hit the reply deadline, ending it early")
        except Exception:
            # Headers are already sent; all we can do is end the stream early
            log.exception("Provider stream failed mid-response")


class FallbackResponder:
    def __init__(self, primary: ChatResponder, fallback: ChatResponder):
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}+{fallback.name}"

    async def open(self, messages: List[ChatMessage]) -> AsyncIterator[str]:
        try:
            deltas = await self.primary.open(messages)
            log.info("Using %s for chat response", self.primary.name)
            return deltas
        except Exception as e:
            log.error("%s chat failed, falling back to %s: %s", self.primary.name, self.fallback.name, e)
        return await self.fallback.open(messages)


def build_responder(settings: Settings) -> ChatResponder:
    """Provider mode when an API key is configured, simulation otherwise"""
    simulated = SimulatedResponder()
    if not settings.has_llm:
        return simulated
    return FallbackResponder(ProviderResponder.from_settings(settings), simulated)
