"""Line framed text stream used by the chat endpoint

Each text delta travels as one line: 0:<json encoded string>\n
"""

from __future__ import annotations
import codecs
import json
import uuid
from typing import AsyncIterator, Dict, Iterable, List, Optional

TEXT_PREFIX = "0:"
CONTENT_TYPE = "text/plain; charset=utf-8"


def encode_frame(text: str) -> bytes:
    # ensure_ascii keeps every frame pure ASCII, json escapes do the rest
    return f"{TEXT_PREFIX}{json.dumps(text)}\n".encode("utf-8")


async def encode_stream(deltas: AsyncIterator[str]) -> AsyncIterator[bytes]:
    async for delta in deltas:
        if delta:
            yield encode_frame(delta)


class FrameDecoder:
    """Incremental reader for the frame format

    Chunks may split lines and even multi byte characters, so both are buffered
    """

    def __init__(self):
        self._text = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[str]:
        self._buffer += self._text.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return [t for t in (self._parse(line) for line in lines) if t is not None]

    def close(self) -> List[str]:
        self._buffer += self._text.decode(b"", final=True)
        line, self._buffer = self._buffer, ""
        text = self._parse(line)
        return [text] if text is not None else []

    @staticmethod
    def _parse(line: str) -> Optional[str]:
        line = line.rstrip("\r")
        if not line.startswith(TEXT_PREFIX):
            return None
        return json.loads(line[len(TEXT_PREFIX):])


class AssistantReply:
    """Grow one assistant message in a conversation as fragments arrive

    The first fragment appends the message, later ones replace its content in place
    """

    def __init__(self, conversation: List[Dict[str, str]]):
        self.conversation = conversation
        self.id = uuid.uuid4().hex
        self.content = ""
        self._index: Optional[int] = None

    def add(self, fragment: str) -> None:
        self.content += fragment
        message = {"id": self.id, "role": "assistant", "content": self.content}
        if self._index is None:
            self.conversation.append(message)
            self._index = len(self.conversation) - 1
        else:
            self.conversation[self._index] = message

    @property
    def started(self) -> bool:
        return self._index is not None


def read_reply(chunks: Iterable[bytes], conversation: List[Dict[str, str]]) -> AssistantReply:
    """Consume a whole chat response body into the conversation"""
    decoder = FrameDecoder()
    reply = AssistantReply(conversation)
    for chunk in chunks:
        for fragment in decoder.feed(chunk):
            reply.add(fragment)
    for fragment in decoder.close():
        reply.add(fragment)
    return reply
