"""OpenAI-style response emission for an already completed answer.

Architectural role:
    Turns the fragment service's single answer text into either one
    `chat.completion` object or a paced sequence of `chat.completion.chunk`
    SSE frames ending with `[DONE]`.

Emulated streaming:
    The full text is known before the first frame. `split_text` cuts it into
    consecutive chunks whose sizes are drawn from `ChunkPolicy`; the emitter
    sleeps `policy.delay` seconds between chunks. This pacing is presentation
    only, not backpressure.

Stream lifecycle:
    Idle -> Emitting(cursor) -> ... -> Terminated. The cursor only moves
    forward; chunks are produced strictly in text order.

Error handling:
    - Serialization failure of a frame logs and ends the stream without the
      `[DONE]` sentinel.
    - Client disconnect (`is_disconnected()`), task cancellation, or a broken
      connection ends emission quietly.

Determinism:
    Chunk boundaries depend on `policy.rng`; `ChunkPolicy.fixed` gives a fully
    deterministic, zero-delay policy.
"""

import asyncio
import json
import logging
import random
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Iterator

from fragment_gateway.core.ids import generate_id


logger = logging.getLogger(__name__)

DONE_FRAME = "data: [DONE]\n\n"


@dataclass(frozen=True)
class ChunkPolicy:
    """Chunk-size distribution and inter-chunk delay for emulated streams.

    Attributes:
        min_size: Smallest chunk size in characters (inclusive).
        max_size: Largest chunk size in characters (inclusive).
        delay: Seconds to sleep between successive chunks.
        rng: Random source used to draw chunk sizes.
    """

    min_size: int = 15
    max_size: int = 29
    delay: float = 0.05
    rng: random.Random = field(default_factory=random.Random, compare=False)

    def __post_init__(self):
        if self.min_size < 1 or self.max_size < self.min_size:
            raise ValueError(
                f"invalid chunk size range: {self.min_size}..{self.max_size}"
            )
        if self.delay < 0:
            raise ValueError(f"delay must be non-negative, got {self.delay}")

    @classmethod
    def fixed(cls, size: int, delay: float = 0.0) -> "ChunkPolicy":
        return cls(min_size=size, max_size=size, delay=delay)

    def next_size(self) -> int:
        return self.rng.randint(self.min_size, self.max_size)


def split_text(text: str, policy: ChunkPolicy) -> Iterator[str]:
    """Yield consecutive substrings of `text` sized by `policy`.

    The final chunk is truncated to whatever remains.
    """
    cursor = 0
    while cursor < len(text):
        size = policy.next_size()
        yield text[cursor:cursor + size]
        cursor += size


def build_completion(text: str, model: str) -> dict:
    """Return the immediate-mode `chat.completion` object."""
    return {
        "id": generate_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
        "usage": None,
    }


def build_chunk(content: str, model: str, finish_reason: str | None = None) -> dict:
    """Return one `chat.completion.chunk` event carrying `content`."""
    return {
        "id": generate_id(),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": {"content": content},
                "finish_reason": finish_reason,
            }
        ],
    }


def _with_lookahead(chunks: Iterator[str]):
    """Pair each chunk with a flag telling whether it is the last one."""
    previous = None
    for chunk in chunks:
        if previous is not None:
            yield previous, False
        previous = chunk
    if previous is not None:
        yield previous, True


async def stream_completion(
    text: str,
    model: str,
    policy: ChunkPolicy,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    request_id: str = "-",
) -> AsyncIterator[str]:
    """Yield SSE frames emulating incremental delivery of `text`.

    Args:
        text: Complete answer text.
        model: Model name echoed in every chunk.
        policy: Chunk-size distribution and pacing.
        is_disconnected: Optional async probe checked before each chunk.
        request_id: Correlation id for log lines.

    Yields:
        `data: <json>\\n\\n` frames, then `data: [DONE]\\n\\n`.
    """
    logger.info("[%s] Streaming response, content length: %d chars", request_id, len(text))

    try:
        first = True
        for chunk, is_last in _with_lookahead(split_text(text, policy)):
            if not first and policy.delay:
                await asyncio.sleep(policy.delay)
            first = False

            if is_disconnected is not None and await is_disconnected():
                logger.info("[%s] Client disconnected during stream", request_id)
                return

            event = build_chunk(chunk, model, "stop" if is_last else None)
            try:
                frame = f"data: {json.dumps(event)}\n\n"
            except (TypeError, ValueError):
                logger.exception("[%s] Failed to serialize stream chunk", request_id)
                return
            yield frame

        yield DONE_FRAME
        logger.info("[%s] Streaming response completed", request_id)
    except (asyncio.CancelledError, BrokenPipeError, ConnectionResetError):
        logger.info("[%s] Streaming cancelled by client", request_id)
        return
