import asyncio
import json
import math
import random

import pytest

from fragment_gateway.api import streaming
from fragment_gateway.api.streaming import (
    DONE_FRAME,
    ChunkPolicy,
    build_completion,
    split_text,
    stream_completion,
)


def _collect(agen):
    async def run():
        return [frame async for frame in agen]

    return asyncio.run(run())


def _events(frames):
    return [json.loads(frame[len("data: "):]) for frame in frames if frame != DONE_FRAME]


def test_build_completion_shape():
    completion = build_completion("hello", "gpt-4o")
    assert completion["object"] == "chat.completion"
    assert completion["model"] == "gpt-4o"
    assert completion["usage"] is None
    assert completion["choices"] == [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "hello"},
            "finish_reason": "stop",
        }
    ]
    assert isinstance(completion["created"], int)


def test_split_text_with_fixed_policy():
    assert list(split_text("abcdefghij", ChunkPolicy.fixed(4))) == ["abcd", "efgh", "ij"]
    assert list(split_text("", ChunkPolicy.fixed(4))) == []


def test_chunk_policy_rejects_bad_ranges():
    with pytest.raises(ValueError):
        ChunkPolicy(min_size=0)
    with pytest.raises(ValueError):
        ChunkPolicy(min_size=10, max_size=5)
    with pytest.raises(ValueError):
        ChunkPolicy(delay=-1)


def test_default_policy_draws_sizes_in_range():
    policy = ChunkPolicy(rng=random.Random(7))
    sizes = [policy.next_size() for _ in range(500)]
    assert min(sizes) >= 15
    assert max(sizes) <= 29


def test_stream_of_100_chars_respects_chunk_bounds():
    text = "x" * 100
    for seed in range(30):
        policy = ChunkPolicy(delay=0, rng=random.Random(seed))
        frames = _collect(stream_completion(text, "gpt-4o", policy))

        assert frames[-1] == DONE_FRAME
        events = _events(frames)
        assert math.ceil(100 / 29) <= len(events) <= math.ceil(100 / 15)
        assert sum(len(e["choices"][0]["delta"]["content"]) for e in events) == 100
        assert [e["choices"][0]["finish_reason"] for e in events] == [None] * (len(events) - 1) + ["stop"]


def test_stream_events_reassemble_text_in_order():
    text = "The quick brown fox jumps over the lazy dog."
    frames = _collect(stream_completion(text, "claude-3-7-sonnet-latest", ChunkPolicy.fixed(10)))
    events = _events(frames)

    assert "".join(e["choices"][0]["delta"]["content"] for e in events) == text
    assert len({e["id"] for e in events}) == len(events)
    for event in events:
        assert event["object"] == "chat.completion.chunk"
        assert event["model"] == "claude-3-7-sonnet-latest"
        assert set(event["choices"][0]["delta"]) == {"content"}
    assert all(frame.startswith("data: ") and frame.endswith("\n\n") for frame in frames)


def test_stream_sleeps_between_chunks_only(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(streaming.asyncio, "sleep", fake_sleep)
    _collect(stream_completion("abcdefghij", "m", ChunkPolicy.fixed(4, delay=0.05)))
    assert delays == [0.05, 0.05]


def test_disconnect_stops_emission_without_sentinel():
    checks = {"count": 0}

    async def is_disconnected():
        checks["count"] += 1
        return checks["count"] > 2

    frames = _collect(
        stream_completion("a" * 50, "m", ChunkPolicy.fixed(5), is_disconnected=is_disconnected)
    )
    assert len(frames) == 2
    assert DONE_FRAME not in frames


def test_serialization_failure_truncates_stream(monkeypatch):
    calls = {"count": 0}
    real_dumps = json.dumps

    def flaky_dumps(obj, *args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 2:
            raise TypeError("cannot serialize")
        return real_dumps(obj, *args, **kwargs)

    monkeypatch.setattr(streaming.json, "dumps", flaky_dumps)
    frames = _collect(stream_completion("a" * 20, "m", ChunkPolicy.fixed(5)))
    assert len(frames) == 1
    assert DONE_FRAME not in frames


def test_empty_text_emits_only_sentinel():
    assert _collect(stream_completion("", "m", ChunkPolicy.fixed(5))) == [DONE_FRAME]
