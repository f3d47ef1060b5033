import random

from fragment_gateway.prompting.messages import (
    BlockContent,
    ObjectContent,
    TextContent,
    UnknownContent,
    extract_text,
    normalize_messages,
    parse_content,
)


def _texts(turns):
    return [turn["content"][0]["text"] for turn in turns]


def test_parse_content_variants():
    assert isinstance(parse_content("hi"), TextContent)
    assert isinstance(parse_content([{"type": "text", "text": "hi"}]), BlockContent)
    assert isinstance(parse_content({"text": "hi"}), ObjectContent)
    assert isinstance(parse_content(42), UnknownContent)
    assert isinstance(parse_content(None), UnknownContent)


def test_extract_text_from_blocks_skips_non_text_blocks():
    content = [
        {"type": "text", "text": "first"},
        {"type": "image_url", "image_url": {"url": "http://x/y.png"}},
        {"type": "text", "text": "second"},
        "stray",
    ]
    assert extract_text(content) == "first\nsecond"


def test_extract_text_from_object_and_unknown_shapes():
    assert extract_text({"type": "text", "text": "obj"}) == "obj"
    assert extract_text({"value": "no text field"}) == ""
    assert extract_text({"text": 5}) == ""
    assert extract_text(3.14) == ""


def test_extraction_is_idempotent_across_equivalent_shapes():
    plain = "same words"
    assert extract_text(plain) == extract_text([{"type": "text", "text": plain}])
    assert extract_text(plain) == extract_text({"text": plain})


def test_single_turn_round_trip():
    out = normalize_messages([{"role": "user", "content": "hello there"}])
    assert out == [{"role": "user", "content": [{"type": "text", "text": "hello there"}]}]


def test_system_role_is_sent_as_user():
    out = normalize_messages([
        {"role": "system", "content": "be nice"},
        {"role": "assistant", "content": "ok"},
    ])
    assert [turn["role"] for turn in out] == ["user", "assistant"]
    assert _texts(out) == ["be nice", "ok"]


def test_adjacent_same_role_turns_are_merged():
    out = normalize_messages([
        {"role": "user", "content": "a"},
        {"role": "user", "content": [{"type": "text", "text": "b"}]},
        {"role": "assistant", "content": "c"},
        {"role": "assistant", "content": {"text": "d"}},
    ])
    assert [turn["role"] for turn in out] == ["user", "assistant"]
    assert _texts(out) == ["a\nb", "c\nd"]


def test_system_then_user_collapse_into_one_user_turn():
    out = normalize_messages([
        {"role": "system", "content": "rules"},
        {"role": "user", "content": "question"},
    ])
    assert out == [{"role": "user", "content": [{"type": "text", "text": "rules\nquestion"}]}]


def test_empty_turns_are_dropped_and_do_not_break_merging():
    out = normalize_messages([
        {"role": "user", "content": "one"},
        {"role": "assistant", "content": ""},
        {"role": "assistant", "content": [{"type": "image_url"}]},
        {"role": "user", "content": "two"},
    ])
    assert out == [{"role": "user", "content": [{"type": "text", "text": "one\ntwo"}]}]


def test_unknown_role_passes_through_with_original_content():
    content = {"text": "tool output", "tool_call_id": "call_1"}
    out = normalize_messages([
        {"role": "user", "content": "run it"},
        {"role": "tool", "content": content},
    ])
    assert out[1] == {"role": "tool", "content": content}


def test_merged_unknown_role_carries_merged_text():
    out = normalize_messages([
        {"role": "tool", "content": "x"},
        {"role": "tool", "content": "y"},
    ])
    assert out == [{"role": "tool", "content": "x\ny"}]


def test_all_empty_conversation_normalizes_to_empty_list():
    messages = [
        {"role": "system", "content": ""},
        {"role": "user", "content": []},
        {"role": "assistant", "content": None},
    ]
    assert normalize_messages(messages) == []
    assert normalize_messages([]) == []


def test_non_mapping_entries_are_ignored():
    out = normalize_messages(["junk", None, {"role": "user", "content": "ok"}])
    assert _texts(out) == ["ok"]


def test_never_emits_consecutive_same_role_turns():
    rng = random.Random(42)
    roles = ["system", "user", "assistant", "tool"]
    contents = [
        lambda: "",
        lambda: "text",
        lambda: [{"type": "text", "text": "block"}],
        lambda: [{"type": "image_url"}],
        lambda: {"text": "obj"},
        lambda: {"other": 1},
        lambda: None,
    ]
    for _ in range(500):
        messages = [
            {"role": rng.choice(roles), "content": rng.choice(contents)()}
            for _ in range(rng.randint(0, 12))
        ]
        out = normalize_messages(messages)
        for previous, current in zip(out, out[1:]):
            assert previous["role"] != current["role"]
        for turn in out:
            if turn["role"] in ("user", "assistant"):
                assert turn["content"][0]["type"] == "text"
                assert turn["content"][0]["text"]
