"""Conversation normalization into the fragment service's turn format.

Architectural role:
    Converts the client's OpenAI-style `messages` into the strictly alternating
    user/assistant turns the fragment service accepts.

Content model:
    Client content is classified once at the boundary by `parse_content` into
    one of four variants, each owning its text extraction:
        * `TextContent`    -> the string itself
        * `BlockContent`   -> text of every `{"type": "text"}` block, newline-joined
        * `ObjectContent`  -> the object's string `text` field
        * `UnknownContent` -> empty text

Pipeline (order is fixed):
    1. Extract text per turn.
    2. Drop turns whose text is empty; they do not count for role continuity.
    3. Merge a turn into the previous retained turn when both map to the same
       upstream role (`system` counts as `user`), joining with a newline.
    4. Re-emit `system`/`user` as `user`, keep `assistant`, pass any other role
       through with its original content (or merged text when merged).
    5. Wrap user/assistant text as `[{"type": "text", "text": ...}]`.

Failure handling:
    Never raises. Anything that cannot be normalized is omitted, and an input
    with no usable text yields an empty list.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List


# =========================================================
# CONTENT VARIANTS
# =========================================================

@dataclass(frozen=True)
class TextContent:
    value: str

    def extract_text(self) -> str:
        return self.value


@dataclass(frozen=True)
class BlockContent:
    blocks: tuple

    def extract_text(self) -> str:
        parts = []
        for block in self.blocks:
            if not isinstance(block, dict) or block.get("type") != "text":
                continue
            text = block.get("text")
            if isinstance(text, str):
                parts.append(text)
        return "\n".join(parts)


@dataclass(frozen=True)
class ObjectContent:
    fields: dict

    def extract_text(self) -> str:
        text = self.fields.get("text")
        return text if isinstance(text, str) else ""


@dataclass(frozen=True)
class UnknownContent:
    raw: Any = None

    def extract_text(self) -> str:
        return ""


def parse_content(raw):
    """Classify raw JSON content into its content variant."""
    if isinstance(raw, str):
        return TextContent(raw)
    if isinstance(raw, (list, tuple)):
        return BlockContent(tuple(raw))
    if isinstance(raw, dict):
        return ObjectContent(raw)
    return UnknownContent(raw)


def extract_text(raw) -> str:
    """Return the plain text carried by any supported content shape."""
    return parse_content(raw).extract_text()


# =========================================================
# NORMALIZATION
# =========================================================

UPSTREAM_ROLES = {
    "system": "user",
    "user": "user",
    "assistant": "assistant",
}


@dataclass
class _Turn:
    role: str
    text: str
    raw: Any
    merged: bool = False


def _upstream_role(role):
    if isinstance(role, str):
        return UPSTREAM_ROLES.get(role, role)
    return role


def wrap_text(text: str) -> List[dict]:
    """Return the fragment service's single-block content shape."""
    return [{"type": "text", "text": text}]


def merge_turns(messages: Iterable[dict]) -> List[_Turn]:
    """Drop empty turns and merge adjacent turns sharing an upstream role."""
    merged: List[_Turn] = []

    for message in messages:
        if not isinstance(message, dict):
            continue
        role = message.get("role")
        raw = message.get("content")
        text = extract_text(raw)
        if not text:
            continue

        if merged and _upstream_role(merged[-1].role) == _upstream_role(role):
            last = merged[-1]
            last.text = last.text + "\n" + text
            last.merged = True
            continue

        merged.append(_Turn(role=role, text=text, raw=raw))

    return merged


def normalize_messages(messages: Iterable[dict]) -> List[dict]:
    """Normalize client messages into upstream-shaped turns.

    Args:
        messages: Sequence of `{"role": ..., "content": ...}` mappings.

    Returns:
        Ordered list of upstream turns; may be empty.
    """
    transformed = []

    for turn in merge_turns(messages):
        if isinstance(turn.role, str) and turn.role in UPSTREAM_ROLES:
            transformed.append({
                "role": UPSTREAM_ROLES[turn.role],
                "content": wrap_text(turn.text),
            })
        else:
            transformed.append({
                "role": turn.role,
                "content": turn.text if turn.merged else turn.raw,
            })

    return transformed
