import re

from fragment_gateway.core.envelope import build_envelope
from fragment_gateway.core.ids import generate_id
from fragment_gateway.core.params import constrain_parameters
from fragment_gateway.llm.models import MODEL_REGISTRY


UUID4_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def test_generate_id_has_random_uuid_shape():
    ids = {generate_id() for _ in range(50)}
    assert len(ids) == 50
    for value in ids:
        assert UUID4_RE.match(value)


def test_envelope_payload_shape(bounded_model, settings):
    config = constrain_parameters({"temperature": 0.2}, bounded_model)
    envelope = build_envelope(
        bounded_model,
        "req-1",
        [{"role": "user", "content": "hi"}],
        config,
        settings,
    )
    payload = envelope.to_payload()

    assert set(payload) == {"userID", "messages", "template", "model", "config"}
    assert UUID4_RE.match(payload["userID"])
    assert payload["messages"] == [{"role": "user", "content": [{"type": "text", "text": "hi"}]}]
    assert payload["template"] == {
        "text": {
            "name": settings.model_prompt,
            "lib": [""],
            "file": "pages/ChatWithUsers.txt",
            "instructions": "be brief",
            "port": None,
        }
    }
    assert payload["model"] == {
        "id": "test-model-001",
        "provider": "Test",
        "providerId": "test",
        "name": "Test Model",
        "multiModal": True,
    }
    assert payload["config"] == {"temperature": 0.2}


def test_session_id_is_fresh_per_envelope(bounded_model, settings):
    first = build_envelope(bounded_model, "r", [], {}, settings)
    second = build_envelope(bounded_model, "r", [], {}, settings)
    assert first.user_id != second.user_id


def test_missing_config_falls_back_to_model_id(unbounded_model, bounded_model, settings):
    envelope = build_envelope(unbounded_model, "r", [], None, settings)
    assert envelope.config == {"model": "bare-model"}

    envelope = build_envelope(bounded_model, "r", [], {}, settings)
    assert envelope.config == {"model": "test-model-001"}


def test_empty_conversation_still_builds_envelope(settings):
    descriptor = MODEL_REGISTRY["claude-3-5-haiku-latest"]
    envelope = build_envelope(
        descriptor,
        "r",
        [{"role": "user", "content": ""}, {"role": "assistant", "content": []}],
        None,
        settings,
    )
    assert envelope.messages == []
    assert envelope.model["multiModal"] is False
    assert envelope.template["text"]["instructions"] == ""
