"""Shared fixtures for fragment gateway tests."""

import pytest

from fragment_gateway.core.errors import UpstreamError
from fragment_gateway.llm.models import ModelDescriptor, ParameterBounds
from fragment_gateway.llm.provider_config import GatewaySettings


API_KEY = "sk-test-key-123456"


class FakeUpstream:
    """Records envelopes and replies with a canned answer or error."""

    def __init__(self, answer="hello", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    def complete(self, envelope, request_id="-"):
        self.calls.append(envelope)
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def settings():
    return GatewaySettings(api_key=API_KEY)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture
def fake_upstream():
    return FakeUpstream()


@pytest.fixture
def failing_upstream():
    return FakeUpstream(error=UpstreamError("No response received from upstream service."))


@pytest.fixture
def bounded_model():
    return ModelDescriptor(
        id="test-model-001",
        name="Test Model",
        provider="Test",
        provider_id="test",
        system_prompt="be brief",
        bounds=ParameterBounds(
            temperature=1,
            max_tokens=1000,
            presence_penalty=2,
            frequency_penalty=2,
            top_p=1,
            top_k=40,
        ),
    )


@pytest.fixture
def unbounded_model():
    return ModelDescriptor(
        id="bare-model",
        name="Bare Model",
        provider="Test",
        provider_id="test",
    )
