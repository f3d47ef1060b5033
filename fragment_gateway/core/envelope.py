"""Upstream call envelope assembly.

Architectural role:
    Bridges the adapted request pieces (normalized turns, constrained
    parameters, model descriptor) to the JSON body posted to the fragment
    service by `fragment_gateway.llm.client`.

Envelope shape:
    {
        "userID": <fresh random session id>,
        "messages": [...],
        "template": {"text": {"name", "lib", "file", "instructions", "port"}},
        "model": {"id", "provider", "providerId", "name", "multiModal"},
        "config": {...}
    }

Determinism:
    Deterministic for fixed inputs except `userID`, which is regenerated for
    every envelope.

Failure scenarios:
    None under normal inputs; model lookup must already have succeeded.
"""

import logging
from dataclasses import dataclass
from typing import List, Mapping

from fragment_gateway.core.ids import generate_id
from fragment_gateway.llm.models import ModelDescriptor
from fragment_gateway.llm.provider_config import GatewaySettings
from fragment_gateway.prompting.messages import normalize_messages


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamEnvelope:
    """One request's payload for the fragment service."""

    user_id: str
    messages: List[dict]
    template: dict
    model: dict
    config: dict

    def to_payload(self) -> dict:
        return {
            "userID": self.user_id,
            "messages": self.messages,
            "template": self.template,
            "model": self.model,
            "config": self.config,
        }


def build_template(descriptor: ModelDescriptor, settings: GatewaySettings) -> dict:
    """Return the fixed chat template descriptor for `descriptor`."""
    return {
        "text": {
            "name": settings.model_prompt,
            "lib": [""],
            "file": settings.template_file,
            "instructions": descriptor.system_prompt,
            "port": None,
        }
    }


def build_envelope(
    descriptor: ModelDescriptor,
    request_id: str,
    messages,
    config: Mapping[str, object] | None,
    settings: GatewaySettings,
) -> UpstreamEnvelope:
    """Assemble the upstream envelope for one inbound request.

    Args:
        descriptor: Model resolved from the registry.
        request_id: Correlation id used in log lines.
        messages: Raw client messages (normalized here).
        config: Output of `constrain_parameters`; `None` or empty falls back
            to `{"model": descriptor.id}`.
        settings: Source of the template prompt and file path.

    Returns:
        A new `UpstreamEnvelope`.
    """
    messages = list(messages or [])
    logger.info(
        "[%s] Preparing chat request, model: %s, messages: %d",
        request_id,
        descriptor.name,
        len(messages),
    )

    transformed = normalize_messages(messages)
    logger.info("[%s] Transformed message count: %d", request_id, len(transformed))

    if not config:
        config = {"model": descriptor.id}

    return UpstreamEnvelope(
        user_id=generate_id(),
        messages=transformed,
        template=build_template(descriptor, settings),
        model=descriptor.upstream_model(),
        config=dict(config),
    )
