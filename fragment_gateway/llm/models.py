"""Static model capability registry.

Architectural role:
    Maps the model names clients send (`model` field) to the descriptor the
    fragment service expects, plus the per-parameter maximums consumed by
    `fragment_gateway.core.params`.

Determinism:
    The registry is built once at import time and exposed read-only through a
    `MappingProxyType`; concurrent reads need no synchronization.

Failure behavior:
    `lookup_model` raises `UnknownModelError` for absent keys. There is no
    default model.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from fragment_gateway.core.errors import UnknownModelError


@dataclass(frozen=True)
class ParameterBounds:
    """Upper bounds for generation parameters.

    A bound of `0` means the model does not accept that parameter.
    """

    temperature: float = 0
    max_tokens: int = 0
    presence_penalty: float = 0
    frequency_penalty: float = 0
    top_p: float = 0
    top_k: int = 0

    def maximum_for(self, name: str):
        return getattr(self, name, 0)

    @property
    def is_empty(self) -> bool:
        return not any((
            self.temperature,
            self.max_tokens,
            self.presence_penalty,
            self.frequency_penalty,
            self.top_p,
            self.top_k,
        ))


@dataclass(frozen=True)
class ModelDescriptor:
    """Upstream-facing description of one model."""

    id: str
    name: str
    provider: str
    provider_id: str
    multimodal: bool = True
    system_prompt: str = ""
    bounds: ParameterBounds = field(default_factory=ParameterBounds)

    def upstream_model(self) -> dict:
        """Return the model subset embedded in the upstream envelope."""
        return {
            "id": self.id,
            "provider": self.provider,
            "providerId": self.provider_id,
            "name": self.name,
            "multiModal": self.multimodal,
        }


# =========================================================
# Shared bound profiles
# =========================================================

_OPENAI_BOUNDS = ParameterBounds(
    temperature=2,
    max_tokens=16380,
    presence_penalty=2,
    frequency_penalty=2,
    top_p=1,
    top_k=500,
)

_GEMINI_BOUNDS = ParameterBounds(
    temperature=2,
    max_tokens=8192,
    presence_penalty=2,
    frequency_penalty=2,
    top_p=1,
    top_k=40,
)

_ANTHROPIC_BOUNDS = ParameterBounds(
    temperature=1,
    max_tokens=8192,
    presence_penalty=2,
    frequency_penalty=2,
    top_p=1,
    top_k=500,
)


# =========================================================
# Registry
# =========================================================

MODEL_REGISTRY: Mapping[str, ModelDescriptor] = MappingProxyType({

    # o1 accepts no max_tokens override upstream.
    "o1-preview": ModelDescriptor(
        id="o1",
        name="o1",
        provider="OpenAI",
        provider_id="openai",
        bounds=ParameterBounds(
            temperature=2,
            max_tokens=0,
            presence_penalty=2,
            frequency_penalty=2,
            top_p=1,
            top_k=500,
        ),
    ),

    "o3-mini": ModelDescriptor(
        id="o3-mini",
        name="o3 Mini",
        provider="OpenAI",
        provider_id="openai",
        bounds=ParameterBounds(
            temperature=2,
            max_tokens=4096,
            presence_penalty=2,
            frequency_penalty=2,
            top_p=1,
            top_k=500,
        ),
    ),

    "gpt-4o": ModelDescriptor(
        id="gpt-4o",
        name="GPT-4o",
        provider="OpenAI",
        provider_id="openai",
        bounds=_OPENAI_BOUNDS,
    ),

    "gpt-4.5-preview": ModelDescriptor(
        id="gpt-4.5-preview",
        name="GPT-4.5",
        provider="OpenAI",
        provider_id="openai",
        bounds=_OPENAI_BOUNDS,
    ),

    "gpt-4-turbo": ModelDescriptor(
        id="gpt-4-turbo",
        name="GPT-4 Turbo",
        provider="OpenAI",
        provider_id="openai",
        bounds=_OPENAI_BOUNDS,
    ),

    "gemini-1.5-pro": ModelDescriptor(
        id="gemini-1.5-pro-002",
        name="Gemini 1.5 Pro",
        provider="Google Vertex AI",
        provider_id="vertex",
        bounds=ParameterBounds(
            temperature=2,
            max_tokens=8192,
            presence_penalty=2,
            frequency_penalty=2,
            top_p=1,
            top_k=500,
        ),
    ),

    "gemini-2.5-pro-exp-03-25": ModelDescriptor(
        id="gemini-2.5-pro-exp-03-25",
        name="Gemini 2.5 Pro Experimental 03-25",
        provider="Google Generative AI",
        provider_id="google",
        bounds=_GEMINI_BOUNDS,
    ),

    "gemini-exp-1121": ModelDescriptor(
        id="gemini-exp-1121",
        name="Gemini Experimental 1121",
        provider="Google Generative AI",
        provider_id="google",
        bounds=_GEMINI_BOUNDS,
    ),

    "gemini-2.0-flash-exp": ModelDescriptor(
        id="models/gemini-2.0-flash-exp",
        name="Gemini 2.0 Flash",
        provider="Google Generative AI",
        provider_id="google",
        bounds=_GEMINI_BOUNDS,
    ),

    "claude-3-5-sonnet-latest": ModelDescriptor(
        id="claude-3-5-sonnet-latest",
        name="Claude 3.5 Sonnet",
        provider="Anthropic",
        provider_id="anthropic",
        bounds=_ANTHROPIC_BOUNDS,
    ),

    "claude-3-7-sonnet-latest": ModelDescriptor(
        id="claude-3-7-sonnet-latest",
        name="Claude 3.7 Sonnet",
        provider="Anthropic",
        provider_id="anthropic",
        bounds=_ANTHROPIC_BOUNDS,
    ),

    "claude-3-5-haiku-latest": ModelDescriptor(
        id="claude-3-5-haiku-latest",
        name="Claude 3.5 Haiku",
        provider="Anthropic",
        provider_id="anthropic",
        multimodal=False,
        bounds=_ANTHROPIC_BOUNDS,
    ),

})


def lookup_model(registry: Mapping[str, ModelDescriptor], model: str) -> ModelDescriptor:
    """Return the descriptor for `model` or raise `UnknownModelError`."""
    try:
        return registry[model]
    except KeyError:
        raise UnknownModelError(model) from None
