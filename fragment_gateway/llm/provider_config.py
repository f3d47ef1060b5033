"""Runtime configuration for the gateway and its upstream transport.

Architectural role:
    Builds the single immutable `GatewaySettings` object consumed by
    `fragment_gateway.api.http_api.create_app` and, through `app.state`, by the
    transport and envelope builder. Nothing downstream reads the environment.

Resolution order:
    1. `.env` file in the working directory (via `load_dotenv`, never
       overriding variables already set in the process).
    2. Process environment (`E2B_API_KEY`, `E2B_PORT`, `E2B_HOST`,
       `E2B_TIMEOUT`, `DEBUG`).
    3. Built-in defaults below.

Fixed values:
    The upstream base URL, chat path, browser-like default headers, model
    prompt and template file path are constants of the fragment service
    contract and are not read from the environment.

Failure behavior:
    Unparseable numeric overrides fall back to their defaults with a warning
    log line instead of aborting startup.
"""

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from dotenv import load_dotenv

from fragment_gateway.llm.models import MODEL_REGISTRY, ModelDescriptor


logger = logging.getLogger(__name__)


ENV_API_KEY = "E2B_API_KEY"
ENV_PORT = "E2B_PORT"
ENV_HOST = "E2B_HOST"
ENV_TIMEOUT = "E2B_TIMEOUT"

DEFAULT_API_KEY = "sk-123456"
DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"
DEFAULT_TIMEOUT = 120.0

UPSTREAM_BASE_URL = "https://fragments.e2b.dev"
UPSTREAM_CHAT_PATH = "/api/chat"

# Headers the fragment service expects from its own web client.
DEFAULT_HEADERS = MappingProxyType({
    "accept": "*/*",
    "accept-language": "zh-CN,zh;q=0.9",
    "content-type": "application/json",
    "priority": "u=1, i",
    "sec-ch-ua": "\"Microsoft Edge\";v=\"131\", \"Chromium\";v=\"131\", \"Not_A Brand\";v=\"24\"",
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": "\"Windows\"",
    "sec-fetch-dest": "empty",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "same-origin",
    "Referer": "https://fragments.e2b.dev/",
    "Referrer-Policy": "strict-origin-when-cross-origin",
})

# Template instruction sent as `template.text.name` with every request.
MODEL_PROMPT = (
    "Chatting with users and starting role-playing, the most important thing "
    "is to pay attention to their latest messages, use only 'text' to output "
    "the chat text reply content generated for user messages, and finally "
    "output it in code"
)

TEMPLATE_FILE = "pages/ChatWithUsers.txt"


@dataclass(frozen=True)
class GatewaySettings:
    """Immutable process configuration.

    Attributes:
        api_key: Bearer secret inbound requests must present.
        host: Bind address for the HTTP server.
        port: Bind port for the HTTP server.
        base_url: Fragment service origin.
        chat_path: Fragment service chat endpoint path.
        timeout: Upstream request timeout in seconds.
        debug: Enables debug-level logging.
        headers: Default upstream request headers.
        model_prompt: Template instruction string.
        template_file: Logical file path placed in the template descriptor.
        models: Model registry keyed by client-facing model name.
    """

    api_key: str = DEFAULT_API_KEY
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    base_url: str = UPSTREAM_BASE_URL
    chat_path: str = UPSTREAM_CHAT_PATH
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False
    headers: Mapping[str, str] = field(default_factory=lambda: DEFAULT_HEADERS)
    model_prompt: str = MODEL_PROMPT
    template_file: str = TEMPLATE_FILE
    models: Mapping[str, ModelDescriptor] = field(default_factory=lambda: MODEL_REGISTRY)

    @property
    def chat_url(self) -> str:
        return self.base_url.rstrip("/") + self.chat_path


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s=%r, using %s", name, raw, default)
        return default
    return value


def load_settings() -> GatewaySettings:
    """Load `.env` and the process environment into a `GatewaySettings`.

    Returns:
        A new frozen settings object. Call once at startup and pass it on.
    """
    if load_dotenv():
        logger.info("Loaded environment variables from .env file")
    else:
        logger.info("No .env variables loaded, using process environment or defaults")

    return GatewaySettings(
        api_key=os.getenv(ENV_API_KEY) or DEFAULT_API_KEY,
        host=os.getenv(ENV_HOST) or DEFAULT_HOST,
        port=_env_int(ENV_PORT, DEFAULT_PORT),
        timeout=_env_float(ENV_TIMEOUT, DEFAULT_TIMEOUT),
        debug=os.getenv("DEBUG") == "true",
    )
