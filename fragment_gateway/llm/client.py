"""HTTP transport to the fragment service.

Architectural role:
    Executes the single upstream POST for one inbound request and reduces the
    reply to the completed answer text.

Model invocation flow:
    `http_api.chat_completions` -> `build_envelope(...)` ->
    `FragmentsClient.complete(envelope)` -> answer text.

Response contract:
    The service replies with `{"code": ..., "text": ...}`. The first non-empty
    field after trimming whitespace wins (`code` before `text`).

Retry behavior:
    No retry loop is implemented. Each call is attempted once with the
    configured timeout.

Failure handling model:
    Transport errors, undecodable bodies and replies without usable text raise
    `UpstreamError` carrying a short caller-safe message. Full detail is logged
    here and never forwarded to the client.
"""

import logging
import time

import requests

from fragment_gateway.core.envelope import UpstreamEnvelope
from fragment_gateway.core.errors import UpstreamError
from fragment_gateway.core.log_utils import log_fields, truncate
from fragment_gateway.llm.provider_config import GatewaySettings


logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


def extract_answer(data) -> str:
    """Return the first non-empty trimmed `code`/`text` field, or `""`."""
    if not isinstance(data, dict):
        return ""
    for key in ("code", "text"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


class FragmentsClient:
    """Blocking client for the fragment service chat endpoint."""

    def __init__(self, settings: GatewaySettings, session: requests.Session | None = None):
        self.url = settings.chat_url
        self.headers = dict(settings.headers)
        self.timeout = settings.timeout
        self._session = session

    def _post(self, payload: dict) -> requests.Response:
        return (self._session or requests).post(
            self.url,
            headers=self.headers,
            json=payload,
            timeout=self.timeout,
        )

    def complete(self, envelope: UpstreamEnvelope, request_id: str = "-") -> str:
        """Send one envelope and return the trimmed answer text.

        Raises:
            UpstreamError: On transport failure, undecodable reply, or a reply
                with neither `code` nor `text`.
        """
        payload = envelope.to_payload()
        logger.info(
            "[%s] Request to fragment service - %s",
            request_id,
            log_fields({
                "model": envelope.model.get("name"),
                "messages_count": len(envelope.messages),
                "config": envelope.config,
            }),
        )

        started = time.monotonic()
        try:
            response = self._post(payload)
        except requests.exceptions.RequestException as err:
            logger.error("[%s] Fragment service request failed - %s", request_id, err)
            raise UpstreamError("Upstream service request failed.") from err
        elapsed_ms = int((time.monotonic() - started) * 1000)

        try:
            data = response.json()
        except ValueError as err:
            logger.error(
                "[%s] Failed to decode fragment service response (status %s) - %s",
                request_id,
                response.status_code,
                err,
            )
            raise UpstreamError("Failed to parse upstream service response.") from err

        raw_code = data.get("code") if isinstance(data, dict) else None
        raw_text = data.get("text") if isinstance(data, dict) else None
        logger.info(
            "[%s] Fragment service responded: %s, elapsed: %dms - %s",
            request_id,
            response.status_code,
            elapsed_ms,
            log_fields({
                "status": response.status_code,
                "has_code": bool(raw_code),
                "has_text": bool(raw_text),
                "response_preview": truncate(
                    (raw_code if isinstance(raw_code, str) else "")
                    + (raw_text if isinstance(raw_text, str) else ""),
                    PREVIEW_LENGTH,
                ),
            }),
        )

        answer = extract_answer(data)
        if not answer:
            logger.error("[%s] Fragment service returned no usable answer", request_id)
            raise UpstreamError("No response received from upstream service.")
        return answer
