"""
HTTP API adapter for the fragment gateway.

Architectural role:
- Expose OpenAI-compatible HTTP interfaces in front of the fragment service.
- Enforce bearer authentication, request parsing and model selection.
- Delegate adaptation to the pipeline (`core.params`, `prompting.messages`,
  `core.envelope`) and the upstream call to `llm.client`.
- Shape the answer as JSON or emulated SSE via `api.streaming`.

Endpoint responsibilities:
- `GET /v1/models`: list registry keys as OpenAI-style model metadata.
- `POST /v1/chat/completions`: authenticate, parse, adapt, call upstream,
  format completion output.
- `GET /health`: liveness probe.

API request lifecycle (`POST /v1/chat/completions`):
1. Generate a request id and check the bearer credential.
2. Parse request JSON into `ChatCompletionRequest`.
3. Resolve the model descriptor from the registry.
4. Clamp generation parameters and build the upstream envelope.
5. Call the fragment service in a worker thread.
6. Return one completion object or a paced SSE stream.

Error handling strategy:
- Every `GatewayError` is rendered by one exception handler into the
  OpenAI-style error body with its own status code.
- Streaming cancels/disconnects are handled inside the SSE generator.
- Any `OPTIONS` request is answered with 200; full preflights also get
  the CORS headers.

Side effects:
- One outbound HTTP request per chat completion.
- Request logging through the module logger.

Determinism considerations:
- IDs and timestamps are generated per request/chunk.
- Stream chunk boundaries depend on the injected `ChunkPolicy`.
"""

import asyncio
import logging
import secrets
import time
from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fragment_gateway.api.streaming import ChunkPolicy, build_completion, stream_completion
from fragment_gateway.core.envelope import build_envelope
from fragment_gateway.core.errors import GatewayError, MalformedRequestError, UnauthorizedError
from fragment_gateway.core.ids import generate_id
from fragment_gateway.core.log_utils import log_fields, mask_secret
from fragment_gateway.core.params import constrain_parameters
from fragment_gateway.llm.client import FragmentsClient
from fragment_gateway.llm.models import lookup_model
from fragment_gateway.llm.provider_config import GatewaySettings


logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


# ============================================================
# Request Schema
# ============================================================

class ChatCompletionRequest(BaseModel):
    """
    Inbound chat completion payload.

    Message entries and generation parameters accept any JSON value;
    `normalize_messages` and `constrain_parameters` drop what they cannot use.
    """
    model: str = ""
    messages: Optional[List[Any]] = None
    stream: Optional[bool] = None
    temperature: Any = None
    max_tokens: Any = None
    presence_penalty: Any = None
    frequency_penalty: Any = None
    top_p: Any = None
    top_k: Any = None

    def generation_parameters(self) -> dict:
        return {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "presence_penalty": self.presence_penalty,
            "frequency_penalty": self.frequency_penalty,
            "top_p": self.top_p,
            "top_k": self.top_k,
        }

    def conversation(self) -> list:
        return self.messages or []

    def wants_stream(self) -> bool:
        return bool(self.stream)


# ============================================================
# Helpers
# ============================================================

def check_bearer(request: Request, api_key: str, request_id: str) -> None:
    """Raise `UnauthorizedError` unless the bearer token matches `api_key`."""
    header = request.headers.get("Authorization", "")
    token = header[len("Bearer "):] if header.startswith("Bearer ") else header
    if not secrets.compare_digest(token.encode(), api_key.encode()):
        logger.error(
            "[%s] Authentication failed, token provided: %s",
            request_id,
            mask_secret(token),
        )
        raise UnauthorizedError()


async def parse_chat_request(request: Request, request_id: str) -> ChatCompletionRequest:
    """Decode and validate the request body."""
    try:
        body = await request.json()
    except ValueError as err:
        logger.error("[%s] Failed to parse request body - %s", request_id, err)
        raise MalformedRequestError(f"Unable to parse request body: {err}") from err

    try:
        return ChatCompletionRequest.model_validate(body)
    except ValidationError as err:
        logger.error("[%s] Invalid request body - %s", request_id, err)
        first = err.errors()[0] if err.errors() else {}
        loc = first.get("loc") or ()
        param = str(loc[0]) if loc else None
        message = first.get("msg", "invalid request body")
        raise MalformedRequestError(
            f"Unable to parse request body: {message}", param=param
        ) from err


# ============================================================
# Application Factory
# ============================================================

def create_app(
    settings: GatewaySettings,
    upstream: Optional[FragmentsClient] = None,
    chunk_policy: Optional[ChunkPolicy] = None,
) -> FastAPI:
    """
    Build the FastAPI application around one immutable configuration.

    Args:
        settings: Process configuration; also carries the model registry.
        upstream: Transport exposing `complete(envelope, request_id)`;
            defaults to a `FragmentsClient` for `settings`.
        chunk_policy: Emulated-stream pacing; defaults to 15-29 characters
            every 50 ms.
    """
    app = FastAPI()
    app.state.settings = settings
    app.state.upstream = upstream or FragmentsClient(settings)
    app.state.chunk_policy = chunk_policy or ChunkPolicy()

    # Must be added before CORSMiddleware so CORS wraps it.
    @app.middleware("http")
    async def answer_options(request: Request, call_next):
        if request.method == "OPTIONS":
            logger.info("[%s] Handling CORS preflight: %s", generate_id(), request.url.path)
            return Response(status_code=200)
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 404:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        logger.info("[%s] Path not found: %s", generate_id(), request.url.path)
        return PlainTextResponse(
            "Service is running, please use the correct request path",
            status_code=404,
        )

    # ============================================================
    # Model Listing
    # ============================================================

    @app.get("/v1/models")
    def list_models():
        """Return every registry key as OpenAI-style model metadata."""
        request_id = generate_id()
        logger.info("[%s] Listing models", request_id)

        now = int(time.time())
        models = app.state.settings.models
        response = {
            "object": "list",
            "data": [
                {
                    "id": model,
                    "object": "model",
                    "created": now,
                    "owned_by": "e2b",
                }
                for model in models
            ],
        }
        logger.info("[%s] Model list returned, count: %d", request_id, len(models))
        return response

    @app.get("/health")
    def health():
        return {"status": "ok", "version": SERVICE_VERSION}

    # ============================================================
    # OpenAI-Compatible Chat Completions
    # ============================================================

    @app.post("/v1/chat/completions")
    async def chat_completions(request: Request):
        """
        OpenAI-compatible chat completions endpoint.

        Failure responses:
        - 401 for a bearer mismatch (checked before the body is read).
        - 400 for an unparseable body or unknown model.
        - 500 for any upstream failure, with a retry hint.
        """
        request_id = generate_id()
        logger.info("[%s] Handling chat completion request", request_id)

        current: GatewaySettings = app.state.settings
        check_bearer(request, current.api_key, request_id)

        chat_request = await parse_chat_request(request, request_id)
        logger.info(
            "[%s] Client request - %s",
            request_id,
            log_fields({
                "model": chat_request.model,
                "messages_count": len(chat_request.conversation()),
                "stream": chat_request.wants_stream(),
                "temperature": chat_request.temperature,
                "max_tokens": chat_request.max_tokens,
            }),
        )

        try:
            descriptor = lookup_model(current.models, chat_request.model)
        except GatewayError:
            logger.error("[%s] Unsupported model: %s", request_id, chat_request.model)
            raise

        config = constrain_parameters(chat_request.generation_parameters(), descriptor)
        envelope = build_envelope(
            descriptor,
            request_id,
            chat_request.conversation(),
            config,
            current,
        )
        logger.debug("[%s] Upstream envelope - %s", request_id, log_fields(envelope.to_payload()))

        answer = await asyncio.to_thread(app.state.upstream.complete, envelope, request_id)

        if chat_request.wants_stream():
            frames = stream_completion(
                answer,
                chat_request.model,
                app.state.chunk_policy,
                is_disconnected=request.is_disconnected,
                request_id=request_id,
            )
            return StreamingResponse(
                frames,
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
            )

        logger.info(
            "[%s] Returning completion, content length: %d chars",
            request_id,
            len(answer),
        )
        return build_completion(answer, chat_request.model)

    return app

