"""Error taxonomy for the gateway request lifecycle.

Architectural role:
    Defines the only exceptions that cross from the pipeline into the HTTP
    layer. The exception handler registered in `fragment_gateway.api.http_api`
    renders each subclass into an OpenAI-style error body.

Propagation policy:
    - Adaptation stages (parameter constraints, message normalization, envelope
      assembly) never raise these; they degrade to omission instead.
    - Only boundary conditions raise: authentication, request parsing, model
      lookup and upstream I/O.
    - Nothing is retried.
"""

UPSTREAM_FAILURE_HINT = (
    " Request failed, possibly because the context limit was exceeded or "
    "another error occurred; please try again later."
)


class GatewayError(Exception):
    """Base class for user-visible gateway failures.

    Attributes:
        message: Short, caller-safe description.
        status_code: HTTP status used when rendering the error.
        error_type: OpenAI-style `error.type` value.
        param: Offending request parameter, when known.
    """

    status_code = 500
    error_type = "server_error"

    def __init__(self, message: str, param: str | None = None):
        super().__init__(message)
        self.message = message
        self.param = param

    def to_payload(self) -> dict:
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "param": self.param,
                "code": None,
            }
        }


class UnauthorizedError(GatewayError):
    """Bearer credential did not match the configured secret."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"error": "Unauthorized"}


class MalformedRequestError(GatewayError):
    """Inbound body could not be parsed into a chat completion request."""

    status_code = 400
    error_type = "invalid_request_error"


class UnknownModelError(MalformedRequestError):
    """Requested model id is absent from the registry."""

    def __init__(self, model: str):
        super().__init__(f"Unsupported model: {model}", param="model")
        self.model = model


class UpstreamError(GatewayError):
    """Transport failure or unusable reply from the fragment service.

    The rendered message always carries `UPSTREAM_FAILURE_HINT`; the original
    exception detail is logged by the raiser and never returned verbatim.
    """

    status_code = 500
    error_type = "server_error"

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["error"]["message"] = self.message + UPSTREAM_FAILURE_HINT
        return payload
