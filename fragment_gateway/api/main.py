"""
Service entrypoint for the fragment gateway.

Architectural role:
- Loads the process configuration once.
- Configures logging for the whole process.
- Builds the FastAPI application and serves it with uvicorn.

Usage:
    python -m fragment_gateway.api.main
    uvicorn fragment_gateway.api.main:app --port 8080

Side effects:
- Reads `.env` and the process environment at import time (via
  `load_settings`), like any uvicorn `module:app` target.
"""

import logging

import uvicorn

from fragment_gateway.api.http_api import create_app
from fragment_gateway.core.log_utils import mask_secret
from fragment_gateway.llm.provider_config import GatewaySettings, load_settings


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(debug: bool = False) -> None:
    """Install the process-wide log format and level."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def log_startup(settings: GatewaySettings) -> None:
    """Log the effective configuration with the API key masked."""
    logger.info("Service configuration:")
    logger.info("API_KEY: %s", mask_secret(settings.api_key))
    logger.info("BASE_URL: %s", settings.base_url)
    logger.info("Port: %s", settings.port)


configure_logging()
settings = load_settings()
if settings.debug:
    logging.getLogger().setLevel(logging.DEBUG)
app = create_app(settings)


def main():
    log_startup(settings)
    logger.info("Service starting on http://localhost:%s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
