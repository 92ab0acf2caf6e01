"""Exception handlers mapping pipeline errors to JSON responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from intent_relay.core.errors import GenerationFailure, RelayError

logger = logging.getLogger(__name__)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Render a RelayError raised before any response body was sent."""
    logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def generation_failure_handler(request: Request, exc: GenerationFailure) -> JSONResponse:
    """Render a GenerationFailure, including raw output details when known."""
    logger.error(f"Generation failed on {request.url.path}: {exc.message}")
    content = exc.to_dict()
    if exc.text is not None or exc.cause is not None:
        content["details"] = {"text": exc.text, "cause": exc.cause}
    return JSONResponse(status_code=exc.status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on ``app``."""
    app.add_exception_handler(GenerationFailure, generation_failure_handler)
    app.add_exception_handler(RelayError, relay_error_handler)
