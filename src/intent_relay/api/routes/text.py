"""Text generation endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from intent_relay.api.dependencies import get_services
from intent_relay.api.routes.streaming import (
    STREAM_HEADERS,
    STREAM_MEDIA_TYPE,
    bounded,
    until_disconnect,
)
from intent_relay.core.errors import RelayError
from intent_relay.models.requests import GenerateTextRequest, PromptRequest, TextResponse
from intent_relay.services import Services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generating-text", response_model=TextResponse)
async def generating_text(
    body: GenerateTextRequest,
    services: Services = Depends(get_services),
):
    """Summarize an article in 3-5 sentences."""
    try:
        text = await bounded(
            services.text.summarize(body.article),
            services.request_timeout_seconds,
        )
    except RelayError:
        raise
    except Exception:
        logger.exception("Error generating text")
        return JSONResponse(status_code=500, content={"error": "Failed to generate text"})

    return TextResponse(text=text)


@router.post("/stream-text")
async def stream_text(
    body: PromptRequest,
    request: Request,
    services: Services = Depends(get_services),
) -> StreamingResponse:
    """Stream a free-form answer as newline-delimited text-delta frames."""
    frames = services.text.stream(body.prompt, deadline=services.request_timeout_seconds)
    return StreamingResponse(
        until_disconnect(request, frames),
        media_type=STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )
