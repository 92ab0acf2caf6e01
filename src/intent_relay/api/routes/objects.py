"""Structured object endpoints."""

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
from intent_relay.models.requests import (
    GenerateObjectRequest,
    GenerateObjectResponse,
    PromptRequest,
    decode_smart_result,
    encode_smart_result,
)
from intent_relay.services import Services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stream-object")
async def stream_object(
    body: PromptRequest,
    request: Request,
    services: Services = Depends(get_services),
):
    """Detect the intent of a prompt and stream the matching object.

    Args:
        body: Request with the prompt.
        request: The incoming request, watched for disconnects.
        services: Application services.

    Returns:
        Newline-delimited JSON frames: intent, partials, complete or error.
    """
    timeout = services.request_timeout_seconds

    try:
        # Classification errors become plain JSON responses before streaming starts
        frames = await bounded(
            services.stream_object.stream(body.prompt, deadline=timeout),
            timeout,
        )
    except RelayError:
        raise
    except Exception:
        logger.exception("Error preparing object stream")
        return JSONResponse(status_code=500, content={"error": "Failed to stream object"})

    return StreamingResponse(
        until_disconnect(request, frames),
        media_type=STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


@router.post("/generate-object-smart")
async def generate_object_smart(
    body: PromptRequest,
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Detect the intent of a prompt and generate the matching object.

    Returns:
        ``{"type": label, "data": object}``.
    """
    try:
        label, data = await bounded(
            services.smart.generate(body.prompt),
            services.request_timeout_seconds,
        )
        result = decode_smart_result(label, data)
    except RelayError:
        raise
    except Exception:
        logger.exception("Error generating smart object")
        return JSONResponse(status_code=500, content={"error": "Failed to generate response"})

    return JSONResponse(content=encode_smart_result(result))


@router.post("/generate-object", response_model=GenerateObjectResponse)
async def generate_object(
    body: GenerateObjectRequest,
    services: Services = Depends(get_services),
):
    """Generate an object of an explicitly requested type.

    Returns:
        ``{"object": value, "type": type}``.
    """
    pipeline = services.generate_object
    if body.type not in pipeline.registry:
        return JSONResponse(status_code=400, content={"error": "Invalid type"})

    try:
        value = await bounded(
            pipeline.generate_for(body.type, body.prompt),
            services.request_timeout_seconds,
        )
    except RelayError:
        raise
    except Exception:
        logger.exception(f"Error generating object of type {body.type}")
        return JSONResponse(status_code=500, content={"error": "Failed to generate object"})

    return GenerateObjectResponse(object=value, type=body.type)
