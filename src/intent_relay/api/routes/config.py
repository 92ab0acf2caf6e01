"""Configuration API endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from intent_relay.config import get_settings
from intent_relay.core.backend import BackendRegistry
from intent_relay.schemas import GENERATE_OBJECT_SCHEMAS, SMART_SCHEMAS, STREAM_OBJECT_SCHEMAS
from intent_relay.services.tools import DEMO_TOOLS

router = APIRouter()


class ConfigResponse(BaseModel):
    """Configuration response model."""

    # API Server
    api_host: str
    api_port: int

    # Backend
    backend_provider: str
    available_providers: list[str]
    classifier_model: str
    generator_model: str

    # Pipeline
    classifier_retries: int
    request_timeout_seconds: float
    labels: dict[str, list[str]]

    # Tools
    tools: list[str]
    max_tool_steps: int

    # Logging
    log_level: str


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration.

    Secrets such as the API key are never returned.

    Returns:
        Current configuration values.
    """
    settings = get_settings()

    return ConfigResponse(
        api_host=settings.api_host,
        api_port=settings.api_port,
        backend_provider=settings.backend_provider,
        available_providers=BackendRegistry.list_providers(),
        classifier_model=settings.classifier_model,
        generator_model=settings.generator_model,
        classifier_retries=settings.classifier_retries,
        request_timeout_seconds=settings.request_timeout_seconds,
        labels={
            registry.name: registry.labels
            for registry in (STREAM_OBJECT_SCHEMAS, SMART_SCHEMAS, GENERATE_OBJECT_SCHEMAS)
        },
        tools=DEMO_TOOLS.names if settings.enable_tools else [],
        max_tool_steps=settings.max_tool_steps,
        log_level=settings.log_level,
    )
