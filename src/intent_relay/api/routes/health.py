"""Health check endpoints."""

from fastapi import APIRouter, Depends

from intent_relay import __version__
from intent_relay.api.dependencies import get_services
from intent_relay.services import Services

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Liveness check."""
    return {"status": "healthy", "version": __version__}


@router.get("/ready")
async def readiness_check(services: Services = Depends(get_services)) -> dict:
    """Readiness check: services are wired and label sets are loaded."""
    return {
        "ready": True,
        "registries": {
            "stream-object": len(services.stream_object.registry),
            "generate-object-smart": len(services.smart.registry),
            "generate-object": len(services.generate_object.registry),
        },
    }
