"""FastAPI dependencies."""

from fastapi import Request

from intent_relay.config import get_settings
from intent_relay.services import Services, build_services


def get_services(request: Request) -> Services:
    """Return the application's services, building them on first use."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = build_services(get_settings())
        request.app.state.services = services
    return services
