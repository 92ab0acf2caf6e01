"""API routes."""

from intent_relay.api.routes import config, health, objects, text

__all__ = ["config", "health", "objects", "text"]
