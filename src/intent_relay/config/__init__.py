"""Configuration management module."""

from intent_relay.config.settings import BackendConfig, Settings, get_settings, reset_settings

__all__ = ["BackendConfig", "Settings", "get_settings", "reset_settings"]
