"""Gemini REST API provider."""

from .executor import GeminiBackend

__all__ = ["GeminiBackend"]
