"""Generation backend abstraction layer.

This module provides a unified interface for different model providers
(Gemini API, Claude CLI) to be used interchangeably.
"""

from .base import GenerationBackend
from .factory import BackendRegistry, create_backend

# Import providers to trigger registration
from . import providers  # noqa: F401

__all__ = [
    "BackendRegistry",
    "GenerationBackend",
    "create_backend",
]
