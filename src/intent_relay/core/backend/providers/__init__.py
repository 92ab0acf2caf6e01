"""Backend providers package.

Importing this module registers all available providers with the BackendRegistry.
"""

# Import providers to trigger registration via @BackendRegistry.register decorator
from . import gemini  # noqa: F401
from . import claude_cli  # noqa: F401

__all__ = ["gemini", "claude_cli"]
