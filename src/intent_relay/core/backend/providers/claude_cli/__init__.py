"""Claude CLI provider."""

from .executor import ClaudeCLIBackend

__all__ = ["ClaudeCLIBackend"]
