"""Backend provider registry and factory.

Providers register themselves by name when their module is imported; settings
then pick one by name through ``BackendConfig.provider``.
"""

import logging
from typing import Callable, Type, TypeVar

from intent_relay.config import BackendConfig

from .base import GenerationBackend

logger = logging.getLogger(__name__)

B = TypeVar("B", bound=Type[GenerationBackend])


class BackendRegistry:
    """Name -> backend class table shared by the whole process."""

    _providers: dict[str, Type[GenerationBackend]] = {}
    _default: str | None = None

    @classmethod
    def register(cls, name: str, *, default: bool = False) -> Callable[[B], B]:
        """Class decorator registering a backend under ``name``.

        Args:
            name: Provider name used in settings (e.g. "gemini").
            default: Use this provider when no name is given.

        Raises:
            TypeError: If the decorated class is not a GenerationBackend.
            ValueError: If another class is already registered under ``name``.
        """

        def decorator(backend_cls: B) -> B:
            if not issubclass(backend_cls, GenerationBackend):
                raise TypeError(f"{backend_cls.__name__} is not a GenerationBackend")
            existing = cls._providers.get(name)
            if existing is not None and existing is not backend_cls:
                raise ValueError(f"Provider {name!r} already registered by {existing.__name__}")
            cls._providers[name] = backend_cls
            if default:
                cls._default = name
            return backend_cls

        return decorator

    @classmethod
    def get(cls, name: str | None = None) -> Type[GenerationBackend]:
        """Look up a provider class, falling back to the default.

        Raises:
            ValueError: If the provider is not registered.
        """
        name = name or cls._default
        if name is None:
            raise ValueError("No default provider registered")
        try:
            return cls._providers[name]
        except KeyError:
            raise ValueError(
                f"Unknown provider: {name}. Available: {cls.list_providers()}"
            ) from None

    @classmethod
    def list_providers(cls) -> list[str]:
        return list(cls._providers)

    @classmethod
    def get_default(cls) -> str | None:
        return cls._default


def create_backend(config: BackendConfig) -> GenerationBackend:
    """Instantiate the backend named by ``config.provider``."""
    backend_cls = BackendRegistry.get(config.provider)
    logger.debug(f"Creating {backend_cls.__name__} for model {config.model}")
    return backend_cls(config)
