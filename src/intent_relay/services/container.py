"""Wiring of backends, classifiers and pipelines for the application."""

import logging
from dataclasses import dataclass, field

from intent_relay.config import Settings
from intent_relay.core.backend import GenerationBackend, create_backend
from intent_relay.core.classifier import Classifier
from intent_relay.schemas import GENERATE_OBJECT_SCHEMAS, SMART_SCHEMAS, STREAM_OBJECT_SCHEMAS
from intent_relay.services.pipeline import IntentPipeline
from intent_relay.services.text import TextGenerator
from intent_relay.services.tools import DEMO_TOOLS

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Per-application service objects."""

    stream_object: IntentPipeline
    smart: IntentPipeline
    generate_object: IntentPipeline
    text: TextGenerator
    request_timeout_seconds: float = 30.0
    backends: list[GenerationBackend] = field(default_factory=list)

    async def close(self) -> None:
        """Close every backend owned by this container."""
        for backend in self.backends:
            await backend.close()


def build_services(
    settings: Settings,
    classifier_backend: GenerationBackend | None = None,
    generator_backend: GenerationBackend | None = None,
) -> Services:
    """Build services from settings.

    Backends not passed in are created from ``settings`` and closed by
    ``Services.close``.
    """
    owned: list[GenerationBackend] = []
    if classifier_backend is None:
        classifier_backend = create_backend(settings.backend_config("classifier"))
        owned.append(classifier_backend)
    if generator_backend is None:
        generator_backend = create_backend(settings.backend_config("generator"))
        owned.append(generator_backend)

    logger.info(
        f"Using provider={settings.backend_provider} "
        f"classifier_model={settings.classifier_model} generator_model={settings.generator_model}"
    )

    def classifier_for(registry) -> Classifier:
        return Classifier(
            classifier_backend,
            registry.descriptions(),
            retries=settings.classifier_retries,
        )

    return Services(
        stream_object=IntentPipeline(
            STREAM_OBJECT_SCHEMAS,
            generator_backend,
            classifier=classifier_for(STREAM_OBJECT_SCHEMAS),
        ),
        smart=IntentPipeline(
            SMART_SCHEMAS,
            generator_backend,
            classifier=classifier_for(SMART_SCHEMAS),
        ),
        generate_object=IntentPipeline(GENERATE_OBJECT_SCHEMAS, generator_backend),
        text=TextGenerator(
            generator_backend,
            tools=DEMO_TOOLS if settings.enable_tools else None,
            max_tool_steps=settings.max_tool_steps,
        ),
        request_timeout_seconds=settings.request_timeout_seconds,
        backends=owned,
    )
