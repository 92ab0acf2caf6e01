"""Intent pipeline: classify, route, then generate or stream."""

import asyncio
import logging
from typing import Any, AsyncIterator

from intent_relay.core.backend.base import GenerationBackend
from intent_relay.core.classifier import Classifier
from intent_relay.core.errors import GenerationFailure
from intent_relay.core.relay import RelayEncoder
from intent_relay.schemas.registry import OutputStrategy, SchemaRegistry, SchemaSpec
from intent_relay.services.deadline import with_deadline

logger = logging.getLogger(__name__)

STREAMABLE_STRATEGIES = (OutputStrategy.OBJECT, OutputStrategy.ARRAY, OutputStrategy.NO_SCHEMA)


class IntentPipeline:
    """Two-phase dispatch over one schema registry.

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        backend: GenerationBackend,
        classifier: Classifier | None = None,
        encoder: RelayEncoder | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            registry: Label -> schema table.
            backend: Backend used for the generation step.
            classifier: Classifier over the registry's labels. Only needed for
                intent-routed calls (``dispatch``, ``stream``, ``generate``).
            encoder: Relay encoder for streamed responses.
        """
        if classifier is not None:
            unknown = set(classifier.choices) - set(registry.labels)
            if unknown:
                raise ValueError(f"Classifier labels not in registry {registry.name}: {sorted(unknown)}")
        self.registry = registry
        self.backend = backend
        self.classifier = classifier
        self.encoder = encoder or RelayEncoder()

    async def dispatch(self, prompt: str) -> SchemaSpec:
        """Classify ``prompt`` and return the schema registered for its label.

        Raises:
            ClassificationFailure: If no label could be determined.
            UnknownLabel: If the label is not registered.
        """
        if self.classifier is None:
            raise RuntimeError(f"Pipeline for {self.registry.name} has no classifier")
        label = await self.classifier.classify(prompt)
        return self.registry.route(label)

    async def stream(self, prompt: str, deadline: float | None = None) -> AsyncIterator[bytes]:
        """Dispatch ``prompt`` and return the encoded frame stream.

        Dispatch happens before this coroutine returns, so classification
        errors surface to the caller instead of inside the stream.

        Args:
            prompt: The caller's prompt.
            deadline: Optional limit in seconds for dispatch and generation
                together. Time spent classifying is deducted from the time
                left for the generation stream.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()

        spec = await self.dispatch(prompt)
        if spec.strategy not in STREAMABLE_STRATEGIES:
            raise GenerationFailure(f"Output type {spec.label!r} cannot be streamed")

        partials = self.backend.stream_object(spec.render_prompt(prompt), spec.json_schema())
        if deadline is not None:
            remaining = max(deadline - (loop.time() - started), 0.0)
            partials = with_deadline(partials, remaining)
        return self.encoder.relay_object(spec.label, partials, spec)

    async def generate(self, prompt: str) -> tuple[str, Any]:
        """Dispatch ``prompt`` and generate the complete value.

        Returns:
            ``(label, value)`` with the value already validated.
        """
        spec = await self.dispatch(prompt)
        return spec.label, await self._generate(spec, prompt)

    async def generate_for(self, label: str, prompt: str | None = None) -> Any:
        """Generate the value registered under ``label`` without classifying.

        Raises:
            UnknownLabel: If the label is not registered.
        """
        spec = self.registry.route(label)
        return await self._generate(spec, prompt)

    async def _generate(self, spec: SchemaSpec, prompt: str | None) -> Any:
        rendered = spec.render_prompt(prompt)
        logger.info(f"Generating {spec.label} with strategy {spec.strategy.value}")

        if spec.strategy == OutputStrategy.TEXT:
            value: Any = await self.backend.generate_text(rendered)
        elif spec.strategy == OutputStrategy.ENUM:
            value = await self.backend.generate_enum(rendered, list(spec.choices))
        else:
            value = await self.backend.generate_object(rendered, spec.json_schema())

        return spec.validate(value)
