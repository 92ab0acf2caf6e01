"""Intent classification.

Maps a free-text prompt to exactly one label from a fixed candidate set.
"""

import logging

from intent_relay.core.backend.base import GenerationBackend
from intent_relay.core.errors import ClassificationFailure, GenerationFailure, UnknownLabel

logger = logging.getLogger(__name__)

MIN_LABELS = 2
MAX_LABELS = 8

CLASSIFICATION_PROMPT = """Classify what the user is asking for: "{prompt}"

{options}"""


class Classifier:
    """Single-call intent classifier over a closed label set.

    The backend is asked to answer from the label set, but its answer is
    checked here as well. An answer outside the set is retried up to
    ``retries`` times before raising UnknownLabel.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        labels: dict[str, str],
        retries: int = 1,
    ) -> None:
        """Initialize the classifier.

        Args:
            backend: Backend used for the enum-constrained call.
            labels: Candidate label -> one-line description, in display order.
            retries: Extra attempts after an out-of-set answer (0 or 1).

        Raises:
            ValueError: If the label set is outside 2-8 entries.
        """
        if not MIN_LABELS <= len(labels) <= MAX_LABELS:
            raise ValueError(
                f"Classifier needs between {MIN_LABELS} and {MAX_LABELS} labels, got {len(labels)}"
            )
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.backend = backend
        self.labels = dict(labels)
        self.retries = retries

    @property
    def choices(self) -> list[str]:
        return list(self.labels.keys())

    def build_prompt(self, prompt: str) -> str:
        """Build the classification prompt listing every candidate label."""
        options = "\n".join(
            f"- {label}: {description}" if description else f"- {label}"
            for label, description in self.labels.items()
        )
        return CLASSIFICATION_PROMPT.format(prompt=prompt, options=options)

    async def classify(self, prompt: str) -> str:
        """Return the label for ``prompt``.

        Raises:
            ClassificationFailure: If the backend call fails.
            UnknownLabel: If every attempt answered outside the label set.
        """
        classification_prompt = self.build_prompt(prompt)
        answer = ""

        for attempt in range(self.retries + 1):
            try:
                answer = await self.backend.generate_enum(classification_prompt, self.choices)
            except GenerationFailure as e:
                logger.error(f"Classification failed: {e}")
                raise ClassificationFailure(f"Could not determine intent: {e.message}") from e

            label = answer.strip()
            if label in self.labels:
                logger.info(f"Detected intent: {label}")
                return label

            logger.warning(
                f"Classifier answered outside the label set on attempt {attempt + 1}: {answer!r}"
            )

        raise UnknownLabel(answer.strip(), self.choices)
