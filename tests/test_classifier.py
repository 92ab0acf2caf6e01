"""Tests for the intent classifier."""

import pytest

from intent_relay.core.classifier import Classifier
from intent_relay.core.errors import ClassificationFailure, GenerationFailure, UnknownLabel

LABELS = {
    "recipe": "User wants a recipe or cooking instructions",
    "person": "User is asking about a person",
    "product": "User wants product information",
}


class TestClassifier:
    """Test Classifier."""

    def test_label_count_bounds(self, scripted_backend) -> None:
        """Test that the label set must have 2-8 entries."""
        with pytest.raises(ValueError):
            Classifier(scripted_backend(), {"recipe": ""})
        with pytest.raises(ValueError):
            Classifier(scripted_backend(), {f"label-{i}": "" for i in range(9)})

    def test_build_prompt_lists_labels(self, scripted_backend) -> None:
        """Test that every label and description appears in the prompt."""
        classifier = Classifier(scripted_backend(), LABELS)
        prompt = classifier.build_prompt("How do I make curry?")

        assert 'Classify what the user is asking for: "How do I make curry?"' in prompt
        for label, description in LABELS.items():
            assert f"- {label}: {description}" in prompt

    @pytest.mark.asyncio
    async def test_classify_returns_label(self, scripted_backend) -> None:
        """Test a successful classification."""
        backend = scripted_backend(labels=["recipe"])
        classifier = Classifier(backend, LABELS)

        assert await classifier.classify("How do I make curry?") == "recipe"
        assert len(backend.calls) == 1
        assert backend.calls[0][0] == "enum"

    @pytest.mark.asyncio
    async def test_classify_strips_whitespace(self, scripted_backend) -> None:
        """Test that surrounding whitespace is ignored."""
        classifier = Classifier(scripted_backend(labels=[" person\n"]), LABELS)
        assert await classifier.classify("Who was Einstein?") == "person"

    @pytest.mark.asyncio
    async def test_out_of_set_answer_is_retried(self, scripted_backend) -> None:
        """Test that one out-of-set answer is retried."""
        backend = scripted_backend(labels=["weather", "product"])
        classifier = Classifier(backend, LABELS, retries=1)

        assert await classifier.classify("Tell me about the iPhone") == "product"
        assert len(backend.calls) == 2

    @pytest.mark.asyncio
    async def test_out_of_set_answer_raises_unknown_label(self, scripted_backend) -> None:
        """Test that repeated out-of-set answers raise UnknownLabel."""
        backend = scripted_backend(labels=["weather", "gibberish"])
        classifier = Classifier(backend, LABELS, retries=1)

        with pytest.raises(UnknownLabel) as exc_info:
            await classifier.classify("asdkjh qwe")

        assert exc_info.value.label == "gibberish"
        assert exc_info.value.allowed == list(LABELS)
        assert len(backend.calls) == 2

    @pytest.mark.asyncio
    async def test_no_retry(self, scripted_backend) -> None:
        """Test that retries=0 fails on the first out-of-set answer."""
        backend = scripted_backend(labels=["weather"])
        classifier = Classifier(backend, LABELS, retries=0)

        with pytest.raises(UnknownLabel):
            await classifier.classify("asdkjh qwe")
        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_backend_failure(self, scripted_backend) -> None:
        """Test that backend errors become ClassificationFailure."""
        backend = scripted_backend(error=GenerationFailure("quota exceeded"))
        classifier = Classifier(backend, LABELS)

        with pytest.raises(ClassificationFailure) as exc_info:
            await classifier.classify("How do I make curry?")

        assert not isinstance(exc_info.value, UnknownLabel)
        assert exc_info.value.message == "Could not determine intent: quota exceeded"
        assert exc_info.value.status_code == 400
