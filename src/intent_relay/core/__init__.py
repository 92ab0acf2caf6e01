"""Core abstractions: errors, classification, relay encoding and backends."""

from intent_relay.core.errors import (
    ClassificationFailure,
    GenerationFailure,
    RelayError,
    TransportFailure,
    UnknownLabel,
)
from intent_relay.core.backend import BackendRegistry, GenerationBackend, create_backend
from intent_relay.core.classifier import Classifier
from intent_relay.core.relay import RelayEncoder

__all__ = [
    "BackendRegistry",
    "ClassificationFailure",
    "Classifier",
    "GenerationBackend",
    "GenerationFailure",
    "RelayEncoder",
    "RelayError",
    "TransportFailure",
    "UnknownLabel",
    "create_backend",
]
