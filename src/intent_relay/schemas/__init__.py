"""Structured output schemas and the label -> schema registry."""

from intent_relay.schemas.catalog import (
    GENERATE_OBJECT_SCHEMAS,
    SMART_SCHEMAS,
    STREAM_OBJECT_SCHEMAS,
)
from intent_relay.schemas.registry import OutputStrategy, SchemaRegistry, SchemaSpec, model_schema

__all__ = [
    "GENERATE_OBJECT_SCHEMAS",
    "SMART_SCHEMAS",
    "STREAM_OBJECT_SCHEMAS",
    "OutputStrategy",
    "SchemaRegistry",
    "SchemaSpec",
    "model_schema",
]
