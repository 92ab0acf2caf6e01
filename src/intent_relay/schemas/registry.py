"""Schema registry and router.

A registry is a static lookup table from label to ``SchemaSpec``. Routing a
label that is not registered is an explicit ``UnknownLabel`` error; there is no
default schema.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, TypeAdapter, ValidationError

from intent_relay.core.errors import GenerationFailure, UnknownLabel

logger = logging.getLogger(__name__)

# JSON schema keywords pydantic emits that backends do not need
_DROPPED_KEYWORDS = {"$defs", "title", "default"}


class OutputStrategy(str, Enum):
    """How the backend is asked to shape its output."""

    OBJECT = "object"
    ARRAY = "array"
    ENUM = "enum"
    NO_SCHEMA = "no-schema"
    TEXT = "text"


def _clean_schema(node: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    """Inline ``$ref``s and collapse ``Optional`` unions into ``nullable``."""
    if "$ref" in node:
        name = node["$ref"].rsplit("/", 1)[-1]
        return _clean_schema(defs[name], defs)

    if "anyOf" in node:
        options = [o for o in node["anyOf"] if o.get("type") != "null"]
        if len(options) == 1:
            collapsed = _clean_schema(options[0], defs)
            if len(options) < len(node["anyOf"]):
                collapsed["nullable"] = True
            if "description" in node:
                collapsed["description"] = node["description"]
            return collapsed

    cleaned: dict[str, Any] = {}
    for key, value in node.items():
        if key in _DROPPED_KEYWORDS:
            continue
        if key == "properties":
            cleaned[key] = {name: _clean_schema(sub, defs) for name, sub in value.items()}
        elif key == "items":
            cleaned[key] = _clean_schema(value, defs)
        else:
            cleaned[key] = value
    return cleaned


def model_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Self-contained JSON schema for a model, in field declaration order."""
    raw = model.model_json_schema(by_alias=True)
    return _clean_schema(raw, raw.get("$defs", {}))


@dataclass(frozen=True)
class SchemaSpec:
    """A registered schema: what to ask the backend for and how to check it.

    Attributes:
        label: Registry key, also the intent label.
        strategy: Output strategy.
        model: Pydantic model for OBJECT/ARRAY (item model) and TEXT (wrapper).
        choices: Allowed values for ENUM.
        prompt_template: Template applied to the caller's prompt; ``{prompt}``
            is replaced with the raw prompt.
        default_prompt: Prompt used when the caller sends none.
        description: One-line description shown to the classifier.
    """

    label: str
    strategy: OutputStrategy = OutputStrategy.OBJECT
    model: type[BaseModel] | None = None
    choices: tuple[str, ...] = ()
    prompt_template: str = "{prompt}"
    default_prompt: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        needs_model = self.strategy in (OutputStrategy.OBJECT, OutputStrategy.ARRAY, OutputStrategy.TEXT)
        if needs_model and self.model is None:
            raise ValueError(f"Schema {self.label!r} with strategy {self.strategy.value} needs a model")
        if self.strategy == OutputStrategy.ENUM and not self.choices:
            raise ValueError(f"Schema {self.label!r} with enum strategy needs choices")

    def render_prompt(self, prompt: str | None) -> str:
        """Apply the prompt template, substituting the default prompt if empty."""
        text = prompt.strip() if prompt else ""
        if not text:
            if self.default_prompt is None:
                raise ValueError(f"A prompt is required for {self.label!r}")
            # Default prompts are complete instructions already
            return self.default_prompt
        return self.prompt_template.replace("{prompt}", text)

    def json_schema(self) -> dict[str, Any] | None:
        """JSON schema handed to the backend, or None if unconstrained."""
        if self.strategy == OutputStrategy.OBJECT:
            return model_schema(self.model)
        if self.strategy == OutputStrategy.ARRAY:
            return {"type": "array", "items": model_schema(self.model)}
        if self.strategy == OutputStrategy.ENUM:
            return {"type": "string", "enum": list(self.choices)}
        return None

    def validate(self, value: Any) -> Any:
        """Check a final value and return it in wire form.

        Raises:
            GenerationFailure: If the value does not satisfy the schema.
        """
        try:
            if self.strategy == OutputStrategy.OBJECT:
                validated = self.model.model_validate(value)
                return validated.model_dump(mode="json", by_alias=True, exclude_none=True)
            if self.strategy == OutputStrategy.ARRAY:
                adapter = TypeAdapter(list[self.model])
                items = adapter.validate_python(value)
                return adapter.dump_python(items, mode="json", by_alias=True, exclude_none=True)
            if self.strategy == OutputStrategy.TEXT:
                if isinstance(value, str):
                    value = {"answer": value}
                validated = self.model.model_validate(value)
                return validated.model_dump(mode="json", by_alias=True)
        except ValidationError as e:
            raise GenerationFailure(
                "Failed to generate valid object",
                text=str(value)[:500],
                cause=f"{e.error_count()} validation error(s) for {self.label}",
            ) from e

        if self.strategy == OutputStrategy.ENUM:
            if value not in self.choices:
                raise GenerationFailure(
                    "Failed to generate valid object",
                    text=str(value),
                    cause=f"expected one of {', '.join(self.choices)}",
                )
            return value

        # NO_SCHEMA: any JSON object
        if not isinstance(value, dict):
            raise GenerationFailure(
                "Failed to generate valid object",
                text=str(value)[:500],
                cause="expected a JSON object",
            )
        return value


class SchemaRegistry:
    """Lookup table from label to schema.

    Registration happens once at import time; lookups are pure.
    """

    def __init__(self, name: str, specs: list[SchemaSpec] | None = None) -> None:
        self.name = name
        self._specs: dict[str, SchemaSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: SchemaSpec) -> SchemaSpec:
        """Add a schema under its label.

        Raises:
            ValueError: If the label is already registered.
        """
        if spec.label in self._specs:
            raise ValueError(f"Label {spec.label!r} already registered in {self.name}")
        self._specs[spec.label] = spec
        return spec

    def route(self, label: str) -> SchemaSpec:
        """Return the schema for ``label``.

        Raises:
            UnknownLabel: If the label is not registered.
        """
        spec = self._specs.get(label)
        if spec is None:
            logger.warning(f"Unknown label {label!r} for registry {self.name}")
            raise UnknownLabel(label, self.labels)
        return spec

    @property
    def labels(self) -> list[str]:
        """Registered labels in registration order."""
        return list(self._specs.keys())

    def descriptions(self) -> dict[str, str]:
        """Label -> classifier description."""
        return {label: spec.description for label, spec in self._specs.items()}

    def __contains__(self, label: object) -> bool:
        return label in self._specs

    def __iter__(self) -> Iterator[SchemaSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)
