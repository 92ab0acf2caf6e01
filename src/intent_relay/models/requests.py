"""HTTP request and response bodies."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from intent_relay.schemas.models import Answer, PersonDocument, ProductDocument, RecipeDocument


class PromptRequest(BaseModel):
    """Request carrying a free-text prompt."""

    prompt: str = Field(..., min_length=1, max_length=20000, description="Free-text prompt")

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        """Reject whitespace-only prompts."""
        if not v.strip():
            raise ValueError("Prompt cannot be empty")
        return v


class GenerateObjectRequest(BaseModel):
    """Request for an explicitly selected output type."""

    type: str = Field(..., description="Registered output type, e.g. recipe or product-list")
    prompt: str | None = Field(default=None, max_length=20000)


class GenerateTextRequest(BaseModel):
    """Request to summarize an article."""

    article: str = Field(..., min_length=1, max_length=100000)


class GenerateObjectResponse(BaseModel):
    object: Any
    type: str


class TextResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
    details: dict[str, Any] | None = None


# Smart endpoint result: one variant per registered label


class RecipeResult(BaseModel):
    type: Literal["recipe"] = "recipe"
    data: RecipeDocument


class PersonResult(BaseModel):
    type: Literal["person"] = "person"
    data: PersonDocument


class GeneralQuestionResult(BaseModel):
    type: Literal["general-question"] = "general-question"
    data: Answer


class ProductResult(BaseModel):
    type: Literal["product"] = "product"
    data: ProductDocument


SmartResult = Annotated[
    Union[RecipeResult, PersonResult, GeneralQuestionResult, ProductResult],
    Field(discriminator="type"),
]

smart_result_adapter: TypeAdapter[SmartResult] = TypeAdapter(SmartResult)


def decode_smart_result(label: str, data: Any) -> RecipeResult | PersonResult | GeneralQuestionResult | ProductResult:
    """Decode a generated value into the variant for ``label``."""
    return smart_result_adapter.validate_python({"type": label, "data": data})


def encode_smart_result(result: RecipeResult | PersonResult | GeneralQuestionResult | ProductResult) -> dict[str, Any]:
    """Render a smart result in wire form."""
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)
