"""Built-in schema registries, one per endpoint."""

from intent_relay.schemas.models import (
    Answer,
    PersonDocument,
    PersonProfileDocument,
    ProductDocument,
    ProductListing,
    RatedProductDocument,
    RecipeDocument,
    Sentiment,
    StoryDocument,
)
from intent_relay.schemas.registry import OutputStrategy, SchemaRegistry, SchemaSpec

RECIPE_DESCRIPTION = "User wants a recipe or cooking instructions"
PERSON_DESCRIPTION = "User is asking about a person"
PRODUCT_DESCRIPTION = "User wants product information"

# Intent-routed streaming of partial objects
STREAM_OBJECT_SCHEMAS = SchemaRegistry(
    "stream-object",
    [
        SchemaSpec(
            label="recipe",
            model=RecipeDocument,
            description=RECIPE_DESCRIPTION,
        ),
        SchemaSpec(
            label="person",
            model=PersonDocument,
            prompt_template="Provide detailed information about: {prompt}",
            description=PERSON_DESCRIPTION,
        ),
        SchemaSpec(
            label="product",
            model=RatedProductDocument,
            prompt_template="Generate detailed product information for: {prompt}",
            description=PRODUCT_DESCRIPTION,
        ),
        SchemaSpec(
            label="story",
            model=StoryDocument,
            prompt_template="Write a creative story about: {prompt}",
            description="User wants a creative story",
        ),
    ],
)

# Intent-routed blocking generation
SMART_SCHEMAS = SchemaRegistry(
    "generate-object-smart",
    [
        SchemaSpec(
            label="recipe",
            model=RecipeDocument,
            description=RECIPE_DESCRIPTION,
        ),
        SchemaSpec(
            label="person",
            model=PersonDocument,
            prompt_template="Provide structured information about: {prompt}",
            description=PERSON_DESCRIPTION,
        ),
        SchemaSpec(
            label="general-question",
            strategy=OutputStrategy.TEXT,
            model=Answer,
            description="User is asking a general knowledge question",
        ),
        SchemaSpec(
            label="product",
            model=ProductDocument,
            prompt_template="Generate product information for: {prompt}",
            description=PRODUCT_DESCRIPTION,
        ),
    ],
)

# Caller-selected output type, no classifier
GENERATE_OBJECT_SCHEMAS = SchemaRegistry(
    "generate-object",
    [
        SchemaSpec(
            label="recipe",
            model=RecipeDocument,
            default_prompt="Generate a lasagna recipe.",
        ),
        SchemaSpec(
            label="person",
            model=PersonProfileDocument,
            default_prompt="Generate a fictional person profile.",
        ),
        SchemaSpec(
            label="product-list",
            strategy=OutputStrategy.ARRAY,
            model=ProductListing,
            default_prompt="Generate 5 fictional products for an online store.",
        ),
        SchemaSpec(
            label="classification",
            strategy=OutputStrategy.ENUM,
            choices=tuple(s.value for s in Sentiment),
            default_prompt='Classify the sentiment: "This product is amazing! I love it!"',
        ),
        SchemaSpec(
            label="no-schema",
            strategy=OutputStrategy.NO_SCHEMA,
            default_prompt="Generate a JSON object with book information.",
        ),
    ],
)
