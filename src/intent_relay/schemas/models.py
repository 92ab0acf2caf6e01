"""Structured output models.

Python attributes are snake_case; the wire format (JSON schema sent to the
backend and the objects it returns) uses camelCase aliases.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Difficulty(str, Enum):
    """Recipe difficulty."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Sentiment(str, Enum):
    """Sentiment labels for the enum output strategy."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


# Recipes


class Ingredient(WireModel):
    name: str
    amount: str
    unit: str


class Recipe(WireModel):
    """A recipe with ordered preparation steps."""

    name: str
    cuisine: str
    difficulty: Difficulty
    prep_time: str
    cook_time: str
    servings: float
    ingredients: list[Ingredient]
    steps: list[str]
    tags: list[str]


class RecipeDocument(WireModel):
    recipe: Recipe


# People


class Person(WireModel):
    """Biographical information about a real or fictional person."""

    name: str
    profession: str
    nationality: str
    birth_year: float | None = None
    known_for: list[str]
    achievements: list[str]
    biography: str
    fun_facts: list[str]


class PersonDocument(WireModel):
    person: Person


class Address(WireModel):
    street: str
    city: str
    country: str
    zip_code: str


class PersonProfile(WireModel):
    """A fictional person profile."""

    first_name: str
    last_name: str
    age: float
    email: EmailStr
    occupation: str
    bio: str
    skills: list[str]
    address: Address


class PersonProfileDocument(WireModel):
    person: PersonProfile


# Products


class Product(WireModel):
    """Product information."""

    name: str
    category: str
    price: float
    description: str
    features: list[str]
    pros: list[str]
    cons: list[str]


class RatedProduct(Product):
    """Product information with a 1-5 rating."""

    rating: float = Field(ge=1, le=5)


class ProductDocument(WireModel):
    product: Product


class RatedProductDocument(WireModel):
    product: RatedProduct


class ProductListing(WireModel):
    """One item of a generated product list."""

    name: str
    price: float
    category: str
    description: str
    in_stock: bool


# Stories


class Character(WireModel):
    name: str
    role: str
    description: str


class Story(WireModel):
    """A short creative story outline."""

    title: str
    genre: str
    setting: str
    characters: list[Character]
    plot: str
    twist: str
    moral_lesson: str | None = None


class StoryDocument(WireModel):
    story: Story


# Free text


class Answer(WireModel):
    """Plain-text answer to a general question."""

    answer: str
