# justgold/schemas/category.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class CategoryCreate(SQLModel):
    """
    Payload for creating a category.

    - parent_id omitted -> top-level category
    - parent_id set     -> subcategory of that (top-level) category
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=150)
    parent_id: int | None = None

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class SubcategoryRead(SQLModel):
    id: int
    name: str
    slug: str


class CategoryRead(SQLModel):
    id: int
    name: str
    slug: str
    parent_id: int | None


class CategoryTreeRead(SQLModel):
    """Top-level category with its direct subcategories."""

    id: int
    name: str
    slug: str
    subcategories: list[SubcategoryRead] = []
