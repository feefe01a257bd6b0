# justgold/models/category.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Catalog category.

    Two levels:
      - parent_id is NULL       -> top-level category ("MAKEUP")
      - parent_id is set        -> subcategory ("Lipstick" under "LIPS")

    The schema does not stop deeper chains or dangling parent ids; the
    service caps depth at creation time and can report orphans.
    """

    __tablename__ = "categories"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    name: str = Field(
        max_length=150,
        description="Display name",
    )

    slug: str = Field(
        max_length=180,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    parent_id: int | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
        description="Parent category, NULL for top-level",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
