# justgold/services/category_service.py
import re

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from justgold.models.category import Category
from justgold.repositories.category_repo import CategoryRepository
from justgold.schemas.category import CategoryCreate, CategoryTreeRead, SubcategoryRead


def make_category_slug(name: str) -> str:
    value = name.strip().lower().replace("&", "and")
    value = re.sub(r"[^a-z0-9]+", "-", value)
    value = re.sub(r"-+", "-", value).strip("-")
    return value or "category"


class CategoryService:
    """
    Business logic for the two-level category tree.

    Rules:
      - a subcategory's parent must exist and be top-level (depth cap = 2)
      - slugs are unique (409 on conflict)
    """

    def __init__(self, repo: CategoryRepository):
        self.repo = repo

    def list_tree(self, session: Session) -> list[CategoryTreeRead]:
        """
        Top-level categories ordered by id, each with its subcategories.
        """
        rows = self.repo.list_all(session)
        children: dict[int, list[SubcategoryRead]] = {}
        for row in rows:
            if row.parent_id is not None:
                children.setdefault(row.parent_id, []).append(
                    SubcategoryRead(id=row.id, name=row.name, slug=row.slug)
                )

        return [
            CategoryTreeRead(
                id=row.id,
                name=row.name,
                slug=row.slug,
                subcategories=children.get(row.id, []),
            )
            for row in rows
            if row.parent_id is None
        ]

    def find_orphans(self, session: Session) -> list[Category]:
        """
        Subcategories whose parent_id points at a missing row.
        """
        rows = self.repo.list_all(session)
        ids = {row.id for row in rows}
        return [row for row in rows if row.parent_id is not None and row.parent_id not in ids]

    def create_category(self, session: Session, payload: CategoryCreate) -> Category:
        if payload.parent_id is not None:
            parent = self.repo.get_by_id(session, payload.parent_id)
            if parent is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Parent category not found",
                )
            if parent.parent_id is not None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Subcategories cannot have subcategories (max depth is 2)",
                )

        slug = make_category_slug(payload.name)
        if self.repo.get_by_slug(session, slug) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A category with slug '{slug}' already exists",
            )

        category = Category(name=payload.name, slug=slug, parent_id=payload.parent_id)
        try:
            return self.repo.create(session, category)
        except IntegrityError as exc:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A category with slug '{slug}' already exists",
            ) from exc

    def seed_tree(
        self,
        session: Session,
        tree: list[tuple[str, list[str]]],
    ) -> tuple[list[Category], int]:
        """
        Insert a two-level tree of (parent name, [subcategory names]).

        Rows whose slug already exists are left untouched and counted as
        skipped; an existing parent still receives the missing children.
        The caller owns the transaction.
        """
        created: list[Category] = []
        skipped = 0

        def ensure(name: str, parent_id: int | None) -> Category:
            nonlocal skipped
            existing = self.repo.get_by_slug(session, make_category_slug(name))
            if existing is not None:
                skipped += 1
                return existing
            row = self.repo.add(
                session,
                Category(name=name, slug=make_category_slug(name), parent_id=parent_id),
            )
            created.append(row)
            return row

        for parent_name, children in tree:
            parent = ensure(parent_name, None)
            for child in children:
                ensure(child, parent.id)

        return created, skipped
