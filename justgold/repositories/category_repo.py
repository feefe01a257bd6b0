# justgold/repositories/category_repo.py
from sqlmodel import Session, select

from justgold.models.category import Category


class CategoryRepository:
    """
    Data access layer for Category.
    """

    def list_all(self, session: Session) -> list[Category]:
        stmt = select(Category).order_by(Category.id)
        return list(session.exec(stmt).all())

    def get_by_id(self, session: Session, category_id: int) -> Category | None:
        return session.get(Category, category_id)

    def get_by_slug(self, session: Session, slug: str) -> Category | None:
        stmt = select(Category).where(Category.slug == slug)
        return session.exec(stmt).first()

    def create(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def add(self, session: Session, category: Category) -> Category:
        """Stage a row and flush it for its id. No commit here."""
        session.add(category)
        session.flush()
        return category
