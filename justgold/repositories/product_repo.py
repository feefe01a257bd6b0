# justgold/repositories/product_repo.py
from typing import Any, Iterable

from sqlalchemy import Select, delete
from sqlmodel import Session, select

from justgold.models.product import Product, ProductImage, ProductVariant


class ProductRepository:
    """
    Data access layer for Product, ProductVariant & ProductImage.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.

    NOTE:
      - No commits here; product create/update/delete are multi-step
        transactions. The service is responsible for commit / rollback.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: int) -> Product | None:
        return session.get(Product, product_id)

    def get_by_slug(self, session: Session, slug: str) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        return session.exec(stmt).first()

    def add(self, session: Session, product: Product) -> Product:
        """
        Insert or update a Product without committing; ensures id is populated.
        """
        session.add(product)
        session.flush()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.flush()

    def fetch_listing(self, session: Session, stmt: Select) -> list[dict[str, Any]]:
        """Run a listing statement and return plain row dicts."""
        return [dict(row) for row in session.exec(stmt).mappings().all()]

    # ----- Variants -----

    def list_variants(self, session: Session, product_id: int) -> list[ProductVariant]:
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.id)
        )
        return list(session.exec(stmt).all())

    def get_variant(self, session: Session, variant_id: int) -> ProductVariant | None:
        return session.get(ProductVariant, variant_id)

    def get_variants_by_ids(
        self,
        session: Session,
        product_id: int,
        variant_ids: Iterable[int],
    ) -> list[ProductVariant]:
        ids = list(variant_ids)
        if not ids:
            return []
        stmt = select(ProductVariant).where(
            ProductVariant.product_id == product_id,
            ProductVariant.id.in_(ids),
        )
        return list(session.exec(stmt).all())

    def add_variant(self, session: Session, variant: ProductVariant) -> ProductVariant:
        session.add(variant)
        session.flush()
        session.refresh(variant)
        return variant

    def delete_variants(self, session: Session, variants: Iterable[ProductVariant]) -> int:
        ids = [v.id for v in variants]
        if not ids:
            return 0
        result = session.exec(delete(ProductVariant).where(ProductVariant.id.in_(ids)))
        return result.rowcount

    def delete_variants_for_product(self, session: Session, product_id: int) -> int:
        result = session.exec(
            delete(ProductVariant).where(ProductVariant.product_id == product_id)
        )
        return result.rowcount

    # ----- Media (gallery images / video) -----

    def list_media(self, session: Session, product_id: int) -> list[ProductImage]:
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.id)
        )
        return list(session.exec(stmt).all())

    def get_media_by_ids(
        self,
        session: Session,
        product_id: int,
        media_ids: Iterable[int],
    ) -> list[ProductImage]:
        ids = list(media_ids)
        if not ids:
            return []
        stmt = select(ProductImage).where(
            ProductImage.product_id == product_id,
            ProductImage.id.in_(ids),
        )
        return list(session.exec(stmt).all())

    def add_media(self, session: Session, images: list[ProductImage]) -> list[ProductImage]:
        session.add_all(images)
        session.flush()
        for image in images:
            session.refresh(image)
        return images

    def delete_media(self, session: Session, images: Iterable[ProductImage]) -> int:
        ids = [img.id for img in images]
        if not ids:
            return 0
        result = session.exec(delete(ProductImage).where(ProductImage.id.in_(ids)))
        return result.rowcount

    def delete_media_for_product(self, session: Session, product_id: int) -> int:
        result = session.exec(
            delete(ProductImage).where(ProductImage.product_id == product_id)
        )
        return result.rowcount
