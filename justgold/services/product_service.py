# justgold/services/product_service.py
import logging
import re
from contextlib import contextmanager

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from justgold.core.cache import CacheClient
from justgold.core.storage_utils import FOLDERS, MediaStore, MediaUpload, resolve_media_url
from justgold.models.product import Product, ProductImage, ProductVariant
from justgold.repositories.category_repo import CategoryRepository
from justgold.repositories.product_repo import ProductRepository
from justgold.schemas.product import (
    CategoryRef,
    ColorPanelRead,
    ProductDeleted,
    ProductMediaRead,
    ProductRead,
    VariantRead,
)
from justgold.schemas.uploads import ProductForm, UploadedFile
from justgold.services.media_reconciliation import (
    MediaReconciler,
    gallery_media_refs,
    product_media_refs,
    variant_media_refs,
)
from justgold.services.product_query import CACHE_PREFIX
from justgold.services.variant_service import StoredVariantMedia, VariantUpserter

logger = logging.getLogger(__name__)


# --- Upload config ---

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB per image
MAX_VIDEO_BYTES = 100 * 1024 * 1024  # 100MB per video

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

ALLOWED_VIDEO_CONTENT_TYPES: dict[str, str] = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "video/x-matroska": "mkv",
    "video/webm": "webm",
}


def _is_unique_violation(exc: IntegrityError) -> bool:
    # Postgres reports SQLSTATE 23505, SQLite only a message
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(exc.orig).lower()


class ProductService:
    """
    Business logic for products, their variants and media.

    Responsibilities:
      - slug generation & uniqueness (409 on conflict)
      - upload validation and storage of product/variant media
      - one transaction per mutation (commit or rollback as a whole)
      - media reconciliation: storage deletes only after commit
      - listing cache invalidation after successful mutations
    """

    def __init__(
        self,
        repo: ProductRepository,
        category_repo: CategoryRepository,
        media_base: str,
    ):
        self.repo = repo
        self.category_repo = category_repo
        self.media_base = media_base
        self.variants = VariantUpserter(repo)

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Basic slugification:
          - lowercase
          - non-alphanumeric -> '-'
          - collapse multiple '-'
          - strip leading/trailing '-'
        """
        value = raw.strip().lower()
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = re.sub(r"-+", "-", value)
        value = value.strip("-")
        return value or "product"

    def _ensure_slug_free(self, session: Session, slug: str, product_id: int | None = None) -> None:
        existing = self.repo.get_by_slug(session, slug)
        if existing is not None and existing.id != product_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A product with slug '{slug}' already exists",
            )

    def _ensure_category(self, session: Session, category_id: int) -> None:
        if self.category_repo.get_by_id(session, category_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )

    @staticmethod
    def _validate_and_get_ext(upload: UploadedFile, video: bool = False) -> str:
        allowed = ALLOWED_VIDEO_CONTENT_TYPES if video else ALLOWED_IMAGE_CONTENT_TYPES
        limit = MAX_VIDEO_BYTES if video else MAX_IMAGE_BYTES

        if not upload.data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Uploaded field '{upload.field}' did not include file data",
            )

        if upload.content_type not in allowed:
            kind = "video" if video else "image"
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    f"Invalid {kind} type ({upload.content_type or 'unknown'}) "
                    f"in field '{upload.field}'"
                ),
            )

        if len(upload.data) > limit:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large in field '{upload.field}' (max {limit // (1024 * 1024)}MB)",
            )

        return allowed[upload.content_type]

    def _check_uploads(self, form: ProductForm) -> None:
        """Validate every file of the request before the first upload."""
        for upload in (form.thumbnail, form.afterimage, *form.gallery):
            if upload is not None:
                self._validate_and_get_ext(upload)
        if form.video is not None:
            self._validate_and_get_ext(form.video, video=True)
        for files in form.variant_uploads:
            for upload in (files.color, files.main_image, files.secondary_image):
                if upload is not None:
                    self._validate_and_get_ext(upload)

    def _store(
        self,
        media: MediaStore,
        reconciler: MediaReconciler,
        upload: UploadedFile | None,
        folder: str,
        video: bool = False,
    ) -> MediaUpload | None:
        if upload is None:
            return None
        ext = self._validate_and_get_ext(upload, video=video)
        try:
            stored = media.upload(
                upload.data,
                folder,
                resource_type="video" if video else "image",
                content_type=upload.content_type,
                ext=ext,
            )
        except Exception as exc:
            logger.error("Upload of %s failed: %s", upload.field, exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Media storage rejected the file in field '{upload.field}'",
            ) from exc
        return reconciler.track_upload(stored)

    def _store_variant_media(
        self,
        form: ProductForm,
        media: MediaStore,
        reconciler: MediaReconciler,
    ) -> list[StoredVariantMedia]:
        stored: list[StoredVariantMedia] = []
        for index in range(len(form.variants)):
            files = form.uploads_for(index)
            stored.append(
                StoredVariantMedia(
                    index=index,
                    color=self._store(media, reconciler, files.color, FOLDERS["variant"]),
                    main_image=self._store(media, reconciler, files.main_image, FOLDERS["variant"]),
                    secondary_image=self._store(
                        media, reconciler, files.secondary_image, FOLDERS["variant"]
                    ),
                )
            )
        return stored

    def _add_gallery(
        self,
        session: Session,
        product: Product,
        form: ProductForm,
        media: MediaStore,
        reconciler: MediaReconciler,
    ) -> None:
        rows: list[ProductImage] = []
        for upload in form.gallery:
            stored = self._store(media, reconciler, upload, FOLDERS["image"])
            rows.append(
                ProductImage(
                    product_id=product.id,
                    image_url=stored.url,
                    image_key=stored.key,
                    media_type="image",
                )
            )

        video = self._store(media, reconciler, form.video, FOLDERS["video"], video=True)
        if video is not None:
            # one video per product: a new upload replaces the previous one
            old_videos = [m for m in self.repo.list_media(session, product.id) if m.media_type == "video"]
            if old_videos:
                reconciler.queue(*gallery_media_refs(old_videos))
                self.repo.delete_media(session, old_videos)
            rows.append(
                ProductImage(
                    product_id=product.id,
                    image_url=video.url,
                    image_key=video.key,
                    media_type="video",
                )
            )

        if rows:
            self.repo.add_media(session, rows)

    @contextmanager
    def _mutation(self, session: Session, reconciler: MediaReconciler):
        """
        Run a block as one transaction.

        - success: commit, then delete queued media from storage
        - failure: rollback, then remove files uploaded for this request
        - integrity violations surface as 409
        """
        try:
            yield
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            reconciler.discard_uploads()
            logger.info("Product mutation conflict: %s", exc.orig)
            if _is_unique_violation(exc):
                detail = "A product with this slug already exists"
            else:
                detail = "Product is still referenced by other records (e.g. existing orders)"
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from exc
        except Exception:
            session.rollback()
            reconciler.discard_uploads()
            raise

        reconciler.flush()

    @staticmethod
    def _invalidate_listing(cache: CacheClient | None) -> None:
        if cache is None:
            return
        try:
            cache.invalidate_prefix(CACHE_PREFIX)
        except Exception as exc:
            logger.warning("Listing cache invalidation failed: %s", exc)

    # ----- Read -----

    def get_product(self, session: Session, product_id: int) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def _variant_read(self, product: Product, variant: ProductVariant) -> VariantRead:
        panel = None
        if variant.color_panel_type and variant.color_panel_value:
            panel = ColorPanelRead(type=variant.color_panel_type, value=variant.color_panel_value)
        return VariantRead(
            id=variant.id,
            product_id=variant.product_id,
            shade=variant.shade,
            color_type=variant.color_type,
            color_panel=panel,
            stock=variant.stock,
            price=variant.price,
            effective_price=variant.price if variant.price is not None else product.base_price,
            discount_price=variant.discount_price,
            variant_model_no=variant.variant_model_no,
            main_image=resolve_media_url(variant.main_image_key, variant.main_image, self.media_base),
            secondary_image=resolve_media_url(
                variant.secondary_image_key, variant.secondary_image, self.media_base
            ),
        )

    def build_product_read(self, session: Session, product: Product) -> ProductRead:
        """
        Reassemble a product with its category, variants and media,
        resolving every media reference to a public URL.
        """
        category = None
        if product.category_id is not None:
            row = self.category_repo.get_by_id(session, product.category_id)
            if row is not None:
                category = CategoryRef(id=row.id, name=row.name, slug=row.slug, parent_id=row.parent_id)

        variants = [self._variant_read(product, v) for v in self.repo.list_variants(session, product.id)]
        media = [
            ProductMediaRead(
                id=m.id,
                url=resolve_media_url(m.image_key, m.image_url, self.media_base),
                media_type=m.media_type,
            )
            for m in self.repo.list_media(session, product.id)
        ]

        return ProductRead(
            id=product.id,
            name=product.name,
            slug=product.slug,
            description=product.description,
            base_price=product.base_price,
            base_stock=product.base_stock,
            category_id=product.category_id,
            category=category,
            model_no=product.model_no,
            how_to_apply=product.how_to_apply,
            benefits=product.benefits,
            key_features=product.key_features,
            ingredients=product.ingredients,
            thumbnail=resolve_media_url(product.thumbnail_key, product.thumbnail, self.media_base),
            afterimage=resolve_media_url(product.afterimage_key, product.afterimage, self.media_base),
            is_active=product.is_active,
            created_at=product.created_at,
            variants=variants,
            media=media,
        )

    # ----- Create -----

    def create_product(
        self,
        session: Session,
        form: ProductForm,
        media: MediaStore,
        cache: CacheClient | None = None,
    ) -> ProductRead:
        """
        Create a product with its media and variants in one transaction.

        Required: name, base_price, category_id and at least one variant.
        """
        fields = form.fields
        if not fields.name or fields.base_price is None or fields.category_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing required fields: name, base_price, category_id",
            )

        if not form.variants:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="At least one variant is required",
            )

        self._check_uploads(form)
        self._ensure_category(session, fields.category_id)
        slug = self._slugify(fields.name)
        self._ensure_slug_free(session, slug)
        self.variants.check(session, None, form)

        reconciler = MediaReconciler(media)
        with self._mutation(session, reconciler):
            values = fields.patch_values()
            product = Product(slug=slug, **values)

            thumbnail = self._store(media, reconciler, form.thumbnail, FOLDERS["image"])
            if thumbnail:
                product.thumbnail, product.thumbnail_key = thumbnail.url, thumbnail.key
            afterimage = self._store(media, reconciler, form.afterimage, FOLDERS["image"])
            if afterimage:
                product.afterimage, product.afterimage_key = afterimage.url, afterimage.key

            product = self.repo.add(session, product)
            self._add_gallery(session, product, form, media, reconciler)

            stored = self._store_variant_media(form, media, reconciler)
            self.variants.apply(session, product, form.variants, stored, reconciler)

        logger.info("Created product %s (%s)", product.id, product.slug)
        self._invalidate_listing(cache)
        return self.build_product_read(session, product)

    # ----- Update -----

    def update_product(
        self,
        session: Session,
        product_id: int,
        form: ProductForm,
        media: MediaStore,
        cache: CacheClient | None = None,
    ) -> ProductRead:
        """
        Partial update of a product, its media and its variants.

        Order inside the transaction:
          1. explicit gallery/video deletions (delete_media_ids)
          2. explicit variant deletions (delete_variant_ids)
          3. product fields; absent or empty fields keep their value
          4. replaced thumbnail/afterimage, new gallery items / video
          5. variant upserts

        Storage objects of deleted or replaced rows are removed after commit.
        """
        product = self.get_product(session, product_id)
        self._check_uploads(form)
        self.variants.check(session, product, form)
        reconciler = MediaReconciler(media)

        with self._mutation(session, reconciler):
            if form.delete_media_ids:
                rows = self.repo.get_media_by_ids(session, product.id, form.delete_media_ids)
                reconciler.queue(*gallery_media_refs(rows))
                self.repo.delete_media(session, rows)

            if form.delete_variant_ids:
                rows = self.repo.get_variants_by_ids(session, product.id, form.delete_variant_ids)
                for variant in rows:
                    reconciler.queue(*variant_media_refs(variant))
                self.repo.delete_variants(session, rows)

            values = form.fields.patch_values()

            if "name" in values:
                new_slug = self._slugify(values["name"])
                if new_slug != product.slug:
                    self._ensure_slug_free(session, new_slug, product.id)
                    product.slug = new_slug

            if "category_id" in values:
                self._ensure_category(session, values["category_id"])

            for name, value in values.items():
                setattr(product, name, value)

            thumbnail = self._store(media, reconciler, form.thumbnail, FOLDERS["image"])
            if thumbnail:
                reconciler.queue_replaced(product.thumbnail_key, product.thumbnail, thumbnail)
                product.thumbnail, product.thumbnail_key = thumbnail.url, thumbnail.key

            afterimage = self._store(media, reconciler, form.afterimage, FOLDERS["image"])
            if afterimage:
                reconciler.queue_replaced(product.afterimage_key, product.afterimage, afterimage)
                product.afterimage, product.afterimage_key = afterimage.url, afterimage.key

            product = self.repo.add(session, product)
            self._add_gallery(session, product, form, media, reconciler)

            stored = self._store_variant_media(form, media, reconciler)
            self.variants.apply(session, product, form.variants, stored, reconciler)

        logger.info("Updated product %s", product.id)
        self._invalidate_listing(cache)
        return self.build_product_read(session, product)

    # ----- Delete -----

    def delete_product(
        self,
        session: Session,
        product_id: int,
        media: MediaStore,
        cache: CacheClient | None = None,
    ) -> ProductDeleted:
        """
        Delete a product with all its variants and gallery rows, then remove
        every distinct media object that belonged to it from storage.
        """
        product = self.get_product(session, product_id)
        name = product.name
        reconciler = MediaReconciler(media)

        with self._mutation(session, reconciler):
            variants = self.repo.list_variants(session, product.id)
            gallery = self.repo.list_media(session, product.id)

            reconciler.queue(*product_media_refs(product))
            for variant in variants:
                reconciler.queue(*variant_media_refs(variant))
            reconciler.queue(*gallery_media_refs(gallery))

            self.repo.delete_variants_for_product(session, product.id)
            self.repo.delete_media_for_product(session, product.id)
            self.repo.delete(session, product)

        logger.info("Deleted product %s (%s)", product_id, name)
        self._invalidate_listing(cache)
        return ProductDeleted(
            message=f'Product "{name}" deleted successfully',
            product_id=product_id,
        )
