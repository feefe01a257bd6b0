# justgold/services/variant_service.py
from dataclasses import dataclass

from fastapi import HTTPException, status
from sqlmodel import Session

from justgold.core.exceptions import ColorPanelError
from justgold.core.storage_utils import MediaUpload
from justgold.models.product import Product, ProductVariant
from justgold.repositories.product_repo import ProductRepository
from justgold.schemas.product import VariantPayload
from justgold.schemas.uploads import ProductForm
from justgold.services.color_panel import ColorPanel, check_color_panel, resolve_color_panel
from justgold.services.media_reconciliation import MediaReconciler


@dataclass
class StoredVariantMedia:
    """Files already stored for the variant at `index`."""

    index: int
    color: MediaUpload | None = None
    main_image: MediaUpload | None = None
    secondary_image: MediaUpload | None = None


def variant_error(index: int, message: str, code: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    return HTTPException(
        status_code=code,
        detail={"message": f"Variant {index + 1}: {message}", "variant_index": index},
    )


class VariantUpserter:
    """
    Applies a batch of submitted variants to a product.

      - payload with id    -> update in place; absent/empty fields keep the
                              stored value
      - payload without id -> insert; stock defaults to 0 and a valid colour
                              panel is required

    Raises HTTPException naming the failing variant index. The caller owns the
    transaction, so one bad variant rolls back the whole batch.
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def check(self, session: Session, product: Product | None, form: ProductForm) -> None:
        """
        Reject invalid variants before any file is uploaded: unknown or
        foreign variant ids and colour panels that cannot be resolved.
        `product` is None while the product is being created.
        """
        for index, payload in enumerate(form.variants):
            if payload.id is not None:
                variant = self.repo.get_variant(session, payload.id)
                if product is None or variant is None or variant.product_id != product.id:
                    raise variant_error(
                        index,
                        f"variant {payload.id} not found for this product",
                        code=status.HTTP_404_NOT_FOUND,
                    )

            try:
                check_color_panel(
                    payload.color_panel_type,
                    payload.color_panel_value,
                    has_file=form.uploads_for(index).color is not None,
                    required=payload.id is None,
                )
            except ColorPanelError as exc:
                raise variant_error(index, str(exc))

    def apply(
        self,
        session: Session,
        product: Product,
        payloads: list[VariantPayload],
        media: list[StoredVariantMedia],
        reconciler: MediaReconciler,
    ) -> list[ProductVariant]:
        by_index = {m.index: m for m in media}
        saved: list[ProductVariant] = []

        for index, payload in enumerate(payloads):
            stored = by_index.get(index) or StoredVariantMedia(index=index)
            if payload.id is not None:
                variant = self._update(session, product, index, payload, stored, reconciler)
            else:
                variant = self._insert(session, product, index, payload, stored)
            saved.append(variant)

        return saved

    @staticmethod
    def _panel(
        index: int,
        payload: VariantPayload,
        stored: StoredVariantMedia,
        required: bool,
    ) -> ColorPanel | None:
        try:
            return resolve_color_panel(
                payload.color_panel_type,
                payload.color_panel_value,
                uploaded_url=stored.color.url if stored.color else None,
                required=required,
            )
        except ColorPanelError as exc:
            raise variant_error(index, str(exc))

    def _insert(
        self,
        session: Session,
        product: Product,
        index: int,
        payload: VariantPayload,
        stored: StoredVariantMedia,
    ) -> ProductVariant:
        panel = self._panel(index, payload, stored, required=True)

        variant = ProductVariant(
            product_id=product.id,
            shade=payload.shade,
            color_type=payload.color_type,
            color_panel_type=panel.type,
            color_panel_value=panel.value,
            stock=payload.stock if payload.stock is not None else 0,
            price=payload.price,
            discount_price=payload.discount_price,
            variant_model_no=payload.variant_model_no,
        )
        if stored.main_image:
            variant.main_image = stored.main_image.url
            variant.main_image_key = stored.main_image.key
        if stored.secondary_image:
            variant.secondary_image = stored.secondary_image.url
            variant.secondary_image_key = stored.secondary_image.key

        return self.repo.add_variant(session, variant)

    def _update(
        self,
        session: Session,
        product: Product,
        index: int,
        payload: VariantPayload,
        stored: StoredVariantMedia,
        reconciler: MediaReconciler,
    ) -> ProductVariant:
        variant = self.repo.get_variant(session, payload.id)
        if variant is None or variant.product_id != product.id:
            raise variant_error(
                index,
                f"variant {payload.id} not found for this product",
                code=status.HTTP_404_NOT_FOUND,
            )

        panel = self._panel(index, payload, stored, required=False)

        for name, value in payload.patch_values().items():
            setattr(variant, name, value)

        if panel is not None:
            old_value = variant.color_panel_value
            if variant.color_panel_type == "image" and old_value and old_value != panel.value:
                reconciler.queue(old_value)
            variant.color_panel_type = panel.type
            variant.color_panel_value = panel.value

        if stored.main_image:
            reconciler.queue_replaced(variant.main_image_key, variant.main_image, stored.main_image)
            variant.main_image = stored.main_image.url
            variant.main_image_key = stored.main_image.key

        if stored.secondary_image:
            reconciler.queue_replaced(
                variant.secondary_image_key, variant.secondary_image, stored.secondary_image
            )
            variant.secondary_image = stored.secondary_image.url
            variant.secondary_image_key = stored.secondary_image.key

        return self.repo.add_variant(session, variant)
