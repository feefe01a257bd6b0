# justgold/services/media_reconciliation.py
import logging
from typing import Iterable

from justgold.core.storage_utils import MediaStore, MediaUpload
from justgold.models.product import Product, ProductImage, ProductVariant

logger = logging.getLogger(__name__)


def _ref(key: str | None, url: str | None) -> str | None:
    return key or url or None


def product_media_refs(product: Product) -> list[str]:
    return [
        ref
        for ref in (
            _ref(product.thumbnail_key, product.thumbnail),
            _ref(product.afterimage_key, product.afterimage),
        )
        if ref
    ]


def variant_media_refs(variant: ProductVariant) -> list[str]:
    refs = [
        _ref(variant.main_image_key, variant.main_image),
        _ref(variant.secondary_image_key, variant.secondary_image),
    ]
    if variant.color_panel_type == "image":
        refs.append(variant.color_panel_value)
    return [r for r in refs if r]


def gallery_media_refs(images: Iterable[ProductImage]) -> list[str]:
    return [r for r in (_ref(img.image_key, img.image_url) for img in images) if r]


class MediaReconciler:
    """
    Keeps the media store in line with the database for one request.

    Usage inside a product mutation:
      - track_upload() every file stored for this request
      - queue() references whose rows are deleted or replaced
      - after commit: flush() issues one batch delete for the queue
      - after rollback: discard_uploads() removes the freshly stored files

    Neither flush() nor discard_uploads() raises; the database outcome is
    already final when they run.
    """

    def __init__(self, store: MediaStore):
        self.store = store
        self._pending: list[str] = []
        self._uploaded: list[MediaUpload] = []

    @property
    def pending(self) -> list[str]:
        return list(dict.fromkeys(self._pending))

    def track_upload(self, upload: MediaUpload) -> MediaUpload:
        self._uploaded.append(upload)
        return upload

    def queue(self, *refs: str | None) -> None:
        for ref in refs:
            if ref:
                self._pending.append(ref)

    def queue_replaced(
        self,
        old_key: str | None,
        old_url: str | None,
        new_upload: MediaUpload | None,
    ) -> None:
        """
        Queue the old object only when a new file actually replaces it.
        """
        if new_upload is None:
            return
        old = _ref(old_key, old_url)
        if old and old not in (new_upload.key, new_upload.url):
            self._pending.append(old)

    def flush(self) -> list[bool | Exception]:
        refs = self.pending
        self._pending.clear()
        self._uploaded.clear()
        if not refs:
            return []
        logger.info("Deleting %d media object(s) from storage", len(refs))
        try:
            return self.store.delete_many(refs)
        except Exception as exc:
            logger.warning("Media batch delete aborted: %s", exc)
            return [exc]

    def discard_uploads(self) -> None:
        keys = [u.key for u in self._uploaded]
        self._pending.clear()
        self._uploaded.clear()
        if not keys:
            return
        logger.info("Removing %d upload(s) from a failed request", len(keys))
        try:
            self.store.delete_many(keys)
        except Exception as exc:
            logger.warning("Cleanup of failed uploads aborted: %s", exc)
