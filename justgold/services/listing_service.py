# justgold/services/listing_service.py
import logging
from typing import Any, Mapping

from pydantic import ValidationError
from sqlmodel import Session

from justgold.core.cache import CacheClient
from justgold.core.storage_utils import resolve_media_url
from justgold.repositories.product_repo import ProductRepository
from justgold.schemas.product import ProductListItem, ProductListResponse
from justgold.services.product_query import (
    ProductFilters,
    build_cache_key,
    build_products_query,
    normalize_filters,
)

logger = logging.getLogger(__name__)


class ProductListingService:
    """
    Storefront product listing.

    Flow:
      1. normalize raw query parameters
      2. derive the cache key; a cached page is returned as-is
      3. on a miss, run the listing query (page_size + 1 rows)
      4. shape rows, compute hasMore / nextCursor
      5. store the page in the cache for `ttl_seconds`

    The cache is advisory: when it is missing, disabled or failing the
    listing is simply computed every time.
    """

    def __init__(self, repo: ProductRepository, media_base: str, ttl_seconds: int = 60):
        self.repo = repo
        self.media_base = media_base
        self.ttl_seconds = ttl_seconds

    def _read_cache(self, cache: CacheClient | None, key: str) -> ProductListResponse | None:
        if cache is None:
            return None
        try:
            raw = cache.get(key)
        except Exception as exc:
            logger.warning("Listing cache read failed: %s", exc)
            return None
        if raw is None:
            return None
        try:
            return ProductListResponse.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable cache entry %s", key)
            return None

    def _write_cache(self, cache: CacheClient | None, key: str, page: ProductListResponse) -> None:
        if cache is None:
            return
        try:
            cache.set(key, page.model_dump_json(by_alias=True), self.ttl_seconds)
        except Exception as exc:
            logger.warning("Listing cache write failed: %s", exc)

    def shape_page(self, rows: list[dict[str, Any]], page_size: int) -> ProductListResponse:
        has_more = len(rows) > page_size
        rows = rows[:page_size]

        products = [
            ProductListItem(
                id=row["id"],
                name=row["name"],
                slug=row["slug"],
                category_id=row["category_id"],
                base_price=row["base_price"],
                base_stock=row["base_stock"],
                effective_price=row["effective_price"],
                thumbnail=resolve_media_url(row["thumbnail_key"], row["thumbnail"], self.media_base),
                afterimage=resolve_media_url(row["afterimage_key"], row["afterimage"], self.media_base),
                created_at=row["created_at"],
            )
            for row in rows
        ]

        next_cursor = products[-1].id if has_more and products else None
        return ProductListResponse(products=products, next_cursor=next_cursor, has_more=has_more)

    def list_products(
        self,
        session: Session,
        raw_filters: Mapping[str, Any] | ProductFilters | None,
        cache: CacheClient | None = None,
    ) -> ProductListResponse:
        filters = normalize_filters(raw_filters)
        key = build_cache_key(filters)

        cached = self._read_cache(cache, key)
        if cached is not None:
            logger.debug("Listing cache hit %s", key)
            return cached

        query = build_products_query(filters)
        rows = self.repo.fetch_listing(session, query.statement)
        page = self.shape_page(rows, query.page_size)

        self._write_cache(cache, key, page)
        return page
