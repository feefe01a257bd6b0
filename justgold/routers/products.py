# justgold/routers/products.py
import re

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from justgold.core.auth import require_admin
from justgold.core.cache import CacheClient, get_cache
from justgold.core.config import get_settings
from justgold.core.exceptions import FormDecodeError
from justgold.core.storage_utils import MediaStore, get_media_store
from justgold.database import get_session
from justgold.repositories.category_repo import CategoryRepository
from justgold.repositories.product_repo import ProductRepository
from justgold.routers.product_form import decode_product_form
from justgold.schemas.product import ProductDeleted, ProductListResponse, ProductRead
from justgold.schemas.uploads import ProductForm
from justgold.services.listing_service import ProductListingService
from justgold.services.product_service import ProductService

settings = get_settings()

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
category_repo = CategoryRepository()
service = ProductService(repo, category_repo, settings.media_public_base)
listing = ProductListingService(repo, settings.media_public_base, settings.CACHE_TTL_SECONDS)

PRODUCT_REF = re.compile(r"^(\d+)(?:-(.*))?$")


async def _read_product_form(request: Request) -> ProductForm:
    form = await request.form()
    try:
        return await decode_product_form(form)
    except FormDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "field": exc.field},
        ) from exc
    finally:
        await form.close()


# -------- Public endpoints --------


@router.get(
    "",
    response_model=ProductListResponse,
    response_model_by_alias=True,
)
def list_products(
    session: Session = Depends(get_session),
    cache: CacheClient = Depends(get_cache),
    category_id: str | None = Query(default=None, alias="categoryId"),
    min_price: str | None = Query(default=None, alias="minPrice"),
    max_price: str | None = Query(default=None, alias="maxPrice"),
    color: str | None = None,
    size: str | None = None,
    sort: str | None = None,
    cursor: str | None = None,
):
    """
    Storefront listing with filters, sorting and keyset pagination.

    - Public endpoint.
    - Unparseable numeric filters are ignored rather than rejected.
    - Pass `nextCursor` from the previous page as `cursor`.
    """
    raw = {
        "categoryId": category_id,
        "minPrice": min_price,
        "maxPrice": max_price,
        "color": color,
        "size": size,
        "sort": sort,
        "cursor": cursor,
    }
    return listing.list_products(session, raw, cache)


@router.get("/{product_ref}", response_model=ProductRead)
def get_product(
    product_ref: str,
    session: Session = Depends(get_session),
):
    """
    Product detail by `{id}-{slug}`.

    A missing or stale slug answers 301 to the canonical path so old links
    keep working after a rename.
    """
    match = PRODUCT_REF.match(product_ref)
    if match is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    product = service.get_product(session, int(match.group(1)))
    if match.group(2) != product.slug:
        return RedirectResponse(
            url=f"{settings.API_V1_STR}{router.prefix}/{product.id}-{product.slug}",
            status_code=status.HTTP_301_MOVED_PERMANENTLY,
        )
    return service.build_product_read(session, product)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_product(
    request: Request,
    session: Session = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
    cache: CacheClient = Depends(get_cache),
):
    """
    Create a product with variants and media (admin only).

    multipart/form-data; see `decode_product_form` for the accepted fields.
    """
    form = await _read_product_form(request)
    return await run_in_threadpool(service.create_product, session, form, media, cache)


@router.put(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
async def update_product(
    product_id: int,
    request: Request,
    session: Session = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
    cache: CacheClient = Depends(get_cache),
):
    """
    Partial update (admin only). Fields left out or sent empty keep their
    current value; variants with an `id` are updated, others inserted.
    """
    form = await _read_product_form(request)
    return await run_in_threadpool(
        service.update_product, session, product_id, form, media, cache
    )


@router.delete(
    "/{product_id}",
    response_model=ProductDeleted,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
    cache: CacheClient = Depends(get_cache),
):
    """
    Delete a product, its variants and gallery (admin only).

    - Storage objects are removed after the database commit (best-effort).
    """
    return service.delete_product(session, product_id, media, cache)
