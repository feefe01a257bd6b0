# justgold/services/product_query.py
"""
Product listing filters, cache keys and the listing query.

Everything here is pure: no session, no cache, no I/O. The listing service
feeds raw query parameters through normalize_filters() once and derives both
the cache key and the SQL statement from the same normalized record, so the
two can never disagree about which filters are active.
"""
import math
from dataclasses import asdict, dataclass
from typing import Any, Mapping
from urllib.parse import quote

from sqlalchemy import Select, exists, func, or_, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import aliased

from justgold.models.category import Category
from justgold.models.product import Product, ProductVariant

PAGE_SIZE = 20

# sort name -> (column, direction)
SORT_OPTIONS: dict[str, tuple[str, str]] = {
    "price_low": ("effective_price", "asc"),
    "price_high": ("effective_price", "desc"),
    "newest": ("created_at", "desc"),
    "popular": ("base_stock", "desc"),
}

DEFAULT_SORT = "newest"

CACHE_PREFIX = "products:"

# bound values must fit a BIGINT column on every supported engine
INT_MIN, INT_MAX = -(2**63), 2**63 - 1


@dataclass(frozen=True)
class ProductFilters:
    """Canonical listing filters. Absent filters are None."""

    category_id: int | float | None = None
    min_price: int | float | None = None
    max_price: int | float | None = None
    color: str | None = None
    size: str | None = None
    sort: str = DEFAULT_SORT
    cursor: int | float | None = None


# raw key -> accepted spellings (query string uses camelCase)
_ALIASES: dict[str, tuple[str, ...]] = {
    "category_id": ("categoryId", "category_id"),
    "min_price": ("minPrice", "min_price"),
    "max_price": ("maxPrice", "max_price"),
    "color": ("color",),
    "size": ("size",),
    "sort": ("sort",),
    "cursor": ("cursor",),
}


def _pick(raw: Mapping[str, Any], field: str) -> Any:
    for name in _ALIASES[field]:
        if name in raw:
            return raw[name]
    return None


def _to_number(raw: Any) -> int | float | None:
    """
    None / "" / non-numeric / non-finite / beyond 64 bits -> None. Never 0
    by accident. Integral values come back as int so 10 and "10.0" compare
    equal.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, int):
        return _in_range(raw)

    if isinstance(raw, float):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return _in_range(int(text))
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(value):
        return None
    if value.is_integer():
        return _in_range(int(value))
    return value


def _in_range(value: int) -> int | None:
    return value if INT_MIN <= value <= INT_MAX else None


def _to_text(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def normalize_filters(raw: Mapping[str, Any] | ProductFilters | None) -> ProductFilters:
    """
    Sanitize raw query parameters into a ProductFilters record.

    Idempotent: normalize_filters(normalize_filters(x)) == normalize_filters(x).
    """
    if raw is None:
        raw = {}
    elif isinstance(raw, ProductFilters):
        raw = asdict(raw)

    sort = _to_text(_pick(raw, "sort"))
    if sort not in SORT_OPTIONS:
        sort = DEFAULT_SORT

    cursor = _to_number(_pick(raw, "cursor"))
    # ids start at 1: a non-positive cursor means "first page"
    if cursor is not None and cursor <= 0:
        cursor = None

    return ProductFilters(
        category_id=_to_number(_pick(raw, "category_id")),
        min_price=_to_number(_pick(raw, "min_price")),
        max_price=_to_number(_pick(raw, "max_price")),
        color=_to_text(_pick(raw, "color")),
        size=_to_text(_pick(raw, "size")),
        sort=sort,
        cursor=cursor,
    )


def _key_part(value: Any, sentinel: str) -> str:
    if value is None:
        return sentinel
    if isinstance(value, str):
        # "=" keeps a literal "all" apart from the sentinel; quoting keeps
        # the "|" / ":" delimiters unambiguous
        return "=" + quote(value, safe="")
    return str(value)


def build_cache_key(filters: Mapping[str, Any] | ProductFilters | None) -> str:
    """
    Deterministic cache key covering every filter field, in a fixed order.

    Any field added to ProductFilters must be added here too.
    """
    f = normalize_filters(filters)
    parts = [
        f"cat:{_key_part(f.category_id, 'all')}",
        f"min:{_key_part(f.min_price, 'none')}",
        f"max:{_key_part(f.max_price, 'none')}",
        f"color:{_key_part(f.color, 'all')}",
        f"size:{_key_part(f.size, 'all')}",
        f"sort:{f.sort}",
        f"cursor:{_key_part(f.cursor, '0')}",
    ]
    return CACHE_PREFIX + "|".join(parts)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def effective_price_expr():
    """
    COALESCE(<cheapest priced variant>, base_price) for the outer Product row.

    MIN() skips NULL prices, so a product whose variants carry no price of
    their own falls back to its base price.
    """
    cheapest = (
        select(func.min(ProductVariant.price))
        .where(ProductVariant.product_id == Product.id)
        .correlate(Product)
        .scalar_subquery()
    )
    return func.coalesce(cheapest, Product.base_price)


@dataclass(frozen=True)
class ProductQuery:
    statement: Select
    page_size: int
    sort: str

    def _compiled(self):
        return self.statement.compile(dialect=postgresql.dialect())

    @property
    def query_text(self) -> str:
        return str(self._compiled())

    @property
    def bound_values(self) -> dict[str, Any]:
        return dict(self._compiled().params)


def build_products_query(
    raw_filters: Mapping[str, Any] | ProductFilters | None = None,
    page_size: int = PAGE_SIZE,
) -> ProductQuery:
    """
    Compile filters into a parameterized listing query.

    - active products only
    - category: the category itself or any of its direct subcategories
    - min/max price against the effective price
    - color: case-insensitive substring of any variant's shade or color_type
    - size: exact variant_model_no of any variant
    - keyset cursor on product id, direction following the sort
    - one extra row is fetched to detect a next page
    """
    filters = normalize_filters(raw_filters)
    price = effective_price_expr()
    effective_price = price.label("effective_price")

    conditions = [Product.is_active == True]  # noqa: E712

    if filters.category_id is not None:
        conditions.append(
            exists().where(
                Category.id == Product.category_id,
                or_(
                    Category.id == filters.category_id,
                    Category.parent_id == filters.category_id,
                ),
            )
        )

    if filters.min_price is not None:
        conditions.append(price >= filters.min_price)

    if filters.max_price is not None:
        conditions.append(price <= filters.max_price)

    if filters.color:
        pv_color = aliased(ProductVariant, name="pv_color")
        pattern = f"%{_escape_like(filters.color)}%"
        conditions.append(
            exists().where(
                pv_color.product_id == Product.id,
                or_(
                    pv_color.shade.ilike(pattern, escape="\\"),
                    pv_color.color_type.ilike(pattern, escape="\\"),
                ),
            )
        )

    if filters.size:
        pv_size = aliased(ProductVariant, name="pv_size")
        conditions.append(
            exists().where(
                pv_size.product_id == Product.id,
                pv_size.variant_model_no == filters.size,
            )
        )

    column, direction = SORT_OPTIONS[filters.sort]
    ascending = direction == "asc"

    if filters.cursor is not None:
        if ascending:
            conditions.append(Product.id > filters.cursor)
        else:
            conditions.append(Product.id < filters.cursor)

    sort_column = effective_price if column == "effective_price" else getattr(Product, column)
    if ascending:
        order_by = (sort_column.asc(), Product.id.asc())
    else:
        order_by = (sort_column.desc(), Product.id.desc())

    stmt = (
        select(
            Product.id,
            Product.name,
            Product.slug,
            Product.category_id,
            Product.base_price,
            Product.base_stock,
            Product.thumbnail,
            Product.thumbnail_key,
            Product.afterimage,
            Product.afterimage_key,
            Product.created_at,
            effective_price,
        )
        .where(*conditions)
        .order_by(*order_by)
        .limit(page_size + 1)
    )

    return ProductQuery(statement=stmt, page_size=page_size, sort=filters.sort)
