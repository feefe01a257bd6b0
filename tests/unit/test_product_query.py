import math

import pytest

from justgold.services.product_query import (
    CACHE_PREFIX,
    DEFAULT_SORT,
    PAGE_SIZE,
    ProductFilters,
    build_cache_key,
    build_products_query,
    normalize_filters,
)


FILTER_INPUTS = [
    {},
    {"categoryId": "3", "minPrice": "10", "maxPrice": "99.5", "color": " Red ", "size": "M1"},
    {"categoryId": "", "minPrice": "", "maxPrice": None, "color": "", "size": "  "},
    {"minPrice": "abc", "maxPrice": "NaN", "cursor": "inf", "sort": "bogus"},
    {"category_id": 4, "min_price": 0, "sort": "price_high", "cursor": 17},
    {"cursor": "-5", "sort": "popular"},
    {"minPrice": True},
]


@pytest.mark.parametrize("raw", FILTER_INPUTS)
def test_normalize_is_idempotent(raw):
    once = normalize_filters(raw)
    assert normalize_filters(once) == once


def test_blank_numeric_filters_become_none_not_zero():
    f = normalize_filters({"categoryId": "", "minPrice": "", "maxPrice": None, "cursor": ""})
    assert f.category_id is None
    assert f.min_price is None
    assert f.max_price is None
    assert f.cursor is None


def test_non_numeric_and_non_finite_values_are_dropped():
    f = normalize_filters({"minPrice": "abc", "maxPrice": "Infinity", "categoryId": "NaN"})
    assert f == ProductFilters()


def test_zero_is_kept_as_a_real_price():
    f = normalize_filters({"minPrice": "0"})
    assert f.min_price == 0


def test_integral_strings_normalize_to_int():
    f = normalize_filters({"maxPrice": "10.0", "categoryId": "7"})
    assert f.max_price == 10 and isinstance(f.max_price, int)
    assert f.category_id == 7


def test_unknown_sort_falls_back_to_default():
    assert normalize_filters({"sort": "cheapest"}).sort == DEFAULT_SORT
    assert normalize_filters({"sort": "price_low"}).sort == "price_low"


def test_non_positive_cursor_means_first_page():
    assert normalize_filters({"cursor": "0"}).cursor is None
    assert normalize_filters({"cursor": "-3"}).cursor is None


def test_text_filters_are_trimmed():
    f = normalize_filters({"color": "  rose gold ", "size": " "})
    assert f.color == "rose gold"
    assert f.size is None


# ----- cache keys -----


def test_cache_key_for_empty_filters_uses_sentinels():
    assert build_cache_key({}) == (
        "products:cat:all|min:none|max:none|color:all|size:all|sort:newest|cursor:0"
    )


def test_semantically_equal_filters_share_a_key():
    a = build_cache_key({"categoryId": "3", "minPrice": "10.0", "color": " red "})
    b = build_cache_key({"category_id": 3, "min_price": 10, "color": "red", "sort": "nope"})
    assert a == b


@pytest.mark.parametrize(
    "change",
    [
        {"categoryId": 4},
        {"minPrice": 1},
        {"maxPrice": 500},
        {"color": "red"},
        {"size": "M2"},
        {"sort": "price_low"},
        {"cursor": 40},
    ],
)
def test_any_single_field_changes_the_key(change):
    base = {"categoryId": 3}
    assert build_cache_key(base) != build_cache_key({**base, **change})


def test_cache_key_escapes_delimiters_in_text():
    key = build_cache_key({"color": "red|size:XL"})
    assert key.startswith(CACHE_PREFIX)
    assert key.count("|") == 6
    assert build_cache_key({"color": "red|size:XL"}) != build_cache_key({"color": "red", "size": "XL"})


# ----- query builder -----


def test_base_query_filters_active_and_overfetches():
    q = build_products_query({})
    text = q.query_text
    assert "products.is_active" in text
    assert "coalesce" in text.lower()
    assert "min(product_variants.price)" in text.lower()
    assert q.page_size == PAGE_SIZE
    assert PAGE_SIZE + 1 in q.bound_values.values()


def test_category_filter_matches_category_or_parent():
    q = build_products_query({"categoryId": 5})
    text = q.query_text
    assert "categories.parent_id" in text
    assert "EXISTS" in text
    assert list(q.bound_values.values()).count(5) == 2


def test_price_bounds_are_bound_parameters():
    q = build_products_query({"minPrice": "100", "maxPrice": "250.5"})
    values = q.bound_values.values()
    assert 100 in values
    assert 250.5 in values
    assert "250.5" not in q.query_text


def test_color_filter_is_parameterized_and_escaped():
    q = build_products_query({"color": "50%_off'; DROP TABLE products; --"})
    assert "DROP TABLE" not in q.query_text
    assert "ILIKE" in q.query_text.upper()
    assert "%50\\%\\_off'; DROP TABLE products; --%" in q.bound_values.values()


def test_size_filter_is_exact_match():
    q = build_products_query({"size": "JG-01"})
    assert "pv_size.variant_model_no" in q.query_text
    assert "JG-01" in q.bound_values.values()


@pytest.mark.parametrize(
    "sort, op, direction",
    [
        ("price_low", ">", "ASC"),
        ("price_high", "<", "DESC"),
        ("newest", "<", "DESC"),
        ("popular", "<", "DESC"),
    ],
)
def test_cursor_direction_follows_sort(sort, op, direction):
    q = build_products_query({"sort": sort, "cursor": 12})
    text = q.query_text
    assert f"products.id {op} " in text
    assert f"products.id {direction}" in text
    assert 12 in q.bound_values.values()


def test_custom_page_size():
    q = build_products_query({}, page_size=5)
    assert q.page_size == 5
    assert 6 in q.bound_values.values()
    assert not any(isinstance(v, float) and math.isnan(v) for v in q.bound_values.values())


@pytest.mark.parametrize("field", ["color", "size"])
@pytest.mark.parametrize("literal", ["all", "none", "0"])
def test_literal_sentinel_text_never_matches_an_absent_filter(field, literal):
    assert build_cache_key({field: literal}) != build_cache_key({})


@pytest.mark.parametrize(
    "raw",
    ["99999999999999999999", 2**63, "-9223372036854775809", "1e30"],
)
def test_numbers_beyond_64_bits_are_ignored(raw):
    f = normalize_filters({"categoryId": raw, "minPrice": raw, "cursor": raw})
    assert f.category_id is None
    assert f.min_price is None
    assert f.cursor is None


def test_largest_64_bit_id_is_kept():
    assert normalize_filters({"categoryId": str(2**63 - 1)}).category_id == 2**63 - 1
