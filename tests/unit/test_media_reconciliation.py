from justgold.core.storage_utils import MediaUpload
from justgold.models.product import Product, ProductImage, ProductVariant
from justgold.services.media_reconciliation import (
    MediaReconciler,
    gallery_media_refs,
    product_media_refs,
    variant_media_refs,
)

from tests.mocks.mock_storage import PUBLIC_BASE, MockBucket, make_media_store


def test_refs_prefer_key_over_url():
    product = Product(
        name="P",
        slug="p",
        base_price=1,
        thumbnail="https://legacy/upload/v1/t.png",
        thumbnail_key="products/images/t.png",
        afterimage="https://legacy/upload/v1/a.png",
    )
    assert product_media_refs(product) == ["products/images/t.png", "https://legacy/upload/v1/a.png"]


def test_variant_refs_include_image_colour_panel_only():
    image_panel = ProductVariant(
        product_id=1,
        main_image_key="products/variants/m.png",
        color_panel_type="image",
        color_panel_value=f"{PUBLIC_BASE}/products/variants/swatch.png",
    )
    hex_panel = ProductVariant(product_id=1, color_panel_type="hex", color_panel_value="#fff")

    assert variant_media_refs(image_panel) == [
        "products/variants/m.png",
        f"{PUBLIC_BASE}/products/variants/swatch.png",
    ]
    assert variant_media_refs(hex_panel) == []


def test_gallery_refs_skip_empty_rows():
    rows = [
        ProductImage(product_id=1, image_key="products/images/g1.png"),
        ProductImage(product_id=1, image_url=""),
    ]
    assert gallery_media_refs(rows) == ["products/images/g1.png"]


def test_queue_replaced_only_when_new_upload_given():
    bucket = MockBucket()
    reconciler = MediaReconciler(make_media_store(bucket))

    reconciler.queue_replaced("products/images/old.png", None, None)
    assert reconciler.pending == []

    reconciler.queue_replaced(
        "products/images/old.png", None, MediaUpload(url="u", key="products/images/new.png")
    )
    assert reconciler.pending == ["products/images/old.png"]


def test_flush_deletes_each_distinct_ref_once():
    bucket = MockBucket()
    reconciler = MediaReconciler(make_media_store(bucket))
    reconciler.queue("products/images/a.png", None, "products/images/a.png", "products/images/b.png")

    results = reconciler.flush()

    assert results == [True, True]
    assert sorted(bucket.removed) == ["products/images/a.png", "products/images/b.png"]
    assert reconciler.pending == []


def test_flush_survives_storage_failures():
    bucket = MockBucket()
    bucket.fail_removes = {"products/images/a.png"}
    reconciler = MediaReconciler(make_media_store(bucket))
    reconciler.queue("products/images/a.png", "products/images/b.png")

    results = reconciler.flush()

    assert isinstance(results[0], Exception)
    assert results[1] is True


def test_discard_uploads_removes_fresh_files_and_drops_queue():
    bucket = MockBucket()
    store = make_media_store(bucket)
    reconciler = MediaReconciler(store)
    upload = reconciler.track_upload(store.upload(b"x", "products/images", ext="png"))
    reconciler.queue("products/images/keep-me.png")

    reconciler.discard_uploads()

    assert bucket.removed == [upload.key]
    assert reconciler.pending == []
