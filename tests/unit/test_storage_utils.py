import pytest

from justgold.core.storage_utils import (
    FOLDERS,
    extract_storage_key,
    resolve_media_url,
)

from tests.mocks.mock_storage import PUBLIC_BASE, MockBucket, make_media_store


def test_extracts_key_after_upload_marker_and_version():
    assert extract_storage_key("https://host/upload/v12345/folder/file.jpg") == "folder/file.jpg"


def test_key_without_version_segment():
    assert extract_storage_key("https://host/x/image/upload/folder/file.jpg") == "folder/file.jpg"


def test_query_string_is_ignored():
    assert extract_storage_key("https://host/upload/v1/a/b.png?width=200") == "a/b.png"


@pytest.mark.parametrize(
    "value",
    [
        "https://host/images/folder/file.jpg",
        "not a url",
        "/upload/v1/folder/file.jpg",
        "https://host/upload/",
        "",
        None,
        42,
        "http://[::1",
    ],
)
def test_unrecognized_input_yields_no_key(value):
    assert extract_storage_key(value) is None


def test_supabase_public_url_marker():
    store = make_media_store()
    url = f"{PUBLIC_BASE}/products/images/abc.png"
    assert store.key_for(url) == "products/images/abc.png"
    assert store.key_for("products/images/abc.png") == "products/images/abc.png"


def test_resolve_prefers_key_over_legacy_url():
    assert resolve_media_url("a/b.png", "https://old/x.png", "https://cdn/") == "https://cdn/a/b.png"
    assert resolve_media_url(None, "https://old/x.png", "https://cdn") == "https://old/x.png"
    assert resolve_media_url("", "", "https://cdn") is None


def test_upload_stores_under_folder_and_returns_url_and_key():
    bucket = MockBucket()
    store = make_media_store(bucket)

    stored = store.upload(b"png-bytes", FOLDERS["image"], content_type="image/png", ext="png")

    assert stored.key.startswith("products/images/")
    assert stored.key.endswith(".png")
    assert stored.url == f"{PUBLIC_BASE}/{stored.key}"
    assert bucket.upload_calls[0]["options"]["content-type"] == "image/png"


def test_delete_by_key_ignores_unparseable_reference():
    bucket = MockBucket()
    store = make_media_store(bucket)

    assert store.delete_by_key("https://elsewhere.com/file.png") is False
    assert bucket.remove_calls == []


def test_delete_many_tolerates_partial_failure():
    bucket = MockBucket()
    bucket.fail_removes = {"products/images/b.png"}
    store = make_media_store(bucket)

    results = store.delete_many(
        [
            "products/images/a.png",
            "products/images/b.png",
            f"{PUBLIC_BASE}/products/images/c.png",
            "products/images/a.png",
        ]
    )

    assert len(results) == 3
    assert sum(isinstance(r, Exception) for r in results) == 1
    assert sorted(bucket.removed) == [
        "products/images/a.png",
        "products/images/b.png",
        "products/images/c.png",
    ]
