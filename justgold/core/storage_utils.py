# justgold/core/storage_utils.py
import logging
import re
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable
from urllib.parse import urlsplit

from justgold.core.config import get_settings
from justgold.core.supabase_client import supabase_admin

logger = logging.getLogger(__name__)

# Path marker used by legacy media URLs, e.g.
#   https://host/<account>/image/upload/v12345/folder/file.jpg
UPLOAD_MARKER = "/upload/"

_VERSION_SEGMENT = re.compile(r"^v\d+$")

# Upper bound on concurrent delete calls per batch
MAX_DELETE_WORKERS = 8

FOLDERS: dict[str, str] = {
    "image": "products/images",
    "video": "products/videos",
    "variant": "products/variants",
}


@dataclass(frozen=True)
class MediaUpload:
    """Result of storing one object: public URL + bucket key."""

    url: str
    key: str


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4.

    Args:
        ext: File extension without dot (e.g. "png", "jpg")

    Returns:
        A filename like "<uuid4>.png"
    """
    return f"{uuid.uuid4()}.{ext}"


def extract_storage_key(
    url: Any,
    markers: Iterable[str] = (UPLOAD_MARKER,),
) -> str | None:
    """
    Given a media URL, extract the object key that follows a path marker.

    Example:
        https://host/upload/v12345/folder/file.jpg -> 'folder/file.jpg'

    The query string is ignored and a `v<digits>` version segment directly
    after the marker is dropped. Returns None when the input is not a string,
    is not a URL, or contains none of the markers. Never raises.
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None

    if not parts.scheme or not parts.netloc:
        return None

    path = parts.path
    for marker in markers:
        idx = path.find(marker)
        if idx == -1:
            continue
        segments = [s for s in path[idx + len(marker):].split("/") if s]
        if segments and _VERSION_SEGMENT.match(segments[0]):
            segments = segments[1:]
        key = "/".join(segments)
        return key or None

    return None


def resolve_media_url(key: str | None, legacy_url: str | None, base_url: str) -> str | None:
    """
    Prefer the content-addressed key (resolved against base_url),
    fall back to the legacy URL stored next to it.
    """
    if key:
        return f"{base_url.rstrip('/')}/{key.lstrip('/')}"
    return legacy_url or None


def storage_markers(bucket_name: str) -> tuple[str, ...]:
    """Path markers that precede the object key in this bucket's URLs."""
    return (f"/object/public/{bucket_name}/", UPLOAD_MARKER)


def _looks_like_url(value: str) -> bool:
    return "://" in value


class MediaStore:
    """
    Thin wrapper around a Supabase Storage bucket.

    The bucket object only needs three calls: upload(path, bytes, options),
    remove([paths]) and get_public_url(path).
    """

    def __init__(self, bucket: Any, bucket_name: str):
        self.bucket = bucket
        self.bucket_name = bucket_name

    @property
    def markers(self) -> tuple[str, ...]:
        return storage_markers(self.bucket_name)

    def key_for(self, key_or_url: str | None) -> str | None:
        if not key_or_url:
            return None
        if _looks_like_url(key_or_url):
            return extract_storage_key(key_or_url, self.markers)
        return key_or_url.strip("/") or None

    def upload(
        self,
        data: bytes,
        folder: str,
        resource_type: str = "image",
        content_type: str | None = None,
        ext: str = "bin",
    ) -> MediaUpload:
        """
        Upload raw bytes under <folder>/<uuid>.<ext> and return URL + key.

        Raises:
            Any exception raised by the Supabase client if upload fails.
        """
        key = f"{folder.strip('/')}/{generate_filename(ext)}"
        options = {"upsert": "true"}
        if content_type:
            options["content-type"] = content_type

        self.bucket.upload(key, data, options)
        url = self.bucket.get_public_url(key)
        logger.debug("Uploaded %s (%s, %d bytes)", key, resource_type, len(data))
        return MediaUpload(url=url, key=key)

    def delete_by_key(self, key_or_url: str | None) -> bool:
        """
        Delete one object. Accepts a bucket key or a public URL.

        Returns False (ignored) when no key can be derived.
        """
        key = self.key_for(key_or_url)
        if not key:
            logger.debug("Skipping media delete, no key in %r", key_or_url)
            return False
        self.bucket.remove([key])
        return True

    def delete_many(self, refs: Iterable[str]) -> list[bool | Exception]:
        """
        Fan out one delete per reference and collect every outcome.

        A failed deletion is logged and returned as its exception; it never
        stops the other deletions.
        """
        unique = list(dict.fromkeys(r for r in refs if r))
        if not unique:
            return []

        def _delete(ref: str) -> bool | Exception:
            try:
                return self.delete_by_key(ref)
            except Exception as exc:
                logger.warning("Media delete failed for %s: %s", ref, exc)
                return exc

        workers = min(MAX_DELETE_WORKERS, len(unique))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(_delete, unique))

        failed = sum(1 for r in results if isinstance(r, Exception))
        if failed:
            logger.warning("Media batch delete: %d of %d failed", failed, len(unique))
        return results


@lru_cache
def get_media_store() -> MediaStore:
    """
    FastAPI dependency returning the process-wide media store.
    """
    settings = get_settings()
    bucket = supabase_admin().storage.from_(settings.MEDIA_BUCKET)
    return MediaStore(bucket, settings.MEDIA_BUCKET)
