# justgold/routers/product_form.py
import json
from typing import Any

from pydantic import ValidationError
from starlette.datastructures import FormData, UploadFile

from justgold.core.exceptions import FormDecodeError
from justgold.schemas.product import ProductFields, VariantPayload
from justgold.schemas.uploads import ProductForm, UploadedFile, VariantUploads

MAX_VARIANTS = 20
MAX_GALLERY_FILES = 6

SCALAR_FIELDS = (
    "name",
    "description",
    "base_price",
    "base_stock",
    "category_id",
    "model_no",
    "how_to_apply",
    "benefits",
    "key_features",
    "ingredients",
    "is_active",
)


async def _read_file(field: str, value: Any) -> UploadedFile | None:
    # browsers send an empty part for an untouched <input type="file">
    if not isinstance(value, UploadFile):
        return None
    data = await value.read()
    if not data and not value.filename:
        return None
    return UploadedFile(
        field=field,
        filename=value.filename or "",
        content_type=value.content_type or "",
        data=data,
    )


async def _single_file(form: FormData, field: str) -> UploadedFile | None:
    for value in form.getlist(field):
        upload = await _read_file(field, value)
        if upload is not None:
            return upload
    return None


def _json_list(form: FormData, field: str) -> list[Any]:
    raw = form.get(field)
    if raw is None or isinstance(raw, UploadFile) or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise FormDecodeError(f"Field '{field}' is not valid JSON", field=field) from exc
    if not isinstance(value, list):
        raise FormDecodeError(f"Field '{field}' must be a JSON array", field=field)
    return value


def _id_list(form: FormData, field: str) -> list[int]:
    ids: list[int] = []
    for item in _json_list(form, field):
        if isinstance(item, bool):
            raise FormDecodeError(f"Field '{field}' must contain integer ids", field=field)
        try:
            ids.append(int(item))
        except (TypeError, ValueError) as exc:
            raise FormDecodeError(f"Field '{field}' must contain integer ids", field=field) from exc
    return ids


def _scalar_fields(form: FormData) -> ProductFields:
    data: dict[str, str] = {}
    for name in SCALAR_FIELDS:
        value = form.get(name)
        if isinstance(value, str):
            data[name] = value

    # admin clients pick the leaf category from a "subcategory" control
    if not (data.get("category_id") or "").strip():
        sub = form.get("subcategory_id")
        if isinstance(sub, str) and sub.strip():
            data["category_id"] = sub

    try:
        return ProductFields.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        raise FormDecodeError(f"Invalid value for '{field}': {first['msg']}", field=field) from exc


def _variants(form: FormData) -> list[VariantPayload]:
    raw = _json_list(form, "variants")
    if len(raw) > MAX_VARIANTS:
        raise FormDecodeError(f"At most {MAX_VARIANTS} variants are allowed", field="variants")

    variants: list[VariantPayload] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise FormDecodeError(f"Variant {index + 1}: must be a JSON object", field="variants")
        try:
            variants.append(VariantPayload.from_raw(item))
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = ".".join(str(p) for p in first.get("loc", ()))
            raise FormDecodeError(
                f"Variant {index + 1}: invalid '{loc}': {first['msg']}", field="variants"
            ) from exc
    return variants


async def decode_product_form(form: FormData) -> ProductForm:
    """
    Decode a create/update multipart request into a ProductForm.

    Raises:
        FormDecodeError: malformed JSON arrays, invalid scalar values,
        too many variants or gallery files.
    """
    variants = _variants(form)

    variant_uploads = [
        VariantUploads(
            index=i,
            color=await _single_file(form, f"color_{i}"),
            main_image=await _single_file(form, f"variant_main_image_{i}"),
            secondary_image=await _single_file(form, f"variant_secondary_image_{i}"),
        )
        for i in range(len(variants))
    ]

    gallery: list[UploadedFile] = []
    for field in ("gallery", "media"):
        for value in form.getlist(field):
            upload = await _read_file(field, value)
            if upload is not None:
                gallery.append(upload)
    if len(gallery) > MAX_GALLERY_FILES:
        raise FormDecodeError(
            f"At most {MAX_GALLERY_FILES} gallery files are allowed", field="gallery"
        )

    return ProductForm(
        fields=_scalar_fields(form),
        variants=variants,
        variant_uploads=variant_uploads,
        delete_media_ids=_id_list(form, "delete_media_ids"),
        delete_variant_ids=_id_list(form, "delete_variant_ids"),
        thumbnail=await _single_file(form, "thumbnail"),
        afterimage=await _single_file(form, "afterimage"),
        gallery=gallery,
        video=await _single_file(form, "video"),
    )
