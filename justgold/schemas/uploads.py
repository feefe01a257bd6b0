# justgold/schemas/uploads.py
from dataclasses import dataclass, field

from justgold.schemas.product import ProductFields, VariantPayload


@dataclass(frozen=True)
class UploadedFile:
    """File part of a multipart request, already read into memory."""

    field: str
    filename: str
    content_type: str
    data: bytes


@dataclass
class VariantUploads:
    """Files attached to the variant at the same index of `variants`."""

    index: int
    color: UploadedFile | None = None
    main_image: UploadedFile | None = None
    secondary_image: UploadedFile | None = None


@dataclass
class ProductForm:
    """
    Typed view of a create/update multipart request.

    Indexed form fields (color_0, variant_main_image_3, ...) are decoded once
    into `variant_uploads`, which always has one entry per submitted variant.
    """

    fields: ProductFields
    variants: list[VariantPayload] = field(default_factory=list)
    variant_uploads: list[VariantUploads] = field(default_factory=list)
    delete_media_ids: list[int] = field(default_factory=list)
    delete_variant_ids: list[int] = field(default_factory=list)
    thumbnail: UploadedFile | None = None
    afterimage: UploadedFile | None = None
    gallery: list[UploadedFile] = field(default_factory=list)
    video: UploadedFile | None = None

    def uploads_for(self, index: int) -> VariantUploads:
        if 0 <= index < len(self.variant_uploads):
            return self.variant_uploads[index]
        return VariantUploads(index=index)
