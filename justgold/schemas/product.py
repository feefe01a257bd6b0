# justgold/schemas/product.py
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

MediaType = Literal["image", "video"]
ColorPanelType = Literal["hex", "gradient", "image"]


def _blank_to_none(v: Any) -> Any:
    """Form values arrive as strings; an empty one means 'not provided'."""
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class ProductFields(SQLModel):
    """
    Scalar product fields decoded from the multipart form.

    Every field is optional here: create checks the required ones, update
    only applies the ones that were provided (see patch_values()).
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    base_price: float | None = Field(default=None, ge=0)
    base_stock: int | None = Field(default=None, ge=0)
    category_id: int | None = None
    model_no: str | None = Field(default=None, max_length=100)
    how_to_apply: str | None = None
    benefits: str | None = None
    key_features: str | None = None
    ingredients: str | None = None
    is_active: bool | None = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def patch_values(self) -> dict[str, Any]:
        """Fields that were explicitly provided with a non-empty value."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


class VariantPayload(SQLModel):
    """
    One entry of the `variants` JSON array.

    - id present  -> update that variant in place
    - id missing  -> insert a new variant

    `color` is accepted as an alias of `shade` (older admin clients).
    """

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    shade: str | None = Field(default=None, max_length=150)
    color_type: str | None = Field(default=None, max_length=150)
    color_panel_type: str | None = None
    color_panel_value: str | None = None
    stock: int | None = Field(default=None, ge=0)
    price: float | None = Field(default=None, ge=0)
    discount_price: float | None = Field(default=None, ge=0)
    variant_model_no: str | None = Field(default=None, max_length=100)

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "VariantPayload":
        data = dict(raw)
        if "shade" not in data and "color" in data:
            data["shade"] = data.pop("color")
        return cls.model_validate(data)

    def patch_values(self) -> dict[str, Any]:
        """
        Column values to write on update: only fields that were provided and
        non-empty. The colour panel is resolved separately.
        """
        skip = {"id", "color_panel_type", "color_panel_value"}
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in skip and getattr(self, name) is not None
        }


# ----- Read models -----


class ColorPanelRead(SQLModel):
    type: ColorPanelType
    value: str


class VariantRead(SQLModel):
    id: int
    product_id: int
    shade: str | None
    color_type: str | None
    color_panel: ColorPanelRead | None
    stock: int
    price: float | None
    effective_price: float
    discount_price: float | None
    variant_model_no: str | None
    main_image: str | None
    secondary_image: str | None


class ProductMediaRead(SQLModel):
    id: int
    url: str | None
    media_type: MediaType


class CategoryRef(SQLModel):
    id: int
    name: str
    slug: str
    parent_id: int | None


class ProductRead(SQLModel):
    """
    Full product representation with variants and media.
    Media fields are resolved public URLs.
    """

    id: int
    name: str
    slug: str
    description: str | None
    base_price: float
    base_stock: int
    category_id: int | None
    category: CategoryRef | None = None
    model_no: str | None
    how_to_apply: str | None
    benefits: str | None
    key_features: str | None
    ingredients: str | None
    thumbnail: str | None
    afterimage: str | None
    is_active: bool
    created_at: datetime
    variants: list[VariantRead] = []
    media: list[ProductMediaRead] = []


class ProductListItem(SQLModel):
    id: int
    name: str
    slug: str
    category_id: int | None
    base_price: float
    base_stock: int
    effective_price: float
    thumbnail: str | None
    afterimage: str | None
    created_at: datetime


class ProductListResponse(SQLModel):
    """
    One page of the listing. Serialized as {products, nextCursor, hasMore}.
    """

    model_config = ConfigDict(populate_by_name=True)

    products: list[ProductListItem]
    next_cursor: int | None = Field(default=None, alias="nextCursor")
    has_more: bool = Field(default=False, alias="hasMore")


class ProductDeleted(SQLModel):
    message: str
    product_id: int
