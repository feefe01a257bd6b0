# justgold/models/product.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field

# Media columns come in (legacy URL, storage key) pairs. The key is
# preferred when building display links; the URL is kept for rows written
# before keys existed.


class Product(SQLModel, table=True):
    """
    Product catalog entry.

      - id, name, slug, description, base_price, base_stock, category_id,
        model_no, rich-text fields, thumbnail/afterimage pairs,
        is_active, created_at
    """

    __tablename__ = "products"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description / HTML",
    )

    base_price: float = Field(
        ge=0,
        description="Price used when a variant has no price of its own",
    )

    base_stock: int = Field(
        default=30,
        description="Product-level stock, also used as the popularity sort key",
    )

    category_id: int | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    model_no: str | None = Field(default=None, max_length=100)

    how_to_apply: str | None = None
    benefits: str | None = None
    key_features: str | None = None
    ingredients: str | None = None

    thumbnail: str | None = Field(default=None, max_length=500)
    thumbnail_key: str | None = Field(default=None, max_length=500)
    afterimage: str | None = Field(default=None, max_length=500)
    afterimage_key: str | None = Field(default=None, max_length=500)

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class ProductVariant(SQLModel, table=True):
    """
    Shade / size of a product with its own stock, price and swatch.
    """

    __tablename__ = "product_variants"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    product_id: int = Field(
        foreign_key="products.id",
        index=True,
    )

    shade: str | None = Field(default=None, max_length=150)
    color_type: str | None = Field(default=None, max_length=150)

    # hex | gradient | image
    color_panel_type: str | None = Field(default=None, max_length=20)
    color_panel_value: str | None = Field(default=None, max_length=500)

    stock: int = Field(default=0)

    main_image: str | None = Field(default=None, max_length=500)
    main_image_key: str | None = Field(default=None, max_length=500)
    secondary_image: str | None = Field(default=None, max_length=500)
    secondary_image_key: str | None = Field(default=None, max_length=500)

    price: float | None = Field(
        default=None,
        description="NULL means the product base_price applies",
    )
    discount_price: float | None = None

    variant_model_no: str | None = Field(default=None, max_length=100, index=True)


class ProductImage(SQLModel, table=True):
    """
    Gallery entry for a product (image or video).
    """

    __tablename__ = "product_images"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    product_id: int = Field(
        foreign_key="products.id",
        index=True,
        description="FK to products.id",
    )

    image_url: str = Field(
        max_length=500,
        description="Public URL in media storage",
    )

    image_key: str | None = Field(default=None, max_length=500)

    # image | video
    media_type: str = Field(default="image", max_length=10)
