# happytails/models/product.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Pet accessory in the catalog.

    Prices and stock live on ProductVariant; a product always has at
    least one variant (enforced by the create/update schemas).
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    vendor_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
        description="Store partner that owns the product",
    )

    name: str = Field(
        max_length=150,
        min_length=2,
        index=True,
    )

    description: str | None = None

    category: str = Field(
        max_length=50,
        index=True,
        description="e.g. Dog, Cat, Bird",
    )

    product_type: str | None = Field(
        default=None,
        max_length=50,
        description="e.g. Collar, Toy, Bed",
    )

    brand: str | None = Field(default=None, max_length=100)

    sku: str | None = Field(
        default=None,
        max_length=50,
        description="SKU prefix shared by the variants",
    )

    image_url: str | None = Field(
        default=None,
        description="Primary image URL",
    )

    is_deleted: bool = Field(default=False, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class ProductVariant(SQLModel, table=True):
    """
    Purchasable (size, color) combination of a product.

    Either dimension may be NULL when the product does not vary on it.
    sale_price, when set, is the effective price.
    """

    __tablename__ = "product_variants"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    size: str | None = Field(default=None, max_length=20)
    color: str | None = Field(default=None, max_length=30)

    regular_price: float = Field(gt=0)
    sale_price: float | None = Field(default=None, gt=0)

    stock_quantity: int = Field(default=0, ge=0)

    sku: str | None = Field(default=None, max_length=60)

    # declaration order within the product; variants[0] is the default pick
    position: int = Field(default=0, ge=0)
