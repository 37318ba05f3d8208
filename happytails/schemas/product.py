# happytails/schemas/product.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field


class VariantRead(SQLModel):
    """
    Variant representation for clients.
    """

    id: uuid.UUID
    size: str | None = None
    color: str | None = None
    regular_price: float
    sale_price: float | None = None
    stock_quantity: int
    sku: str | None = None


class VariantIn(SQLModel):
    """
    Variant payload used when (re)writing a product's variant list.

    Rules:
      - regular_price > 0
      - sale_price, when given, must not exceed regular_price
      - blank size/color are stored as NULL (absent dimension)
    """

    model_config = ConfigDict(extra="forbid")

    size: str | None = Field(default=None, max_length=20)
    color: str | None = Field(default=None, max_length=30)
    regular_price: float = Field(gt=0)
    sale_price: float | None = Field(default=None, gt=0)
    stock_quantity: int = Field(default=0, ge=0)
    sku: str | None = None

    @field_validator("size", "color", "sku")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def sale_not_above_regular(self) -> "VariantIn":
        if self.sale_price is not None and self.sale_price > self.regular_price:
            raise ValueError("sale_price must be less than or equal to regular_price")
        return self


class ProductRead(SQLModel):
    """
    Product with its variants, as returned by GET /products/product/{id}
    and the admin detail endpoint.
    """

    id: uuid.UUID
    vendor_id: uuid.UUID
    name: str
    description: str | None = None
    category: str
    product_type: str | None = None
    brand: str | None = None
    sku: str | None = None
    image_url: str | None = None
    created_at: datetime
    variants: list[VariantRead]


class ProductUpdate(SQLModel):
    """
    Admin PUT payload for a product.

    When `variants` is provided it replaces the whole variant list and must
    contain at least one entry.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=2, max_length=150)
    description: str | None = None
    category: str | None = Field(default=None, max_length=50)
    product_type: str | None = Field(default=None, max_length=50)
    brand: str | None = Field(default=None, max_length=100)
    sku: str | None = Field(default=None, max_length=50)
    image_url: str | None = None
    variants: list[VariantIn] | None = None

    @field_validator("name", "category")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("variants")
    @classmethod
    def at_least_one_variant(cls, v: list[VariantIn] | None) -> list[VariantIn] | None:
        if v is not None and not v:
            raise ValueError("At least one variant is required")
        return v


class ProductMetrics(SQLModel):
    """
    Sales aggregates for one product (admin product detail page).
    """

    total_sales: int
    revenue: float
    unique_customers: int


class ProductCustomer(SQLModel):
    """
    A customer that bought the product, with their aggregate quantity.
    """

    id: uuid.UUID
    name: str
    email: str
    total_quantity: int
    total_spent: float
    last_purchase: datetime


class ProductListRow(SQLModel):
    """
    Admin product list row; price is the cheapest effective variant price
    and stock the summed variant stock.
    """

    id: uuid.UUID
    name: str
    category: str
    vendor_id: uuid.UUID
    vendor: str
    price: float
    stock: int
    created_at: datetime


class ProductStats(SQLModel):
    total: int
    in_stock: int
    low_stock: int
    out_of_stock: int


# ----- Envelopes -----


class ProductEnvelope(SQLModel):
    success: bool = True
    message: str | None = None
    product: ProductRead


class ProductMetricsEnvelope(SQLModel):
    success: bool = True
    metrics: ProductMetrics


class ProductCustomersEnvelope(SQLModel):
    success: bool = True
    customers: list[ProductCustomer]


class ProductListEnvelope(SQLModel):
    success: bool = True
    products: list[ProductListRow]


class ProductStatsEnvelope(SQLModel):
    success: bool = True
    stats: ProductStats
