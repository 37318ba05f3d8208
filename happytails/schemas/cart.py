# happytails/schemas/cart.py
import uuid

from sqlmodel import SQLModel, Field


class CartItem(SQLModel):
    """
    Client-side cart line: a snapshot of a (product, variant) pair taken
    when it was added.

    - price is the effective unit price at add time (not live-linked)
    - (product_id, variant_id) is the merge key
    """

    product_id: uuid.UUID
    variant_id: uuid.UUID
    product_name: str
    price: float = Field(ge=0)
    size: str | None = None
    color: str | None = None
    quantity: int = Field(default=1, ge=1)
    image_url: str | None = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartTotals(SQLModel):
    """
    subtotal = sum(price * quantity)
    charge   = subtotal * 4%, rounded to whole units
    total    = subtotal + charge
    """

    subtotal: float
    charge: int
    total: float
