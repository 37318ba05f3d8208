# happytails/schemas/checkout.py
import uuid

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from happytails.schemas.order import OrderWithItemsRead


class CartLine(SQLModel):
    """
    One line of the client-side cart as sent to checkout.

    Only identities and quantity are trusted; prices are re-read from the
    catalog on the server.
    """

    product_id: uuid.UUID
    variant_id: uuid.UUID
    quantity: int
    product_name: str | None = None
    price: float | None = None
    size: str | None = None
    color: str | None = None
    image_url: str | None = None


class CheckoutRequest(SQLModel):
    """
    Payload for POST /products/checkout.
    """

    cart: list[CartLine]


class CheckoutTotals(SQLModel):
    subtotal: float
    charge: float
    total: float


class CheckoutResponse(SQLModel):
    success: bool = True
    redirectUrl: str = "/payment"
    checkout_token: str
    totals: CheckoutTotals


class PaymentRequest(SQLModel):
    """
    Payload for POST /products/payment.

    checkout_token is optional in the body; the `checkout_session` cookie
    set by /products/checkout is used when it is absent.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    card_number: str
    expiry: str
    cvv: str
    checkout_token: str | None = Field(default=None)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class PaymentResponse(SQLModel):
    success: bool = True
    message: str = "Payment successful"
    redirectUrl: str = "/my_orders"
    order: OrderWithItemsRead
