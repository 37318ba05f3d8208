# happytails/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

from happytails.schemas.common import PeriodCounts

OrderStatus = Literal["pending", "confirmed", "shipped", "canceled"]


class OrderItemRead(SQLModel):
    """
    Order line item for clients.
    """

    id: uuid.UUID
    product_id: uuid.UUID | None
    variant_id: uuid.UUID | None
    product_name: str
    quantity: int
    price: float
    size: str | None = None
    color: str | None = None
    line_total: float


class OrderCustomer(SQLModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    address: str | None = None


class OrderRead(SQLModel):
    """
    Order header (no items).
    """

    id: uuid.UUID
    customer_id: uuid.UUID
    status: OrderStatus
    subtotal: float
    charge: float
    total_amount: float
    payment_last_four: str | None = None
    created_at: datetime


class OrderWithItemsRead(OrderRead):
    """
    Order with all its items and, for admin views, the buyer.
    """

    items: list[OrderItemRead]
    customer: OrderCustomer | None = None


class OrderListRow(SQLModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    customer_name: str
    status: OrderStatus
    total_amount: float
    created_at: datetime


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to update order status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


class OrderEnvelope(SQLModel):
    success: bool = True
    message: str | None = None
    order: OrderWithItemsRead


class OrderListEnvelope(SQLModel):
    success: bool = True
    orders: list[OrderListRow]


class OrderStatsEnvelope(SQLModel):
    success: bool = True
    stats: PeriodCounts
