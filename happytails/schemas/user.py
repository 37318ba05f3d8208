# happytails/schemas/user.py
import re
import uuid
from datetime import datetime

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

from happytails.schemas.common import PeriodCounts
from happytails.schemas.event import EventRead
from happytails.schemas.order import OrderRead

# 10 digits, or an Indian mobile number with +91 prefix
PHONE_RE = re.compile(r"^(\+91[6-9][0-9]{9}|[0-9]{10})$")


def _validate_phone(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not PHONE_RE.match(v):
        raise ValueError(
            "Phone must be a valid 10-digit number or Indian number starting with +91"
        )
    return v


def _validate_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Name must be at least 2 characters")
    return v


# ----- Customers -----


class CustomerRow(SQLModel):
    id: uuid.UUID
    name: str
    email: str
    created_at: datetime


class CustomerTopProduct(SQLModel):
    """
    A product the customer ordered most. product_id is None once the
    product has been removed from the catalog.
    """

    product_id: uuid.UUID | None
    product_name: str
    total_quantity: int
    total_spent: float


class CustomerTopEvent(SQLModel):
    event_id: uuid.UUID
    title: str
    tickets: int
    total_spent: float


class TicketHistoryItem(SQLModel):
    ticket_id: uuid.UUID
    ticket_code: str
    event_id: uuid.UUID
    event_title: str
    number_of_tickets: int
    price: float
    purchased_at: datetime


class CustomerRead(SQLModel):
    """
    Admin customer detail with purchase and event history.
    """

    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    created_at: datetime
    orders: list[OrderRead] = []
    tickets: list[TicketHistoryItem] = []
    total_spent: float = 0.0


class CustomerUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        return _validate_name(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return _validate_phone(v)


# ----- Vendors -----


class VendorRow(SQLModel):
    id: uuid.UUID
    name: str
    email: str
    store_name: str | None = None
    store_location: str | None = None
    created_at: datetime


class VendorStats(SQLModel):
    """
    Marketplace-wide vendor figures. commission is the platform share
    of gross product sales.
    """

    total: int
    total_orders: int
    todays_orders: int
    gross_sales: float
    commission: float


class VendorTopCustomer(SQLModel):
    customer_id: uuid.UUID
    customer_name: str
    total_orders: int
    total_spent: float
    last_purchase: datetime


class VendorRead(SQLModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    store_name: str | None = None
    store_location: str | None = None
    created_at: datetime
    product_count: int = 0


class VendorUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    store_name: str | None = Field(default=None, min_length=2)
    store_location: str | None = Field(default=None, min_length=5)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        return _validate_name(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return _validate_phone(v)


class VendorProductRow(SQLModel):
    id: uuid.UUID
    name: str
    category: str
    price: float
    stock: int
    units_sold: int


class MonthlyRevenue(SQLModel):
    month: str  # "YYYY-MM"
    revenue: float


class VendorRevenue(SQLModel):
    """
    Vendor payout view: gross sales times the vendor share.
    """

    today: float
    weekly: float
    monthly: float
    quarterly: float
    breakdown: list[MonthlyRevenue]


# ----- Event managers -----


class EventManagerRead(SQLModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    organization: str | None = None
    created_at: datetime


class EventManagerUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    organization: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        return _validate_name(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return _validate_phone(v)


class EventManagerMetrics(SQLModel):
    total_events: int
    upcoming_events: int
    past_events: int
    tickets_sold: int
    revenue: float


class EventManagerStats(SQLModel):
    total: int
    new_this_month: int
    total_events: int
    todays_events: int
    ticket_revenue: float


# ----- Envelopes -----


class CustomerEnvelope(SQLModel):
    success: bool = True
    customer: CustomerRead


class VendorEnvelope(SQLModel):
    success: bool = True
    vendor: VendorRead


class VendorProductsEnvelope(SQLModel):
    success: bool = True
    products: list[VendorProductRow]


class VendorRevenueEnvelope(SQLModel):
    success: bool = True
    metrics: VendorRevenue


class EventManagerEnvelope(SQLModel):
    success: bool = True
    manager: EventManagerRead


class EventManagerMetricsEnvelope(SQLModel):
    success: bool = True
    metrics: EventManagerMetrics


class ManagerEventsEnvelope(SQLModel):
    success: bool = True
    events: list[EventRead]


class CustomerListEnvelope(SQLModel):
    success: bool = True
    customers: list[CustomerRow]


class CustomerStatsEnvelope(SQLModel):
    success: bool = True
    stats: PeriodCounts


class CustomerTopProductsEnvelope(SQLModel):
    success: bool = True
    products: list[CustomerTopProduct]


class CustomerTopEventsEnvelope(SQLModel):
    success: bool = True
    events: list[CustomerTopEvent]


class VendorListEnvelope(SQLModel):
    success: bool = True
    vendors: list[VendorRow]


class VendorStatsEnvelope(SQLModel):
    success: bool = True
    stats: VendorStats


class VendorTopCustomersEnvelope(SQLModel):
    success: bool = True
    customers: list[VendorTopCustomer]


class EventManagerListEnvelope(SQLModel):
    success: bool = True
    managers: list[EventManagerRead]


class EventManagerStatsEnvelope(SQLModel):
    success: bool = True
    stats: EventManagerStats
