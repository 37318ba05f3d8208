# happytails/schemas/event.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

EventStatus = Literal["upcoming", "ongoing", "completed", "cancelled"]


class EventRead(SQLModel):
    """
    Public event representation; tickets_left is derived.
    """

    id: uuid.UUID
    manager_id: uuid.UUID
    title: str
    description: str
    category: str
    language: str
    venue: str
    location: str
    starts_at: datetime
    duration_minutes: int
    age_limit: int
    ticket_price: float
    total_tickets: int
    tickets_sold: int
    tickets_left: int
    status: EventStatus
    poster_url: str | None = None


class EventUpdate(SQLModel):
    """
    Admin PUT payload for an event. All fields optional.

    total_tickets may not drop below the number already sold
    (checked in the service).
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=2, max_length=150)
    description: str | None = None
    category: str | None = Field(default=None, max_length=50)
    language: str | None = None
    venue: str | None = None
    location: str | None = None
    starts_at: datetime | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    age_limit: int | None = Field(default=None, ge=0)
    ticket_price: float | None = Field(default=None, ge=0)
    total_tickets: int | None = Field(default=None, gt=0)
    status: EventStatus | None = None
    poster_url: str | None = None


class TicketCreate(SQLModel):
    """
    Payload for POST /tickets/{event_id}.

    Only numberOfTickets is required; contact details default to the
    authenticated customer's profile.
    """

    model_config = ConfigDict(populate_by_name=True)

    number_of_tickets: int = Field(alias="numberOfTickets", gt=0)
    name: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    pet_name: str | None = Field(default=None, alias="petName")
    pet_breed: str | None = Field(default=None, alias="petBreed")
    pet_age: int | None = Field(default=None, alias="petAge", ge=0)

    @field_validator("name", "phone", "pet_name", "pet_breed")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class TicketRead(SQLModel):
    id: uuid.UUID
    ticket_code: str
    event_id: uuid.UUID
    customer_id: uuid.UUID
    contact_name: str
    contact_phone: str
    contact_email: str
    number_of_tickets: int
    price: float
    pet_name: str | None = None
    pet_breed: str | None = None
    pet_age: int | None = None
    is_active: bool
    purchased_at: datetime


class Attendee(SQLModel):
    """
    One booking row on the admin event attendee list.
    """

    ticket_id: uuid.UUID
    ticket_code: str
    customer_id: uuid.UUID
    name: str
    email: str
    phone: str
    number_of_tickets: int
    price: float
    purchased_at: datetime


class AdminEventRow(SQLModel):
    id: uuid.UUID
    title: str
    starts_at: datetime
    venue: str
    status: EventStatus
    total_tickets: int
    tickets_sold: int
    tickets_left: int
    manager_id: uuid.UUID
    manager_name: str


class EventStats(SQLModel):
    total_events: int
    upcoming_events: int
    completed_events: int
    tickets_sold: int


class EventRevenue(SQLModel):
    """
    Platform commission on ticket sales, with the month over month change
    of gross sales in percent.
    """

    total_sales: float
    revenue: float
    this_month_sales: float
    last_month_sales: float
    change_percent: float


# ----- Envelopes -----


class EventEnvelope(SQLModel):
    success: bool = True
    event: EventRead


class EventListEnvelope(SQLModel):
    success: bool = True
    events: list[EventRead]


class TicketEnvelope(SQLModel):
    success: bool = True
    message: str
    ticket: TicketRead


class AttendeesEnvelope(SQLModel):
    success: bool = True
    attendees: list[Attendee]


class AdminEventListEnvelope(SQLModel):
    success: bool = True
    events: list[AdminEventRow]


class EventStatsEnvelope(SQLModel):
    success: bool = True
    stats: EventStats


class EventRevenueEnvelope(SQLModel):
    success: bool = True
    revenue: EventRevenue
