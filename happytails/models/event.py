# happytails/models/event.py
import random
import time
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


def generate_ticket_code() -> str:
    """
    Human-friendly ticket reference: "TKT-" + last 5 digits of the
    epoch milliseconds + a random 3-digit suffix.
    """
    millis = str(int(time.time() * 1000))[-5:]
    return f"TKT-{millis}{random.randint(100, 999)}"


class Event(SQLModel, table=True):
    """
    Pet event organized by an event manager.

    tickets_left is derived: total_tickets - tickets_sold.
    """

    __tablename__ = "events"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    manager_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    title: str = Field(max_length=150, index=True)
    description: str
    category: str = Field(max_length=50, index=True)
    language: str = Field(default="English", max_length=30)

    venue: str
    location: str = Field(description="City")

    starts_at: datetime = Field(index=True)
    duration_minutes: int = Field(default=120, gt=0)
    age_limit: int = Field(default=0, ge=0)

    ticket_price: float = Field(ge=0)
    total_tickets: int = Field(gt=0)
    tickets_sold: int = Field(default=0, ge=0)

    # upcoming | ongoing | completed | cancelled
    status: str = Field(default="upcoming", index=True)

    poster_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    @property
    def tickets_left(self) -> int:
        return max(self.total_tickets - self.tickets_sold, 0)


class Ticket(SQLModel, table=True):
    """
    A booking of one or more seats for an event by a customer.
    """

    __tablename__ = "tickets"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    ticket_code: str = Field(
        default_factory=generate_ticket_code,
        unique=True,
        index=True,
    )

    event_id: uuid.UUID = Field(
        foreign_key="events.id",
        index=True,
    )

    customer_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    contact_name: str
    contact_phone: str
    contact_email: str

    number_of_tickets: int = Field(gt=0)

    # ticket_price * number_of_tickets at booking time
    price: float = Field(ge=0)

    pet_name: str | None = None
    pet_breed: str | None = None
    pet_age: int | None = Field(default=None, ge=0)

    is_active: bool = Field(default=True)

    purchased_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
