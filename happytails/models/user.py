# happytails/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Account for every party of the marketplace.

    Role:
      - "customer"      : buys products, books event tickets
      - "vendor"        : store partner that owns products
      - "event_manager" : partner that organizes events
      - "admin"         : back-office operator

    Partner-only columns (store_*, organization) stay NULL for other roles.
    Password storage is handled by the auth provider, not this table.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    email: str = Field(
        unique=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        description="Display name; store owner / manager name for partners",
    )

    role: str = Field(
        default="customer",
        index=True,
        description="Application role: customer | vendor | event_manager | admin",
    )

    phone: str | None = Field(default=None, max_length=20)

    # customers: "<house>, <street>, <city> - <pincode>"
    address: str | None = None

    # vendors
    store_name: str | None = None
    store_location: str | None = None

    # event managers
    organization: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
