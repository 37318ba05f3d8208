# happytails/schemas/stats.py
import uuid
from datetime import date, datetime

from sqlmodel import SQLModel

from happytails.schemas.order import OrderStatus


class DailySales(SQLModel):
    """
    Revenue per day for a given month/year.
    """

    date: date
    total_revenue: float
    order_count: int


class TopProduct(SQLModel):
    """
    Aggregated stats for top-selling products.
    """

    product_id: uuid.UUID
    name: str
    total_quantity: int
    total_revenue: float


class LatestOrderSummary(SQLModel):
    id: uuid.UUID
    created_at: datetime
    customer_id: uuid.UUID
    customer_name: str | None
    total_amount: float
    status: OrderStatus


class AdminDashboardStats(SQLModel):
    """
    Full payload for the admin dashboard.
    """

    total_customers: int
    total_vendors: int
    total_event_managers: int
    total_orders: int
    total_revenue: float
    total_tickets_sold: int
    ticket_revenue: float
    daily_sales: list[DailySales]
    top_products: list[TopProduct]
    latest_orders: list[LatestOrderSummary]


class StatsEnvelope(SQLModel):
    success: bool = True
    stats: AdminDashboardStats
