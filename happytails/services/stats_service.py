# happytails/services/stats_service.py
from datetime import date, datetime, timedelta
from typing import Callable

from sqlmodel import Session

from happytails.core.money import start_of_day, utcnow
from happytails.repositories.event_repo import EventRepository
from happytails.repositories.stats_repo import StatsRepository
from happytails.schemas.common import PeriodCounts
from happytails.schemas.stats import (
    AdminDashboardStats,
    DailySales,
    LatestOrderSummary,
    TopProduct,
)


def period_counts(count_since: Callable[[datetime | None], int]) -> PeriodCounts:
    """
    Totals for the admin list pages: all time, last 30 days, last 7 days
    and since midnight UTC.
    """
    now = utcnow()
    return PeriodCounts(
        total=count_since(None),
        monthly=count_since(now - timedelta(days=30)),
        weekly=count_since(now - timedelta(days=7)),
        daily=count_since(start_of_day(now)),
    )


class StatsService:
    """
    Business logic for the admin dashboard.

    Responsibilities:
      - Aggregate totals (users per role, orders, revenue, tickets)
      - Daily sales for a given month/year (defaults to current)
      - Top products by quantity
      - Latest orders summary
    """

    def __init__(self, stats_repo: StatsRepository, event_repo: EventRepository):
        self.stats_repo = stats_repo
        self.event_repo = event_repo

    def get_dashboard(
        self,
        session: Session,
        year: int | None = None,
        month: int | None = None,
    ) -> AdminDashboardStats:
        today = utcnow().date()
        year = year or today.year
        month = month or today.month

        daily = [
            DailySales(
                date=day if isinstance(day, date) else date.fromisoformat(str(day)),
                total_revenue=float(revenue or 0.0),
                order_count=int(count or 0),
            )
            for day, revenue, count in self.stats_repo.daily_sales(session, year, month)
        ]

        top = [
            TopProduct(
                product_id=product_id,
                name=name,
                total_quantity=int(qty or 0),
                total_revenue=float(revenue or 0.0),
            )
            for product_id, name, qty, revenue in self.stats_repo.top_products(session)
        ]

        latest = [
            LatestOrderSummary(
                id=order.id,
                created_at=order.created_at,
                customer_id=order.customer_id,
                customer_name=customer.name,
                total_amount=order.total_amount,
                status=order.status,
            )
            for order, customer in self.stats_repo.latest_orders(session)
        ]

        tickets_sold, ticket_revenue = self.event_repo.count_tickets_sold(session)

        return AdminDashboardStats(
            total_customers=self.stats_repo.count_role(session, "customer"),
            total_vendors=self.stats_repo.count_role(session, "vendor"),
            total_event_managers=self.stats_repo.count_role(session, "event_manager"),
            total_orders=self.stats_repo.count_orders(session),
            total_revenue=self.stats_repo.total_revenue(session),
            total_tickets_sold=int(tickets_sold or 0),
            ticket_revenue=float(ticket_revenue or 0.0),
            daily_sales=daily,
            top_products=top,
            latest_orders=latest,
        )
