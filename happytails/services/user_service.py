# happytails/services/user_service.py
import logging
import uuid
from datetime import timedelta

from sqlmodel import Session

from happytails.core.errors import NotFoundError, ValidationError
from happytails.core.money import as_utc, start_of_day, utcnow
from happytails.models.user import User
from happytails.repositories.event_repo import EventRepository
from happytails.repositories.order_repo import OrderRepository
from happytails.repositories.product_repo import ProductRepository
from happytails.repositories.user_repo import UserRepository
from happytails.schemas.common import PeriodCounts
from happytails.schemas.event import EventRead
from happytails.schemas.order import OrderRead
from happytails.schemas.user import (
    CustomerRead,
    CustomerRow,
    CustomerTopEvent,
    CustomerTopProduct,
    CustomerUpdate,
    EventManagerMetrics,
    EventManagerRead,
    EventManagerStats,
    EventManagerUpdate,
    MonthlyRevenue,
    TicketHistoryItem,
    VendorProductRow,
    VendorRead,
    VendorRevenue,
    VendorRow,
    VendorStats,
    VendorTopCustomer,
    VendorUpdate,
)
from happytails.services.event_service import to_event_read
from happytails.services.pricing import effective_price
from happytails.services.stats_service import period_counts

logger = logging.getLogger(__name__)

# Share of gross product sales paid out to the vendor (92%)
VENDOR_REVENUE_SHARE = 0.92

ROLE_LABELS = {
    "customer": "Customer",
    "vendor": "Vendor",
    "event_manager": "Event manager",
}


def _month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def _last_twelve_months(year: int, month: int) -> list[str]:
    keys = []
    for _ in range(12):
        keys.append(_month_key(year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


class UserService:
    """
    Admin operations on customers, vendors and event managers.

    Responsibilities:
      - Lists and period counts per role
      - Detail views per role (customer history, vendor catalog/revenue,
        manager events/metrics)
      - Partial updates with unique-email check
      - Deletes that also remove what the user owns
    """

    def __init__(
        self,
        user_repo: UserRepository,
        order_repo: OrderRepository,
        event_repo: EventRepository,
        product_repo: ProductRepository,
    ):
        self.user_repo = user_repo
        self.order_repo = order_repo
        self.event_repo = event_repo
        self.product_repo = product_repo

    # ----- Shared -----

    def _get_or_404(self, session: Session, user_id: uuid.UUID, role: str) -> User:
        user = self.user_repo.get_with_role(session, user_id, role)
        if not user:
            raise NotFoundError(f"{ROLE_LABELS[role]} not found")
        return user

    def _apply_update(self, session: Session, user: User, data: dict) -> User:
        email = data.get("email")
        if email and email != user.email:
            existing = self.user_repo.get_by_email(session, email)
            if existing and existing.id != user.id:
                raise ValidationError("Email already exists")

        for field, value in data.items():
            setattr(user, field, value)
        self.user_repo.save(session, user)
        session.commit()
        return user

    # ----- Customers -----

    def list_customers(self, session: Session) -> list[CustomerRow]:
        return [
            CustomerRow.model_validate(u)
            for u in self.user_repo.list_by_role(session, "customer")
        ]

    def customer_stats(self, session: Session) -> PeriodCounts:
        return period_counts(lambda since: self.user_repo.count_role(session, "customer", since))

    def customer_top_products(
        self,
        session: Session,
        customer_id: uuid.UUID,
    ) -> list[CustomerTopProduct]:
        customer = self._get_or_404(session, customer_id, "customer")
        return [
            CustomerTopProduct(
                product_id=product_id,
                product_name=name,
                total_quantity=int(qty or 0),
                total_spent=round(float(spent or 0.0), 2),
            )
            for product_id, name, qty, spent in self.user_repo.customer_top_products(session, customer.id)
        ]

    def customer_top_events(
        self,
        session: Session,
        customer_id: uuid.UUID,
    ) -> list[CustomerTopEvent]:
        customer = self._get_or_404(session, customer_id, "customer")
        return [
            CustomerTopEvent(
                event_id=event_id,
                title=title,
                tickets=int(tickets or 0),
                total_spent=round(float(spent or 0.0), 2),
            )
            for event_id, title, tickets, spent in self.user_repo.customer_top_events(session, customer.id)
        ]

    def get_customer(self, session: Session, customer_id: uuid.UUID) -> CustomerRead:
        customer = self._get_or_404(session, customer_id, "customer")
        orders = self.order_repo.list_for_customer(session, customer.id)
        tickets = self.event_repo.tickets_for_customer(session, customer.id)

        spent = sum(o.total_amount for o in orders if o.status != "canceled")
        spent += sum(t.price for t, _ in tickets if t.is_active)

        return CustomerRead(
            **customer.model_dump(),
            orders=[OrderRead.model_validate(o) for o in orders],
            tickets=[
                TicketHistoryItem(
                    ticket_id=t.id,
                    ticket_code=t.ticket_code,
                    event_id=e.id,
                    event_title=e.title,
                    number_of_tickets=t.number_of_tickets,
                    price=t.price,
                    purchased_at=t.purchased_at,
                )
                for t, e in tickets
            ],
            total_spent=spent,
        )

    def update_customer(
        self,
        session: Session,
        customer_id: uuid.UUID,
        payload: CustomerUpdate,
    ) -> None:
        customer = self._get_or_404(session, customer_id, "customer")
        self._apply_update(session, customer, payload.model_dump(exclude_unset=True))
        logger.info("Customer %s updated", customer_id)

    def delete_customer(self, session: Session, customer_id: uuid.UUID) -> None:
        customer = self._get_or_404(session, customer_id, "customer")
        self.order_repo.delete_for_customer(session, customer.id)
        self.event_repo.delete_tickets_for_customer(session, customer.id)
        self.user_repo.delete(session, customer)
        session.commit()
        logger.info("Customer %s deleted", customer_id)

    # ----- Vendors -----

    def list_vendors(self, session: Session) -> list[VendorRow]:
        return [VendorRow.model_validate(u) for u in self.user_repo.list_by_role(session, "vendor")]

    def vendor_stats(self, session: Session) -> VendorStats:
        """Marketplace totals; commission is the part of gross not paid out."""
        orders, gross = self.user_repo.vendor_sales_summary(session)
        todays_orders, _ = self.user_repo.vendor_sales_summary(session, since=start_of_day(utcnow()))
        gross = float(gross or 0.0)
        return VendorStats(
            total=self.user_repo.count_role(session, "vendor"),
            total_orders=int(orders or 0),
            todays_orders=int(todays_orders or 0),
            gross_sales=round(gross, 2),
            commission=round(gross * (1 - VENDOR_REVENUE_SHARE), 2),
        )

    def vendor_top_customers(
        self,
        session: Session,
        vendor_id: uuid.UUID,
    ) -> list[VendorTopCustomer]:
        vendor = self._get_or_404(session, vendor_id, "vendor")
        return [
            VendorTopCustomer(
                customer_id=customer_id,
                customer_name=name,
                total_orders=int(orders or 0),
                total_spent=round(float(spent or 0.0), 2),
                last_purchase=last,
            )
            for customer_id, name, orders, spent, last in self.user_repo.vendor_top_customers(session, vendor.id)
        ]

    def get_vendor(self, session: Session, vendor_id: uuid.UUID) -> VendorRead:
        vendor = self._get_or_404(session, vendor_id, "vendor")
        return VendorRead(
            **vendor.model_dump(),
            product_count=self.user_repo.count_products(session, vendor.id),
        )

    def vendor_products(self, session: Session, vendor_id: uuid.UUID) -> list[VendorProductRow]:
        vendor = self._get_or_404(session, vendor_id, "vendor")
        products = self.product_repo.list_for_vendor(session, vendor.id)
        sold = self.product_repo.units_sold_by_product(session, [p.id for p in products])

        rows = []
        for product in products:
            variants = self.product_repo.list_variants(session, product.id)
            rows.append(
                VendorProductRow(
                    id=product.id,
                    name=product.name,
                    category=product.category,
                    price=min((effective_price(v) for v in variants), default=0.0),
                    stock=sum(v.stock_quantity for v in variants),
                    units_sold=sold.get(product.id, 0),
                )
            )
        return rows

    def vendor_revenue(self, session: Session, vendor_id: uuid.UUID) -> VendorRevenue:
        """
        Vendor share of gross sales for today and the last 7 / 30 / 90
        days, plus a 12 month breakdown.
        """
        vendor = self._get_or_404(session, vendor_id, "vendor")
        now = utcnow()
        today_start = start_of_day(now)
        rows = self.user_repo.vendor_sales(session, vendor.id, now - timedelta(days=366))

        windows = {
            "today": today_start,
            "weekly": now - timedelta(days=7),
            "monthly": now - timedelta(days=30),
            "quarterly": now - timedelta(days=90),
        }
        totals = {name: 0.0 for name in windows}
        months = {key: 0.0 for key in _last_twelve_months(now.year, now.month)}

        for created_at, gross in rows:
            created_at = as_utc(created_at)
            share = float(gross or 0.0) * VENDOR_REVENUE_SHARE
            for name, since in windows.items():
                if created_at >= since:
                    totals[name] += share
            key = _month_key(created_at.year, created_at.month)
            if key in months:
                months[key] += share

        return VendorRevenue(
            **{name: round(value, 2) for name, value in totals.items()},
            breakdown=[
                MonthlyRevenue(month=key, revenue=round(value, 2))
                for key, value in months.items()
            ],
        )

    def update_vendor(
        self,
        session: Session,
        vendor_id: uuid.UUID,
        payload: VendorUpdate,
    ) -> None:
        vendor = self._get_or_404(session, vendor_id, "vendor")
        self._apply_update(session, vendor, payload.model_dump(exclude_unset=True))
        logger.info("Vendor %s updated", vendor_id)

    def delete_vendor(self, session: Session, vendor_id: uuid.UUID) -> None:
        """
        Removes the vendor with every product and variant they own.
        Past order lines stay, detached from the removed catalog rows.
        """
        vendor = self._get_or_404(session, vendor_id, "vendor")
        for product in self.product_repo.list_for_vendor(session, vendor.id, include_deleted=True):
            self.product_repo.delete_with_variants(session, product)
        self.user_repo.delete(session, vendor)
        session.commit()
        logger.info("Vendor %s deleted", vendor_id)

    # ----- Event managers -----

    def list_managers(self, session: Session) -> list[EventManagerRead]:
        return [
            EventManagerRead.model_validate(u)
            for u in self.user_repo.list_by_role(session, "event_manager")
        ]

    def manager_stats(self, session: Session) -> EventManagerStats:
        now = utcnow()
        today = start_of_day(now)
        _, ticket_revenue = self.event_repo.count_tickets_sold(session)
        return EventManagerStats(
            total=self.user_repo.count_role(session, "event_manager"),
            new_this_month=self.user_repo.count_role(session, "event_manager", now - timedelta(days=30)),
            total_events=self.event_repo.count_events(session),
            todays_events=self.event_repo.count_events(
                session, starts_from=today, starts_before=today + timedelta(days=1)
            ),
            ticket_revenue=round(float(ticket_revenue or 0.0), 2),
        )

    def get_manager(self, session: Session, manager_id: uuid.UUID) -> EventManagerRead:
        manager = self._get_or_404(session, manager_id, "event_manager")
        return EventManagerRead.model_validate(manager)

    def manager_metrics(self, session: Session, manager_id: uuid.UUID) -> EventManagerMetrics:
        manager = self._get_or_404(session, manager_id, "event_manager")
        now = utcnow()
        total, sold = self.event_repo.manager_totals(session, manager.id)
        upcoming = len(self.event_repo.list_for_manager(session, manager.id, now, upcoming=True))
        return EventManagerMetrics(
            total_events=int(total or 0),
            upcoming_events=upcoming,
            past_events=int(total or 0) - upcoming,
            tickets_sold=int(sold or 0),
            revenue=round(self.event_repo.manager_ticket_revenue(session, manager.id), 2),
        )

    def manager_events(
        self,
        session: Session,
        manager_id: uuid.UUID,
        upcoming: bool,
    ) -> list[EventRead]:
        manager = self._get_or_404(session, manager_id, "event_manager")
        events = self.event_repo.list_for_manager(session, manager.id, utcnow(), upcoming)
        return [to_event_read(e) for e in events]

    def update_manager(
        self,
        session: Session,
        manager_id: uuid.UUID,
        payload: EventManagerUpdate,
    ) -> EventManagerRead:
        manager = self._get_or_404(session, manager_id, "event_manager")
        manager = self._apply_update(session, manager, payload.model_dump(exclude_unset=True))
        logger.info("Event manager %s updated", manager_id)
        return EventManagerRead.model_validate(manager)

    def delete_manager(self, session: Session, manager_id: uuid.UUID) -> None:
        manager = self._get_or_404(session, manager_id, "event_manager")
        removed = self.event_repo.delete_for_manager(session, manager.id)
        self.user_repo.delete(session, manager)
        session.commit()
        logger.info("Event manager %s deleted with %d event(s)", manager_id, removed)
