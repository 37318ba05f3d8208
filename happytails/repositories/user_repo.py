# happytails/repositories/user_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from happytails.models.event import Event, Ticket
from happytails.models.order import Order, OrderItem
from happytails.models.product import Product
from happytails.models.user import User


class UserRepository:
    """
    Data access for users of every role (customers, vendors, event managers).
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        return session.get(User, user_id)

    def get_with_role(
        self,
        session: Session,
        user_id: uuid.UUID,
        role: str,
    ) -> User | None:
        user = session.get(User, user_id)
        if user is None or user.role != role:
            return None
        return user

    def list_by_role(self, session: Session, role: str) -> list[User]:
        """Users of one role, newest first."""
        stmt = select(User).where(User.role == role).order_by(User.created_at.desc())
        return list(session.exec(stmt).all())

    def count_role(
        self,
        session: Session,
        role: str,
        since: datetime | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(User).where(User.role == role)
        if since is not None:
            stmt = stmt.where(User.created_at >= since)
        return int(session.exec(stmt).one() or 0)

    def get_by_email(self, session: Session, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return session.exec(stmt).first()

    def save(self, session: Session, user: User) -> User:
        session.add(user)
        session.flush()
        session.refresh(user)
        return user

    def delete(self, session: Session, user: User) -> None:
        session.delete(user)
        session.flush()

    def vendor_sales(
        self,
        session: Session,
        vendor_id: uuid.UUID,
        since: datetime,
    ) -> list[tuple[datetime, float]]:
        """
        (order created_at, line gross) for every line item of the vendor's
        products in non-canceled orders placed at or after `since`.
        """
        stmt = (
            select(Order.created_at, OrderItem.quantity * OrderItem.price)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(
                Product.vendor_id == vendor_id,
                Order.status != "canceled",
                Order.created_at >= since,
            )
        )
        return list(session.exec(stmt).all())

    def count_products(self, session: Session, vendor_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(Product.vendor_id == vendor_id, Product.is_deleted == False)  # noqa: E712
        )
        return int(session.exec(stmt).one() or 0)

    def vendor_top_customers(
        self,
        session: Session,
        vendor_id: uuid.UUID,
        limit: int = 5,
    ) -> list[tuple]:
        """
        Customers by what they spent on the vendor's products (line gross,
        non-canceled orders), with order count and last purchase.
        """
        spent = func.sum(OrderItem.quantity * OrderItem.price)
        stmt = (
            select(
                User.id,
                User.name,
                func.count(func.distinct(Order.id)),
                spent.label("total_spent"),
                func.max(Order.created_at),
            )
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .join(User, User.id == Order.customer_id)
            .where(Product.vendor_id == vendor_id, Order.status != "canceled")
            .group_by(User.id, User.name)
            .order_by(spent.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def customer_top_products(
        self,
        session: Session,
        customer_id: uuid.UUID,
        limit: int = 5,
    ) -> list[tuple]:
        """(product_id, product_name, quantity, spent), most ordered first."""
        qty_sum = func.sum(OrderItem.quantity)
        stmt = (
            select(
                OrderItem.product_id,
                OrderItem.product_name,
                qty_sum.label("total_quantity"),
                func.sum(OrderItem.quantity * OrderItem.price),
            )
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.customer_id == customer_id, Order.status != "canceled")
            .group_by(OrderItem.product_id, OrderItem.product_name)
            .order_by(qty_sum.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def customer_top_events(
        self,
        session: Session,
        customer_id: uuid.UUID,
        limit: int = 5,
    ) -> list[tuple]:
        """(event_id, title, tickets, spent) over active bookings."""
        tickets = func.sum(Ticket.number_of_tickets)
        stmt = (
            select(Event.id, Event.title, tickets.label("tickets"), func.sum(Ticket.price))
            .select_from(Ticket)
            .join(Event, Event.id == Ticket.event_id)
            .where(Ticket.customer_id == customer_id, Ticket.is_active == True)  # noqa: E712
            .group_by(Event.id, Event.title)
            .order_by(tickets.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def vendor_sales_summary(
        self,
        session: Session,
        since: datetime | None = None,
    ) -> tuple:
        """
        (distinct orders, gross) over lines of catalog products in
        non-canceled orders, optionally from `since` on.
        """
        stmt = (
            select(
                func.count(func.distinct(Order.id)),
                func.coalesce(func.sum(OrderItem.quantity * OrderItem.price), 0.0),
            )
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Order.status != "canceled")
        )
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        return session.exec(stmt).one()
