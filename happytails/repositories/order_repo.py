# happytails/repositories/order_repo.py
import uuid
from datetime import datetime

from sqlalchemy import delete, func
from sqlmodel import Session, select

from happytails.models.order import Order, OrderItem
from happytails.models.user import User


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation is a multi-step transaction
        (order + items + stock). The service is responsible for
        calling session.commit().
    """

    # ---- Orders ----

    def list_for_customer(
        self,
        session: Session,
        customer_id: uuid.UUID,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def list_with_customer(self, session: Session) -> list[tuple[Order, User]]:
        """Every order with its buyer, newest first."""
        stmt = (
            select(Order, User)
            .join(User, User.id == Order.customer_id)
            .order_by(Order.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def count(self, session: Session, since: datetime | None = None) -> int:
        stmt = select(func.count()).select_from(Order)
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        return int(session.exec(stmt).one() or 0)

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    def delete_for_customer(self, session: Session, customer_id: uuid.UUID) -> None:
        order_ids = [o.id for o in self.list_for_customer(session, customer_id)]
        if order_ids:
            session.exec(delete(OrderItem).where(OrderItem.order_id.in_(order_ids)))
            session.exec(delete(Order).where(Order.id.in_(order_ids)))

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id)
        return list(session.exec(stmt).all())

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        for item in items:
            session.refresh(item)
        return items
