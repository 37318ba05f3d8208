# happytails/routers/admin_orders.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from happytails.core.auth import require_admin
from happytails.database import get_session
from happytails.repositories.order_repo import OrderRepository
from happytails.repositories.product_repo import ProductRepository
from happytails.schemas.order import (
    OrderEnvelope,
    OrderListEnvelope,
    OrderStatsEnvelope,
    OrderStatusUpdate,
)
from happytails.services.order_service import OrderService

router = APIRouter(
    prefix="/admin/orders",
    tags=["Admin Orders"],
    dependencies=[Depends(require_admin)],
)

service = OrderService(OrderRepository(), ProductRepository())


@router.get("", response_model=OrderListEnvelope)
def list_orders(session: Session = Depends(get_session)):
    return OrderListEnvelope(orders=service.list_orders(session))


@router.get("/stats", response_model=OrderStatsEnvelope)
def get_order_stats(session: Session = Depends(get_session)):
    """
    Orders placed: total, last 30 days, last 7 days, today.
    """
    return OrderStatsEnvelope(stats=service.order_stats(session))


@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order(order_id: uuid.UUID, session: Session = Depends(get_session)):
    """
    Order with items and the buyer's contact details.
    """
    return OrderEnvelope(order=service.get_order_admin(session, order_id))


@router.put("/{order_id}", response_model=OrderEnvelope)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Update order status with simple state machine.

      pending   -> confirmed, canceled

      confirmed -> shipped, canceled

      shipped   -> (no change)

      canceled  -> (no change)
    """
    order = service.update_status(session, order_id, payload)
    return OrderEnvelope(message="Order status updated", order=order)
