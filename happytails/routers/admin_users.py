# happytails/routers/admin_users.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from happytails.core.auth import require_admin
from happytails.database import get_session
from happytails.repositories.event_repo import EventRepository
from happytails.repositories.order_repo import OrderRepository
from happytails.repositories.product_repo import ProductRepository
from happytails.repositories.user_repo import UserRepository
from happytails.schemas.common import MessageEnvelope
from happytails.schemas.user import (
    CustomerEnvelope,
    CustomerListEnvelope,
    CustomerStatsEnvelope,
    CustomerTopEventsEnvelope,
    CustomerTopProductsEnvelope,
    CustomerUpdate,
    EventManagerEnvelope,
    EventManagerListEnvelope,
    EventManagerMetricsEnvelope,
    EventManagerStatsEnvelope,
    EventManagerUpdate,
    ManagerEventsEnvelope,
    VendorEnvelope,
    VendorListEnvelope,
    VendorProductsEnvelope,
    VendorRevenueEnvelope,
    VendorStatsEnvelope,
    VendorTopCustomersEnvelope,
    VendorUpdate,
)
from happytails.services.user_service import UserService

router = APIRouter(
    prefix="/admin",
    tags=["Admin Users"],
    dependencies=[Depends(require_admin)],
)

service = UserService(
    UserRepository(),
    OrderRepository(),
    EventRepository(),
    ProductRepository(),
)


# -------- Customers --------


@router.get("/customers", response_model=CustomerListEnvelope)
def list_customers(session: Session = Depends(get_session)):
    return CustomerListEnvelope(customers=service.list_customers(session))


@router.get("/customers/stats", response_model=CustomerStatsEnvelope)
def get_customer_stats(session: Session = Depends(get_session)):
    """
    New customers: total, last 30 days, last 7 days, today.
    """
    return CustomerStatsEnvelope(stats=service.customer_stats(session))


@router.get("/customers/{customer_id}", response_model=CustomerEnvelope)
def get_customer(customer_id: uuid.UUID, session: Session = Depends(get_session)):
    """
    Customer profile with order and ticket history.
    """
    return CustomerEnvelope(customer=service.get_customer(session, customer_id))


@router.get("/customers/{customer_id}/top-ordered", response_model=CustomerTopProductsEnvelope)
def get_customer_top_ordered(customer_id: uuid.UUID, session: Session = Depends(get_session)):
    return CustomerTopProductsEnvelope(products=service.customer_top_products(session, customer_id))


@router.get("/customers/{customer_id}/top-events", response_model=CustomerTopEventsEnvelope)
def get_customer_top_events(customer_id: uuid.UUID, session: Session = Depends(get_session)):
    return CustomerTopEventsEnvelope(events=service.customer_top_events(session, customer_id))


@router.put("/customers/{customer_id}", response_model=MessageEnvelope)
def update_customer(
    customer_id: uuid.UUID,
    payload: CustomerUpdate,
    session: Session = Depends(get_session),
):
    service.update_customer(session, customer_id, payload)
    return MessageEnvelope(message="Customer updated successfully")


@router.delete("/customers/{customer_id}", response_model=MessageEnvelope)
def delete_customer(customer_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_customer(session, customer_id)
    return MessageEnvelope(message="Customer deleted successfully")


# -------- Vendors --------


@router.get("/vendors", response_model=VendorListEnvelope)
def list_vendors(session: Session = Depends(get_session)):
    return VendorListEnvelope(vendors=service.list_vendors(session))


@router.get("/vendors/stats", response_model=VendorStatsEnvelope)
def get_vendor_stats(session: Session = Depends(get_session)):
    """
    Vendor count, orders containing catalog products, gross and commission.
    """
    return VendorStatsEnvelope(stats=service.vendor_stats(session))


@router.get("/vendors/{vendor_id}", response_model=VendorEnvelope)
def get_vendor(vendor_id: uuid.UUID, session: Session = Depends(get_session)):
    return VendorEnvelope(vendor=service.get_vendor(session, vendor_id))


@router.get("/vendors/{vendor_id}/products", response_model=VendorProductsEnvelope)
def get_vendor_products(vendor_id: uuid.UUID, session: Session = Depends(get_session)):
    return VendorProductsEnvelope(products=service.vendor_products(session, vendor_id))


@router.get("/vendors/{vendor_id}/revenue", response_model=VendorRevenueEnvelope)
def get_vendor_revenue(vendor_id: uuid.UUID, session: Session = Depends(get_session)):
    """
    Vendor share (92%) of gross sales per period + 12 month breakdown.
    """
    return VendorRevenueEnvelope(metrics=service.vendor_revenue(session, vendor_id))


@router.get("/vendors/{vendor_id}/top-customers", response_model=VendorTopCustomersEnvelope)
def get_vendor_top_customers(vendor_id: uuid.UUID, session: Session = Depends(get_session)):
    return VendorTopCustomersEnvelope(customers=service.vendor_top_customers(session, vendor_id))


@router.put("/vendors/{vendor_id}", response_model=MessageEnvelope)
def update_vendor(
    vendor_id: uuid.UUID,
    payload: VendorUpdate,
    session: Session = Depends(get_session),
):
    service.update_vendor(session, vendor_id, payload)
    return MessageEnvelope(message="Vendor updated successfully")


@router.delete("/vendors/{vendor_id}", response_model=MessageEnvelope)
def delete_vendor(vendor_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_vendor(session, vendor_id)
    return MessageEnvelope(message="Vendor deleted successfully")


# -------- Event managers --------


@router.get("/event-managers", response_model=EventManagerListEnvelope)
def list_event_managers(session: Session = Depends(get_session)):
    return EventManagerListEnvelope(managers=service.list_managers(session))


@router.get("/event-managers/stats", response_model=EventManagerStatsEnvelope)
def get_event_manager_stats(session: Session = Depends(get_session)):
    return EventManagerStatsEnvelope(stats=service.manager_stats(session))


@router.get("/event-managers/{manager_id}", response_model=EventManagerEnvelope)
def get_event_manager(manager_id: uuid.UUID, session: Session = Depends(get_session)):
    return EventManagerEnvelope(manager=service.get_manager(session, manager_id))


@router.get(
    "/event-managers/{manager_id}/metrics",
    response_model=EventManagerMetricsEnvelope,
)
def get_event_manager_metrics(manager_id: uuid.UUID, session: Session = Depends(get_session)):
    return EventManagerMetricsEnvelope(metrics=service.manager_metrics(session, manager_id))


@router.get(
    "/event-managers/{manager_id}/upcoming-events",
    response_model=ManagerEventsEnvelope,
)
def get_upcoming_events(manager_id: uuid.UUID, session: Session = Depends(get_session)):
    return ManagerEventsEnvelope(
        events=service.manager_events(session, manager_id, upcoming=True)
    )


@router.get(
    "/event-managers/{manager_id}/past-events",
    response_model=ManagerEventsEnvelope,
)
def get_past_events(manager_id: uuid.UUID, session: Session = Depends(get_session)):
    return ManagerEventsEnvelope(
        events=service.manager_events(session, manager_id, upcoming=False)
    )


@router.put("/event-managers/{manager_id}", response_model=EventManagerEnvelope)
def update_event_manager(
    manager_id: uuid.UUID,
    payload: EventManagerUpdate,
    session: Session = Depends(get_session),
):
    """
    Partial update; echoes the updated manager.
    """
    return EventManagerEnvelope(manager=service.update_manager(session, manager_id, payload))


@router.delete("/event-managers/{manager_id}", response_model=MessageEnvelope)
def delete_event_manager(manager_id: uuid.UUID, session: Session = Depends(get_session)):
    """
    Deletes the manager, their events and every ticket of those events.
    """
    service.delete_manager(session, manager_id)
    return MessageEnvelope(message="Event manager, events, and tickets deleted successfully")
