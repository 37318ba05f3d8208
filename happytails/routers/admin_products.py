# happytails/routers/admin_products.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from happytails.core.auth import require_admin
from happytails.database import get_session
from happytails.repositories.product_repo import ProductRepository
from happytails.schemas.common import MessageEnvelope
from happytails.schemas.product import (
    ProductCustomersEnvelope,
    ProductEnvelope,
    ProductListEnvelope,
    ProductMetricsEnvelope,
    ProductStatsEnvelope,
    ProductUpdate,
)
from happytails.services.product_service import ProductService

router = APIRouter(
    prefix="/admin/products",
    tags=["Admin Products"],
    dependencies=[Depends(require_admin)],
)

repo = ProductRepository()
service = ProductService(repo)


@router.get("", response_model=ProductListEnvelope)
def list_products(session: Session = Depends(get_session)):
    """
    Live products with vendor, lowest effective price and total stock.
    """
    return ProductListEnvelope(products=service.list_products(session))


@router.get("/stats", response_model=ProductStatsEnvelope)
def get_product_stats(session: Session = Depends(get_session)):
    return ProductStatsEnvelope(stats=service.product_stats(session))


@router.get("/{product_id}", response_model=ProductEnvelope)
def get_product(product_id: uuid.UUID, session: Session = Depends(get_session)):
    return ProductEnvelope(product=service.get_product(session, product_id))


@router.get("/{product_id}/data", response_model=ProductMetricsEnvelope)
def get_product_data(product_id: uuid.UUID, session: Session = Depends(get_session)):
    """
    Units sold, revenue (94% of gross) and distinct buyers.
    """
    return ProductMetricsEnvelope(metrics=service.product_metrics(session, product_id))


@router.get("/{product_id}/customers", response_model=ProductCustomersEnvelope)
def get_product_customers(product_id: uuid.UUID, session: Session = Depends(get_session)):
    return ProductCustomersEnvelope(customers=service.product_customers(session, product_id))


@router.put("/{product_id}", response_model=ProductEnvelope)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Partial update; `variants` replaces the whole list. Echoes the product.
    """
    product = service.update_product(session, product_id, payload)
    return ProductEnvelope(message="Product updated successfully", product=product)


@router.delete("/{product_id}", response_model=MessageEnvelope)
def delete_product(product_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_product(session, product_id)
    return MessageEnvelope(message="Product deleted successfully")
