# happytails/routers/products.py
import uuid

from fastapi import APIRouter, Cookie, Depends, Response
from sqlmodel import Session

from happytails.core.auth import require_customer
from happytails.core.config import get_settings
from happytails.database import get_session
from happytails.models.user import User
from happytails.repositories.order_repo import OrderRepository
from happytails.repositories.product_repo import ProductRepository
from happytails.schemas.checkout import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentRequest,
    PaymentResponse,
)
from happytails.schemas.product import ProductEnvelope
from happytails.services.order_service import OrderService
from happytails.services.payment_service import PaymentGateway, get_payment_gateway
from happytails.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

settings = get_settings()

CHECKOUT_COOKIE = "checkout_session"

product_repo = ProductRepository()
order_repo = OrderRepository()
service = ProductService(product_repo)
order_service = OrderService(order_repo, product_repo)


@router.get(
    "/product/{product_id}",
    response_model=ProductEnvelope,
)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Public product detail with all variants (declaration order).
    """
    return ProductEnvelope(product=service.get_product(session, product_id))


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
)
def checkout(
    payload: CheckoutRequest,
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Validate the client cart and open a checkout session.

    The session token is returned in the body and as the
    `checkout_session` cookie (httpOnly, 15 minutes).
    """
    result = order_service.checkout(session, current_user, payload)
    response.set_cookie(
        CHECKOUT_COOKIE,
        result.checkout_token,
        max_age=settings.CHECKOUT_TOKEN_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )
    return result


@router.post(
    "/payment",
    response_model=PaymentResponse,
)
async def payment(
    payload: PaymentRequest,
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    checkout_session: str | None = Cookie(default=None),
):
    """
    Pay for the open checkout session and create the order.
    """
    order = await order_service.pay(
        session,
        current_user,
        payload,
        gateway,
        cookie_token=checkout_session,
    )
    response.delete_cookie(CHECKOUT_COOKIE)
    return PaymentResponse(order=order)
