# happytails/services/order_service.py
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError, jwt
from sqlmodel import Session

from happytails.core.config import get_settings
from happytails.core.errors import AuthError, NotFoundError, ValidationError
from happytails.core.money import utcnow
from happytails.models.order import Order, OrderItem
from happytails.models.product import Product, ProductVariant
from happytails.models.user import User
from happytails.repositories.order_repo import OrderRepository
from happytails.repositories.product_repo import ProductRepository
from happytails.schemas.cart import CartItem
from happytails.schemas.checkout import (
    CartLine,
    CheckoutRequest,
    CheckoutResponse,
    CheckoutTotals,
    PaymentRequest,
)
from happytails.schemas.common import PeriodCounts
from happytails.schemas.order import (
    OrderCustomer,
    OrderItemRead,
    OrderListRow,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from happytails.services.cart_service import compute_totals
from happytails.services.payment_service import CardDetails, PaymentGateway, validate_card
from happytails.services.pricing import effective_price
from happytails.services.stats_service import period_counts

logger = logging.getLogger(__name__)

settings = get_settings()

CHECKOUT_TOKEN_TYPE = "checkout"

# Allowed admin status transitions
STATUS_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "canceled"},
    "confirmed": {"shipped", "canceled"},
    "shipped": set(),
    "canceled": set(),
}


@dataclass
class _PricedLine:
    product: Product
    variant: ProductVariant
    quantity: int

    def to_cart_item(self) -> CartItem:
        return CartItem(
            product_id=self.product.id,
            variant_id=self.variant.id,
            product_name=self.product.name,
            price=effective_price(self.variant),
            size=self.variant.size,
            color=self.variant.color,
            quantity=self.quantity,
            image_url=self.product.image_url,
        )


class OrderService:
    """
    Business logic for checkout, payment and orders.

    Responsibilities:
      - Validate cart lines against the catalog (existence, stock)
      - Price lines from the catalog, never from the client
      - Issue / verify the short-lived checkout token
      - Charge the payment gateway, then create Order + OrderItems
      - Deduct variant stock in the same transaction
      - Admin list, period counts and simple status transitions
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo

    # -------- Checkout --------

    @staticmethod
    def _merge_lines(cart: list[CartLine]) -> list[CartLine]:
        """Fold repeated (product_id, variant_id) lines into one, in first-seen order."""
        merged: dict[tuple[uuid.UUID, uuid.UUID], CartLine] = {}
        for line in cart:
            key = (line.product_id, line.variant_id)
            if key in merged:
                merged[key] = merged[key].model_copy(
                    update={"quantity": merged[key].quantity + line.quantity}
                )
            else:
                merged[key] = line
        return list(merged.values())

    def _price_lines(self, session: Session, cart: list[CartLine]) -> list[_PricedLine]:
        """
        Validate every line and collect all failures before raising.
        Repeated lines for one variant are checked against stock together.
        """
        if not cart:
            raise ValidationError("Your cart is empty!")

        errors: list[dict[str, str]] = []
        priced: list[_PricedLine] = []

        for line in self._merge_lines(cart):
            product = self.product_repo.get_by_id(session, line.product_id)
            if not product:
                errors.append({"product_id": str(line.product_id), "reason": "Product not found"})
                continue

            variant = self.product_repo.get_variant(session, line.variant_id)
            if not variant or variant.product_id != product.id:
                errors.append({"product_id": str(line.product_id), "reason": "Variant not found"})
                continue

            if line.quantity < 1:
                errors.append({"product_id": str(line.product_id), "reason": "Invalid quantity"})
                continue

            if line.quantity > variant.stock_quantity:
                errors.append(
                    {
                        "product_id": str(line.product_id),
                        "reason": (
                            f"Insufficient stock for {product.name} "
                            f"(have {variant.stock_quantity}, requested {line.quantity})"
                        ),
                    }
                )
                continue

            priced.append(_PricedLine(product, variant, line.quantity))

        if errors:
            raise ValidationError("Cart validation failed", details=errors)
        return priced

    def _issue_checkout_token(self, customer: User, cart: list[_PricedLine]) -> str:
        claims = {
            "sub": str(customer.id),
            "type": CHECKOUT_TOKEN_TYPE,
            "cart": [
                {
                    "product_id": str(line.product.id),
                    "variant_id": str(line.variant.id),
                    "quantity": line.quantity,
                }
                for line in cart
            ],
            "exp": utcnow() + timedelta(minutes=settings.CHECKOUT_TOKEN_MINUTES),
        }
        return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

    def _read_checkout_token(self, token: str | None, customer: User) -> list[CartLine]:
        if not token:
            raise ValidationError("Checkout session not found. Please checkout again.")
        try:
            claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
        except JWTError:
            raise ValidationError("Checkout session expired. Please checkout again.")

        if claims.get("type") != CHECKOUT_TOKEN_TYPE:
            raise ValidationError("Invalid checkout session")
        if claims.get("sub") != str(customer.id):
            raise AuthError("Checkout session belongs to another user", forbidden=True)
        return [CartLine.model_validate(line) for line in claims.get("cart", [])]

    def checkout(
        self,
        session: Session,
        customer: User,
        payload: CheckoutRequest,
    ) -> CheckoutResponse:
        """
        Steps:
          1. Require a completed profile (phone + address).
          2. Validate and price each line from the catalog.
          3. Compute totals (subtotal + 4% charge).
          4. Issue a checkout token carrying the validated cart.
        """
        if not customer.phone or not customer.address:
            raise ValidationError("Please complete your profile (phone and address) before checkout.")

        priced = self._price_lines(session, payload.cart)
        totals = compute_totals([line.to_cart_item() for line in priced])
        token = self._issue_checkout_token(customer, priced)

        return CheckoutResponse(
            checkout_token=token,
            totals=CheckoutTotals(
                subtotal=totals.subtotal,
                charge=totals.charge,
                total=totals.total,
            ),
        )

    # -------- Payment --------

    async def pay(
        self,
        session: Session,
        customer: User,
        payload: PaymentRequest,
        gateway: PaymentGateway,
        cookie_token: str | None = None,
    ) -> OrderWithItemsRead:
        """
        Turn a checkout session into a paid order.

        Steps:
          1. Verify the checkout token (body first, then cookie).
          2. Validate the card.
          3. Re-validate stock and re-price the lines.
          4. Charge the gateway (PaymentError propagates, nothing written).
          5. Create Order + OrderItems and deduct stock; commit once.
        """
        cart = self._read_checkout_token(payload.checkout_token or cookie_token, customer)

        card = CardDetails(
            name=payload.name,
            number=payload.card_number,
            expiry=payload.expiry,
            cvv=payload.cvv,
        )
        validate_card(card)

        priced = self._price_lines(session, cart)
        items = [line.to_cart_item() for line in priced]
        totals = compute_totals(items)

        receipt = await gateway.charge(card, totals.total)
        logger.info(
            "Charged %.2f for customer %s (%s)",
            totals.total,
            customer.id,
            receipt.transaction_id,
        )

        order = self.order_repo.create_order(
            session,
            Order(
                customer_id=customer.id,
                status="pending",
                subtotal=totals.subtotal,
                charge=totals.charge,
                total_amount=totals.total,
                payment_last_four=receipt.last_four,
            ),
        )

        order_items = self.order_repo.create_items(
            session,
            [
                OrderItem(
                    order_id=order.id,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price=item.price,
                    size=item.size,
                    color=item.color,
                )
                for item in items
            ],
        )

        for line in priced:
            line.variant.stock_quantity -= line.quantity
            self.product_repo.update_variant(session, line.variant)

        session.commit()
        session.refresh(order)
        for item in order_items:
            session.refresh(item)
        return self._build_order_with_items(order, order_items)

    # -------- Admin --------

    def _build_order_with_items(
        self,
        order: Order,
        items: list[OrderItem],
        customer: User | None = None,
    ) -> OrderWithItemsRead:
        return OrderWithItemsRead(
            **order.model_dump(),
            items=[
                OrderItemRead(
                    **item.model_dump(),
                    line_total=item.price * item.quantity,
                )
                for item in items
            ],
            customer=OrderCustomer.model_validate(customer) if customer else None,
        )

    def list_orders(self, session: Session) -> list[OrderListRow]:
        return [
            OrderListRow(
                id=order.id,
                customer_id=customer.id,
                customer_name=customer.name,
                status=order.status,
                total_amount=order.total_amount,
                created_at=order.created_at,
            )
            for order, customer in self.order_repo.list_with_customer(session)
        ]

    def order_stats(self, session: Session) -> PeriodCounts:
        return period_counts(lambda since: self.order_repo.count(session, since))

    def get_order_admin(self, session: Session, order_id: uuid.UUID) -> OrderWithItemsRead:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")
        items = self.order_repo.list_items_for_order(session, order.id)
        customer = session.get(User, order.customer_id)
        return self._build_order_with_items(order, items, customer)

    def update_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderWithItemsRead:
        """
        State machine:

          pending   -> confirmed, canceled
          confirmed -> shipped, canceled
          shipped   -> (no change)
          canceled  -> (no change)

        Canceling restores the stock of every line.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")

        current = order.status
        new = payload.status

        if new == current:
            return self.get_order_admin(session, order_id)

        if new not in STATUS_TRANSITIONS.get(current, set()):
            raise ValidationError(f"Invalid status transition {current} -> {new}")

        if new == "canceled":
            for item in self.order_repo.list_items_for_order(session, order.id):
                if item.variant_id is None:
                    continue
                variant = self.product_repo.get_variant(session, item.variant_id)
                if variant is not None:
                    variant.stock_quantity += item.quantity
                    self.product_repo.update_variant(session, variant)

        order.status = new
        self.order_repo.update_order(session, order)
        session.commit()
        logger.info("Order %s status %s -> %s", order.id, current, new)
        return self.get_order_admin(session, order_id)
