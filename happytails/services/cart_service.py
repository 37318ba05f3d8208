# happytails/services/cart_service.py
import logging
import math
import re
import uuid
from typing import Any

from happytails.core.errors import ErrorCode, ValidationError
from happytails.core.money import round_half_up
from happytails.repositories.cart_repo import CartRepository
from happytails.schemas.cart import CartItem, CartTotals
from happytails.services.pricing import effective_price

logger = logging.getLogger(__name__)

# Fixed surcharge applied on top of the cart subtotal (4%)
CART_CHARGE_RATE = 0.04

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)", re.ASCII)


def compute_totals(items: list[CartItem]) -> CartTotals:
    """
    subtotal = sum(price * quantity)
    charge   = round(subtotal * 4%) to whole currency units, halves up
    total    = subtotal + charge
    """
    subtotal = sum(item.price * item.quantity for item in items)
    charge = round_half_up(subtotal * CART_CHARGE_RATE)
    return CartTotals(subtotal=subtotal, charge=charge, total=subtotal + charge)


def parse_quantity(raw: Any) -> int:
    """
    Parse a quantity field the way a number input reports it.

    The leading integer of the text is used ("3abc" -> 3); anything that
    does not start with an integer, or anything below 1, becomes 1.
    """
    if isinstance(raw, bool):
        return 1
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        value = int(raw) if math.isfinite(raw) else 1  # NaN, inf
    else:
        match = _LEADING_INT.match(str(raw or ""))
        value = int(match.group(1)) if match else 1
    return max(value, 1)


class CartStore:
    """
    Ordered, persisted list of cart lines.

    Responsibilities:
      - Load the persisted cart once on construction
      - Merge repeated adds of the same (product_id, variant_id)
      - Keep every quantity >= 1
      - Address lines by variant_id, never by position
      - Save the whole list after every mutation
    """

    def __init__(self, repo: CartRepository):
        self.repo = repo
        self._items: list[CartItem] = repo.load()

    # -------- Reads --------

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, variant_id: uuid.UUID) -> CartItem | None:
        for item in self._items:
            if item.variant_id == variant_id:
                return item
        return None

    def totals(self) -> CartTotals:
        return compute_totals(self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    # -------- Mutations --------

    def add(self, item: CartItem) -> CartItem:
        """
        Append a line, or add its quantity to the existing line with the
        same (product_id, variant_id). No stock check at this layer.
        """
        for existing in self._items:
            if (
                existing.product_id == item.product_id
                and existing.variant_id == item.variant_id
            ):
                existing.quantity += item.quantity
                self._persist()
                return existing

        line = item.model_copy()
        self._items.append(line)
        self._persist()
        return line

    def add_variant(self, product: Any, variant: Any, quantity: int) -> CartItem:
        """
        Snapshot a (product, variant) pair into the cart.

        Stock is checked for the requested quantity and again for the
        merged quantity when the variant is already in the cart.

        Raises:
            ValidationError(INSUFFICIENT_STOCK)
        """
        if product is None or variant is None:
            raise ValidationError("Invalid product data.")

        quantity = parse_quantity(quantity)
        if variant.stock_quantity < quantity:
            raise ValidationError(
                f"Only {variant.stock_quantity} left in stock.",
                code=ErrorCode.INSUFFICIENT_STOCK,
            )

        existing = self.get(variant.id)
        if existing is not None and existing.product_id == product.id:
            if variant.stock_quantity < existing.quantity + quantity:
                remaining = max(variant.stock_quantity - existing.quantity, 0)
                raise ValidationError(
                    f"Only {remaining} more items available.",
                    code=ErrorCode.INSUFFICIENT_STOCK,
                )

        return self.add(
            CartItem(
                product_id=product.id,
                variant_id=variant.id,
                product_name=product.name,
                price=effective_price(variant),
                size=variant.size,
                color=variant.color,
                quantity=quantity,
                image_url=getattr(product, "image_url", None),
            )
        )

    def update_quantity(self, variant_id: uuid.UUID, raw: Any) -> CartItem:
        item = self.get(variant_id)
        if item is None:
            raise ValidationError("Item is not in the cart.")
        item.quantity = parse_quantity(raw)
        self._persist()
        return item

    def remove(self, variant_id: uuid.UUID) -> None:
        before = len(self._items)
        self._items = [item for item in self._items if item.variant_id != variant_id]
        if len(self._items) != before:
            self._persist()

    def clear(self) -> None:
        self._items = []
        self._persist()

    def _persist(self) -> None:
        self.repo.save(self._items)
        logger.debug("Cart saved (%d lines)", len(self._items))
