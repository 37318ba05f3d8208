# happytails/services/storefront.py
from typing import Any

from happytails.core.errors import ValidationError
from happytails.services.cart_service import CartStore, parse_quantity
from happytails.services.notifications import NoticeBoard
from happytails.services.pricing import (
    DEFAULT_SELECTION,
    PriceDisplay,
    VariantMatch,
    available_colors,
    available_sizes,
    price_display,
    resolve_variant,
    validate_add_to_cart,
)


class ProductSelection:
    """
    Selection state of a product detail page.

    Holds the chosen size/color/quantity, exposes the resolver outputs and
    turns "Add to Cart" validation failures into transient notices.
    """

    def __init__(self, product: Any, cart: CartStore, notices: NoticeBoard):
        self.product = product
        self.cart = cart
        self.notices = notices
        self.selected_size = DEFAULT_SELECTION
        self.selected_color = DEFAULT_SELECTION
        self.quantity = 1

    @property
    def variants(self) -> list[Any]:
        return list(self.product.variants)

    @property
    def sizes(self) -> list[str]:
        return available_sizes(self.variants)

    @property
    def colors(self) -> list[str]:
        return available_colors(self.variants, self.selected_size)

    def select_size(self, size: str) -> None:
        """Changing the size resets a color that the new size does not offer."""
        self.selected_size = size or DEFAULT_SELECTION
        if self.selected_color not in self.colors:
            self.selected_color = DEFAULT_SELECTION

    def select_color(self, color: str) -> None:
        self.selected_color = color or DEFAULT_SELECTION

    def set_quantity(self, raw: Any) -> int:
        self.quantity = parse_quantity(raw)
        return self.quantity

    def current(self) -> VariantMatch:
        return resolve_variant(self.variants, self.selected_size, self.selected_color)

    def price_display(self) -> PriceDisplay | None:
        match = self.current()
        return price_display(match.variant) if match.variant is not None else None

    def add_to_cart(self) -> bool:
        """
        Validate the selection and add it to the cart.

        Never raises for user errors; the outcome is posted to the
        notice board and returned as a bool.
        """
        variant = self.current().variant
        try:
            validate_add_to_cart(
                self.variants,
                self.selected_size,
                self.selected_color,
                self.quantity,
                variant,
            )
            self.cart.add_variant(self.product, variant, self.quantity)
        except ValidationError as exc:
            self.notices.error(exc.message)
            return False

        self.notices.success("Added to cart!")
        return True
