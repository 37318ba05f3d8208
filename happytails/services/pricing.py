# happytails/services/pricing.py
"""
Variant resolution and price display for the product detail page.

Works on any variant-shaped object (ORM rows, API read models) exposing
``size``, ``color``, ``regular_price``, ``sale_price`` and ``stock_quantity``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from happytails.core.errors import ErrorCode, ValidationError
from happytails.core.money import format_money

# Placeholder value of an unselected size/color picker
DEFAULT_SELECTION = "default"


class MatchKind(str, Enum):
    EXACT = "exact"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True)
class VariantMatch:
    """
    Result of resolve_variant().

    A FALLBACK match means the user's selection was not honored as given;
    callers must not present it as confirmation of the selection.
    """

    kind: MatchKind
    variant: Any | None = None

    @property
    def is_exact(self) -> bool:
        return self.kind is MatchKind.EXACT


@dataclass(frozen=True)
class PriceDisplay:
    current: str
    original: str | None = None
    discount_percent: int | None = None

    @property
    def on_sale(self) -> bool:
        return self.original is not None


def _is_selected(value: str | None) -> bool:
    return bool(value) and value != DEFAULT_SELECTION


def has_size(variants: Sequence[Any]) -> bool:
    return any(v.size is not None for v in variants)


def has_color(variants: Sequence[Any]) -> bool:
    return any(v.color is not None for v in variants)


def resolve_variant(
    variants: Sequence[Any],
    selected_size: str | None = DEFAULT_SELECTION,
    selected_color: str | None = DEFAULT_SELECTION,
) -> VariantMatch:
    """
    Pick the variant for a (size, color) selection.

    Order of preference:
      1. exact match on every dimension the product has
      2. first variant with the selected size (list order)
      3. variants[0]

    Dimensions the product does not have are ignored. An empty variant
    list resolves to MatchKind.NONE.
    """
    if not variants:
        return VariantMatch(MatchKind.NONE)

    sized = has_size(variants)
    colored = has_color(variants)

    size_ok = not sized or _is_selected(selected_size)
    color_ok = not colored or _is_selected(selected_color)
    if size_ok and color_ok:
        for variant in variants:
            if sized and variant.size != selected_size:
                continue
            if colored and variant.color != selected_color:
                continue
            return VariantMatch(MatchKind.EXACT, variant)

    if sized and _is_selected(selected_size):
        for variant in variants:
            if variant.size == selected_size:
                return VariantMatch(MatchKind.FALLBACK, variant)

    return VariantMatch(MatchKind.FALLBACK, variants[0])


def available_sizes(variants: Sequence[Any]) -> list[str]:
    return sorted({v.size for v in variants if v.size is not None})


def available_colors(variants: Sequence[Any], selected_size: str | None) -> list[str]:
    """
    Colors offered for the current size selection.

      - product without sizes : every distinct color
      - size not chosen yet   : nothing (size comes first)
      - size chosen           : colors of variants with that size
    """
    if not has_size(variants):
        return sorted({v.color for v in variants if v.color is not None})
    if not _is_selected(selected_size):
        return []
    return sorted(
        {v.color for v in variants if v.size == selected_size and v.color is not None}
    )


def effective_price(variant: Any) -> float:
    if variant.sale_price is not None:
        return float(variant.sale_price)
    return float(variant.regular_price)


def price_display(variant: Any) -> PriceDisplay:
    """
    Sale price with the regular price struck through, or the regular
    price alone.
    """
    if variant.sale_price is None:
        return PriceDisplay(current=format_money(variant.regular_price))

    regular = float(variant.regular_price)
    sale = float(variant.sale_price)
    discount = int(round((regular - sale) / regular * 100)) if regular > 0 else 0
    return PriceDisplay(
        current=format_money(sale),
        original=format_money(regular),
        discount_percent=discount,
    )


def validate_add_to_cart(
    variants: Sequence[Any],
    selected_size: str | None,
    selected_color: str | None,
    quantity: int,
    variant: Any | None,
) -> None:
    """
    Preconditions for "Add to Cart".

    Raises:
        ValidationError(SIZE_REQUIRED)      size dimension exists but unselected
        ValidationError(COLOR_REQUIRED)     colors are offered but none selected
        ValidationError(INSUFFICIENT_STOCK) quantity above the variant's stock
    """
    if has_size(variants) and not _is_selected(selected_size):
        raise ValidationError("Please select a size.", code=ErrorCode.SIZE_REQUIRED)

    if available_colors(variants, selected_size) and not _is_selected(selected_color):
        raise ValidationError("Please select a color.", code=ErrorCode.COLOR_REQUIRED)

    if variant is None:
        raise ValidationError("This product is not available.")

    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")

    if quantity > variant.stock_quantity:
        raise ValidationError(
            f"Only {variant.stock_quantity} left in stock.",
            code=ErrorCode.INSUFFICIENT_STOCK,
        )
