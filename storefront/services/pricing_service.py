# services/pricing_service.py

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from storefront.models.coupon import DiscountType
from storefront.schemas.admin_settings_schemas import ShippingConfig
from storefront.schemas.cart_schemas import CartLine
from storefront.schemas.checkout_schemas import PriceQuote
from storefront.schemas.coupon_schemas import CouponRecord

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def calculate_discount(subtotal: Decimal, coupon: Optional[CouponRecord]) -> Decimal:
    # A discount never takes the order below zero.
    if coupon is None:
        return ZERO

    if coupon.discount_type == DiscountType.percentage:
        discount = subtotal * coupon.discount_value / HUNDRED
        return min(quantize_money(max(discount, ZERO)), subtotal)

    return min(quantize_money(coupon.discount_value), subtotal)


def calculate_shipping(subtotal: Decimal, shipping: ShippingConfig) -> Decimal:
    # free_threshold == 0 means free shipping is switched off
    if shipping.free_threshold > 0 and subtotal >= shipping.free_threshold:
        return ZERO
    return shipping.base_price


def calculate_tax(taxable: Decimal, shipping: ShippingConfig) -> Decimal:
    return quantize_money(taxable * shipping.tax_percentage / HUNDRED)


def compute_quote(
    lines: Iterable[CartLine],
    coupon: Optional[CouponRecord],
    shipping: ShippingConfig,
) -> PriceQuote:
    """
    Price a cart.

    Pure: the same lines, coupon and shipping config always give the same
    quote. The free-shipping threshold is checked against the subtotal
    before discount; tax is charged on the discounted subtotal and never on
    shipping. Discount and tax are rounded half-up to the cent, so the total
    is exactly the sum of the stored parts.
    """
    subtotal = calculate_subtotal(lines)
    discount = calculate_discount(subtotal, coupon)
    shipping_amount = calculate_shipping(subtotal, shipping)
    tax = calculate_tax(subtotal - discount, shipping)

    return PriceQuote(
        subtotal=subtotal,
        discount_amount=discount,
        shipping_amount=shipping_amount,
        tax_amount=tax,
        total=subtotal - discount + shipping_amount + tax,
    )


def free_shipping_remaining(subtotal: Decimal, shipping: ShippingConfig) -> Decimal:
    """How much more the shopper has to add before shipping becomes free."""
    if shipping.free_threshold <= 0 or subtotal >= shipping.free_threshold:
        return ZERO
    return shipping.free_threshold - subtotal
