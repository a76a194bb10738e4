# services/exceptions.py

"""
STOREFRONT SERVICE ERRORS

Domain errors raised by the cart, checkout and order services.
Routes translate these into HTTP responses. Coupon rejections are not
errors: they come back as CouponValidation values.
"""


class StorefrontServiceError(Exception):
    """Base exception for all storefront service failures."""


class CartError(StorefrontServiceError):
    """Raised when a cart mutation would break a cart invariant."""


class CheckoutError(StorefrontServiceError):
    """Raised when an order cannot be placed."""


class CouponRedemptionError(CheckoutError):
    """Raised when a coupon's usage allowance is gone at redemption time."""


class InvalidStatusTransition(StorefrontServiceError):
    """Raised on an order status change the lifecycle does not allow."""
