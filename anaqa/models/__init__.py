from anaqa.db.base import Base  # noqa: F401
from anaqa.models.coupons import CouponRedemption, CouponRule, DiscountType  # noqa: F401
from anaqa.models.order import Order, OrderItem, OrderStatus, ShippingMethod  # noqa: F401

__all__ = [
    "Base",
    "CouponRule",
    "CouponRedemption",
    "DiscountType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "ShippingMethod",
]
