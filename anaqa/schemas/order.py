from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from anaqa.models.order import OrderStatus, ShippingMethod
from anaqa.schemas.cart import CartLineItem


class ShippingAddress(BaseModel):
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    postal_code: str | None = Field(default=None, max_length=20)
    method: ShippingMethod = ShippingMethod.inside


class GuestInfo(BaseModel):
    first_name: str | None = Field(default=None, max_length=80)
    last_name: str | None = Field(default=None, max_length=80)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=32)


class OrderCreate(BaseModel):
    items: list[CartLineItem] = Field(default_factory=list)
    coupon_code: str | None = Field(default=None, max_length=40)
    shipping_address: ShippingAddress = Field(default_factory=ShippingAddress)
    guest_info: GuestInfo | None = None
    payment_method: str = Field(default="COD", max_length=20)
    # Client-side figures are accepted for compatibility but always recomputed.
    sub_total: Decimal | None = None
    discount_amount: Decimal | None = None
    total_amount: Decimal | None = None


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: str | None = None
    name: str | None = None
    size: str | None = None
    image: str | None = None
    unit_price: Decimal
    quantity: int


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    user_id: str | None = None
    customer_email: str | None = None
    status: OrderStatus
    payment_method: str
    shipping_method: ShippingMethod
    shipping_address: str | None = None
    shipping_city: str | None = None
    shipping_postal_code: str | None = None
    sub_total: Decimal
    discount_amount: Decimal
    coupon_code: str | None = None
    shipping_amount: Decimal
    total_amount: Decimal
    currency: str
    created_at: datetime
    items: list[OrderItemRead] = Field(default_factory=list)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
