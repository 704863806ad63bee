from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CartLineItem(BaseModel):
    """One cart line as the storefront sends it.

    ``product_id`` also accepts ``_id``/``product`` keys and ``category`` may be
    either a bare id or an embedded category object carrying its own id.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: str | None = Field(default=None, validation_alias=AliasChoices("product_id", "_id", "product"))
    category: str | dict[str, Any] | None = None
    price: Decimal = Field(ge=0)
    discount_price: Decimal | None = Field(default=None, ge=0)
    quantity: int = Field(ge=1)
    name: str | None = Field(default=None, max_length=160)
    size: str | None = Field(default=None, max_length=40)
    image: str | None = Field(default=None, max_length=500)

    @field_validator("product_id", mode="before")
    @classmethod
    def _coerce_product_id(cls, value: Any) -> Any:
        if isinstance(value, dict):
            value = value.get("id") or value.get("_id")
        if isinstance(value, (UUID, int)):
            return str(value)
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        if isinstance(value, (UUID, int)):
            return str(value)
        return value

    @property
    def effective_price(self) -> Decimal:
        return self.discount_price if self.discount_price else self.price


class CartPriceRequest(BaseModel):
    items: list[CartLineItem] = Field(default_factory=list)
    coupon_code: str | None = Field(default=None, max_length=40)


class AppliedCoupon(BaseModel):
    code: str
    description: str | None = None
    amount: Decimal
    is_automatic: bool


class PricingResult(BaseModel):
    cart_total: Decimal = Decimal("0")
    discount_total: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")
    applied_coupon: AppliedCoupon | None = None
    error: str | None = None
