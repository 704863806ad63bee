from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from anaqa.models.coupons import DiscountType


def _clean_ids(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    cleaned: list[str] = []
    for value in values:
        text = str(value).strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


class CouponRuleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str | None = None
    is_automatic: bool
    is_active: bool
    discount_type: DiscountType
    discount_value: Decimal
    max_discount: Decimal | None = None
    min_spend: Decimal
    min_quantity: int
    valid_until: datetime
    usage_limit: int
    used_count: int
    applicable_categories: list[str] = Field(default_factory=list)
    applicable_products: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class CouponRuleCreate(BaseModel):
    code: str | None = Field(default=None, max_length=40)
    description: str | None = None
    is_automatic: bool = False
    is_active: bool = True
    discount_type: DiscountType = DiscountType.percentage
    discount_value: Decimal = Field(ge=0)
    max_discount: Decimal | None = Field(default=None, ge=0)
    min_spend: Decimal = Field(default=Decimal("0"), ge=0)
    min_quantity: int = Field(default=0, ge=0)
    valid_until: datetime
    usage_limit: int | None = Field(default=None, ge=1)
    applicable_categories: list[str] = Field(default_factory=list)
    applicable_products: list[str] = Field(default_factory=list)

    @field_validator("applicable_categories", "applicable_products")
    @classmethod
    def _normalize_ids(cls, values: list[str] | None) -> list[str] | None:
        return _clean_ids(values)

    @model_validator(mode="after")
    def _check_rule(self) -> "CouponRuleCreate":
        if not self.is_automatic and not (self.code or "").strip():
            raise ValueError("Manual coupons require a code")
        if self.discount_type == DiscountType.percentage and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class CouponRuleUpdate(BaseModel):
    description: str | None = None
    is_active: bool | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, ge=0)
    max_discount: Decimal | None = Field(default=None, ge=0)
    min_spend: Decimal | None = Field(default=None, ge=0)
    min_quantity: int | None = Field(default=None, ge=0)
    valid_until: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    applicable_categories: list[str] | None = None
    applicable_products: list[str] | None = None

    @field_validator("applicable_categories", "applicable_products")
    @classmethod
    def _normalize_ids(cls, values: list[str] | None) -> list[str] | None:
        return _clean_ids(values)


class CouponRedemptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    rule_id: UUID
    user_id: str | None = None
    order_id: UUID
    discount_amount: Decimal
    redeemed_at: datetime
