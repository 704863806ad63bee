"""Cart pricing: candidate rule lookup and winner selection.

A manual code is always tried first and wins whenever it yields a discount.
Otherwise the best automatic rule applies. A bad manual code never blocks the
cart; it surfaces as ``PricingResult.error`` next to the automatic fallback.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from anaqa.core import metrics
from anaqa.models.coupons import CouponRule
from anaqa.schemas.cart import AppliedCoupon, CartLineItem, PricingResult
from anaqa.services import coupons as coupons_service
from anaqa.services import pricing
from anaqa.services.rule_evaluator import ZERO, evaluate_rule

logger = logging.getLogger(__name__)

INVALID_CODE_ERROR = "Invalid Coupon Code"


@dataclass(frozen=True)
class PricingDecision:
    result: PricingResult
    rule: CouponRule | None


def _applied(rule: CouponRule, amount: Decimal, *, automatic: bool) -> AppliedCoupon:
    return AppliedCoupon(code=rule.code, description=rule.description, amount=amount, is_automatic=automatic)


def best_automatic_rule(
    rules: Sequence[CouponRule],
    items: Sequence[CartLineItem],
    cart_total: Decimal,
    total_quantity: int,
    *,
    now: datetime | None = None,
) -> tuple[CouponRule | None, Decimal]:
    best_rule: CouponRule | None = None
    best_amount = ZERO
    for rule in rules:
        amount = evaluate_rule(rule, items, cart_total, total_quantity, now=now)
        if amount > best_amount:
            best_rule, best_amount = rule, amount
    return best_rule, best_amount


async def price_cart(
    session: AsyncSession,
    items: Sequence[CartLineItem],
    manual_code: str | None = None,
    *,
    now: datetime | None = None,
) -> PricingDecision:
    if not items:
        return PricingDecision(result=PricingResult(), rule=None)

    cart_total = pricing.cart_total(items)
    total_quantity = pricing.total_quantity(items)

    automatic_rules = await coupons_service.list_active_automatic_rules(session)
    auto_rule, auto_amount = best_automatic_rule(automatic_rules, items, cart_total, total_quantity, now=now)

    winner: CouponRule | None = None
    applied: AppliedCoupon | None = None
    error: str | None = None

    requested = (manual_code or "").strip()
    if requested:
        manual_rule = await coupons_service.get_active_manual_rule(session, code=requested)
        if manual_rule is None:
            error = INVALID_CODE_ERROR
        else:
            manual_amount = evaluate_rule(manual_rule, items, cart_total, total_quantity, now=now)
            if manual_amount > 0:
                winner = manual_rule
                applied = _applied(manual_rule, manual_amount, automatic=False)
            else:
                error = f"Requirements not met for {requested}"
        if error:
            metrics.record_manual_code_rejected()
            logger.info("manual_coupon_rejected", extra={"coupon_code": requested, "reason": error})

    if applied is None and auto_rule is not None:
        winner = auto_rule
        applied = _applied(auto_rule, auto_amount, automatic=True)

    discount_total = applied.amount if applied else ZERO
    if discount_total > cart_total:
        discount_total = cart_total

    metrics.record_cart_priced()
    result = PricingResult(
        cart_total=cart_total,
        discount_total=discount_total,
        grand_total=cart_total - discount_total,
        applied_coupon=applied,
        error=error,
    )
    return PricingDecision(result=result, rule=winner)


async def calculate_cart(
    session: AsyncSession,
    items: Sequence[CartLineItem],
    manual_code: str | None = None,
    *,
    now: datetime | None = None,
) -> PricingResult:
    """Read-only cart preview; never touches usage counters."""
    decision = await price_cart(session, items, manual_code, now=now)
    return decision.result
