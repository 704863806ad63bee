"""Scoring of a single coupon rule against a cart snapshot.

Everything here is pure: no session, no clock other than the optional ``now``
argument. A rule that does not apply contributes ``0``; nothing in this module
raises for an expired, exhausted or out-of-scope rule, so one bad rule can
never abort pricing of the whole cart.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from anaqa.core.config import settings
from anaqa.models.coupons import DiscountType
from anaqa.services import pricing

ZERO = Decimal("0")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_id(value: Any) -> str | None:
    """Canonical string form of an id, a populated reference or a mapping."""
    if value is None:
        return None
    if isinstance(value, dict):
        for key in ("id", "_id"):
            if value.get(key) is not None:
                return normalize_id(value[key])
        return None
    if not isinstance(value, (str, int, UUID)):
        nested = getattr(value, "id", None)
        if nested is not None:
            return normalize_id(nested)
    text = str(value).strip()
    return text or None


def _id_set(values: Iterable[Any] | None) -> set[str]:
    ids: set[str] = set()
    for value in values or []:
        normalized = normalize_id(value)
        if normalized:
            ids.add(normalized)
    return ids


def eligible_amount(rule: Any, items: Sequence[Any], cart_total: Decimal) -> Decimal | None:
    """Subtotal the rule may discount, or ``None`` when no line is in scope."""
    category_ids = _id_set(getattr(rule, "applicable_categories", None))
    product_ids = _id_set(getattr(rule, "applicable_products", None))
    if not category_ids and not product_ids:
        return cart_total

    in_scope = [
        item
        for item in items
        if normalize_id(getattr(item, "category", None)) in category_ids
        or normalize_id(getattr(item, "product_id", None)) in product_ids
    ]
    if not in_scope:
        return None
    return pricing.cart_total(in_scope)


def _raw_discount(rule: Any, amount: Decimal) -> Decimal:
    value = Decimal(rule.discount_value or 0)
    if rule.discount_type == DiscountType.percentage:
        discount = amount * value / Decimal("100")
        cap = Decimal(rule.max_discount) if rule.max_discount else None
        if cap is not None and discount > cap:
            discount = cap
        return discount
    # Fixed amounts are not limited to the eligible subtotal; the cart-level clamp handles overshoot.
    return value


def evaluate_rule(
    rule: Any,
    items: Sequence[Any],
    cart_total: Decimal,
    total_quantity: int,
    *,
    now: datetime | None = None,
) -> Decimal:
    now = now or _now()

    if not rule.is_active:
        return ZERO
    valid_until = _as_aware(rule.valid_until)
    if valid_until is not None and now > valid_until:
        return ZERO
    if rule.usage_limit is not None and int(rule.used_count or 0) >= int(rule.usage_limit):
        return ZERO
    if cart_total < Decimal(rule.min_spend or 0):
        return ZERO
    if total_quantity < int(rule.min_quantity or 0):
        return ZERO

    amount = eligible_amount(rule, items, cart_total)
    if amount is None:
        return ZERO

    discount = pricing.quantize_money(_raw_discount(rule, amount), rounding=settings.money_rounding)
    return discount if discount > 0 else ZERO
