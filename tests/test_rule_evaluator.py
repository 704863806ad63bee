from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
import uuid

from anaqa.models.coupons import DiscountType
from anaqa.schemas.cart import CartLineItem
from anaqa.services import pricing
from anaqa.services.rule_evaluator import eligible_amount, evaluate_rule, normalize_id


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _rule(**overrides: object) -> SimpleNamespace:
    base: dict[str, object] = {
        "code": "SAVE10",
        "description": "10% off",
        "is_active": True,
        "is_automatic": True,
        "discount_type": DiscountType.percentage,
        "discount_value": Decimal("10"),
        "max_discount": None,
        "min_spend": Decimal("0"),
        "min_quantity": 0,
        "valid_until": NOW + timedelta(days=7),
        "usage_limit": 100,
        "used_count": 0,
        "applicable_categories": [],
        "applicable_products": [],
    }
    base.update(overrides)
    return SimpleNamespace(**base)


def _evaluate(rule: SimpleNamespace, items: list[CartLineItem]) -> Decimal:
    return evaluate_rule(rule, items, pricing.cart_total(items), pricing.total_quantity(items), now=NOW)


def _item(price: str, quantity: int = 1, **extra: object) -> CartLineItem:
    return CartLineItem.model_validate({"price": price, "quantity": quantity, **extra})


def test_percentage_rule_on_whole_cart() -> None:
    items = [_item("1000", 2)]
    assert _evaluate(_rule(min_spend=Decimal("500")), items) == Decimal("200")


def test_short_circuit_checks_yield_zero() -> None:
    items = [_item("1000", 2)]
    assert _evaluate(_rule(is_active=False), items) == 0
    assert _evaluate(_rule(valid_until=NOW - timedelta(seconds=1)), items) == 0
    assert _evaluate(_rule(used_count=5, usage_limit=5), items) == 0
    assert _evaluate(_rule(min_spend=Decimal("2000.01")), items) == 0
    assert _evaluate(_rule(min_quantity=3), items) == 0


def test_boundaries_are_inclusive() -> None:
    items = [_item("1000", 2)]
    assert _evaluate(_rule(min_spend=Decimal("2000"), min_quantity=2, valid_until=NOW), items) == Decimal("200")
    assert _evaluate(_rule(used_count=4, usage_limit=5), items) == Decimal("200")


def test_naive_expiry_is_read_as_utc() -> None:
    items = [_item("500")]
    expired = _rule(valid_until=(NOW - timedelta(hours=1)).replace(tzinfo=None))
    assert _evaluate(expired, items) == 0


def test_missing_expiry_or_limit_does_not_reject() -> None:
    items = [_item("500")]
    assert _evaluate(_rule(valid_until=None, usage_limit=None), items) == Decimal("50")


def test_percentage_is_capped_by_max_discount() -> None:
    items = [_item("1000")]
    assert _evaluate(_rule(discount_value=Decimal("50"), max_discount=Decimal("100")), items) == Decimal("100")
    # A zero cap is treated as "no cap".
    assert _evaluate(_rule(discount_value=Decimal("50"), max_discount=Decimal("0")), items) == Decimal("500")


def test_fixed_discount_is_not_limited_by_eligible_amount() -> None:
    items = [_item("300")]
    rule = _rule(discount_type=DiscountType.fixed, discount_value=Decimal("5000"))
    assert _evaluate(rule, items) == Decimal("5000")


def test_discount_is_rounded_to_whole_currency_units() -> None:
    assert _evaluate(_rule(), [_item("1005")]) == Decimal("101")
    assert _evaluate(_rule(), [_item("1004")]) == Decimal("100")


def test_effective_price_prefers_discount_price() -> None:
    items = [_item("1000", 1, discount_price="800")]
    assert _evaluate(_rule(), items) == Decimal("80")
    # A zero sale price falls back to the list price.
    assert _evaluate(_rule(), [_item("1000", 1, discount_price="0")]) == Decimal("100")


def test_category_scope_accepts_raw_and_embedded_ids() -> None:
    category_id = str(uuid.uuid4())
    items = [
        _item("1000", 1, category=category_id),
        _item("400", 2, category={"_id": category_id, "name": "Abaya"}),
        _item("5000", 1, category={"id": "other"}),
    ]
    rule = _rule(applicable_categories=[category_id])
    assert _evaluate(rule, items) == Decimal("180")


def test_product_scope_matches_any_id_alias() -> None:
    items = [
        _item("1000", 1, _id="prod-1"),
        _item("2000", 1, product="prod-2"),
        _item("3000", 1, product_id="prod-3"),
    ]
    rule = _rule(applicable_products=["prod-1", "prod-2"])
    assert _evaluate(rule, items) == Decimal("300")


def test_scope_is_union_of_categories_and_products() -> None:
    items = [
        _item("1000", 1, _id="prod-1", category="cat-a"),
        _item("2000", 1, _id="prod-2", category="cat-b"),
        _item("4000", 1, _id="prod-3", category="cat-c"),
    ]
    rule = _rule(applicable_categories=["cat-a"], applicable_products=["prod-2"])
    assert eligible_amount(rule, items, pricing.cart_total(items)) == Decimal("3000")
    assert _evaluate(rule, items) == Decimal("300")


def test_out_of_scope_cart_gets_nothing_even_when_minimums_met() -> None:
    items = [_item("1000", 5, category="cat-b")]
    rule = _rule(applicable_categories=["cat-a"], min_spend=Decimal("100"), min_quantity=1)
    assert eligible_amount(rule, items, Decimal("5000")) is None
    assert _evaluate(rule, items) == 0


def test_fixed_scoped_rule_requires_an_in_scope_item() -> None:
    rule = _rule(discount_type=DiscountType.fixed, discount_value=Decimal("150"), applicable_products=["prod-1"])
    assert _evaluate(rule, [_item("1000", 1, _id="prod-2")]) == 0
    assert _evaluate(rule, [_item("1000", 1, _id="prod-1")]) == Decimal("150")


def test_negative_configuration_never_produces_negative_discount() -> None:
    rule = _rule(discount_type=DiscountType.fixed, discount_value=Decimal("-50"))
    assert _evaluate(rule, [_item("100")]) == 0


def test_normalize_id_handles_populated_references() -> None:
    raw = uuid.uuid4()
    assert normalize_id(raw) == str(raw)
    assert normalize_id({"_id": raw}) == str(raw)
    assert normalize_id({"id": " abc "}) == "abc"
    assert normalize_id(SimpleNamespace(id=42)) == "42"
    assert normalize_id({"name": "no id"}) is None
    assert normalize_id("") is None
    assert normalize_id(None) is None
