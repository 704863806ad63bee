from collections import Counter
from threading import Lock
from typing import Dict, Counter as CounterType

_metrics: CounterType[str] = Counter()
_lock = Lock()


def _inc(key: str) -> None:
    with _lock:
        _metrics[key] += 1


def record_cart_priced() -> None:
    _inc("carts_priced")


def record_manual_code_rejected() -> None:
    _inc("manual_codes_rejected")


def record_order_created() -> None:
    _inc("orders_created")


def record_coupon_redeemed() -> None:
    _inc("coupons_redeemed")


def record_redeem_conflict() -> None:
    _inc("coupon_redeem_conflicts")


def record_reference_conflict() -> None:
    _inc("order_reference_conflicts")


def snapshot() -> Dict[str, int]:
    with _lock:
        return dict(_metrics)


def reset() -> None:
    with _lock:
        _metrics.clear()
