from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from anaqa.core import metrics
from anaqa.core.config import settings
from anaqa.models.order import Order, OrderItem, OrderStatus, ShippingMethod
from anaqa.schemas.order import OrderCreate
from anaqa.services import cart_pricer
from anaqa.services import coupons as coupons_service

logger = logging.getLogger(__name__)


def calculate_shipping(method: ShippingMethod) -> Decimal:
    if method == ShippingMethod.outside:
        return Decimal(settings.shipping_fee_outside)
    return Decimal(settings.shipping_fee_inside)


async def _next_reference(session: AsyncSession) -> str:
    count = (await session.execute(select(func.count()).select_from(Order))).scalar_one()
    return f"{settings.order_reference_prefix}{settings.order_reference_base + int(count) + 1}"


async def _price_and_reserve(session: AsyncSession, payload: OrderCreate) -> cart_pricer.PricingDecision:
    """Price the cart and consume one use of the winning rule.

    If the winning rule ran out between pricing and the conditional
    increment, the cart is re-priced from fresh rule state so the next best
    rule (or none) applies instead of overselling the exhausted one.
    """
    attempts = max(1, int(settings.coupon_redeem_max_attempts))
    for attempt in range(1, attempts + 1):
        decision = await cart_pricer.price_cart(session, payload.items, payload.coupon_code)
        if decision.rule is None:
            return decision
        if await coupons_service.try_increment_usage(session, rule_id=decision.rule.id):
            return decision
        metrics.record_redeem_conflict()
        logger.warning(
            "coupon_redeem_conflict",
            extra={"coupon_code": decision.rule.code, "attempt": attempt},
        )
        # Expire cached rule rows so the next pass sees the updated counters.
        await session.rollback()
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon availability changed, please retry")


def _log_client_mismatch(payload: OrderCreate, order: Order) -> None:
    submitted = {
        "sub_total": payload.sub_total,
        "discount_amount": payload.discount_amount,
        "total_amount": payload.total_amount,
    }
    computed = {
        "sub_total": order.sub_total,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
    }
    mismatched = sorted(
        key for key, value in submitted.items() if value is not None and Decimal(value) != Decimal(computed[key])
    )
    if mismatched:
        logger.warning(
            "order_client_total_mismatch",
            extra={"reference": order.reference, "fields": mismatched, "submitted": submitted, "computed": computed},
        )


async def _place_order(
    session: AsyncSession,
    payload: OrderCreate,
    *,
    user_id: str | None,
    customer_email: str | None,
) -> tuple[Order, cart_pricer.PricingDecision]:
    decision = await _price_and_reserve(session, payload)
    priced = decision.result

    address = payload.shipping_address
    shipping_amount = calculate_shipping(address.method)
    guest = payload.guest_info
    order = Order(
        id=uuid.uuid4(),
        reference=await _next_reference(session),
        user_id=user_id,
        customer_email=customer_email or (str(guest.email) if guest and guest.email else None),
        guest_info=guest.model_dump(mode="json") if guest else None,
        status=OrderStatus.pending,
        payment_method=payload.payment_method or "COD",
        shipping_address=address.address,
        shipping_city=address.city,
        shipping_postal_code=address.postal_code,
        shipping_method=address.method,
        sub_total=priced.cart_total,
        discount_amount=priced.discount_total,
        coupon_code=priced.applied_coupon.code if priced.applied_coupon else None,
        shipping_amount=shipping_amount,
        total_amount=priced.grand_total + shipping_amount,
        currency=settings.currency,
        items=[
            OrderItem(
                product_id=item.product_id,
                name=item.name,
                size=item.size,
                image=item.image,
                unit_price=item.effective_price,
                quantity=item.quantity,
            )
            for item in payload.items
        ],
    )
    session.add(order)
    await session.flush()
    if decision.rule is not None:
        coupons_service.record_redemption(
            session,
            rule_id=decision.rule.id,
            order_id=order.id,
            user_id=user_id,
            discount_amount=priced.discount_total,
        )
    await session.commit()
    return order, decision


async def create_order(
    session: AsyncSession,
    payload: OrderCreate,
    *,
    user_id: str | None = None,
    customer_email: str | None = None,
) -> Order:
    """Re-price the cart and persist the order in one transaction.

    The reference is derived from the current order count, so two concurrent
    checkouts can pick the same one. The loser's transaction is rolled back
    (including its coupon increment) and the whole placement runs again.
    """
    if not payload.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty")

    attempts = max(1, int(settings.order_reference_max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            order, decision = await _place_order(session, payload, user_id=user_id, customer_email=customer_email)
            break
        except IntegrityError:
            await session.rollback()
            if attempt == attempts:
                raise
            metrics.record_reference_conflict()
            logger.warning("order_reference_conflict", extra={"attempt": attempt})

    await session.refresh(order)
    await session.refresh(order, attribute_names=["items"])

    _log_client_mismatch(payload, order)
    metrics.record_order_created()
    if decision.rule is not None:
        metrics.record_coupon_redeemed()
    logger.info(
        "order_created",
        extra={"reference": order.reference, "total_amount": order.total_amount, "coupon_code": order.coupon_code},
    )
    return order


async def get_order(session: AsyncSession, order_id: UUID) -> Order | None:
    return await session.get(Order, order_id)


async def get_orders_for_user(session: AsyncSession, user_id: str) -> Sequence[Order]:
    result = await session.execute(select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc()))
    return result.scalars().all()


async def list_orders(session: AsyncSession, *, order_status: OrderStatus | None = None) -> Sequence[Order]:
    query = select(Order).order_by(Order.created_at.desc(), Order.reference.desc())
    if order_status is not None:
        query = query.where(Order.status == order_status)
    result = await session.execute(query)
    return result.scalars().all()


async def update_order_status(session: AsyncSession, order: Order, new_status: OrderStatus) -> Order:
    previous = order.status
    order.status = new_status
    session.add(order)
    await session.commit()
    await session.refresh(order)
    await session.refresh(order, attribute_names=["items"])
    logger.info(
        "order_status_updated",
        extra={"reference": order.reference, "from_status": previous, "to_status": new_status},
    )
    return order
