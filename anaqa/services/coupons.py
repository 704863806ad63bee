from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from anaqa.core.config import settings
from anaqa.models.coupons import CouponRedemption, CouponRule, DiscountType
from anaqa.schemas.coupons import CouponRuleCreate, CouponRuleUpdate

logger = logging.getLogger(__name__)

AUTOMATIC_CODE_PREFIX = "AUTO"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def generate_automatic_code(now: datetime | None = None, *, offset: int = 0) -> str:
    stamp = int((now or _now()).timestamp() * 1000) + offset
    return f"{AUTOMATIC_CODE_PREFIX}-{stamp}"


async def list_active_automatic_rules(session: AsyncSession) -> list[CouponRule]:
    # Newest first: among equally good automatic rules the most recent one wins.
    result = await session.execute(
        select(CouponRule)
        .where(CouponRule.is_automatic.is_(True), CouponRule.is_active.is_(True))
        .order_by(CouponRule.created_at.desc(), CouponRule.code.asc())
    )
    return list(result.scalars().all())


async def get_active_manual_rule(session: AsyncSession, *, code: str) -> CouponRule | None:
    cleaned = normalize_code(code)
    if not cleaned:
        return None
    result = await session.execute(
        select(CouponRule).where(
            CouponRule.code == cleaned,
            CouponRule.is_active.is_(True),
            CouponRule.is_automatic.is_(False),
        )
    )
    return result.scalar_one_or_none()


async def get_rule(session: AsyncSession, rule_id: UUID) -> CouponRule | None:
    return await session.get(CouponRule, rule_id)


async def list_rules(session: AsyncSession) -> list[CouponRule]:
    result = await session.execute(select(CouponRule).order_by(CouponRule.created_at.desc(), CouponRule.code.asc()))
    return list(result.scalars().all())


async def _code_taken(session: AsyncSession, code: str) -> bool:
    count = (await session.execute(select(func.count()).select_from(CouponRule).where(CouponRule.code == code))).scalar_one()
    return int(count) > 0


async def _unique_automatic_code(session: AsyncSession) -> str:
    now = _now()
    for offset in range(10):
        candidate = generate_automatic_code(now, offset=offset)
        if not await _code_taken(session, candidate):
            return candidate
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to generate coupon code")


async def create_rule(session: AsyncSession, payload: CouponRuleCreate) -> CouponRule:
    code = normalize_code(payload.code)
    if not code and payload.is_automatic:
        code = await _unique_automatic_code(session)
    elif await _code_taken(session, code):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon code already exists")

    data = payload.model_dump(exclude={"code", "usage_limit"})
    rule = CouponRule(
        code=code,
        usage_limit=payload.usage_limit or settings.default_usage_limit,
        used_count=0,
        **data,
    )
    session.add(rule)
    await session.commit()
    await session.refresh(rule)
    logger.info(
        "coupon_rule_created",
        extra={"code": rule.code, "is_automatic": rule.is_automatic, "discount_type": rule.discount_type.value},
    )
    return rule


async def update_rule(session: AsyncSession, rule: CouponRule, payload: CouponRuleUpdate) -> CouponRule:
    changes = payload.model_dump(exclude_unset=True)
    discount_type = changes.get("discount_type") or rule.discount_type
    discount_value = changes.get("discount_value", rule.discount_value)
    if discount_type == DiscountType.percentage and Decimal(discount_value or 0) > 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Percentage discount cannot exceed 100")

    for field, value in changes.items():
        if value is None and field not in {"description", "max_discount"}:
            continue
        setattr(rule, field, value)
    session.add(rule)
    await session.commit()
    await session.refresh(rule)
    logger.info("coupon_rule_updated", extra={"code": rule.code, "fields": sorted(changes)})
    return rule


async def delete_rule(session: AsyncSession, rule: CouponRule) -> None:
    code = rule.code
    await session.execute(delete(CouponRedemption).where(CouponRedemption.rule_id == rule.id))
    await session.delete(rule)
    await session.commit()
    logger.info("coupon_rule_deleted", extra={"code": code})


async def try_increment_usage(session: AsyncSession, *, rule_id: UUID) -> bool:
    """Consume one redemption if the rule still has capacity.

    The check and the increment happen in a single conditional UPDATE so
    concurrent orders cannot push ``used_count`` past ``usage_limit``.
    Nothing is committed here; the caller owns the transaction.
    """
    result = await session.execute(
        update(CouponRule)
        .where(
            CouponRule.id == rule_id,
            CouponRule.is_active.is_(True),
            CouponRule.used_count < CouponRule.usage_limit,
        )
        .values(used_count=CouponRule.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    return int(getattr(result, "rowcount", 0) or 0) == 1


def record_redemption(
    session: AsyncSession,
    *,
    rule_id: UUID,
    order_id: UUID,
    user_id: str | None,
    discount_amount: Decimal,
) -> CouponRedemption:
    redemption = CouponRedemption(
        rule_id=rule_id,
        order_id=order_id,
        user_id=user_id,
        discount_amount=discount_amount,
    )
    session.add(redemption)
    return redemption


async def list_redemptions(session: AsyncSession, *, rule_id: UUID) -> list[CouponRedemption]:
    result = await session.execute(
        select(CouponRedemption)
        .where(CouponRedemption.rule_id == rule_id)
        .order_by(CouponRedemption.redeemed_at.desc())
    )
    return list(result.scalars().all())
