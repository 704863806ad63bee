from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from anaqa.db.session import get_session
from anaqa.models.coupons import CouponRule
from anaqa.schemas.coupons import CouponRedemptionRead, CouponRuleCreate, CouponRuleRead, CouponRuleUpdate
from anaqa.services import coupons as coupons_service

router = APIRouter(prefix="/coupons", tags=["coupons"])


async def _get_rule_or_404(session: AsyncSession, rule_id: UUID) -> CouponRule:
    rule = await coupons_service.get_rule(session, rule_id)
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    return rule


@router.get("", response_model=list[CouponRuleRead])
async def list_coupons(session: AsyncSession = Depends(get_session)) -> list[CouponRule]:
    return await coupons_service.list_rules(session)


@router.post("", response_model=CouponRuleRead, status_code=status.HTTP_201_CREATED)
async def create_coupon(payload: CouponRuleCreate, session: AsyncSession = Depends(get_session)) -> CouponRule:
    return await coupons_service.create_rule(session, payload)


@router.get("/{rule_id}", response_model=CouponRuleRead)
async def get_coupon(rule_id: UUID, session: AsyncSession = Depends(get_session)) -> CouponRule:
    return await _get_rule_or_404(session, rule_id)


@router.patch("/{rule_id}", response_model=CouponRuleRead)
async def update_coupon(
    rule_id: UUID,
    payload: CouponRuleUpdate,
    session: AsyncSession = Depends(get_session),
) -> CouponRule:
    rule = await _get_rule_or_404(session, rule_id)
    return await coupons_service.update_rule(session, rule, payload)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_coupon(rule_id: UUID, session: AsyncSession = Depends(get_session)) -> Response:
    rule = await _get_rule_or_404(session, rule_id)
    await coupons_service.delete_rule(session, rule)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{rule_id}/redemptions", response_model=list[CouponRedemptionRead])
async def list_coupon_redemptions(rule_id: UUID, session: AsyncSession = Depends(get_session)):
    await _get_rule_or_404(session, rule_id)
    return await coupons_service.list_redemptions(session, rule_id=rule_id)
