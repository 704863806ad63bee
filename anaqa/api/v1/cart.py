from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from anaqa.db.session import get_session
from anaqa.schemas.cart import CartPriceRequest, PricingResult
from anaqa.services import cart_pricer

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("/price", response_model=PricingResult)
async def price_cart(payload: CartPriceRequest, session: AsyncSession = Depends(get_session)) -> PricingResult:
    return await cart_pricer.calculate_cart(session, payload.items, payload.coupon_code)
