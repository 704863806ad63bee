from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from anaqa.core.dependencies import Customer, get_customer
from anaqa.db.session import get_session
from anaqa.models.order import Order, OrderStatus
from anaqa.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate
from anaqa.services import order as order_service

router = APIRouter(prefix="/orders", tags=["orders"])


async def _get_order_or_404(session: AsyncSession, order_id: UUID) -> Order:
    order = await order_service.get_order(session, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    session: AsyncSession = Depends(get_session),
    customer: Customer = Depends(get_customer),
):
    return await order_service.create_order(
        session,
        payload,
        user_id=customer.user_id,
        customer_email=customer.email,
    )


@router.get("", response_model=list[OrderRead])
async def list_my_orders(
    session: AsyncSession = Depends(get_session),
    customer: Customer = Depends(get_customer),
):
    if not customer.user_id:
        return []
    return list(await order_service.get_orders_for_user(session, customer.user_id))


@router.get("/admin", response_model=list[OrderRead])
async def admin_list_orders(
    order_status: OrderStatus | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_session),
):
    return list(await order_service.list_orders(session, order_status=order_status))


@router.patch("/{order_id}/status", response_model=OrderRead)
async def admin_update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    session: AsyncSession = Depends(get_session),
):
    order = await _get_order_or_404(session, order_id)
    return await order_service.update_order_status(session, order, payload.status)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: UUID,
    session: AsyncSession = Depends(get_session),
    customer: Customer = Depends(get_customer),
):
    order = await _get_order_or_404(session, order_id)
    # Guest orders and other customers' orders are not readable by id.
    if not customer.user_id or order.user_id != customer.user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order
