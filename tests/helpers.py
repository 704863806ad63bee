from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from anaqa.db.base import Base
from anaqa.db.session import get_session
from anaqa.main import app
from anaqa.models.coupons import CouponRule, DiscountType


def make_test_client() -> tuple[TestClient, async_sessionmaker]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async def init_models() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())

    async def override_get_session():
        async with SessionLocal() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    return TestClient(app), SessionLocal


def seed_rule(
    session_factory: async_sessionmaker,
    *,
    code: str,
    discount_type: DiscountType = DiscountType.percentage,
    discount_value: Decimal = Decimal("10"),
    is_automatic: bool = False,
    **overrides: Any,
) -> str:
    async def _seed() -> str:
        async with session_factory() as session:
            fields: dict[str, Any] = {
                "description": f"{code} rule",
                "is_active": True,
                "min_spend": Decimal("0"),
                "min_quantity": 0,
                "valid_until": datetime.now(timezone.utc) + timedelta(days=30),
                "usage_limit": 100,
                "used_count": 0,
                "applicable_categories": [],
                "applicable_products": [],
            }
            fields.update(overrides)
            rule = CouponRule(
                code=code,
                discount_type=discount_type,
                discount_value=discount_value,
                is_automatic=is_automatic,
                **fields,
            )
            session.add(rule)
            await session.commit()
            return str(rule.id)

    return asyncio.run(_seed())


def load_rule(session_factory: async_sessionmaker, code: str) -> CouponRule | None:
    async def _load() -> CouponRule | None:
        async with session_factory() as session:
            return (await session.execute(select(CouponRule).where(CouponRule.code == code))).scalar_one_or_none()

    return asyncio.run(_load())


def cart_line(price: int, quantity: int = 1, **extra: Any) -> dict[str, Any]:
    return {"price": price, "quantity": quantity, **extra}
