from dataclasses import dataclass

from fastapi import Header


@dataclass(frozen=True)
class Customer:
    user_id: str | None
    email: str | None


def get_customer(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Customer:
    """Caller identity as forwarded by the storefront's auth layer; absent for guests."""
    user_id = (x_user_id or "").strip() or None
    email = (x_user_email or "").strip() or None
    return Customer(user_id=user_id, email=email)
