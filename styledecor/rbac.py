"""Role Guard.

Admin and Decorator checks always read the caller's role from the user
store, never from the token claim, so a demotion takes effect immediately.
"""
from fastapi import Depends

from .errors import Forbidden
from .models import User
from .repositories import Store, get_store
from .security import Identity, get_current_user

ADMIN = "admin"
DECORATOR = "decorator"


def require_role(user: User | None, role: str) -> User:
    if user is None or (user.role or "").lower() != role:
        raise Forbidden()
    return user


def require_self(identity: Identity, owner_email: str | None, live_user: User | None = None) -> None:
    """Caller must own the resource; a live admin may act on anyone's."""
    if owner_email and identity.email == owner_email:
        return
    if live_user is not None and live_user.role == ADMIN:
        return
    raise Forbidden()


def is_admin(user: User | None) -> bool:
    return user is not None and user.role == ADMIN


async def current_account(
    identity: Identity = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> User | None:
    return await store.users.get_by_email(identity.email)


async def admin_required(user: User | None = Depends(current_account)) -> User:
    return require_role(user, ADMIN)


async def decorator_required(user: User | None = Depends(current_account)) -> User:
    return require_role(user, DECORATOR)
