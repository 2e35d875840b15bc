from typing import List

from fastapi import APIRouter, Depends, Query

from ..errors import NotFound
from ..models import User
from ..rbac import admin_required, current_account, require_self
from ..repositories import Store, get_store
from ..schemas import CreateUser, RoleResponse, TokenRequest, TokenResponse, UpdateRole, UserResponse
from ..security import Identity, get_current_user, issue_token

router = APIRouter(tags=["Users"])


@router.post("/jwt", response_model=TokenResponse, tags=["Auth"])
async def create_token(data: TokenRequest, store: Store = Depends(get_store)):
    user = await store.users.get_by_email(data.email)
    role = user.role if user else "user"
    return TokenResponse(token=issue_token(data.email, role))


@router.post("/users")
async def create_user(data: CreateUser, store: Store = Depends(get_store)):
    existing = await store.users.get_by_email(data.email)
    if existing:
        return {"message": "User already exists", "user": UserResponse.model_validate(existing)}

    user = User(email=data.email, name=data.name, photo_url=data.photo_url, role="user")
    await store.users.add(user)
    await store.commit()

    return {"message": "User created", "user": UserResponse.model_validate(user)}


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    search_text: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    return await store.users.search(search_text, page=page, limit=limit)


@router.get("/users/{email}/role", response_model=RoleResponse)
async def get_user_role(
    email: str,
    identity: Identity = Depends(get_current_user),
    account: User | None = Depends(current_account),
    store: Store = Depends(get_store),
):
    require_self(identity, email, account)
    user = await store.users.get_by_email(email)
    return RoleResponse(role=user.role if user else "user")


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    data: UpdateRole,
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    user = await store.users.get(user_id)
    if not user:
        raise NotFound("User not found")

    user.role = data.role
    await store.commit()
    return user
