from typing import List

from fastapi import APIRouter, Depends

from ..errors import InvalidInput, NotFound
from ..models import Service, User
from ..rbac import admin_required
from ..repositories import Store, get_store
from ..schemas import CreateService, ServiceResponse, UpdateService

router = APIRouter(tags=["Services"])

_REQUIRED_FIELDS = ("name", "category", "cost", "is_active")


async def _get_service(store: Store, service_id: str) -> Service:
    service = await store.services.get(service_id)
    if not service:
        raise NotFound("Service not found")
    return service


@router.get("/services", response_model=List[ServiceResponse])
async def list_services(
    name: str | None = None,
    category: str | None = None,
    min_budget: float | None = None,
    max_budget: float | None = None,
    store: Store = Depends(get_store),
):
    return await store.services.search(
        name=name,
        category=category,
        min_budget=min_budget,
        max_budget=max_budget,
    )


@router.get("/services/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: str, store: Store = Depends(get_store)):
    return await _get_service(store, service_id)


@router.post("/services", response_model=ServiceResponse)
async def create_service(
    data: CreateService,
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    service = await store.services.add(Service(**data.model_dump()))
    await store.commit()
    return service


@router.patch("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: UpdateService,
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidInput("No fields to update")

    nulls = [f for f in _REQUIRED_FIELDS if f in changes and changes[f] is None]
    if nulls:
        raise InvalidInput(f"Fields cannot be null: {', '.join(nulls)}")

    service = await _get_service(store, service_id)
    for field, value in changes.items():
        setattr(service, field, value)

    await store.commit()
    return service


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: str,
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    service = await _get_service(store, service_id)
    await store.services.delete(service)
    await store.commit()
    return {"message": "Service deleted"}
