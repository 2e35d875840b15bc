from fastapi import APIRouter, Depends

from ..models import User
from ..rbac import admin_required
from ..repositories import Store, get_store
from ..schemas import AnalyticsResponse, ServiceDemand

router = APIRouter(tags=["Admin"])


@router.get("/admin/analytics", response_model=AnalyticsResponse)
async def analytics(
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    demand = await store.bookings.demand_by_service()
    return AnalyticsResponse(
        total_revenue=await store.payments.total_revenue(),
        service_demand=[
            ServiceDemand(service_id=service_id, service_name=name, count=count)
            for service_id, name, count in demand
        ],
    )
