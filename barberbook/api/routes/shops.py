"""Shop, service, schedule and availability endpoints."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from barberbook.api.dependencies import get_booking_service, get_shop_manager
from barberbook.api.middleware.auth import get_current_user, require_roles
from barberbook.auth.tokens import CurrentUser
from barberbook.models.shop import (
    ScheduleEntry,
    Service,
    ServiceCreate,
    ServiceUpdate,
    Shop,
    ShopCreate,
    ShopUpdate,
)
from barberbook.models.user import UserRole
from barberbook.scheduling.booking import BookingService
from barberbook.scheduling.slots import TimeSlot
from barberbook.shops.manager import ShopManager

router = APIRouter(prefix="/v1", tags=["shops"])


class ScheduleRequest(BaseModel):
    """Request schema for replacing a weekly schedule."""

    windows: list[ScheduleEntry] = Field(..., max_length=50)


class SlotsResponse(BaseModel):
    """Response schema for the availability endpoint."""

    shop_id: uuid.UUID
    service_id: uuid.UUID
    day: date
    timezone: str
    slots: list[TimeSlot]


# ========== Shops ==========


@router.post("/shops", response_model=Shop, status_code=status.HTTP_201_CREATED)
async def create_shop(
    request: ShopCreate,
    current_user: CurrentUser = Depends(require_roles(UserRole.BARBER)),
    shops: ShopManager = Depends(get_shop_manager),
) -> Shop:
    shop = await shops.create_shop(current_user, request)
    return Shop.model_validate(shop)


@router.get("/shops", response_model=list[Shop])
async def list_shops(
    owner_id: uuid.UUID | None = Query(None, description="Only shops of this owner"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    shops: ShopManager = Depends(get_shop_manager),
) -> list[Shop]:
    """List active shops. Public."""
    rows = await shops.list_shops(owner_id=owner_id, limit=limit, offset=offset)
    return [Shop.model_validate(row) for row in rows]


@router.get("/shops/{shop_id}", response_model=Shop)
async def get_shop(
    shop_id: uuid.UUID,
    shops: ShopManager = Depends(get_shop_manager),
) -> Shop:
    return Shop.model_validate(await shops.get_shop(shop_id))


@router.patch("/shops/{shop_id}", response_model=Shop)
async def update_shop(
    shop_id: uuid.UUID,
    request: ShopUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    shops: ShopManager = Depends(get_shop_manager),
) -> Shop:
    shop = await shops.update_shop(shop_id, current_user, request)
    return Shop.model_validate(shop)


@router.delete("/shops/{shop_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_shop(
    shop_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    shops: ShopManager = Depends(get_shop_manager),
) -> None:
    await shops.deactivate_shop(shop_id, current_user)


# ========== Services ==========


@router.post(
    "/shops/{shop_id}/services", response_model=Service, status_code=status.HTTP_201_CREATED
)
async def create_service(
    shop_id: uuid.UUID,
    request: ServiceCreate,
    current_user: CurrentUser = Depends(get_current_user),
    shops: ShopManager = Depends(get_shop_manager),
) -> Service:
    service = await shops.create_service(shop_id, current_user, request)
    return Service.model_validate(service)


@router.get("/shops/{shop_id}/services", response_model=list[Service])
async def list_services(
    shop_id: uuid.UUID,
    shops: ShopManager = Depends(get_shop_manager),
) -> list[Service]:
    return [Service.model_validate(row) for row in await shops.list_services(shop_id)]


@router.patch("/services/{service_id}", response_model=Service)
async def update_service(
    service_id: uuid.UUID,
    request: ServiceUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    shops: ShopManager = Depends(get_shop_manager),
) -> Service:
    service = await shops.update_service(service_id, current_user, request)
    return Service.model_validate(service)


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_service(
    service_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    shops: ShopManager = Depends(get_shop_manager),
) -> None:
    await shops.deactivate_service(service_id, current_user)


# ========== Schedules & availability ==========


@router.put("/shops/{shop_id}/schedules", response_model=list[ScheduleEntry])
async def replace_schedule(
    shop_id: uuid.UUID,
    request: ScheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    shops: ShopManager = Depends(get_shop_manager),
) -> list[ScheduleEntry]:
    """Replace all opening windows of the shop."""
    rows = await shops.replace_schedule(shop_id, current_user, request.windows)
    return [ScheduleEntry.model_validate(row) for row in rows]


@router.get("/shops/{shop_id}/schedules", response_model=list[ScheduleEntry])
async def get_schedule(
    shop_id: uuid.UUID,
    shops: ShopManager = Depends(get_shop_manager),
) -> list[ScheduleEntry]:
    await shops.get_shop(shop_id)
    return [ScheduleEntry.model_validate(row) for row in await shops.get_schedule(shop_id)]


@router.get("/shops/{shop_id}/slots", response_model=SlotsResponse)
async def get_slots(
    shop_id: uuid.UUID,
    service_id: uuid.UUID = Query(..., description="Service to size the slots"),
    day: date = Query(..., alias="date", description="Day in the shop's timezone (YYYY-MM-DD)"),
    available_only: bool = Query(False, description="Drop slots that cannot be booked"),
    bookings: BookingService = Depends(get_booking_service),
) -> SlotsResponse:
    """Compute bookable slots for a service on one day. Public."""
    slots = await bookings.available_slots(shop_id, service_id, day)
    if available_only:
        slots = [slot for slot in slots if slot.available]

    shop = await bookings.shops.get_shop(shop_id)
    return SlotsResponse(
        shop_id=shop_id,
        service_id=service_id,
        day=day,
        timezone=shop.timezone,
        slots=slots,
    )
