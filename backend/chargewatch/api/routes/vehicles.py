"""Vehicle Routes — the public EV catalog and the caller's garage.

Invariants:
    - Catalog reads are anonymous; every garage route requires X-User-Id
    - Another user's garage vehicle answers 403, an unknown one 404
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from chargewatch.api.deps import get_current_user_id, get_vehicle_service
from chargewatch.schemas.vehicle import (
    UserVehicleCreate, UserVehicleResponse, UserVehicleUpdate, VehicleResponse,
)
from chargewatch.services.vehicles import VehicleService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["vehicles"])


# ─── Catalog ────────────────────────────────────────────────────

@router.get("/vehicles", response_model=list[VehicleResponse])
async def list_vehicles(
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.list_catalog()


@router.get("/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: UUID,
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.get_catalog_vehicle(vehicle_id)


# ─── Garage ─────────────────────────────────────────────────────

@router.get("/user-vehicles", response_model=list[UserVehicleResponse])
async def list_user_vehicles(
    user_id: str = Depends(get_current_user_id),
    service: VehicleService = Depends(get_vehicle_service),
):
    """The caller's vehicles, default first."""
    return await service.list_user_vehicles(user_id)


@router.post(
    "/user-vehicles", response_model=UserVehicleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user_vehicle(
    body: UserVehicleCreate,
    user_id: str = Depends(get_current_user_id),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.create_user_vehicle(user_id, body.model_dump())


@router.get("/user-vehicles/{user_vehicle_id}", response_model=UserVehicleResponse)
async def get_user_vehicle(
    user_vehicle_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.get_user_vehicle(user_vehicle_id, user_id)


@router.patch(
    "/user-vehicles/{user_vehicle_id}", response_model=UserVehicleResponse,
)
async def update_user_vehicle(
    user_vehicle_id: UUID,
    body: UserVehicleUpdate,
    user_id: str = Depends(get_current_user_id),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.update_user_vehicle(
        user_vehicle_id, user_id, body.model_dump(exclude_unset=True),
    )


@router.delete(
    "/user-vehicles/{user_vehicle_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_user_vehicle(
    user_vehicle_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: VehicleService = Depends(get_vehicle_service),
):
    await service.delete_user_vehicle(user_vehicle_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/user-vehicles/{user_vehicle_id}/default",
    response_model=UserVehicleResponse,
)
async def set_default_vehicle(
    user_vehicle_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.set_default(user_vehicle_id, user_id)
