"""Vehicle Service — the EV catalog and each user's garage.

Invariants:
    - A garage vehicle is visible and mutable only by its owner (403 otherwise)
    - A user has at most one default vehicle; a user's first vehicle becomes it
    - Deleting the default promotes nothing: the user picks a new one explicitly
    - A garage vehicle names a catalog entry, a nickname, or both

Design Decisions:
    - set_default clears the old default and flushes before setting the new one,
      so the partial unique index never sees two defaults mid-transaction
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chargewatch.config import Settings
from chargewatch.core.domain_types import UserId, UserVehicleId, VehicleId
from chargewatch.core.errors import (
    ErrorContext, ForbiddenError, InputValidationError, ResourceNotFoundError,
)
from chargewatch.models.user_vehicle import UserVehicle
from chargewatch.models.vehicle import Vehicle
from chargewatch.services import clock

logger = logging.getLogger(__name__)


class VehicleService:
    """Catalog reads and per-user garage CRUD."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    # ─── Catalog ────────────────────────────────────────────────

    async def list_catalog(self) -> list[Vehicle]:
        result = await self.db.execute(
            select(Vehicle).order_by(Vehicle.brand, Vehicle.model)
        )
        return list(result.scalars().all())

    async def get_catalog_vehicle(self, vehicle_id: VehicleId) -> Vehicle:
        vehicle = await self.db.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise ResourceNotFoundError(
                "Vehicle", str(vehicle_id),
                ErrorContext(operation="get_catalog_vehicle"),
            )
        return vehicle

    async def add_catalog_vehicle(self, data: dict, admin_id: UserId) -> Vehicle:
        vehicle = Vehicle(**data)
        self.db.add(vehicle)
        await self.db.commit()
        await self.db.refresh(vehicle)
        logger.info(
            f"Catalog vehicle added: {vehicle.brand} {vehicle.model}",
            extra={"user_id": admin_id, "operation": "add_catalog_vehicle"},
        )
        return vehicle

    # ─── Garage ─────────────────────────────────────────────────

    async def list_user_vehicles(self, user_id: UserId) -> list[UserVehicle]:
        result = await self.db.execute(
            select(UserVehicle)
            .where(UserVehicle.user_id == user_id)
            .order_by(UserVehicle.is_default.desc(), UserVehicle.created_at)
        )
        return list(result.scalars().all())

    async def get_user_vehicle(
        self, user_vehicle_id: UserVehicleId, user_id: UserId,
    ) -> UserVehicle:
        ctx = ErrorContext(user_id=user_id, operation="user_vehicle")
        vehicle = await self.db.get(UserVehicle, user_vehicle_id)
        if vehicle is None:
            raise ResourceNotFoundError("UserVehicle", str(user_vehicle_id), ctx)
        if vehicle.user_id != user_id:
            ctx.precondition = "vehicle_owner"
            raise ForbiddenError("Not authorized", context=ctx)
        return vehicle

    async def get_default_vehicle(self, user_id: UserId) -> UserVehicle | None:
        result = await self.db.execute(
            select(UserVehicle).where(
                UserVehicle.user_id == user_id,
                UserVehicle.is_default.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def _check_catalog_reference(self, vehicle_id: VehicleId | None) -> None:
        if vehicle_id is not None and await self.db.get(Vehicle, vehicle_id) is None:
            raise InputValidationError("Unknown catalog vehicle", "vehicle_id")

    async def _clear_default(self, user_id: UserId) -> None:
        await self.db.execute(
            update(UserVehicle)
            .where(
                UserVehicle.user_id == user_id,
                UserVehicle.is_default.is_(True),
            )
            .values(is_default=False)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()

    async def create_user_vehicle(self, user_id: UserId, data: dict) -> UserVehicle:
        await self._check_catalog_reference(data.get("vehicle_id"))
        owned = await self.db.scalar(
            select(func.count()).select_from(UserVehicle)
            .where(UserVehicle.user_id == user_id)
        )
        make_default = bool(data.pop("is_default", False)) or owned == 0
        if make_default:
            await self._clear_default(user_id)

        vehicle = UserVehicle(**data, user_id=user_id, is_default=make_default)
        self.db.add(vehicle)
        await self.db.commit()
        await self.db.refresh(vehicle)
        logger.info(
            "User vehicle added",
            extra={"user_id": user_id, "operation": "create_user_vehicle"},
        )
        return vehicle

    async def update_user_vehicle(
        self, user_vehicle_id: UserVehicleId, user_id: UserId, data: dict,
    ) -> UserVehicle:
        vehicle = await self.get_user_vehicle(user_vehicle_id, user_id)
        if "vehicle_id" in data:
            await self._check_catalog_reference(data["vehicle_id"])
        for key, value in data.items():
            setattr(vehicle, key, value)
        if vehicle.vehicle_id is None and not vehicle.nickname:
            raise InputValidationError(
                "A vehicle needs a catalog entry or a nickname", "nickname",
            )
        vehicle.updated_at = clock.utcnow()
        await self.db.commit()
        await self.db.refresh(vehicle)
        return vehicle

    async def delete_user_vehicle(
        self, user_vehicle_id: UserVehicleId, user_id: UserId,
    ) -> None:
        vehicle = await self.get_user_vehicle(user_vehicle_id, user_id)
        await self.db.delete(vehicle)
        await self.db.commit()
        logger.info(
            "User vehicle deleted",
            extra={"user_id": user_id, "operation": "delete_user_vehicle"},
        )

    async def set_default(
        self, user_vehicle_id: UserVehicleId, user_id: UserId,
    ) -> UserVehicle:
        vehicle = await self.get_user_vehicle(user_vehicle_id, user_id)
        if not vehicle.is_default:
            await self._clear_default(user_id)
            vehicle.is_default = True
            vehicle.updated_at = clock.utcnow()
            await self.db.commit()
            await self.db.refresh(vehicle)
        return vehicle
