"""
Vehicle locking service.

Row locks and availability checks used by the trip lifecycle. A vehicle is
"locked" by a trip while that trip is IN_PROGRESS; the partial unique index
on viagem(id_veiculo) backs this at the database level.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.driver import Driver
from fleet_backend.app.models.trip import Trip
from fleet_backend.app.models.enums import TripStatus, VehicleStatus, DriverStatus


async def lock_vehicle(db: AsyncSession, vehicle_id: int) -> Optional[Vehicle]:
    """
    Load a vehicle with a row lock (SELECT ... FOR UPDATE).

    Concurrent starts on the same vehicle serialize on this lock.
    SQLite ignores FOR UPDATE and relies on its database-level write lock.

    Returns:
        The vehicle, or None if it does not exist
    """
    result = await db.execute(
        select(Vehicle).where(Vehicle.id_veiculo == vehicle_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def lock_driver(db: AsyncSession, cpf: str) -> Optional[Driver]:
    """Load a driver with a row lock."""
    result = await db.execute(
        select(Driver).where(Driver.cpf == cpf).with_for_update()
    )
    return result.scalar_one_or_none()


async def lock_trip(db: AsyncSession, trip_id: int) -> Optional[Trip]:
    """Load a trip with a row lock so finalize/cancel cannot race."""
    result = await db.execute(
        select(Trip).where(Trip.id_viagem == trip_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def count_vehicle_in_progress_trips(db: AsyncSession, vehicle_id: int) -> int:
    """
    Count IN_PROGRESS trips for a vehicle.

    Should be 0 or 1 (system enforces single IN_PROGRESS trip).
    """
    result = await db.execute(
        select(func.count(Trip.id_viagem)).where(
            Trip.id_veiculo == vehicle_id,
            Trip.status_viagem == TripStatus.IN_PROGRESS
        )
    )
    return result.scalar()


async def count_driver_in_progress_trips(db: AsyncSession, cpf: str) -> int:
    """Count IN_PROGRESS trips for a driver."""
    result = await db.execute(
        select(func.count(Trip.id_viagem)).where(
            Trip.cpf_motorista == cpf,
            Trip.status_viagem == TripStatus.IN_PROGRESS
        )
    )
    return result.scalar()


def occupy(vehicle: Vehicle, driver: Optional[Driver]) -> None:
    """Flag vehicle and driver as on a trip."""
    vehicle.status = VehicleStatus.ON_TRIP
    if driver is not None:
        driver.status = DriverStatus.ON_TRIP


def release(vehicle: Optional[Vehicle], driver: Optional[Driver]) -> None:
    """Revert vehicle and driver to active once their trip ends."""
    if vehicle is not None and vehicle.status == VehicleStatus.ON_TRIP:
        vehicle.status = VehicleStatus.ACTIVE
    if driver is not None and driver.status == DriverStatus.ON_TRIP:
        driver.status = DriverStatus.ACTIVE
