"""
Vehicle API Endpoints.

Thin registry CRUD. Status changes driven by trips go through the
lifecycle service, not through these endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.dependencies import limit_query
from fleet_backend.app.core.exceptions import ResourceNotFoundError, ConflictError, ValidationError
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.enums import VehicleStatus
from fleet_backend.app.models.trip import Trip
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.schemas.fleet import VehicleCreate, VehicleUpdate, VehicleResponse
from fleet_backend.app.services.cache import ReportCache

router = APIRouter(prefix="/veiculos", tags=["Vehicles"])


async def _get_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


async def _ensure_plate_free(db: AsyncSession, placa: str, vehicle_id: Optional[int] = None) -> None:
    query = select(Vehicle.id_veiculo).where(Vehicle.placa == placa)
    if vehicle_id is not None:
        query = query.where(Vehicle.id_veiculo != vehicle_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise ConflictError(
            f"Vehicle with plate {placa} already exists",
            details={"placa": placa}
        )


async def _commit_unique(db: AsyncSession, placa: str) -> None:
    """Commit, turning a plate unique violation from a concurrent write into a Conflict."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(
            f"Vehicle with plate {placa} already exists",
            details={"placa": placa}
        ) from e


@router.get("", response_model=List[VehicleResponse])
async def list_vehicles(
    status_veiculo: Optional[VehicleStatus] = Query(None, alias="status"),
    limit: int = Depends(limit_query(100)),
    db: AsyncSession = Depends(get_db)
):
    query = select(Vehicle)
    if status_veiculo is not None:
        query = query.where(Vehicle.status == status_veiculo)
    result = await db.execute(query.order_by(Vehicle.placa).limit(limit))
    return [VehicleResponse.model_validate(v) for v in result.scalars().all()]


@router.get("/{id_veiculo}", response_model=VehicleResponse)
async def get_vehicle(
    id_veiculo: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    return VehicleResponse.model_validate(await _get_vehicle(db, id_veiculo))


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a vehicle. Plates are unique."""
    await _ensure_plate_free(db, vehicle_data.placa)

    if vehicle_data.status == VehicleStatus.ON_TRIP:
        # em_viagem is only ever set by starting a trip
        raise ConflictError("A new vehicle cannot be registered as em_viagem")

    vehicle = Vehicle(**vehicle_data.model_dump())
    db.add(vehicle)
    await _commit_unique(db, vehicle_data.placa)
    await db.refresh(vehicle)

    await ReportCache.invalidate()
    return VehicleResponse.model_validate(vehicle)


@router.put("/{id_veiculo}", response_model=VehicleResponse)
async def update_vehicle(
    id_veiculo: int = Path(..., description="Vehicle ID"),
    vehicle_data: VehicleUpdate = ...,
    db: AsyncSession = Depends(get_db)
):
    """
    Edit a vehicle; only the fields sent are changed.

    Raises:
        ConflictError: duplicate plate, or a status change into or out of em_viagem
        ValidationError: km_atual lower than the current odometer
    """
    vehicle = await _get_vehicle(db, id_veiculo)
    update_data = vehicle_data.model_dump(exclude_unset=True)

    if update_data.get("placa") is not None and update_data["placa"] != vehicle.placa:
        await _ensure_plate_free(db, update_data["placa"], id_veiculo)

    new_status = update_data.get("status")
    if new_status is not None and new_status != vehicle.status:
        if VehicleStatus.ON_TRIP in (new_status, vehicle.status):
            raise ConflictError(
                "em_viagem is managed by trips; finalize or cancel the trip instead",
                details={"id_veiculo": id_veiculo, "status": vehicle.status.value}
            )

    km_atual = update_data.get("km_atual")
    if km_atual is not None and km_atual < vehicle.km_atual:
        raise ValidationError(
            "km_atual cannot be lowered",
            details={"km_atual": vehicle.km_atual, "requested": km_atual}
        )

    for field, value in update_data.items():
        if value is not None:
            setattr(vehicle, field, value)

    await _commit_unique(db, vehicle.placa)
    await db.refresh(vehicle)

    await ReportCache.invalidate()
    return VehicleResponse.model_validate(vehicle)


@router.delete("/{id_veiculo}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    id_veiculo: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Delete a vehicle that never made a trip. Its fuel and maintenance records go with it."""
    vehicle = await _get_vehicle(db, id_veiculo)

    trips = await db.execute(select(func.count(Trip.id_viagem)).where(Trip.id_veiculo == id_veiculo))
    trip_count = trips.scalar()
    if trip_count:
        raise ConflictError(
            "Vehicle has trips and cannot be deleted",
            details={"id_veiculo": id_veiculo, "viagens": trip_count}
        )

    await db.delete(vehicle)
    await db.commit()
    await ReportCache.invalidate()
