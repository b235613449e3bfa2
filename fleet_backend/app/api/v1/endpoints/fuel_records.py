"""
Fuel Record (abastecimento) API Endpoints.

Registering a fill-up with an odometer reading moves the vehicle's
km_atual forward; readings below the current odometer are rejected.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.dependencies import limit_query
from fleet_backend.app.core.exceptions import ResourceNotFoundError, ValidationError
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.fuel_record import FuelRecord
from fleet_backend.app.schemas.records import FuelRecordCreate, FuelRecordUpdate, FuelRecordResponse
from fleet_backend.app.services.cache import ReportCache
from fleet_backend.app.services.vehicle_locking import lock_vehicle

logger = logging.getLogger("fleet.records")

router = APIRouter(prefix="/abastecimento", tags=["Fuel Records"])


@router.get("", response_model=List[FuelRecordResponse])
async def list_fuel_records(
    id_veiculo: Optional[int] = Query(None),
    limit: int = Depends(limit_query(100)),
    db: AsyncSession = Depends(get_db)
):
    """List fill-ups, most recent first."""
    query = select(FuelRecord)
    if id_veiculo is not None:
        query = query.where(FuelRecord.id_veiculo == id_veiculo)
    query = query.order_by(FuelRecord.data_abast.desc(), FuelRecord.id_abastecimento.desc()).limit(limit)
    result = await db.execute(query)
    return [FuelRecordResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{id_abastecimento}", response_model=FuelRecordResponse)
async def get_fuel_record(
    id_abastecimento: int = Path(..., description="Fuel record ID"),
    db: AsyncSession = Depends(get_db)
):
    record = await db.get(FuelRecord, id_abastecimento)
    if record is None:
        raise ResourceNotFoundError("Fuel record", id_abastecimento)
    return FuelRecordResponse.model_validate(record)


@router.post("", response_model=FuelRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_fuel_record(
    record_data: FuelRecordCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a fill-up.

    Raises:
        ResourceNotFoundError: unknown vehicle
        ValidationError: km_abast below the vehicle's current odometer
    """
    try:
        vehicle = await lock_vehicle(db, record_data.id_veiculo)
        if vehicle is None:
            raise ResourceNotFoundError("Vehicle", record_data.id_veiculo)

        if record_data.km_abast is not None:
            if record_data.km_abast < vehicle.km_atual:
                raise ValidationError(
                    "km_abast cannot be lower than the vehicle's current odometer",
                    details={"km_abast": record_data.km_abast, "km_atual": vehicle.km_atual}
                )
            vehicle.km_atual = record_data.km_abast

        record = FuelRecord(**record_data.model_dump())
        db.add(record)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(record)
    logger.info(
        "Fuel record %s registered for vehicle %s (%.1f L)",
        record.id_abastecimento, record.id_veiculo, record.litros
    )
    await ReportCache.invalidate()
    return FuelRecordResponse.model_validate(record)


@router.put("/{id_abastecimento}", response_model=FuelRecordResponse)
async def update_fuel_record(
    id_abastecimento: int = Path(..., description="Fuel record ID"),
    record_data: FuelRecordUpdate = ...,
    db: AsyncSession = Depends(get_db)
):
    """
    Correct a fill-up; only the fields sent are changed.

    A new km_abast goes through the same odometer rule as on creation.

    Raises:
        ValidationError: km_abast below the vehicle's current odometer
    """
    record = await db.get(FuelRecord, id_abastecimento)
    if record is None:
        raise ResourceNotFoundError("Fuel record", id_abastecimento)
    update_data = record_data.model_dump(exclude_unset=True)

    try:
        km_abast = update_data.get("km_abast")
        if km_abast is not None and km_abast != record.km_abast:
            vehicle = await lock_vehicle(db, record.id_veiculo)
            if km_abast < vehicle.km_atual:
                raise ValidationError(
                    "km_abast cannot be lower than the vehicle's current odometer",
                    details={"km_abast": km_abast, "km_atual": vehicle.km_atual}
                )
            vehicle.km_atual = km_abast

        for field, value in update_data.items():
            if value is not None:
                setattr(record, field, value)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(record)
    logger.info("Fuel record %s updated: %s", id_abastecimento, sorted(update_data))
    await ReportCache.invalidate()
    return FuelRecordResponse.model_validate(record)


@router.delete("/{id_abastecimento}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fuel_record(
    id_abastecimento: int = Path(..., description="Fuel record ID"),
    db: AsyncSession = Depends(get_db)
):
    """Delete a fill-up. The vehicle odometer is left as is."""
    record = await db.get(FuelRecord, id_abastecimento)
    if record is None:
        raise ResourceNotFoundError("Fuel record", id_abastecimento)

    await db.delete(record)
    await db.commit()
    await ReportCache.invalidate()
