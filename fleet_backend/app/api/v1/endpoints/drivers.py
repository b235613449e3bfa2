"""
Driver API Endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.dependencies import limit_query
from fleet_backend.app.core.exceptions import ResourceNotFoundError, ConflictError
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.driver import Driver
from fleet_backend.app.models.enums import DriverStatus
from fleet_backend.app.models.trip import Trip
from fleet_backend.app.schemas.fleet import DriverCreate, DriverUpdate, DriverResponse
from fleet_backend.app.services.cache import ReportCache

router = APIRouter(prefix="/motoristas", tags=["Drivers"])


async def _get_driver(db: AsyncSession, cpf: str) -> Driver:
    driver = await db.get(Driver, cpf)
    if driver is None:
        raise ResourceNotFoundError("Driver", cpf)
    return driver


async def _commit_unique(db: AsyncSession, details: dict) -> None:
    """Commit, turning a CPF or CNH unique violation from a concurrent write into a Conflict."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Driver with this CPF or CNH already exists", details=details) from e


@router.get("", response_model=List[DriverResponse])
async def list_drivers(
    status_motorista: Optional[DriverStatus] = Query(None, alias="status"),
    limit: int = Depends(limit_query(100)),
    db: AsyncSession = Depends(get_db)
):
    query = select(Driver)
    if status_motorista is not None:
        query = query.where(Driver.status == status_motorista)
    result = await db.execute(query.order_by(Driver.nome).limit(limit))
    return [DriverResponse.model_validate(d) for d in result.scalars().all()]


@router.get("/{cpf}", response_model=DriverResponse)
async def get_driver(
    cpf: str = Path(..., description="Driver CPF"),
    db: AsyncSession = Depends(get_db)
):
    return DriverResponse.model_validate(await _get_driver(db, cpf))


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a driver. CPF and license number are unique."""
    existing = await db.execute(
        select(Driver.cpf).where(or_(Driver.cpf == driver_data.cpf, Driver.cnh == driver_data.cnh))
    )
    if existing.first() is not None:
        raise ConflictError(
            "Driver with this CPF or CNH already exists",
            details={"cpf": driver_data.cpf, "cnh": driver_data.cnh}
        )

    if driver_data.status == DriverStatus.ON_TRIP:
        raise ConflictError("A new driver cannot be registered as em_viagem")

    driver = Driver(**driver_data.model_dump())
    db.add(driver)
    await _commit_unique(db, {"cpf": driver_data.cpf, "cnh": driver_data.cnh})
    await db.refresh(driver)

    await ReportCache.invalidate()
    return DriverResponse.model_validate(driver)


@router.put("/{cpf}", response_model=DriverResponse)
async def update_driver(
    cpf: str = Path(..., description="Driver CPF"),
    driver_data: DriverUpdate = ...,
    db: AsyncSession = Depends(get_db)
):
    """
    Edit a driver; only the fields sent are changed.

    Raises:
        ConflictError: CNH already used by another driver, or a status change
            into or out of em_viagem
    """
    driver = await _get_driver(db, cpf)
    update_data = driver_data.model_dump(exclude_unset=True)

    cnh = update_data.get("cnh")
    if cnh is not None and cnh != driver.cnh:
        existing = await db.execute(select(Driver.cpf).where(Driver.cnh == cnh, Driver.cpf != cpf))
        if existing.first() is not None:
            raise ConflictError("Driver with this CPF or CNH already exists", details={"cnh": cnh})

    new_status = update_data.get("status")
    if new_status is not None and new_status != driver.status:
        if DriverStatus.ON_TRIP in (new_status, driver.status):
            raise ConflictError(
                "em_viagem is managed by trips; finalize or cancel the trip instead",
                details={"cpf": cpf, "status": driver.status.value}
            )

    for field, value in update_data.items():
        if value is not None:
            setattr(driver, field, value)

    await _commit_unique(db, {"cpf": cpf, "cnh": driver.cnh})
    await db.refresh(driver)

    await ReportCache.invalidate()
    return DriverResponse.model_validate(driver)


@router.delete("/{cpf}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    cpf: str = Path(..., description="Driver CPF"),
    db: AsyncSession = Depends(get_db)
):
    driver = await _get_driver(db, cpf)

    trips = await db.execute(select(func.count(Trip.id_viagem)).where(Trip.cpf_motorista == cpf))
    trip_count = trips.scalar()
    if trip_count:
        raise ConflictError(
            "Driver has trips and cannot be deleted",
            details={"cpf": cpf, "viagens": trip_count}
        )

    await db.delete(driver)
    await db.commit()
    await ReportCache.invalidate()
