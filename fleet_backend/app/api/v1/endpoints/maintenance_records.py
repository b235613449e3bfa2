"""
Maintenance Record (manutencao) API Endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.dependencies import limit_query
from fleet_backend.app.core.exceptions import ResourceNotFoundError
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.maintenance_record import MaintenanceRecord
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.schemas.records import MaintenanceRecordCreate, MaintenanceRecordUpdate, MaintenanceRecordResponse
from fleet_backend.app.services.cache import ReportCache

router = APIRouter(prefix="/manutencao", tags=["Maintenance Records"])


@router.get("", response_model=List[MaintenanceRecordResponse])
async def list_maintenance_records(
    id_veiculo: Optional[int] = Query(None),
    limit: int = Depends(limit_query(100)),
    db: AsyncSession = Depends(get_db)
):
    query = select(MaintenanceRecord)
    if id_veiculo is not None:
        query = query.where(MaintenanceRecord.id_veiculo == id_veiculo)
    query = query.order_by(MaintenanceRecord.data_man.desc(), MaintenanceRecord.id_manutencao.desc()).limit(limit)
    result = await db.execute(query)
    return [MaintenanceRecordResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/pendentes/lista", response_model=List[MaintenanceRecordResponse])
async def list_pending_maintenance(
    limit: int = Depends(limit_query(100)),
    db: AsyncSession = Depends(get_db)
):
    """Maintenance not yet completed, oldest first."""
    result = await db.execute(
        select(MaintenanceRecord)
        .where(MaintenanceRecord.concluida.is_(False))
        .order_by(MaintenanceRecord.data_man.asc(), MaintenanceRecord.id_manutencao.asc())
        .limit(limit)
    )
    return [MaintenanceRecordResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{id_manutencao}", response_model=MaintenanceRecordResponse)
async def get_maintenance_record(
    id_manutencao: int = Path(..., description="Maintenance record ID"),
    db: AsyncSession = Depends(get_db)
):
    record = await db.get(MaintenanceRecord, id_manutencao)
    if record is None:
        raise ResourceNotFoundError("Maintenance record", id_manutencao)
    return MaintenanceRecordResponse.model_validate(record)


@router.post("", response_model=MaintenanceRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance_record(
    record_data: MaintenanceRecordCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a maintenance event. Its cost counts toward reports once concluida is true."""
    if await db.get(Vehicle, record_data.id_veiculo) is None:
        raise ResourceNotFoundError("Vehicle", record_data.id_veiculo)

    record = MaintenanceRecord(**record_data.model_dump())
    db.add(record)
    await db.commit()
    await db.refresh(record)

    await ReportCache.invalidate()
    return MaintenanceRecordResponse.model_validate(record)


@router.put("/{id_manutencao}", response_model=MaintenanceRecordResponse)
async def update_maintenance_record(
    id_manutencao: int = Path(..., description="Maintenance record ID"),
    record_data: MaintenanceRecordUpdate = ...,
    db: AsyncSession = Depends(get_db)
):
    """Edit a maintenance event. Setting concluida to true brings its cost into reports."""
    record = await db.get(MaintenanceRecord, id_manutencao)
    if record is None:
        raise ResourceNotFoundError("Maintenance record", id_manutencao)

    for field, value in record_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(record, field, value)
    await db.commit()
    await db.refresh(record)

    await ReportCache.invalidate()
    return MaintenanceRecordResponse.model_validate(record)


@router.delete("/{id_manutencao}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance_record(
    id_manutencao: int = Path(..., description="Maintenance record ID"),
    db: AsyncSession = Depends(get_db)
):
    record = await db.get(MaintenanceRecord, id_manutencao)
    if record is None:
        raise ResourceNotFoundError("Maintenance record", id_manutencao)

    await db.delete(record)
    await db.commit()
    await ReportCache.invalidate()
