"""
Trip API Endpoints.

Lifecycle transitions (simulate/create, finalize, cancel), trip listings and
the trip-level statistics used by the dashboard.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.dependencies import months_window, limit_query
from fleet_backend.app.core.exceptions import ValidationError
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.enums import TripStatus
from fleet_backend.app.schemas.trip import (
    TripCreateRequest, TripFinalizeRequest, TripCancelRequest, TripNotesUpdate,
    TripResponse, TripStartResponse, TripFinalizeResponse, TripCancelResponse,
    TripStatisticsResponse, PopularRoute,
)
from fleet_backend.app.services.cache import ReportCache
from fleet_backend.app.services.reporting import ReportingService
from fleet_backend.app.services.trip_lifecycle import TripLifecycleService

router = APIRouter(prefix="/viagens", tags=["Trips"])


@router.get("", response_model=List[TripResponse])
async def list_trips(
    status_viagem: Optional[TripStatus] = Query(None, alias="status"),
    id_veiculo: Optional[int] = Query(None),
    cpf_motorista: Optional[str] = Query(None),
    limit: int = Depends(limit_query(50)),
    db: AsyncSession = Depends(get_db)
):
    """List trips, newest first."""
    return await TripLifecycleService.list_trips(
        db, status=status_viagem, vehicle_id=id_veiculo, driver_cpf=cpf_motorista, limit=limit
    )


@router.get("/em-andamento", response_model=List[TripResponse])
async def list_in_progress(db: AsyncSession = Depends(get_db)):
    """Trips currently on the road."""
    return await TripLifecycleService.list_in_progress(db)


@router.get("/estatisticas/geral", response_model=TripStatisticsResponse)
async def trip_statistics(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    """Trip summary plus the top 10 vehicles and drivers by trip count."""
    return await ReportCache.get_or_compute(
        "viagens-estatisticas",
        lambda: ReportingService.get_trip_statistics(db, months),
        meses=months
    )


@router.get("/rotas/populares", response_model=List[PopularRoute])
async def popular_routes(
    limit: int = Depends(limit_query(10)),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "rotas-populares",
        lambda: ReportingService.get_popular_routes(db, limit=limit),
        limit=limit
    )


@router.post("/simular/{id_veiculo}", response_model=TripStartResponse, status_code=status.HTTP_201_CREATED)
async def simulate_trip(
    id_veiculo: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Start a simulated trip for a vehicle.

    Driver, origin and destination are picked at random.
    """
    trip = await TripLifecycleService.start_trip(db, id_veiculo)
    return TripStartResponse(message="Viagem iniciada com sucesso", viagem=trip)


@router.post("/criar", response_model=TripStartResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    payload: TripCreateRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Start a trip with explicit options.

    Omitted driver or cities are picked at random, as in /simular.
    """
    if payload.id_veiculo is None:
        raise ValidationError("id_veiculo is required", details={"field": "id_veiculo"})

    trip = await TripLifecycleService.start_trip(
        db,
        payload.id_veiculo,
        driver_cpf=payload.cpf_motorista,
        origin_id=payload.cidade_origem,
        destination_id=payload.cidade_destino,
    )
    return TripStartResponse(message="Viagem criada com sucesso", viagem=trip)


@router.post("/finalizar/{id_viagem}", response_model=TripFinalizeResponse)
async def finalize_trip(
    id_viagem: int = Path(..., description="Trip ID"),
    payload: Optional[TripFinalizeRequest] = Body(None),
    db: AsyncSession = Depends(get_db)
):
    """Finalize an in-progress trip; km_final is simulated when omitted."""
    km_final = payload.km_final if payload else None
    trip, km_rodados = await TripLifecycleService.finalize_trip(db, id_viagem, km_final=km_final)
    return TripFinalizeResponse(
        message="Viagem finalizada com sucesso",
        viagem=trip,
        km_rodados=km_rodados,
    )


@router.post("/cancelar/{id_viagem}", response_model=TripCancelResponse)
async def cancel_trip(
    id_viagem: int = Path(..., description="Trip ID"),
    payload: Optional[TripCancelRequest] = Body(None),
    db: AsyncSession = Depends(get_db)
):
    reason = payload.motivo if payload else None
    trip = await TripLifecycleService.cancel_trip(db, id_viagem, reason=reason)
    return TripCancelResponse(message="Viagem cancelada com sucesso", viagem=trip)


@router.get("/{id_viagem}", response_model=TripResponse)
async def get_trip(
    id_viagem: int = Path(..., description="Trip ID"),
    db: AsyncSession = Depends(get_db)
):
    return await TripLifecycleService.get_trip(db, id_viagem)


@router.put("/{id_viagem}", response_model=TripResponse)
async def update_trip_notes(
    payload: TripNotesUpdate,
    id_viagem: int = Path(..., description="Trip ID"),
    db: AsyncSession = Depends(get_db)
):
    """Update the free-text notes of a trip."""
    return await TripLifecycleService.update_notes(db, id_viagem, payload.observacoes)
