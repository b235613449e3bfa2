"""
Report API Endpoints.

Read-only dashboards over the last `meses` calendar months. Payloads are
served through the Redis report cache.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.dependencies import months_window, limit_query
from fleet_backend.app.db.session import get_db
from fleet_backend.app.schemas.reports import (
    OverviewReport, FleetReport, DriversReport, FuelEfficiencyReport,
    MaintenanceReport, RoutesReport, CostBenefitReport, TimelineReport,
    MonthlyComparisonReport, GeneralStatistics,
)
from fleet_backend.app.services.cache import ReportCache
from fleet_backend.app.services.reporting import ReportingService

router = APIRouter(prefix="/relatorios", tags=["Reports"])
statistics_router = APIRouter(prefix="/estatisticas", tags=["Statistics"])


@statistics_router.get("/geral", response_model=GeneralStatistics)
async def general_statistics(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    """
    Cost and mileage totals for the window plus a per-month breakdown.

    The per-month values add up to the totals in `resumo`.
    """
    return await ReportCache.get_or_compute(
        "estatisticas-geral",
        lambda: ReportingService.get_general_statistics(db, months),
        meses=months
    )


@router.get("/overview", response_model=OverviewReport)
async def overview(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    """Fleet, drivers, trips, cities and cost headline numbers."""
    return await ReportCache.get_or_compute(
        "overview",
        lambda: ReportingService.get_overview(db, months),
        meses=months
    )


@router.get("/frota-completo", response_model=FleetReport)
async def fleet_report(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "frota-completo",
        lambda: ReportingService.get_fleet_report(db, months),
        meses=months
    )


@router.get("/motoristas-completo", response_model=DriversReport)
async def drivers_report(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "motoristas-completo",
        lambda: ReportingService.get_drivers_report(db, months),
        meses=months
    )


@router.get("/eficiencia-combustivel", response_model=FuelEfficiencyReport)
async def fuel_efficiency(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "eficiencia-combustivel",
        lambda: ReportingService.get_fuel_efficiency(db, months),
        meses=months
    )


@router.get("/manutencao-critica", response_model=MaintenanceReport)
async def maintenance_report(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "manutencao-critica",
        lambda: ReportingService.get_maintenance_report(db, months),
        meses=months
    )


@router.get("/rotas-analise", response_model=RoutesReport)
async def routes_report(
    months: int = Depends(months_window),
    limit: int = Depends(limit_query(20)),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "rotas-analise",
        lambda: ReportingService.get_routes_report(db, months, limit=limit),
        meses=months, limit=limit
    )


@router.get("/custo-beneficio", response_model=CostBenefitReport)
async def cost_benefit(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "custo-beneficio",
        lambda: ReportingService.get_cost_benefit(db, months),
        meses=months
    )


@router.get("/timeline", response_model=TimelineReport)
async def timeline(
    months: int = Depends(months_window),
    limit: int = Depends(limit_query(100)),
    db: AsyncSession = Depends(get_db)
):
    """Trips, fill-ups and maintenance events, newest first."""
    return await ReportCache.get_or_compute(
        "timeline",
        lambda: ReportingService.get_timeline(db, months, limit=limit),
        meses=months, limit=limit
    )


@router.get("/comparativo-mensal", response_model=MonthlyComparisonReport)
async def monthly_comparison(
    months: int = Depends(months_window),
    db: AsyncSession = Depends(get_db)
):
    return await ReportCache.get_or_compute(
        "comparativo-mensal",
        lambda: ReportingService.get_monthly_comparison(db, months),
        meses=months
    )
