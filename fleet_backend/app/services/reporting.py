"""
Reporting Service.

Read-only aggregation behind the /estatisticas and /relatorios dashboards.
Every report issues one grouped query per aggregate family (trips, fuel,
maintenance) and merges the keyed results in memory; nothing loops over
vehicles or drivers issuing queries per row.
"""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, case, distinct, extract, cast, String
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from fleet_backend.app.models.city import City
from fleet_backend.app.models.driver import Driver
from fleet_backend.app.models.enums import (
    TripStatus, VehicleStatus, DriverStatus, MaintenanceType
)
from fleet_backend.app.models.fuel_record import FuelRecord
from fleet_backend.app.models.maintenance_record import MaintenanceRecord
from fleet_backend.app.models.trip import Trip
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.schemas.reports import (
    GeneralStatistics, GeneralSummary, MonthlyCost,
    OverviewReport, FleetOverview, DriversOverview, TripsOverview, CitiesOverview, CostsOverview,
    FleetReport, VehicleFullStats,
    DriversReport, DriverFullStats,
    FuelEfficiencyReport, FuelEfficiencyStats,
    MaintenanceReport, MaintenanceStats,
    RoutesReport, RouteStats,
    CostBenefitReport, CostBenefitStats,
    TimelineReport, TimelineEvent,
    MonthlyComparisonReport, MonthlyComparison,
)
from fleet_backend.app.schemas.trip import (
    TripStatisticsResponse, TripSummary, TopVehicle, TopDriver, PopularRoute
)
from fleet_backend.app.services import metrics

Origin = aliased(City, name="rota_origem")
Destination = aliased(City, name="rota_destino")

# Distance of a finalized trip; trips without km_final contribute 0
KM_DRIVEN = case((Trip.km_final.is_not(None), Trip.km_final - Trip.km_inicial), else_=0)

# Maintenance money only counts once the service is completed
COMPLETED_COST = case((MaintenanceRecord.concluida.is_(True), MaintenanceRecord.valor), else_=0)


def _f(value: Any) -> float:
    return float(value or 0)


def _i(value: Any) -> int:
    return int(value or 0)


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _naive(value: datetime) -> datetime:
    """Drop tzinfo so trip timestamps sort together with plain dates."""
    if value.tzinfo is not None:
        return value.replace(tzinfo=None) - value.utcoffset()
    return value


class Window:
    """Half-open reporting window over the last N calendar months."""

    def __init__(self, months: int, today: Optional[date] = None):
        self.months = months
        self.today = today or date.today()
        self.start, self.end = metrics.report_window(months, self.today)
        self.start_dt = datetime.combine(self.start, time.min)
        self.end_dt = datetime.combine(self.end, time.min)
        self.calendar = metrics.last_months(months, self.today)

    def trips(self):
        return (Trip.data_saida >= self.start_dt, Trip.data_saida < self.end_dt)

    def fuel(self):
        return (FuelRecord.data_abast >= self.start, FuelRecord.data_abast < self.end)

    def maintenance(self):
        return (MaintenanceRecord.data_man >= self.start, MaintenanceRecord.data_man < self.end)


class ReportingService:

    # --- Keyed aggregate lookups shared by several reports ---

    @staticmethod
    async def _trips_by_vehicle(db: AsyncSession, window: Window) -> Dict[int, Any]:
        result = await db.execute(
            select(
                Trip.id_veiculo,
                func.count(Trip.id_viagem).label("total_viagens"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km"),
            ).where(*window.trips()).group_by(Trip.id_veiculo)
        )
        return {row.id_veiculo: row for row in result}

    @staticmethod
    async def _fuel_by_vehicle(db: AsyncSession, window: Window) -> Dict[int, Any]:
        result = await db.execute(
            select(
                FuelRecord.id_veiculo,
                func.count(FuelRecord.id_abastecimento).label("total"),
                func.coalesce(func.sum(FuelRecord.litros), 0).label("litros"),
                func.coalesce(func.sum(FuelRecord.valor_total), 0).label("valor"),
            ).where(*window.fuel()).group_by(FuelRecord.id_veiculo)
        )
        return {row.id_veiculo: row for row in result}

    @staticmethod
    async def _maintenance_by_vehicle(db: AsyncSession, window: Window) -> Dict[int, Any]:
        result = await db.execute(
            select(
                MaintenanceRecord.id_veiculo,
                func.count(MaintenanceRecord.id_manutencao).label("total"),
                _count_where(MaintenanceRecord.tipo == MaintenanceType.PREVENTIVE).label("preventivas"),
                _count_where(MaintenanceRecord.tipo == MaintenanceType.CORRECTIVE).label("corretivas"),
                _count_where(MaintenanceRecord.concluida.is_(True)).label("concluidas"),
                func.coalesce(func.sum(COMPLETED_COST), 0).label("valor"),
            ).where(*window.maintenance()).group_by(MaintenanceRecord.id_veiculo)
        )
        return {row.id_veiculo: row for row in result}

    @staticmethod
    async def _trips_per_month(db: AsyncSession, window: Window) -> Dict[Tuple[int, int], Any]:
        year = extract("year", Trip.data_saida)
        month = extract("month", Trip.data_saida)
        result = await db.execute(
            select(
                year.label("ano"),
                month.label("mes"),
                func.count(Trip.id_viagem).label("total"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km"),
            ).where(*window.trips()).group_by(year, month)
        )
        return {(int(row.ano), int(row.mes)): row for row in result}

    @staticmethod
    async def _fuel_per_month(db: AsyncSession, window: Window) -> Dict[Tuple[int, int], Any]:
        year = extract("year", FuelRecord.data_abast)
        month = extract("month", FuelRecord.data_abast)
        result = await db.execute(
            select(
                year.label("ano"),
                month.label("mes"),
                func.count(FuelRecord.id_abastecimento).label("total"),
                func.coalesce(func.sum(FuelRecord.valor_total), 0).label("valor"),
                func.coalesce(func.sum(FuelRecord.litros), 0).label("litros"),
            ).where(*window.fuel()).group_by(year, month)
        )
        return {(int(row.ano), int(row.mes)): row for row in result}

    @staticmethod
    async def _maintenance_per_month(db: AsyncSession, window: Window) -> Dict[Tuple[int, int], Any]:
        year = extract("year", MaintenanceRecord.data_man)
        month = extract("month", MaintenanceRecord.data_man)
        result = await db.execute(
            select(
                year.label("ano"),
                month.label("mes"),
                func.count(MaintenanceRecord.id_manutencao).label("total"),
                func.coalesce(func.sum(COMPLETED_COST), 0).label("valor"),
            ).where(*window.maintenance()).group_by(year, month)
        )
        return {(int(row.ano), int(row.mes)): row for row in result}

    # --- /estatisticas/geral ---

    @staticmethod
    async def get_general_statistics(db: AsyncSession, months: int, today: Optional[date] = None) -> GeneralStatistics:
        """Fuel, maintenance and mileage totals plus a unified monthly series."""
        window = Window(months, today)

        fuel = (await db.execute(
            select(
                func.coalesce(func.sum(FuelRecord.valor_total), 0).label("total"),
                func.count(FuelRecord.id_abastecimento).label("quantidade"),
            ).where(*window.fuel())
        )).one()

        maintenance = (await db.execute(
            select(
                func.coalesce(func.sum(COMPLETED_COST), 0).label("total"),
                func.count(MaintenanceRecord.id_manutencao).label("quantidade"),
            ).where(*window.maintenance())
        )).one()

        trips = (await db.execute(
            select(
                func.count(Trip.id_viagem).label("total_viagens"),
                _count_where(Trip.status_viagem == TripStatus.FINALIZED).label("finalizadas"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km_total"),
            ).where(*window.trips())
        )).one()

        fuel_by_month = await ReportingService._fuel_per_month(db, window)
        maintenance_by_month = await ReportingService._maintenance_per_month(db, window)
        trips_by_month = await ReportingService._trips_per_month(db, window)

        def build(ym, values):
            year, month = ym
            return MonthlyCost(
                mes=metrics.month_key(year, month),
                mes_nome=metrics.month_label(month),
                combustivel=values["combustivel"],
                manutencao=values["manutencao"],
                km=int(values["km"]),
                custo_total=values["combustivel"] + values["manutencao"],
            )

        por_mes = metrics.monthly_series(
            window.calendar,
            build,
            combustivel={ym: _f(row.valor) for ym, row in fuel_by_month.items()},
            manutencao={ym: _f(row.valor) for ym, row in maintenance_by_month.items()},
            km={ym: _i(row.km) for ym, row in trips_by_month.items()},
        )

        fuel_cost = _f(fuel.total)
        maintenance_cost = _f(maintenance.total)
        km_total = _i(trips.km_total)
        total_cost = fuel_cost + maintenance_cost

        return GeneralStatistics(
            periodo_meses=months,
            resumo=GeneralSummary(
                custo_total_combustivel=fuel_cost,
                custo_total_manutencao=maintenance_cost,
                custo_total_operacional=total_cost,
                km_total=km_total,
                custo_por_km=metrics.cost_per_km(total_cost, km_total),
                total_viagens=_i(trips.total_viagens),
                viagens_finalizadas=_i(trips.finalizadas),
                total_abastecimentos=_i(fuel.quantidade),
                total_manutencoes=_i(maintenance.quantidade),
            ),
            por_mes=por_mes,
        )

    # --- /relatorios/overview ---

    @staticmethod
    async def get_overview(db: AsyncSession, months: int, today: Optional[date] = None) -> OverviewReport:
        window = Window(months, today)

        vehicle_status = {
            row.status: row.total for row in await db.execute(
                select(Vehicle.status, func.count(Vehicle.id_veiculo).label("total")).group_by(Vehicle.status)
            )
        }
        driver_status = {
            row.status: row.total for row in await db.execute(
                select(Driver.status, func.count(Driver.cpf).label("total")).group_by(Driver.status)
            )
        }
        drivers_on_trip = (await db.execute(
            select(func.count(distinct(Trip.cpf_motorista))).where(
                Trip.status_viagem == TripStatus.IN_PROGRESS,
                Trip.cpf_motorista.is_not(None)
            )
        )).scalar()
        total_cities = (await db.execute(select(func.count(City.id_cidade)))).scalar()

        trips = (await db.execute(
            select(
                func.count(Trip.id_viagem).label("total"),
                _count_where(Trip.status_viagem == TripStatus.FINALIZED).label("finalizadas"),
                _count_where(Trip.status_viagem == TripStatus.CANCELLED).label("canceladas"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km"),
            ).where(*window.trips())
        )).one()
        in_progress = (await db.execute(
            select(func.count(Trip.id_viagem)).where(Trip.status_viagem == TripStatus.IN_PROGRESS)
        )).scalar()

        fuel_cost = _f((await db.execute(
            select(func.sum(FuelRecord.valor_total)).where(*window.fuel())
        )).scalar())
        maintenance_cost = _f((await db.execute(
            select(func.sum(COMPLETED_COST)).where(*window.maintenance())
        )).scalar())

        return OverviewReport(
            periodo_meses=months,
            frota=FleetOverview(
                total_veiculos=sum(vehicle_status.values()),
                veiculos_ativos=vehicle_status.get(VehicleStatus.ACTIVE, 0),
                veiculos_em_viagem=vehicle_status.get(VehicleStatus.ON_TRIP, 0),
                veiculos_manutencao=vehicle_status.get(VehicleStatus.MAINTENANCE, 0),
            ),
            motoristas=DriversOverview(
                total_motoristas=sum(driver_status.values()),
                motoristas_ativos=driver_status.get(DriverStatus.ACTIVE, 0),
                motoristas_em_viagem=_i(drivers_on_trip),
            ),
            viagens=TripsOverview(
                total_viagens=_i(trips.total),
                viagens_em_andamento=_i(in_progress),
                viagens_finalizadas=_i(trips.finalizadas),
                viagens_canceladas=_i(trips.canceladas),
                km_total_percorrido=_i(trips.km),
            ),
            cidades=CitiesOverview(total_cidades=_i(total_cities)),
            custos=CostsOverview(
                custo_total_combustivel=fuel_cost,
                custo_total_manutencao=maintenance_cost,
                custo_operacional_total=fuel_cost + maintenance_cost,
            ),
        )

    # --- /relatorios/frota-completo ---

    @staticmethod
    async def get_fleet_report(db: AsyncSession, months: int, today: Optional[date] = None) -> FleetReport:
        """Per-vehicle trips, fuel and maintenance over the window."""
        window = Window(months, today)

        vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.placa))).scalars().all()
        trips = await ReportingService._trips_by_vehicle(db, window)
        fuel = await ReportingService._fuel_by_vehicle(db, window)
        maintenance = await ReportingService._maintenance_by_vehicle(db, window)

        data = []
        for vehicle in vehicles:
            t = trips.get(vehicle.id_veiculo)
            f = fuel.get(vehicle.id_veiculo)
            m = maintenance.get(vehicle.id_veiculo)

            km = _f(t.km) if t else 0.0
            fill_ups = _i(f.total) if f else 0
            liters = _f(f.litros) if f else 0.0
            fuel_cost = _f(f.valor) if f else 0.0
            maintenance_cost = _f(m.valor) if m else 0.0
            total_cost = fuel_cost + maintenance_cost

            data.append(VehicleFullStats(
                id_veiculo=vehicle.id_veiculo,
                placa=vehicle.placa,
                modelo=vehicle.modelo,
                marca=vehicle.marca,
                ano=vehicle.ano,
                tipo=vehicle.tipo,
                km_atual=vehicle.km_atual,
                status=vehicle.status.value,
                total_viagens=_i(t.total_viagens) if t else 0,
                total_abastecimentos=fill_ups,
                total_litros=liters,
                km_rodados=km,
                custo_combustivel=fuel_cost,
                custo_manutencao=maintenance_cost,
                custo_total=total_cost,
                custo_por_km=metrics.cost_per_km(total_cost, km),
                consumo_medio_km_l=metrics.fuel_efficiency(km, liters),
                km_por_abastecimento=km / fill_ups if fill_ups > 0 else 0.0,
            ))

        return FleetReport(periodo_meses=months, veiculos=data)

    # --- /relatorios/motoristas-completo ---

    @staticmethod
    async def get_drivers_report(db: AsyncSession, months: int, today: Optional[date] = None) -> DriversReport:
        """Per-driver trip outcomes, mileage and license expiry."""
        window = Window(months, today)

        route_key = cast(Trip.cidade_origem, String) + "-" + cast(Trip.cidade_destino, String)
        result = await db.execute(
            select(
                Trip.cpf_motorista,
                func.count(Trip.id_viagem).label("total"),
                _count_where(Trip.status_viagem == TripStatus.FINALIZED).label("finalizadas"),
                _count_where(Trip.status_viagem == TripStatus.CANCELLED).label("canceladas"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km"),
                func.count(distinct(Trip.id_veiculo)).label("veiculos"),
                func.count(distinct(route_key)).label("rotas"),
            ).where(Trip.cpf_motorista.is_not(None), *window.trips())
            .group_by(Trip.cpf_motorista)
        )
        stats = {row.cpf_motorista: row for row in result}

        drivers = (await db.execute(select(Driver).order_by(Driver.nome))).scalars().all()

        data = []
        for driver in drivers:
            s = stats.get(driver.cpf)
            total = _i(s.total) if s else 0
            finalized = _i(s.finalizadas) if s else 0
            days_left = metrics.days_until(driver.validade_cnh, window.today)

            data.append(DriverFullStats(
                cpf=driver.cpf,
                nome=driver.nome,
                cnh=driver.cnh,
                cat_cnh=driver.cat_cnh,
                validade_cnh=driver.validade_cnh,
                status=driver.status.value,
                total_viagens=total,
                viagens_finalizadas=finalized,
                viagens_canceladas=_i(s.canceladas) if s else 0,
                km_rodados=_f(s.km) if s else 0.0,
                taxa_conclusao=metrics.completion_rate(finalized, total),
                veiculos_diferentes=_i(s.veiculos) if s else 0,
                rotas_diferentes=_i(s.rotas) if s else 0,
                cnh_vencida=days_left < 0,
                dias_para_vencer_cnh=days_left,
            ))

        return DriversReport(periodo_meses=months, motoristas=data)

    # --- /relatorios/eficiencia-combustivel ---

    @staticmethod
    async def get_fuel_efficiency(db: AsyncSession, months: int, today: Optional[date] = None) -> FuelEfficiencyReport:
        """Km/L per vehicle; only vehicles that refueled within the window are listed."""
        window = Window(months, today)

        vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.placa))).scalars().all()
        fuel = await ReportingService._fuel_by_vehicle(db, window)
        trips = await ReportingService._trips_by_vehicle(db, window)

        data = []
        for vehicle in vehicles:
            f = fuel.get(vehicle.id_veiculo)
            liters = _f(f.litros) if f else 0.0
            if liters <= 0:
                continue

            t = trips.get(vehicle.id_veiculo)
            km = _f(t.km) if t else 0.0
            cost = _f(f.valor)
            km_per_liter = metrics.fuel_efficiency(km, liters)

            data.append(FuelEfficiencyStats(
                id_veiculo=vehicle.id_veiculo,
                placa=vehicle.placa,
                modelo=vehicle.modelo,
                total_abastecimentos=_i(f.total),
                total_litros=liters,
                custo_total=cost,
                km_rodados=km,
                consumo_medio_km_l=km_per_liter,
                litros_por_100km=metrics.liters_per_100km(liters, km),
                classificacao=metrics.classify_efficiency(km_per_liter),
                custo_por_km=metrics.cost_per_km(cost, km),
            ))

        return FuelEfficiencyReport(periodo_meses=months, veiculos=data)

    # --- /relatorios/manutencao-critica ---

    @staticmethod
    async def get_maintenance_report(db: AsyncSession, months: int, today: Optional[date] = None) -> MaintenanceReport:
        window = Window(months, today)

        vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.placa))).scalars().all()
        maintenance = await ReportingService._maintenance_by_vehicle(db, window)

        data = []
        for vehicle in vehicles:
            m = maintenance.get(vehicle.id_veiculo)
            data.append(MaintenanceStats(
                id_veiculo=vehicle.id_veiculo,
                placa=vehicle.placa,
                modelo=vehicle.modelo,
                total_manutencoes=_i(m.total) if m else 0,
                manutencoes_preventivas=_i(m.preventivas) if m else 0,
                manutencoes_corretivas=_i(m.corretivas) if m else 0,
                manutencoes_concluidas=_i(m.concluidas) if m else 0,
                custo_total=_f(m.valor) if m else 0.0,
            ))

        # Most expensive first
        data.sort(key=lambda item: (item.custo_total, item.total_manutencoes), reverse=True)
        return MaintenanceReport(periodo_meses=months, veiculos=data)

    # --- /relatorios/rotas-analise ---

    @staticmethod
    async def get_routes_report(
        db: AsyncSession, months: int, limit: int = 20, today: Optional[date] = None
    ) -> RoutesReport:
        window = Window(months, today)

        result = await db.execute(
            select(
                Origin.nome.label("origem"),
                Origin.uf.label("origem_uf"),
                Destination.nome.label("destino"),
                Destination.uf.label("destino_uf"),
                func.count(Trip.id_viagem).label("total_viagens"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km_total"),
            )
            .select_from(Trip)
            .join(Origin, Origin.id_cidade == Trip.cidade_origem)
            .join(Destination, Destination.id_cidade == Trip.cidade_destino)
            .where(*window.trips())
            .group_by(Origin.id_cidade, Origin.nome, Origin.uf, Destination.id_cidade, Destination.nome, Destination.uf)
            .order_by(func.count(Trip.id_viagem).desc(), Origin.nome, Destination.nome)
            .limit(limit)
        )

        routes = [
            RouteStats(
                rota=f"{row.origem} ({row.origem_uf}) → {row.destino} ({row.destino_uf})",
                origem=row.origem,
                origem_uf=row.origem_uf,
                destino=row.destino,
                destino_uf=row.destino_uf,
                total_viagens=_i(row.total_viagens),
                km_total=_i(row.km_total),
            )
            for row in result
        ]
        return RoutesReport(periodo_meses=months, rotas=routes)

    # --- /relatorios/custo-beneficio ---

    @staticmethod
    async def get_cost_benefit(db: AsyncSession, months: int, today: Optional[date] = None) -> CostBenefitReport:
        window = Window(months, today)

        vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.placa))).scalars().all()
        trips = await ReportingService._trips_by_vehicle(db, window)
        fuel = await ReportingService._fuel_by_vehicle(db, window)
        maintenance = await ReportingService._maintenance_by_vehicle(db, window)

        data = []
        for vehicle in vehicles:
            t = trips.get(vehicle.id_veiculo)
            f = fuel.get(vehicle.id_veiculo)
            m = maintenance.get(vehicle.id_veiculo)

            operational = (_f(f.valor) if f else 0.0) + (_f(m.valor) if m else 0.0)
            km = _f(t.km) if t else 0.0
            total_trips = _i(t.total_viagens) if t else 0
            cost_km = metrics.cost_per_km(operational, km)

            data.append(CostBenefitStats(
                id_veiculo=vehicle.id_veiculo,
                placa=vehicle.placa,
                modelo=vehicle.modelo,
                custo_operacional=operational,
                km_rodados=km,
                custo_por_km=cost_km,
                total_viagens=total_trips,
                taxa_utilizacao=metrics.utilization_rate(total_trips, months),
                eficiencia_operacional=metrics.classify_cost_efficiency(cost_km),
            ))

        return CostBenefitReport(periodo_meses=months, veiculos=data)

    # --- /relatorios/timeline ---

    @staticmethod
    async def get_timeline(
        db: AsyncSession, months: int, limit: int = 100, today: Optional[date] = None
    ) -> TimelineReport:
        """Latest trip, fuel and maintenance events merged newest first."""
        window = Window(months, today)

        trips = await db.execute(
            select(Trip.data_saida, Trip.km_inicial, Trip.km_final, Vehicle.placa)
            .select_from(Trip)
            .join(Vehicle, Vehicle.id_veiculo == Trip.id_veiculo)
            .where(*window.trips())
            .order_by(Trip.data_saida.desc())
            .limit(limit)
        )
        fills = await db.execute(
            select(FuelRecord.data_abast, FuelRecord.valor_total, FuelRecord.litros, Vehicle.placa)
            .select_from(FuelRecord)
            .join(Vehicle, Vehicle.id_veiculo == FuelRecord.id_veiculo)
            .where(*window.fuel())
            .order_by(FuelRecord.data_abast.desc())
            .limit(limit)
        )
        services = await db.execute(
            select(MaintenanceRecord.data_man, MaintenanceRecord.valor, MaintenanceRecord.descricao, Vehicle.placa)
            .select_from(MaintenanceRecord)
            .join(Vehicle, Vehicle.id_veiculo == MaintenanceRecord.id_veiculo)
            .where(*window.maintenance())
            .order_by(MaintenanceRecord.data_man.desc())
            .limit(limit)
        )

        events: List[TimelineEvent] = []
        for row in trips:
            km = row.km_final - row.km_inicial if row.km_final is not None else 0
            events.append(TimelineEvent(
                tipo="viagem",
                data=_naive(row.data_saida),
                descricao=f"Viagem - {km} km" if km > 0 else "Viagem iniciada",
                veiculo_placa=row.placa,
                km=km,
            ))
        for row in fills:
            events.append(TimelineEvent(
                tipo="abastecimento",
                data=datetime.combine(row.data_abast, time.min),
                descricao=f"Abastecimento - {row.litros:.1f}L",
                veiculo_placa=row.placa,
                valor=_f(row.valor_total),
            ))
        for row in services:
            events.append(TimelineEvent(
                tipo="manutencao",
                data=datetime.combine(row.data_man, time.min),
                descricao=f"Manutenção - {row.descricao}",
                veiculo_placa=row.placa,
                valor=_f(row.valor),
            ))

        events.sort(key=lambda event: event.data, reverse=True)
        events = events[:limit]
        return TimelineReport(periodo_meses=months, total_eventos=len(events), eventos=events)

    # --- /relatorios/comparativo-mensal ---

    @staticmethod
    async def get_monthly_comparison(
        db: AsyncSession, months: int, today: Optional[date] = None
    ) -> MonthlyComparisonReport:
        """Month-by-month totals with trends against the preceding month."""
        window = Window(months, today)

        trips_by_month = await ReportingService._trips_per_month(db, window)
        fuel_by_month = await ReportingService._fuel_per_month(db, window)
        maintenance_by_month = await ReportingService._maintenance_per_month(db, window)

        def build(ym, values):
            year, month = ym
            return {
                "mes": metrics.month_key(year, month),
                "mes_nome": f"{metrics.month_label(month)} {year}",
                "total_viagens": int(values["viagens"]),
                "km_rodados": float(values["km"]),
                "custo_combustivel": values["combustivel"],
                "custo_manutencao": values["manutencao"],
                "custo_total": values["combustivel"] + values["manutencao"],
            }

        rows = metrics.monthly_series(
            window.calendar,
            build,
            viagens={ym: _i(row.total) for ym, row in trips_by_month.items()},
            km={ym: _f(row.km) for ym, row in trips_by_month.items()},
            combustivel={ym: _f(row.valor) for ym, row in fuel_by_month.items()},
            manutencao={ym: _f(row.valor) for ym, row in maintenance_by_month.items()},
        )

        trip_trends = metrics.label_trends(row["total_viagens"] for row in rows)
        cost_trends = metrics.label_trends(row["custo_total"] for row in rows)

        comparison = [
            MonthlyComparison(**row, tendencia_viagens=trip_trend, tendencia_custos=cost_trend)
            for row, trip_trend, cost_trend in zip(rows, trip_trends, cost_trends)
        ]
        return MonthlyComparisonReport(periodo_meses=months, comparativo=comparison)

    # --- /viagens/estatisticas/geral ---

    @staticmethod
    async def get_trip_statistics(
        db: AsyncSession, months: int, today: Optional[date] = None
    ) -> TripStatisticsResponse:
        window = Window(months, today)

        summary = (await db.execute(
            select(
                func.count(Trip.id_viagem).label("total"),
                _count_where(Trip.status_viagem == TripStatus.IN_PROGRESS).label("em_andamento"),
                _count_where(Trip.status_viagem == TripStatus.FINALIZED).label("finalizadas"),
                _count_where(Trip.status_viagem == TripStatus.CANCELLED).label("canceladas"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km_total"),
                func.avg(case(
                    (Trip.km_final.is_not(None), Trip.km_final - Trip.km_inicial), else_=None
                )).label("km_media"),
            ).where(*window.trips())
        )).one()

        trip_count = func.count(Trip.id_viagem)
        top_vehicles = await db.execute(
            select(
                Vehicle.placa,
                Vehicle.modelo,
                trip_count.label("total_viagens"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km_total"),
            )
            .select_from(Trip)
            .join(Vehicle, Vehicle.id_veiculo == Trip.id_veiculo)
            .where(*window.trips())
            .group_by(Vehicle.id_veiculo, Vehicle.placa, Vehicle.modelo)
            .order_by(trip_count.desc(), Vehicle.placa)
            .limit(10)
        )
        top_drivers = await db.execute(
            select(
                Driver.nome,
                trip_count.label("total_viagens"),
                func.coalesce(func.sum(KM_DRIVEN), 0).label("km_total"),
            )
            .select_from(Trip)
            .join(Driver, Driver.cpf == Trip.cpf_motorista)
            .where(*window.trips())
            .group_by(Driver.cpf, Driver.nome)
            .order_by(trip_count.desc(), Driver.nome)
            .limit(10)
        )

        return TripStatisticsResponse(
            periodo_meses=months,
            resumo=TripSummary(
                total_viagens=_i(summary.total),
                em_andamento=_i(summary.em_andamento),
                finalizadas=_i(summary.finalizadas),
                canceladas=_i(summary.canceladas),
                km_total=_i(summary.km_total),
                km_media_por_viagem=_f(summary.km_media),
            ),
            top_veiculos=[
                TopVehicle(placa=r.placa, modelo=r.modelo, total_viagens=_i(r.total_viagens), km_total=_i(r.km_total))
                for r in top_vehicles
            ],
            top_motoristas=[
                TopDriver(nome=r.nome, total_viagens=_i(r.total_viagens), km_total=_i(r.km_total))
                for r in top_drivers
            ],
        )

    # --- /viagens/rotas/populares ---

    @staticmethod
    async def get_popular_routes(db: AsyncSession, limit: int = 10) -> List[PopularRoute]:
        """Most used origin -> destination pairs over all time."""
        trip_count = func.count(Trip.id_viagem)
        result = await db.execute(
            select(
                Origin.nome.label("origem"),
                Origin.uf.label("origem_uf"),
                Destination.nome.label("destino"),
                Destination.uf.label("destino_uf"),
                trip_count.label("total_viagens"),
            )
            .select_from(Trip)
            .join(Origin, Origin.id_cidade == Trip.cidade_origem)
            .join(Destination, Destination.id_cidade == Trip.cidade_destino)
            .group_by(Origin.id_cidade, Origin.nome, Origin.uf, Destination.id_cidade, Destination.nome, Destination.uf)
            .order_by(trip_count.desc(), Origin.nome, Destination.nome)
            .limit(limit)
        )
        return [
            PopularRoute(
                origem=f"{row.origem} ({row.origem_uf})",
                destino=f"{row.destino} ({row.destino_uf})",
                total_viagens=_i(row.total_viagens),
            )
            for row in result
        ]
