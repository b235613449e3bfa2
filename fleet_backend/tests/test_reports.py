"""
Reporting Tests.

Service-level checks run against a fixed history with a pinned `today`;
HTTP checks cover the `meses` contract and the shape of every dashboard.

History (today = 2024-03-15, window of 3 months = Jan..Mar 2024):

    trips        V1 Jan 10  SP -> Campinas       10000 -> 10300  finalized (Ana)
                 V1 Mar 05  SP -> Campinas       10300 -> 10500  finalized (Ana)
                 V2 Feb 20  Campinas -> Curitiba 25000 -> 25400  finalized (Bruno)
                 V2 Mar 01  SP -> Curitiba       cancelled          (Bruno)
                 V1 Dec 10  Campinas -> SP        9000 ->  9500  finalized (outside)
    fuel         V1 Jan 11  50 L  R$300 | V1 Mar 06 40 L R$250 | V2 Feb 21 40 L R$500
                 V1 Nov 20  30 L  R$200 (outside)
    maintenance  V1 Feb 02  preventiva R$400 done
                 V2 Jan 15  revisao    R$200 done
                 V2 Mar 03  corretiva  R$1000 pending
"""

from datetime import date, datetime

import pytest

from fleet_backend.app.models.enums import TripStatus, FuelType, MaintenanceType
from fleet_backend.app.models.fuel_record import FuelRecord
from fleet_backend.app.models.maintenance_record import MaintenanceRecord
from fleet_backend.app.models.trip import Trip
from fleet_backend.app.services.reporting import ReportingService

TODAY = date(2024, 3, 15)


@pytest.fixture
async def history(db_session, fleet):
    v1, v2, _ = fleet["vehicles"]
    ana, bruno = fleet["drivers"]
    sp, campinas, curitiba = fleet["cities"]

    ana.validade_cnh = date(2024, 4, 14)
    bruno.validade_cnh = date(2024, 3, 5)

    def trip(vehicle, driver, origin, destination, when, km_inicial, km_final, status=TripStatus.FINALIZED):
        return Trip(
            id_veiculo=vehicle.id_veiculo,
            cpf_motorista=driver.cpf,
            cidade_origem=origin.id_cidade,
            cidade_destino=destination.id_cidade,
            data_saida=when,
            data_chegada=when if status == TripStatus.FINALIZED else None,
            km_inicial=km_inicial,
            km_final=km_final,
            status_viagem=status,
        )

    db_session.add_all([
        trip(v1, ana, sp, campinas, datetime(2024, 1, 10, 8), 10000, 10300),
        trip(v1, ana, sp, campinas, datetime(2024, 3, 5, 8), 10300, 10500),
        trip(v2, bruno, campinas, curitiba, datetime(2024, 2, 20, 8), 25000, 25400),
        trip(v2, bruno, sp, curitiba, datetime(2024, 3, 1, 8), 25400, None, TripStatus.CANCELLED),
        trip(v1, ana, campinas, sp, datetime(2023, 12, 10, 8), 9000, 9500),
        FuelRecord(id_veiculo=v1.id_veiculo, data_abast=date(2024, 1, 11), tipo_combustivel=FuelType.DIESEL,
                   litros=50, valor_total=300),
        FuelRecord(id_veiculo=v1.id_veiculo, data_abast=date(2024, 3, 6), tipo_combustivel=FuelType.DIESEL,
                   litros=40, valor_total=250),
        FuelRecord(id_veiculo=v2.id_veiculo, data_abast=date(2024, 2, 21), tipo_combustivel=FuelType.FLEX,
                   litros=40, valor_total=500),
        FuelRecord(id_veiculo=v1.id_veiculo, data_abast=date(2023, 11, 20), tipo_combustivel=FuelType.DIESEL,
                   litros=30, valor_total=200),
        MaintenanceRecord(id_veiculo=v1.id_veiculo, data_man=date(2024, 2, 2), tipo=MaintenanceType.PREVENTIVE,
                          descricao="Troca de óleo", valor=400, concluida=True),
        MaintenanceRecord(id_veiculo=v2.id_veiculo, data_man=date(2024, 1, 15), tipo=MaintenanceType.REVISION,
                          descricao="Revisão 20 mil", valor=200, concluida=True),
        MaintenanceRecord(id_veiculo=v2.id_veiculo, data_man=date(2024, 3, 3), tipo=MaintenanceType.CORRECTIVE,
                          descricao="Embreagem", valor=1000, concluida=False),
    ])
    await db_session.commit()
    return fleet


@pytest.mark.asyncio
async def test_general_statistics_totals(db_session, history):
    stats = await ReportingService.get_general_statistics(db_session, 3, today=TODAY)
    resumo = stats.resumo

    assert stats.periodo_meses == 3
    assert resumo.custo_total_combustivel == 1050
    assert resumo.custo_total_manutencao == 600  # pending R$1000 excluded
    assert resumo.custo_total_operacional == 1650
    assert resumo.km_total == 900
    assert resumo.custo_por_km == pytest.approx(1650 / 900)
    assert resumo.total_viagens == 4
    assert resumo.viagens_finalizadas == 3
    assert resumo.total_abastecimentos == 3
    assert resumo.total_manutencoes == 3

    assert [m.mes for m in stats.por_mes] == ["2024-01", "2024-02", "2024-03"]
    assert [m.mes_nome for m in stats.por_mes] == ["Jan", "Fev", "Mar"]
    assert [m.combustivel for m in stats.por_mes] == [300, 500, 250]
    assert [m.manutencao for m in stats.por_mes] == [200, 400, 0]
    assert [m.km for m in stats.por_mes] == [300, 400, 200]


@pytest.mark.asyncio
@pytest.mark.parametrize("months", [1, 3, 6, 12])
async def test_monthly_series_adds_up_to_window_totals(db_session, history, months):
    stats = await ReportingService.get_general_statistics(db_session, months, today=TODAY)

    assert len(stats.por_mes) == months
    assert sum(m.combustivel for m in stats.por_mes) == stats.resumo.custo_total_combustivel
    assert sum(m.manutencao for m in stats.por_mes) == stats.resumo.custo_total_manutencao
    assert sum(m.km for m in stats.por_mes) == stats.resumo.km_total
    assert sum(m.custo_total for m in stats.por_mes) == stats.resumo.custo_total_operacional


@pytest.mark.asyncio
async def test_wider_window_includes_older_history(db_session, history):
    stats = await ReportingService.get_general_statistics(db_session, 6, today=TODAY)
    assert stats.resumo.km_total == 1400
    assert stats.resumo.custo_total_combustivel == 1250


@pytest.mark.asyncio
async def test_overview(db_session, history):
    report = await ReportingService.get_overview(db_session, 3, today=TODAY)

    assert report.frota.total_veiculos == 3
    assert report.frota.veiculos_ativos == 2
    assert report.frota.veiculos_manutencao == 1
    assert report.frota.veiculos_em_viagem == 0
    assert report.motoristas.total_motoristas == 2
    assert report.motoristas.motoristas_em_viagem == 0
    assert report.viagens.total_viagens == 4
    assert report.viagens.viagens_finalizadas == 3
    assert report.viagens.viagens_canceladas == 1
    assert report.viagens.km_total_percorrido == 900
    assert report.cidades.total_cidades == 3
    assert report.custos.custo_operacional_total == 1650


@pytest.mark.asyncio
async def test_fleet_report(db_session, history):
    report = await ReportingService.get_fleet_report(db_session, 3, today=TODAY)
    by_plate = {v.placa: v for v in report.veiculos}

    v1 = by_plate["ABC1D23"]
    assert v1.total_viagens == 2
    assert v1.total_abastecimentos == 2
    assert v1.total_litros == 90
    assert v1.km_rodados == 500
    assert v1.custo_combustivel == 550
    assert v1.custo_manutencao == 400
    assert v1.custo_total == 950
    assert v1.custo_por_km == pytest.approx(1.9)
    assert v1.consumo_medio_km_l == pytest.approx(500 / 90)
    assert v1.km_por_abastecimento == 250

    idle = by_plate["IJK7L89"]
    assert idle.total_viagens == 0
    assert idle.custo_por_km == 0
    assert idle.consumo_medio_km_l == 0
    assert idle.km_por_abastecimento == 0


@pytest.mark.asyncio
async def test_drivers_report(db_session, history):
    report = await ReportingService.get_drivers_report(db_session, 3, today=TODAY)
    ana, bruno = report.motoristas  # ordered by name

    assert ana.nome == "Ana Souza"
    assert ana.total_viagens == 2
    assert ana.taxa_conclusao == 100
    assert ana.veiculos_diferentes == 1
    assert ana.rotas_diferentes == 1
    assert ana.cnh_vencida is False
    assert ana.dias_para_vencer_cnh == 30

    assert bruno.total_viagens == 2
    assert bruno.viagens_canceladas == 1
    assert bruno.taxa_conclusao == 50
    assert bruno.km_rodados == 400
    assert bruno.rotas_diferentes == 2
    assert bruno.cnh_vencida is True
    assert bruno.dias_para_vencer_cnh == -10


@pytest.mark.asyncio
async def test_fuel_efficiency_lists_only_vehicles_with_fuel(db_session, history):
    report = await ReportingService.get_fuel_efficiency(db_session, 3, today=TODAY)
    by_plate = {v.placa: v for v in report.veiculos}

    assert set(by_plate) == {"ABC1D23", "EFG4H56"}
    assert by_plate["EFG4H56"].consumo_medio_km_l == 10
    assert by_plate["EFG4H56"].classificacao == "Excelente"
    assert by_plate["EFG4H56"].litros_por_100km == 10
    assert by_plate["ABC1D23"].classificacao == "Ruim"


@pytest.mark.asyncio
async def test_maintenance_report(db_session, history):
    report = await ReportingService.get_maintenance_report(db_session, 3, today=TODAY)
    first, second = report.veiculos[:2]

    assert first.placa == "ABC1D23"
    assert first.manutencoes_preventivas == 1
    assert first.custo_total == 400

    assert second.placa == "EFG4H56"
    assert second.total_manutencoes == 2
    assert second.manutencoes_corretivas == 1
    assert second.manutencoes_concluidas == 1
    assert second.custo_total == 200


@pytest.mark.asyncio
async def test_routes_report(db_session, history):
    report = await ReportingService.get_routes_report(db_session, 3, today=TODAY)

    top = report.rotas[0]
    assert top.rota == "São Paulo (SP) → Campinas (SP)"
    assert top.total_viagens == 2
    assert top.km_total == 500
    assert len(report.rotas) == 3

    limited = await ReportingService.get_routes_report(db_session, 3, limit=1, today=TODAY)
    assert len(limited.rotas) == 1


@pytest.mark.asyncio
async def test_cost_benefit(db_session, history):
    report = await ReportingService.get_cost_benefit(db_session, 3, today=TODAY)
    by_plate = {v.placa: v for v in report.veiculos}

    v1 = by_plate["ABC1D23"]
    assert v1.custo_operacional == 950
    assert v1.eficiencia_operacional == "Alta"
    assert v1.taxa_utilizacao == pytest.approx(2 / 90 * 100)
    assert by_plate["IJK7L89"].eficiencia_operacional == "Baixa"


@pytest.mark.asyncio
async def test_timeline_newest_first(db_session, history):
    report = await ReportingService.get_timeline(db_session, 3, today=TODAY)

    assert report.total_eventos == 10
    dates = [e.data for e in report.eventos]
    assert dates == sorted(dates, reverse=True)
    assert report.eventos[0].tipo == "abastecimento"
    assert report.eventos[1].tipo == "viagem"
    assert report.eventos[1].km == 200

    limited = await ReportingService.get_timeline(db_session, 3, limit=3, today=TODAY)
    assert limited.total_eventos == 3


@pytest.mark.asyncio
async def test_monthly_comparison_trends(db_session, history):
    report = await ReportingService.get_monthly_comparison(db_session, 3, today=TODAY)
    rows = report.comparativo

    assert [r.mes_nome for r in rows] == ["Jan 2024", "Fev 2024", "Mar 2024"]
    assert [r.total_viagens for r in rows] == [1, 1, 2]
    assert [r.custo_total for r in rows] == [500, 900, 250]
    assert [r.tendencia_viagens for r in rows] == ["Estável", "Estável", "Crescimento"]
    assert [r.tendencia_custos for r in rows] == ["Estável", "Crescimento", "Queda"]


@pytest.mark.asyncio
async def test_trip_statistics_and_popular_routes(db_session, history):
    stats = await ReportingService.get_trip_statistics(db_session, 3, today=TODAY)

    assert stats.resumo.total_viagens == 4
    assert stats.resumo.canceladas == 1
    assert stats.resumo.km_total == 900
    assert stats.resumo.km_media_por_viagem == 300
    assert [v.placa for v in stats.top_veiculos] == ["ABC1D23", "EFG4H56"]
    assert [d.nome for d in stats.top_motoristas] == ["Ana Souza", "Bruno Lima"]

    routes = await ReportingService.get_popular_routes(db_session)
    assert routes[0].origem == "São Paulo (SP)"
    assert routes[0].destino == "Campinas (SP)"
    assert routes[0].total_viagens == 2
    assert len(routes) == 4


# HTTP

@pytest.mark.asyncio
@pytest.mark.parametrize("query,expected", [
    ("", 6), ("?meses=abc", 6), ("?meses=3", 3), ("?meses=0", 1), ("?meses=40", 12),
])
async def test_meses_contract(client, fleet, query, expected):
    response = await client.get(f"/estatisticas/geral{query}")
    assert response.status_code == 200
    data = response.json()
    assert data["periodo_meses"] == expected
    assert len(data["por_mes"]) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("path", [
    "/relatorios/overview",
    "/relatorios/frota-completo",
    "/relatorios/motoristas-completo",
    "/relatorios/eficiencia-combustivel",
    "/relatorios/manutencao-critica",
    "/relatorios/rotas-analise",
    "/relatorios/custo-beneficio",
    "/relatorios/timeline",
    "/relatorios/comparativo-mensal",
    "/viagens/estatisticas/geral",
    "/viagens/rotas/populares",
])
async def test_every_report_endpoint_responds(client, fleet, path):
    response = await client.get(path, params={"meses": 2})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_finalized_trip_shows_up_in_current_month(client, fleet):
    vehicle = fleet["vehicles"][0]
    start = await client.post(f"/viagens/simular/{vehicle.id_veiculo}")
    await client.post(f"/viagens/finalizar/{start.json()['viagem']['id_viagem']}", json={"km_final": 10250})

    data = (await client.get("/estatisticas/geral", params={"meses": 1})).json()
    assert data["resumo"]["km_total"] == 250
    assert data["por_mes"][0]["km"] == 250


@pytest.mark.asyncio
async def test_report_limit_is_bounded(client, fleet):
    response = await client.get("/relatorios/timeline", params={"limit": 0})
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"
