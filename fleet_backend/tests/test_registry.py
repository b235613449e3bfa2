"""
Registry CRUD Tests.

Vehicles, drivers, cities, fuel and maintenance records, including the
city deletion guard and the fuel odometer rule.
"""

import pytest
from datetime import date

from sqlalchemy import select, func

from fleet_backend.app.models.city import City
from fleet_backend.app.models.fuel_record import FuelRecord
from fleet_backend.app.models.trip import Trip


@pytest.mark.asyncio
async def test_city_crud(client):
    created = await client.post("/cidade", json={"nome": "Joinville", "uf": "sc"})
    assert created.status_code == 201
    city = created.json()
    assert city["uf"] == "SC"

    duplicate = await client.post("/cidade", json={"nome": "Joinville", "uf": "SC"})
    assert duplicate.status_code == 409

    listed = await client.get("/cidade")
    assert [c["nome"] for c in listed.json()] == ["Joinville"]

    deleted = await client.delete(f"/cidade/{city['id_cidade']}")
    assert deleted.status_code == 204

    missing = await client.get(f"/cidade/{city['id_cidade']}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_city_referenced_by_trip_fails(client, db_session, fleet):
    """The city and the trip both survive a rejected delete."""
    origin, destination = fleet["cities"][0], fleet["cities"][1]
    start = await client.post("/viagens/criar", json={
        "id_veiculo": fleet["vehicles"][0].id_veiculo,
        "cidade_origem": origin.id_cidade,
        "cidade_destino": destination.id_cidade,
    })
    trip_id = start.json()["viagem"]["id_viagem"]

    for city in (origin, destination):
        response = await client.delete(f"/cidade/{city.id_cidade}")
        assert response.status_code == 409
        assert response.json()["details"]["viagens"] == 1

    remaining = await db_session.execute(select(func.count(City.id_cidade)))
    assert remaining.scalar() == 3
    assert await db_session.get(Trip, trip_id) is not None

    unused = fleet["cities"][2]
    assert (await client.delete(f"/cidade/{unused.id_cidade}")).status_code == 204


@pytest.mark.asyncio
async def test_fuel_record_advances_odometer(client, db_session, fleet):
    vehicle = fleet["vehicles"][0]

    response = await client.post("/abastecimento", json={
        "id_veiculo": vehicle.id_veiculo,
        "data_abast": "2024-05-02",
        "tipo_combustivel": "diesel",
        "litros": 120.5,
        "valor_total": 720.0,
        "km_abast": 10450,
    })
    assert response.status_code == 201
    assert response.json()["tipo_combustivel"] == "diesel"

    await db_session.refresh(vehicle)
    assert vehicle.km_atual == 10450


@pytest.mark.asyncio
async def test_fuel_record_below_odometer_rejected(client, db_session, fleet):
    vehicle = fleet["vehicles"][0]

    response = await client.post("/abastecimento", json={
        "id_veiculo": vehicle.id_veiculo,
        "data_abast": "2024-05-02",
        "tipo_combustivel": "diesel",
        "litros": 50,
        "valor_total": 300,
        "km_abast": 9999,
    })
    assert response.status_code == 400
    assert response.json()["details"] == {"km_abast": 9999, "km_atual": 10000}

    await db_session.refresh(vehicle)
    assert vehicle.km_atual == 10000
    count = await db_session.execute(select(func.count(FuelRecord.id_abastecimento)))
    assert count.scalar() == 0


@pytest.mark.asyncio
async def test_fuel_record_without_odometer_and_unknown_vehicle(client, db_session, fleet):
    vehicle = fleet["vehicles"][1]
    ok = await client.post("/abastecimento", json={
        "id_veiculo": vehicle.id_veiculo,
        "data_abast": "2024-05-02",
        "tipo_combustivel": "flex",
        "litros": 40,
        "valor_total": 230,
    })
    assert ok.status_code == 201

    await db_session.refresh(vehicle)
    assert vehicle.km_atual == 25000

    unknown = await client.post("/abastecimento", json={
        "id_veiculo": 9999,
        "data_abast": "2024-05-02",
        "tipo_combustivel": "flex",
        "litros": 40,
        "valor_total": 230,
    })
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_fuel_record_rejects_non_positive_liters(client, fleet):
    response = await client.post("/abastecimento", json={
        "id_veiculo": fleet["vehicles"][0].id_veiculo,
        "data_abast": "2024-05-02",
        "tipo_combustivel": "diesel",
        "litros": 0,
        "valor_total": 10,
    })
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_vehicle_crud(client):
    payload = {"placa": "XYZ9A87", "marca": "Scania", "modelo": "R450", "ano": 2023, "km_atual": 1200}
    created = await client.post("/veiculos", json=payload)
    assert created.status_code == 201
    vehicle = created.json()
    assert vehicle["status"] == "ativo"

    assert (await client.post("/veiculos", json=payload)).status_code == 409

    fetched = await client.get(f"/veiculos/{vehicle['id_veiculo']}")
    assert fetched.json()["placa"] == "XYZ9A87"

    filtered = await client.get("/veiculos", params={"status": "manutencao"})
    assert filtered.json() == []

    assert (await client.delete(f"/veiculos/{vehicle['id_veiculo']}")).status_code == 204
    assert (await client.get(f"/veiculos/{vehicle['id_veiculo']}")).status_code == 404


@pytest.mark.asyncio
async def test_vehicle_with_trips_cannot_be_deleted(client, fleet):
    vehicle = fleet["vehicles"][0]
    await client.post(f"/viagens/simular/{vehicle.id_veiculo}")

    response = await client.delete(f"/veiculos/{vehicle.id_veiculo}")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_driver_crud(client):
    payload = {
        "cpf": "99988877766", "nome": "Carla Dias", "cnh": "CNH0099",
        "cat_cnh": "C", "validade_cnh": "2030-01-31",
    }
    created = await client.post("/motoristas", json=payload)
    assert created.status_code == 201
    assert created.json()["status"] == "ativo"

    same_cnh = dict(payload, cpf="12312312312")
    assert (await client.post("/motoristas", json=same_cnh)).status_code == 409

    assert (await client.get("/motoristas/99988877766")).json()["nome"] == "Carla Dias"
    assert (await client.delete("/motoristas/99988877766")).status_code == 204
    assert (await client.get("/motoristas/99988877766")).status_code == 404


@pytest.mark.asyncio
async def test_maintenance_pending_list(client, fleet):
    vehicle = fleet["vehicles"][2]
    base = {"id_veiculo": vehicle.id_veiculo, "tipo": "corretiva", "valor": 850.0}

    done = await client.post("/manutencao", json=dict(base, data_man="2024-04-01", descricao="Freios", concluida=True))
    pending = await client.post("/manutencao", json=dict(base, data_man="2024-04-03", descricao="Suspensão"))
    assert done.status_code == 201
    assert pending.status_code == 201

    response = await client.get("/manutencao/pendentes/lista")
    assert response.status_code == 200
    assert [m["descricao"] for m in response.json()] == ["Suspensão"]

    listed = await client.get("/manutencao", params={"id_veiculo": vehicle.id_veiculo})
    assert [m["descricao"] for m in listed.json()] == ["Suspensão", "Freios"]

    unknown = await client.post("/manutencao", json=dict(base, id_veiculo=9999, data_man="2024-04-03", descricao="X"))
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_city_update(client, fleet):
    campinas, curitiba = fleet["cities"][1], fleet["cities"][2]

    renamed = await client.put(f"/cidade/{campinas.id_cidade}", json={"nome": "Campinas Norte", "uf": "sp"})
    assert renamed.status_code == 200
    assert renamed.json() == {"id_cidade": campinas.id_cidade, "nome": "Campinas Norte", "uf": "SP"}

    clash = await client.put(f"/cidade/{curitiba.id_cidade}", json={"nome": "São Paulo", "uf": "SP"})
    assert clash.status_code == 409
    assert (await client.get(f"/cidade/{curitiba.id_cidade}")).json()["nome"] == "Curitiba"

    assert (await client.put("/cidade/9999", json={"nome": "X"})).status_code == 404


@pytest.mark.asyncio
async def test_fuel_record_update_applies_odometer_rule(client, db_session, fleet):
    vehicle = fleet["vehicles"][0]
    created = await client.post("/abastecimento", json={
        "id_veiculo": vehicle.id_veiculo,
        "data_abast": "2024-05-02",
        "tipo_combustivel": "diesel",
        "litros": 100,
        "valor_total": 600,
        "km_abast": 10200,
    })
    record_id = created.json()["id_abastecimento"]

    below = await client.put(f"/abastecimento/{record_id}", json={"km_abast": 10100, "litros": 90})
    assert below.status_code == 400
    assert below.json()["details"] == {"km_abast": 10100, "km_atual": 10200}

    fetched = (await client.get(f"/abastecimento/{record_id}")).json()
    assert fetched["litros"] == 100
    assert fetched["km_abast"] == 10200

    forward = await client.put(f"/abastecimento/{record_id}", json={"km_abast": 10350, "valor_total": 650})
    assert forward.status_code == 200
    assert forward.json()["valor_total"] == 650
    await db_session.refresh(vehicle)
    assert vehicle.km_atual == 10350

    # Fields other than the odometer never touch the vehicle
    same_km = await client.put(f"/abastecimento/{record_id}", json={"tipo_combustivel": "gasolina"})
    assert same_km.status_code == 200
    assert same_km.json()["tipo_combustivel"] == "gasolina"

    assert (await client.put("/abastecimento/9999", json={"litros": 10})).status_code == 404


@pytest.mark.asyncio
async def test_concluding_maintenance_brings_cost_into_statistics(client, fleet):
    vehicle = fleet["vehicles"][2]
    created = await client.post("/manutencao", json={
        "id_veiculo": vehicle.id_veiculo,
        "data_man": date.today().isoformat(),
        "tipo": "corretiva",
        "descricao": "Embreagem",
        "valor": 850.0,
    })
    record_id = created.json()["id_manutencao"]

    before = (await client.get("/estatisticas/geral", params={"meses": 1})).json()
    assert before["resumo"]["custo_total_manutencao"] == 0
    assert before["resumo"]["total_manutencoes"] == 1

    concluded = await client.put(f"/manutencao/{record_id}", json={"concluida": True, "fornecedor": "Oficina Sul"})
    assert concluded.status_code == 200
    assert concluded.json()["concluida"] is True

    after = (await client.get("/estatisticas/geral", params={"meses": 1})).json()
    assert after["resumo"]["custo_total_manutencao"] == 850.0
    assert after["por_mes"][-1]["manutencao"] == 850.0
    assert (await client.get("/manutencao/pendentes/lista")).json() == []

    assert (await client.put("/manutencao/9999", json={"concluida": True})).status_code == 404


@pytest.mark.asyncio
async def test_vehicle_update(client, fleet):
    vehicle, other = fleet["vehicles"][0], fleet["vehicles"][1]
    url = f"/veiculos/{vehicle.id_veiculo}"

    edited = await client.put(url, json={"modelo": "FH 460", "km_atual": 10500})
    assert edited.status_code == 200
    assert edited.json()["modelo"] == "FH 460"
    assert edited.json()["km_atual"] == 10500

    lowered = await client.put(url, json={"km_atual": 9000})
    assert lowered.status_code == 400

    assert (await client.put(url, json={"placa": other.placa})).status_code == 409
    assert (await client.put(url, json={"status": "em_viagem"})).status_code == 409

    await client.post(f"/viagens/simular/{vehicle.id_veiculo}")
    released = await client.put(url, json={"status": "ativo"})
    assert released.status_code == 409
    assert released.json()["details"]["status"] == "em_viagem"

    assert (await client.put("/veiculos/9999", json={"modelo": "X"})).status_code == 404


@pytest.mark.asyncio
async def test_driver_update(client, fleet):
    ana, bruno = fleet["drivers"]

    renewed = await client.put(f"/motoristas/{bruno.cpf}", json={"validade_cnh": "2031-03-31", "cat_cnh": "E"})
    assert renewed.status_code == 200
    assert renewed.json()["validade_cnh"] == "2031-03-31"
    assert renewed.json()["cpf"] == bruno.cpf

    assert (await client.put(f"/motoristas/{bruno.cpf}", json={"cnh": ana.cnh})).status_code == 409
    assert (await client.put(f"/motoristas/{ana.cpf}", json={"status": "em_viagem"})).status_code == 409

    inactive = await client.put(f"/motoristas/{ana.cpf}", json={"status": "inativo"})
    assert inactive.json()["status"] == "inativo"

    assert (await client.put("/motoristas/00000000000", json={"nome": "X"})).status_code == 404
