"""
Pre-Deploy and Smoke Test Script.

Runs against a live server (seeded with scripts/seed_data.py):
1. Health Check
2. Simulate a trip -> finalize it
3. Verify the dashboards respond and reflect the trip
"""

import os
import sys

import httpx

BASE_URL = os.getenv("FLEET_BASE_URL", "http://127.0.0.1:8000")

REPORTS = [
    "/estatisticas/geral",
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
]


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"❌ FAILURE: {msg}")
    sys.exit(1)


def success(msg):
    print(f"✅ {msg}")


def main():
    print(f"🚀 Starting Deployment Validation against {BASE_URL}...")

    with httpx.Client(base_url=BASE_URL, timeout=10.0) as client:
        # 1. Health Check
        print_step("PRE-DEPLOY", "Checking /health...")
        try:
            response = client.get("/health")
        except httpx.HTTPError as e:
            fail(f"Health check died: {e}")
        if response.status_code != 200:
            fail(f"Health check returned {response.status_code}")
        health = response.json()
        success(f"Healthy (cache: {health.get('cache')})")

        # 2. Smoke Test: Trip Flow
        print_step("SMOKE", "Running Simulate -> Finalize flow...")
        vehicles = client.get("/veiculos", params={"status": "ativo", "limit": 1}).json()
        if not vehicles:
            fail("No active vehicle found; run scripts/seed_data.py first")
        vehicle = vehicles[0]

        res = client.post(f"/viagens/simular/{vehicle['id_veiculo']}")
        if res.status_code != 201:
            fail(f"Simulate failed: {res.status_code} {res.text}")
        trip = res.json()["viagem"]
        success(f"Trip {trip['id_viagem']} started: {trip['origem']} -> {trip['destino']}")

        res = client.post(f"/viagens/finalizar/{trip['id_viagem']}")
        if res.status_code != 200:
            fail(f"Finalize failed: {res.status_code} {res.text}")
        km = res.json()["km_rodados"]
        success(f"Trip finalized: {km} km")

        after = client.get(f"/veiculos/{vehicle['id_veiculo']}").json()
        if after["km_atual"] != vehicle["km_atual"] + km or after["status"] != "ativo":
            fail(f"Vehicle not updated after finalize: {after}")
        success("Vehicle odometer and status updated")

        # 3. Dashboards
        print_step("VERIFY", "Checking reports...")
        for path in REPORTS:
            res = client.get(path, params={"meses": 1})
            if res.status_code != 200:
                fail(f"{path} failed: {res.status_code} {res.text}")
        success(f"{len(REPORTS)} report endpoints responded")

        stats = client.get("/estatisticas/geral", params={"meses": 1}).json()
        if stats["resumo"]["km_total"] < km:
            fail(f"Current month km_total {stats['resumo']['km_total']} misses the {km} km trip")
        success(f"Current month km_total: {stats['resumo']['km_total']}")

    success("Deployment Validation Passed!")


if __name__ == "__main__":
    main()
