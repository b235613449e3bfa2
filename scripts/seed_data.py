"""
Database seeding script for the fleet registry.

Creates cities, vehicles and drivers so trips can be simulated right away.
Run this script after the database is set up but before first use.
"""

import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from fleet_backend.app.db.session import AsyncSessionLocal, engine, Base
from fleet_backend.app.models.city import City
from fleet_backend.app.models.driver import Driver
from fleet_backend.app.models.enums import VehicleStatus, DriverStatus
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.trip import Trip  # noqa: F401  (registers viagem with Base)
from fleet_backend.app.models.fuel_record import FuelRecord  # noqa: F401
from fleet_backend.app.models.maintenance_record import MaintenanceRecord  # noqa: F401

CITIES = [
    ("São Paulo", "SP"),
    ("Campinas", "SP"),
    ("Rio de Janeiro", "RJ"),
    ("Belo Horizonte", "MG"),
    ("Curitiba", "PR"),
    ("Porto Alegre", "RS"),
]

VEHICLES = [
    dict(placa="BRA2E19", marca="Volvo", modelo="FH 540", ano=2021, tipo="Caminhão", km_atual=120000, capacidade_tanque=600),
    dict(placa="FLT3A45", marca="Mercedes-Benz", modelo="Sprinter", ano=2022, tipo="Van", km_atual=45000, capacidade_tanque=75),
    dict(placa="RUN7C88", marca="Fiat", modelo="Ducato", ano=2020, tipo="Van", km_atual=88000, capacidade_tanque=90),
    dict(placa="CAR1B22", marca="Toyota", modelo="Corolla", ano=2023, tipo="Carro", km_atual=15000, capacidade_tanque=50),
]

DRIVERS = [
    dict(cpf="12345678901", nome="Ana Souza", cnh="04512345678", cat_cnh="E", validade_cnh=date(2027, 6, 30)),
    dict(cpf="23456789012", nome="Bruno Lima", cnh="04523456789", cat_cnh="D", validade_cnh=date(2026, 11, 15)),
    dict(cpf="34567890123", nome="Carla Dias", cnh="04534567890", cat_cnh="B", validade_cnh=date(2028, 2, 1)),
]


async def seed_data():
    """
    Seed the registry.

    Skips everything when vehicles already exist.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting fleet seeding...")

        result = await db.execute(select(Vehicle.id_veiculo).limit(1))
        if result.scalar_one_or_none() is not None:
            print("ℹ️  Vehicles already exist, skipping seeding")
            return

        for nome, uf in CITIES:
            db.add(City(nome=nome, uf=uf))
        print(f"✅ Created {len(CITIES)} cities")

        for data in VEHICLES:
            db.add(Vehicle(status=VehicleStatus.ACTIVE, **data))
        print(f"✅ Created {len(VEHICLES)} vehicles")

        for data in DRIVERS:
            db.add(Driver(status=DriverStatus.ACTIVE, **data))
        print(f"✅ Created {len(DRIVERS)} drivers")

        await db.commit()

        print("\n🎉 Fleet seeding completed successfully!")
        print("\nTry: POST /viagens/simular/1 then POST /viagens/finalizar/1")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_data())
