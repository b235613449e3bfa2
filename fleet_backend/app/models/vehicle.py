"""
Vehicle database model.

Vehicles are registered through plain CRUD; their status flag is
additionally driven by the trip lifecycle.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.enums import VehicleStatus, db_enum


class Vehicle(Base):
    """
    Vehicle model.

    km_atual is the current odometer reading and never decreases.
    """
    __tablename__ = "veiculo"

    id_veiculo = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    placa = Column(String(10), unique=True, nullable=False, index=True)
    marca = Column(String(50), nullable=False)
    modelo = Column(String(50), nullable=False)
    ano = Column(Integer, nullable=False)
    tipo = Column(String(30), nullable=True)  # e.g., "Caminhão", "Van", "Carro"

    # Operation
    km_atual = Column(Integer, nullable=False, default=0)
    capacidade_tanque = Column(Float, nullable=True)

    # Status
    status = Column(db_enum(VehicleStatus, "vehicle_status"), default=VehicleStatus.ACTIVE, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id_veiculo}, placa='{self.placa}', status='{self.status.value}')>"
