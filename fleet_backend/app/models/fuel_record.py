"""
Fuel record (abastecimento) database model.
"""

from sqlalchemy import Column, Integer, Float, Date, ForeignKey, CheckConstraint
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.enums import FuelType, db_enum


class FuelRecord(Base):
    """A single refueling event tied to a vehicle."""
    __tablename__ = "abastecimento"

    id_abastecimento = Column(Integer, primary_key=True, index=True, autoincrement=True)
    id_veiculo = Column(Integer, ForeignKey("veiculo.id_veiculo", ondelete="CASCADE"), nullable=False, index=True)

    data_abast = Column(Date, nullable=False, index=True)
    tipo_combustivel = Column(db_enum(FuelType, "fuel_type"), nullable=False)
    litros = Column(Float, nullable=False)
    valor_total = Column(Float, nullable=False)
    km_abast = Column(Integer, nullable=True)  # Odometer at fill-up

    __table_args__ = (
        CheckConstraint("litros > 0", name="ck_abastecimento_litros"),
        CheckConstraint("valor_total >= 0", name="ck_abastecimento_valor"),
    )

    def __repr__(self):
        return f"<FuelRecord(id={self.id_abastecimento}, veiculo={self.id_veiculo}, litros={self.litros})>"
