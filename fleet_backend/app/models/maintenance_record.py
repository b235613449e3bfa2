"""
Maintenance record (manutencao) database model.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, Date, ForeignKey, CheckConstraint
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.enums import MaintenanceType, db_enum


class MaintenanceRecord(Base):
    """
    A single service event tied to a vehicle.

    Costs only count toward totals once the record is completed (concluida).
    """
    __tablename__ = "manutencao"

    id_manutencao = Column(Integer, primary_key=True, index=True, autoincrement=True)
    id_veiculo = Column(Integer, ForeignKey("veiculo.id_veiculo", ondelete="CASCADE"), nullable=False, index=True)

    data_man = Column(Date, nullable=False, index=True)
    tipo = Column(db_enum(MaintenanceType, "maintenance_type"), nullable=False)
    descricao = Column(String(255), nullable=False)
    valor = Column(Float, nullable=False, default=0)
    concluida = Column(Boolean, nullable=False, default=False, index=True)
    km_manutencao = Column(Integer, nullable=True)
    fornecedor = Column(String(100), nullable=True)

    __table_args__ = (
        CheckConstraint("valor >= 0", name="ck_manutencao_valor"),
    )

    def __repr__(self):
        return f"<MaintenanceRecord(id={self.id_manutencao}, veiculo={self.id_veiculo}, tipo='{self.tipo.value}')>"
