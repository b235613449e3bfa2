"""
Trip database model.

Trips are created by the lifecycle service and moved IN_PROGRESS ->
FINALIZED / CANCELLED. They are never physically deleted.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Index, CheckConstraint, text
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.enums import TripStatus, db_enum


class Trip(Base):
    """
    Trip model.

    Only one IN_PROGRESS trip may exist per vehicle; the partial unique
    index below is the database-level guarantee of that rule.
    """
    __tablename__ = "viagem"

    id_viagem = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    id_veiculo = Column(Integer, ForeignKey("veiculo.id_veiculo", ondelete="RESTRICT"), nullable=False, index=True)
    cpf_motorista = Column(String(14), ForeignKey("motorista.cpf", ondelete="RESTRICT"), nullable=True, index=True)
    cidade_origem = Column(Integer, ForeignKey("cidade.id_cidade", ondelete="RESTRICT"), nullable=False)
    cidade_destino = Column(Integer, ForeignKey("cidade.id_cidade", ondelete="RESTRICT"), nullable=False)

    # Timestamps
    data_saida = Column(DateTime(timezone=True), nullable=False, index=True)
    data_chegada = Column(DateTime(timezone=True), nullable=True)

    # Odometer
    km_inicial = Column(Integer, nullable=False)
    km_final = Column(Integer, nullable=True)

    # Status
    status_viagem = Column(db_enum(TripStatus, "trip_status"), default=TripStatus.IN_PROGRESS, nullable=False, index=True)
    observacoes = Column(Text, nullable=True)
    motivo_cancelamento = Column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint("km_final IS NULL OR km_final >= km_inicial", name="ck_viagem_km_final"),
        CheckConstraint("cidade_origem <> cidade_destino", name="ck_viagem_cidades_distintas"),
        Index(
            "ix_viagem_veiculo_em_andamento",
            "id_veiculo",
            unique=True,
            postgresql_where=text("status_viagem = 'em_andamento'"),
            sqlite_where=text("status_viagem = 'em_andamento'"),
        ),
    )

    @property
    def km_rodados(self):
        """Distance travelled; None until the trip is finalized."""
        if self.km_final is None:
            return None
        return self.km_final - self.km_inicial

    def __repr__(self):
        return f"<Trip(id={self.id_viagem}, veiculo={self.id_veiculo}, status='{self.status_viagem.value}')>"
