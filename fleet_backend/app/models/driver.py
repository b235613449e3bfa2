"""
Driver database model.
"""

from sqlalchemy import Column, String, Date, DateTime
from sqlalchemy.sql import func
from fleet_backend.app.db.session import Base
from fleet_backend.app.models.enums import DriverStatus, db_enum


class Driver(Base):
    """
    Driver model, keyed by national ID (CPF).
    """
    __tablename__ = "motorista"

    cpf = Column(String(14), primary_key=True)
    nome = Column(String(100), nullable=False, index=True)

    # License
    cnh = Column(String(20), unique=True, nullable=False)
    cat_cnh = Column(String(3), nullable=False)
    validade_cnh = Column(Date, nullable=False)

    status = Column(db_enum(DriverStatus, "driver_status"), default=DriverStatus.ACTIVE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Driver(cpf='{self.cpf}', nome='{self.nome}', status='{self.status.value}')>"
