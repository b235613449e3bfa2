"""
City database model.
"""

from sqlalchemy import Column, Integer, String, UniqueConstraint
from fleet_backend.app.db.session import Base


class City(Base):
    """
    City model.

    Referenced by trips as origin or destination; the foreign keys restrict deletion.
    """
    __tablename__ = "cidade"

    id_cidade = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nome = Column(String(100), nullable=False)
    uf = Column(String(2), nullable=False)

    __table_args__ = (
        UniqueConstraint("nome", "uf", name="uq_cidade_nome_uf"),
    )

    def __repr__(self):
        return f"<City(id={self.id_cidade}, nome='{self.nome}', uf='{self.uf}')>"
