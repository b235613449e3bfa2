"""
Trip schemas.

Schemas for the trip lifecycle endpoints and trip read projections.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class TripCreateRequest(BaseModel):
    """Body of POST /viagens/criar. Unset options are picked at random."""
    id_veiculo: Optional[int] = Field(None, description="Vehicle starting the trip")
    cpf_motorista: Optional[str] = Field(None, max_length=14, description="Driver CPF")
    cidade_origem: Optional[int] = Field(None, description="Origin city ID")
    cidade_destino: Optional[int] = Field(None, description="Destination city ID")


class TripFinalizeRequest(BaseModel):
    """Optional body of POST /viagens/finalizar/{id}."""
    km_final: Optional[int] = Field(None, ge=0, description="Ending odometer; simulated when omitted")


class TripCancelRequest(BaseModel):
    """Optional body of POST /viagens/cancelar/{id}."""
    motivo: Optional[str] = Field(None, max_length=255)


class TripNotesUpdate(BaseModel):
    """Body of PUT /viagens/{id}."""
    observacoes: Optional[str] = None


class TripResponse(BaseModel):
    """Trip row joined with vehicle, driver and city names."""
    id_viagem: int
    id_veiculo: int
    cpf_motorista: Optional[str]
    cidade_origem: int
    cidade_destino: int
    data_saida: datetime
    data_chegada: Optional[datetime]
    km_inicial: int
    km_final: Optional[int]
    km_rodados: Optional[int]
    status_viagem: str
    observacoes: Optional[str]
    motivo_cancelamento: Optional[str]
    placa: str
    modelo: str
    motorista: Optional[str]
    origem: str
    origem_uf: str
    destino: str
    destino_uf: str


class TripStartResponse(BaseModel):
    """Response after starting a trip."""
    message: str
    viagem: TripResponse


class TripFinalizeResponse(BaseModel):
    """Response after finalizing a trip."""
    message: str
    viagem: TripResponse
    km_rodados: int


class TripCancelResponse(BaseModel):
    """Response after cancelling a trip."""
    message: str
    viagem: TripResponse


class TripSummary(BaseModel):
    total_viagens: int
    em_andamento: int
    finalizadas: int
    canceladas: int
    km_total: int
    km_media_por_viagem: float


class TopVehicle(BaseModel):
    placa: str
    modelo: str
    total_viagens: int
    km_total: int


class TopDriver(BaseModel):
    nome: str
    total_viagens: int
    km_total: int


class TripStatisticsResponse(BaseModel):
    """Response of GET /viagens/estatisticas/geral."""
    periodo_meses: int
    resumo: TripSummary
    top_veiculos: List[TopVehicle]
    top_motoristas: List[TopDriver]


class PopularRoute(BaseModel):
    origem: str
    destino: str
    total_viagens: int
