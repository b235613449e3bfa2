"""
Fuel and maintenance record schemas.
"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Optional

from fleet_backend.app.models.enums import FuelType, MaintenanceType


class FuelRecordCreate(BaseModel):
    """Schema for registering a fill-up."""
    id_veiculo: int
    data_abast: date
    tipo_combustivel: FuelType
    litros: float = Field(..., gt=0)
    valor_total: float = Field(..., ge=0)
    km_abast: Optional[int] = Field(None, ge=0, description="Odometer at fill-up")


class FuelRecordUpdate(BaseModel):
    """Schema for correcting a fill-up. The vehicle cannot be changed."""
    data_abast: Optional[date] = None
    tipo_combustivel: Optional[FuelType] = None
    litros: Optional[float] = Field(None, gt=0)
    valor_total: Optional[float] = Field(None, ge=0)
    km_abast: Optional[int] = Field(None, ge=0)


class FuelRecordResponse(BaseModel):
    id_abastecimento: int
    id_veiculo: int
    data_abast: date
    tipo_combustivel: FuelType
    litros: float
    valor_total: float
    km_abast: Optional[int]

    class Config:
        from_attributes = True


class MaintenanceRecordCreate(BaseModel):
    """Schema for registering a maintenance event."""
    id_veiculo: int
    data_man: date
    tipo: MaintenanceType
    descricao: str = Field(..., min_length=1, max_length=255)
    valor: float = Field(0, ge=0)
    concluida: bool = False
    km_manutencao: Optional[int] = Field(None, ge=0)
    fornecedor: Optional[str] = Field(None, max_length=100)


class MaintenanceRecordUpdate(BaseModel):
    """Schema for editing a maintenance event, including marking it concluded."""
    data_man: Optional[date] = None
    tipo: Optional[MaintenanceType] = None
    descricao: Optional[str] = Field(None, min_length=1, max_length=255)
    valor: Optional[float] = Field(None, ge=0)
    concluida: Optional[bool] = None
    km_manutencao: Optional[int] = Field(None, ge=0)
    fornecedor: Optional[str] = Field(None, max_length=100)


class MaintenanceRecordResponse(BaseModel):
    id_manutencao: int
    id_veiculo: int
    data_man: date
    tipo: MaintenanceType
    descricao: str
    valor: float
    concluida: bool
    km_manutencao: Optional[int]
    fornecedor: Optional[str]

    class Config:
        from_attributes = True
