"""
Fleet registry Pydantic schemas.

Request and response models for vehicles, drivers and cities.
"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Optional

from fleet_backend.app.models.enums import VehicleStatus, DriverStatus


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    placa: str = Field(..., min_length=7, max_length=10, description="Unique plate")
    marca: str = Field(..., min_length=1, max_length=50)
    modelo: str = Field(..., min_length=1, max_length=50)
    ano: int = Field(..., ge=1950, le=2100)
    tipo: Optional[str] = Field(None, max_length=30)
    km_atual: int = Field(0, ge=0, description="Current odometer")
    capacidade_tanque: Optional[float] = Field(None, gt=0)
    status: VehicleStatus = VehicleStatus.ACTIVE


class VehicleUpdate(BaseModel):
    """Schema for editing a vehicle; only the fields sent are changed."""
    placa: Optional[str] = Field(None, min_length=7, max_length=10)
    marca: Optional[str] = Field(None, min_length=1, max_length=50)
    modelo: Optional[str] = Field(None, min_length=1, max_length=50)
    ano: Optional[int] = Field(None, ge=1950, le=2100)
    tipo: Optional[str] = Field(None, max_length=30)
    km_atual: Optional[int] = Field(None, ge=0)
    capacidade_tanque: Optional[float] = Field(None, gt=0)
    status: Optional[VehicleStatus] = None


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id_veiculo: int
    placa: str
    marca: str
    modelo: str
    ano: int
    tipo: Optional[str]
    km_atual: int
    capacidade_tanque: Optional[float]
    status: VehicleStatus

    class Config:
        from_attributes = True


class DriverCreate(BaseModel):
    """Schema for registering a new driver."""
    cpf: str = Field(..., min_length=11, max_length=14)
    nome: str = Field(..., min_length=1, max_length=100)
    cnh: str = Field(..., min_length=1, max_length=20)
    cat_cnh: str = Field(..., min_length=1, max_length=3)
    validade_cnh: date
    status: DriverStatus = DriverStatus.ACTIVE


class DriverUpdate(BaseModel):
    """Schema for editing a driver. The CPF identifies the driver and cannot change."""
    nome: Optional[str] = Field(None, min_length=1, max_length=100)
    cnh: Optional[str] = Field(None, min_length=1, max_length=20)
    cat_cnh: Optional[str] = Field(None, min_length=1, max_length=3)
    validade_cnh: Optional[date] = None
    status: Optional[DriverStatus] = None


class DriverResponse(BaseModel):
    """Schema for driver response."""
    cpf: str
    nome: str
    cnh: str
    cat_cnh: str
    validade_cnh: date
    status: DriverStatus

    class Config:
        from_attributes = True


class CityCreate(BaseModel):
    """Schema for registering a new city."""
    nome: str = Field(..., min_length=1, max_length=100)
    uf: str = Field(..., min_length=2, max_length=2, description="Two-letter state code")


class CityUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=1, max_length=100)
    uf: Optional[str] = Field(None, min_length=2, max_length=2)


class CityResponse(BaseModel):
    """Schema for city response."""
    id_cidade: int
    nome: str
    uf: str

    class Config:
        from_attributes = True
