"""
Fleet enumerations.

Values match the strings stored in the database and returned to the client.
"""

import enum

from sqlalchemy import Enum


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    ACTIVE = "ativo"
    ON_TRIP = "em_viagem"  # Derived: set while the vehicle has a trip in progress
    MAINTENANCE = "manutencao"
    INACTIVE = "inativo"


class DriverStatus(str, enum.Enum):
    """Driver status enumeration."""
    ACTIVE = "ativo"
    ON_TRIP = "em_viagem"
    INACTIVE = "inativo"


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PLANNED = "planejada"  # Not produced by the current creation path
    IN_PROGRESS = "em_andamento"
    FINALIZED = "finalizada"
    CANCELLED = "cancelada"


class FuelType(str, enum.Enum):
    """Fuel type enumeration."""
    GASOLINE = "gasolina"
    ETHANOL = "etanol"
    DIESEL = "diesel"
    CNG = "gnv"
    FLEX = "flex"


class MaintenanceType(str, enum.Enum):
    """Maintenance type enumeration."""
    PREVENTIVE = "preventiva"
    CORRECTIVE = "corretiva"
    PREDICTIVE = "preditiva"
    REVISION = "revisao"


def db_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Column type storing the enum *value* (e.g. 'em_andamento') as VARCHAR."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
    )
