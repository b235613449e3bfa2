"""
Trip Lifecycle Service.

Owns the trip state machine:

    em_andamento -> finalizada
    em_andamento -> cancelada

Each transition runs its read-check-write sequence in a single transaction
together with the vehicle/driver status flags, so a vehicle is never left
ON_TRIP without an active trip (or the reverse).
"""

import logging
import random
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from fleet_backend.app.core.config import settings
from fleet_backend.app.core.exceptions import (
    ResourceNotFoundError, ValidationError, InvalidStateError, ConflictError
)
from fleet_backend.app.models.city import City
from fleet_backend.app.models.driver import Driver
from fleet_backend.app.models.enums import TripStatus, VehicleStatus, DriverStatus
from fleet_backend.app.models.trip import Trip
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.schemas.trip import TripResponse
from fleet_backend.app.services.cache import ReportCache
from fleet_backend.app.services.vehicle_locking import (
    lock_vehicle, lock_driver, lock_trip,
    count_vehicle_in_progress_trips, count_driver_in_progress_trips,
    occupy, release
)

logger = logging.getLogger("fleet.trips")

Origin = aliased(City, name="cidade_origem_alias")
Destination = aliased(City, name="cidade_destino_alias")


def _trip_projection():
    """Trip rows joined with vehicle plate/model, driver name and city names."""
    return (
        select(
            Trip,
            Vehicle.placa,
            Vehicle.modelo,
            Driver.nome.label("motorista"),
            Origin.nome.label("origem"),
            Origin.uf.label("origem_uf"),
            Destination.nome.label("destino"),
            Destination.uf.label("destino_uf"),
        )
        .select_from(Trip)
        .join(Vehicle, Vehicle.id_veiculo == Trip.id_veiculo)
        .outerjoin(Driver, Driver.cpf == Trip.cpf_motorista)
        .join(Origin, Origin.id_cidade == Trip.cidade_origem)
        .join(Destination, Destination.id_cidade == Trip.cidade_destino)
    )


def _to_response(row) -> TripResponse:
    trip = row.Trip
    return TripResponse(
        id_viagem=trip.id_viagem,
        id_veiculo=trip.id_veiculo,
        cpf_motorista=trip.cpf_motorista,
        cidade_origem=trip.cidade_origem,
        cidade_destino=trip.cidade_destino,
        data_saida=trip.data_saida,
        data_chegada=trip.data_chegada,
        km_inicial=trip.km_inicial,
        km_final=trip.km_final,
        km_rodados=trip.km_rodados,
        status_viagem=trip.status_viagem.value,
        observacoes=trip.observacoes,
        motivo_cancelamento=trip.motivo_cancelamento,
        placa=row.placa,
        modelo=row.modelo,
        motorista=row.motorista,
        origem=row.origem,
        origem_uf=row.origem_uf,
        destino=row.destino,
        destino_uf=row.destino_uf,
    )


def simulate_distance() -> int:
    """Kilometers driven by a simulated trip."""
    return random.randint(settings.simulated_distance_min_km, settings.simulated_distance_max_km)


class TripLifecycleService:

    # --- Reads ---

    @staticmethod
    async def get_trip(db: AsyncSession, trip_id: int) -> TripResponse:
        result = await db.execute(_trip_projection().where(Trip.id_viagem == trip_id))
        row = result.first()
        if row is None:
            raise ResourceNotFoundError("Trip", trip_id)
        return _to_response(row)

    @staticmethod
    async def list_trips(
        db: AsyncSession,
        status: Optional[TripStatus] = None,
        vehicle_id: Optional[int] = None,
        driver_cpf: Optional[str] = None,
        limit: int = 50
    ) -> List[TripResponse]:
        """List trips, newest first, with optional filters."""
        query = _trip_projection()
        if status is not None:
            query = query.where(Trip.status_viagem == status)
        if vehicle_id is not None:
            query = query.where(Trip.id_veiculo == vehicle_id)
        if driver_cpf is not None:
            query = query.where(Trip.cpf_motorista == driver_cpf)
        query = query.order_by(Trip.id_viagem.desc()).limit(limit)

        result = await db.execute(query)
        return [_to_response(row) for row in result]

    @staticmethod
    async def list_in_progress(db: AsyncSession) -> List[TripResponse]:
        """Trips currently on the road, oldest departure first."""
        query = _trip_projection().where(
            Trip.status_viagem == TripStatus.IN_PROGRESS
        ).order_by(Trip.data_saida.asc())
        result = await db.execute(query)
        return [_to_response(row) for row in result]

    # --- Transitions ---

    @staticmethod
    async def start_trip(
        db: AsyncSession,
        vehicle_id: int,
        driver_cpf: Optional[str] = None,
        origin_id: Optional[int] = None,
        destination_id: Optional[int] = None
    ) -> TripResponse:
        """
        Start a trip for a vehicle.

        Validates:
        - Vehicle exists and is available (not on a trip, in maintenance or inactive)
        - Driver, when given, exists and is available
        - Origin and destination exist and differ

        Actions:
        - Create trip IN_PROGRESS with km_inicial = vehicle odometer
        - Flag vehicle (and driver) as on a trip
        """
        try:
            vehicle = await lock_vehicle(db, vehicle_id)
            if vehicle is None:
                raise ResourceNotFoundError("Vehicle", vehicle_id)

            if vehicle.status == VehicleStatus.ON_TRIP or await count_vehicle_in_progress_trips(db, vehicle_id) > 0:
                raise ConflictError(
                    f"Vehicle {vehicle.placa} is already on a trip",
                    details={"id_veiculo": vehicle_id}
                )
            if vehicle.status != VehicleStatus.ACTIVE:
                raise ConflictError(
                    f"Vehicle {vehicle.placa} is not available (status: {vehicle.status.value})",
                    details={"id_veiculo": vehicle_id, "status": vehicle.status.value}
                )

            driver = await TripLifecycleService._resolve_driver(db, driver_cpf)
            origin, destination = await TripLifecycleService._resolve_cities(db, origin_id, destination_id)

            trip = Trip(
                id_veiculo=vehicle.id_veiculo,
                cpf_motorista=driver.cpf if driver else None,
                cidade_origem=origin.id_cidade,
                cidade_destino=destination.id_cidade,
                data_saida=datetime.utcnow(),
                km_inicial=vehicle.km_atual,
                status_viagem=TripStatus.IN_PROGRESS,
            )
            db.add(trip)
            occupy(vehicle, driver)

            await db.flush()  # Raises IntegrityError if another trip grabbed the vehicle
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(
                f"Vehicle {vehicle_id} is already on a trip",
                details={"id_veiculo": vehicle_id}
            ) from e
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Trip %s started: vehicle=%s driver=%s %s -> %s km_inicial=%s",
            trip.id_viagem, vehicle_id, trip.cpf_motorista,
            origin.id_cidade, destination.id_cidade, trip.km_inicial
        )
        await ReportCache.invalidate()
        return await TripLifecycleService.get_trip(db, trip.id_viagem)

    @staticmethod
    async def finalize_trip(
        db: AsyncSession,
        trip_id: int,
        km_final: Optional[int] = None
    ) -> Tuple[TripResponse, int]:
        """
        Finalize an IN_PROGRESS trip.

        Sets arrival time and ending odometer (simulated when not given),
        advances the vehicle odometer and releases vehicle and driver.

        Returns:
            (trip, km_rodados)
        """
        try:
            trip = await TripLifecycleService._lock_in_progress(db, trip_id, "finalize")

            if km_final is None:
                km_final = trip.km_inicial + simulate_distance()
            elif km_final < trip.km_inicial:
                raise ValidationError(
                    f"km_final ({km_final}) must be greater than or equal to km_inicial ({trip.km_inicial})",
                    details={"km_inicial": trip.km_inicial, "km_final": km_final}
                )

            vehicle = await lock_vehicle(db, trip.id_veiculo)
            driver = await lock_driver(db, trip.cpf_motorista) if trip.cpf_motorista else None

            trip.km_final = km_final
            trip.data_chegada = datetime.utcnow()
            trip.status_viagem = TripStatus.FINALIZED

            if vehicle is not None and km_final > vehicle.km_atual:
                vehicle.km_atual = km_final
            release(vehicle, driver)

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        km_rodados = trip.km_final - trip.km_inicial
        logger.info("Trip %s finalized: km_final=%s km_rodados=%s", trip_id, trip.km_final, km_rodados)
        await ReportCache.invalidate()
        return await TripLifecycleService.get_trip(db, trip_id), km_rodados

    @staticmethod
    async def cancel_trip(
        db: AsyncSession,
        trip_id: int,
        reason: Optional[str] = None
    ) -> TripResponse:
        """Cancel an IN_PROGRESS trip. The odometer is left untouched."""
        try:
            trip = await TripLifecycleService._lock_in_progress(db, trip_id, "cancel")

            vehicle = await lock_vehicle(db, trip.id_veiculo)
            driver = await lock_driver(db, trip.cpf_motorista) if trip.cpf_motorista else None

            trip.status_viagem = TripStatus.CANCELLED
            trip.motivo_cancelamento = reason
            release(vehicle, driver)

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Trip %s cancelled: reason=%r", trip_id, reason)
        await ReportCache.invalidate()
        return await TripLifecycleService.get_trip(db, trip_id)

    @staticmethod
    async def update_notes(db: AsyncSession, trip_id: int, notes: Optional[str]) -> TripResponse:
        trip = await db.get(Trip, trip_id)
        if trip is None:
            raise ResourceNotFoundError("Trip", trip_id)

        trip.observacoes = notes
        await db.commit()
        return await TripLifecycleService.get_trip(db, trip_id)

    # --- Helpers ---

    @staticmethod
    async def _lock_in_progress(db: AsyncSession, trip_id: int, action: str) -> Trip:
        trip = await lock_trip(db, trip_id)
        if trip is None:
            raise ResourceNotFoundError("Trip", trip_id)
        if trip.status_viagem != TripStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Can only {action} IN_PROGRESS trip, current status: {trip.status_viagem.value}",
                current_status=trip.status_viagem.value
            )
        return trip

    @staticmethod
    async def _resolve_driver(db: AsyncSession, driver_cpf: Optional[str]) -> Optional[Driver]:
        """Validate the requested driver, or pick a random available one (may be None)."""
        if driver_cpf is None:
            busy = select(Trip.cpf_motorista).where(
                Trip.status_viagem == TripStatus.IN_PROGRESS,
                Trip.cpf_motorista.is_not(None)
            )
            result = await db.execute(
                select(Driver)
                .where(Driver.status == DriverStatus.ACTIVE, Driver.cpf.not_in(busy))
                .order_by(func.random())
                .limit(1)
                .with_for_update(skip_locked=True)
            )
            return result.scalar_one_or_none()

        driver = await lock_driver(db, driver_cpf)
        if driver is None:
            raise ResourceNotFoundError("Driver", driver_cpf)
        if driver.status != DriverStatus.ACTIVE or await count_driver_in_progress_trips(db, driver_cpf) > 0:
            raise ConflictError(
                f"Driver {driver.nome} is not available (status: {driver.status.value})",
                details={"cpf_motorista": driver_cpf, "status": driver.status.value}
            )
        return driver

    @staticmethod
    async def _resolve_cities(
        db: AsyncSession,
        origin_id: Optional[int],
        destination_id: Optional[int]
    ) -> Tuple[City, City]:
        """Load requested cities and pick random distinct ones for the gaps."""
        if origin_id is not None and origin_id == destination_id:
            raise ValidationError(
                "Origin and destination must be different cities",
                details={"cidade_origem": origin_id, "cidade_destino": destination_id}
            )

        origin = await TripLifecycleService._get_city(db, origin_id) if origin_id is not None else None
        destination = await TripLifecycleService._get_city(db, destination_id) if destination_id is not None else None

        if origin is None or destination is None:
            exclude = [c.id_cidade for c in (origin, destination) if c is not None]
            needed = 2 - len(exclude)
            query = select(City).order_by(func.random()).limit(needed)
            if exclude:
                query = query.where(City.id_cidade.not_in(exclude))
            picked = list((await db.execute(query)).scalars().all())
            if len(picked) < needed:
                raise ValidationError("At least two cities are required to create a trip")
            if origin is None:
                origin = picked.pop()
            if destination is None:
                destination = picked.pop()

        return origin, destination

    @staticmethod
    async def _get_city(db: AsyncSession, city_id: int) -> City:
        city = await db.get(City, city_id)
        if city is None:
            raise ResourceNotFoundError("City", city_id)
        return city
