"""
City API Endpoints.

Cities referenced by any trip cannot be deleted.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_backend.app.core.dependencies import limit_query
from fleet_backend.app.core.exceptions import ResourceNotFoundError, ConflictError
from fleet_backend.app.db.session import get_db
from fleet_backend.app.models.city import City
from fleet_backend.app.models.trip import Trip
from fleet_backend.app.schemas.fleet import CityCreate, CityUpdate, CityResponse
from fleet_backend.app.services.cache import ReportCache

router = APIRouter(prefix="/cidade", tags=["Cities"])


async def _get_city(db: AsyncSession, city_id: int) -> City:
    city = await db.get(City, city_id)
    if city is None:
        raise ResourceNotFoundError("City", city_id)
    return city


async def _ensure_name_free(db: AsyncSession, nome: str, uf: str, city_id: Optional[int] = None) -> None:
    query = select(City.id_cidade).where(City.nome == nome, City.uf == uf)
    if city_id is not None:
        query = query.where(City.id_cidade != city_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise ConflictError(f"City {nome}/{uf} already exists", details={"nome": nome, "uf": uf})


async def _commit_unique(db: AsyncSession, nome: str, uf: str) -> None:
    """Commit, turning a (nome, uf) unique violation from a concurrent write into a Conflict."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(f"City {nome}/{uf} already exists", details={"nome": nome, "uf": uf}) from e


@router.get("", response_model=List[CityResponse])
async def list_cities(
    limit: int = Depends(limit_query(500)),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(City).order_by(City.uf, City.nome).limit(limit))
    return [CityResponse.model_validate(c) for c in result.scalars().all()]


@router.get("/{id_cidade}", response_model=CityResponse)
async def get_city(
    id_cidade: int = Path(..., description="City ID"),
    db: AsyncSession = Depends(get_db)
):
    return CityResponse.model_validate(await _get_city(db, id_cidade))


@router.post("", response_model=CityResponse, status_code=status.HTTP_201_CREATED)
async def create_city(
    city_data: CityCreate,
    db: AsyncSession = Depends(get_db)
):
    uf = city_data.uf.upper()
    await _ensure_name_free(db, city_data.nome, uf)

    city = City(nome=city_data.nome, uf=uf)
    db.add(city)
    await _commit_unique(db, city_data.nome, uf)
    await db.refresh(city)

    await ReportCache.invalidate()
    return CityResponse.model_validate(city)


@router.put("/{id_cidade}", response_model=CityResponse)
async def update_city(
    id_cidade: int = Path(..., description="City ID"),
    city_data: CityUpdate = ...,
    db: AsyncSession = Depends(get_db)
):
    """Rename a city or fix its state; trips keep pointing at it."""
    city = await _get_city(db, id_cidade)
    update_data = city_data.model_dump(exclude_unset=True)

    nome = update_data.get("nome") or city.nome
    uf = (update_data.get("uf") or city.uf).upper()
    if (nome, uf) != (city.nome, city.uf):
        await _ensure_name_free(db, nome, uf, id_cidade)

    city.nome = nome
    city.uf = uf
    await _commit_unique(db, nome, uf)
    await db.refresh(city)

    await ReportCache.invalidate()
    return CityResponse.model_validate(city)


@router.delete("/{id_cidade}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_city(
    id_cidade: int = Path(..., description="City ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a city.

    Raises:
        ConflictError: when any trip starts or ends in the city
    """
    city = await _get_city(db, id_cidade)

    result = await db.execute(
        select(func.count(Trip.id_viagem)).where(
            or_(Trip.cidade_origem == id_cidade, Trip.cidade_destino == id_cidade)
        )
    )
    trip_count = result.scalar()
    if trip_count:
        raise ConflictError(
            "City is referenced by trips and cannot be deleted",
            details={"id_cidade": id_cidade, "viagens": trip_count}
        )

    await db.delete(city)
    await db.commit()
    await ReportCache.invalidate()
