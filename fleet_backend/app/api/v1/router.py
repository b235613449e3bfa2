"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleet_backend.app.api.v1.endpoints import (
    trips, reports,
    vehicles, drivers, cities,
    fuel_records, maintenance_records
)

router = APIRouter()

# Trip lifecycle
router.include_router(trips.router)

# Dashboards
router.include_router(reports.statistics_router)
router.include_router(reports.router)

# Registry
router.include_router(vehicles.router)
router.include_router(drivers.router)
router.include_router(cities.router)

# Operational records
router.include_router(fuel_records.router)
router.include_router(maintenance_records.router)
