from fastapi import APIRouter
from voltsage.api.v1.station_router import router as station_router
from voltsage.api.v1.favorites_router import router as favorites_router

api_router = APIRouter()

api_router.include_router(station_router)
api_router.include_router(favorites_router)
