"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from falconair.api.routes import auth, flights, bookings, loyalty

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(flights.router)
api_router.include_router(bookings.router)
api_router.include_router(loyalty.router)
