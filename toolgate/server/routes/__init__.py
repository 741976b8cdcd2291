"""Route registration for the toolgate API."""

from fastapi import FastAPI

from .confirmations import router as confirmations_router
from .schedules import router as schedules_router


def register_routes(app: FastAPI):
    app.include_router(confirmations_router)
    app.include_router(schedules_router)
