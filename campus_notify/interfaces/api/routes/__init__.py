from fastapi import FastAPI

from .device_tokens import router as device_tokens_router
from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(device_tokens_router)
    app.include_router(notifications_router)
