"""FastAPI application setup."""

from fastapi import FastAPI

from ..app import IApplication
from .routes import control, messaging, observability


def create_fastapi_app(application: IApplication) -> FastAPI:
    """Create and configure FastAPI application.

    The caller owns the application's lifecycle; routes only read its state,
    inject events and request a stop.
    """
    fastapi_app = FastAPI(
        title="Jami Bridge API",
        description="Control and observability for the Jami event stream",
        version="0.1.0",
    )

    # Include routers
    fastapi_app.include_router(messaging.create_messaging_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
