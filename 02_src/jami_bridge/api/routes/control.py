"""Control API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import IApplication


class StatusResponse(BaseModel):
    """Response model for a control action."""

    status: str


class ListenerStatusResponse(BaseModel):
    """Response model for listener status."""

    state: str
    pending: int
    backlog: int
    consumed: int
    subscribed: list[str]


def create_control_router(app: IApplication) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.get("/status", response_model=ListenerStatusResponse)
    async def get_status() -> dict:
        """Listener state and event counters."""
        try:
            return app.status
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/stop", response_model=StatusResponse)
    async def stop_listening() -> dict:
        """Ask the listener to stop; it exits within one poll interval."""
        try:
            app.request_stop()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
