"""Input injection routes."""

from typing import Any, Literal

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ...models import Input, Resize


class InputRequest(BaseModel):
    """Request model for injecting an event."""

    kind: Literal["input", "resize"] = "input"
    value: Any = None


class InputResponse(BaseModel):
    """Response model for an injected event."""

    status: str
    kind: str


def create_messaging_router(app: IApplication) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api", tags=["messaging"])

    @router.post("/input", response_model=InputResponse)
    async def inject_input(request: InputRequest) -> dict:
        """Put an Input or Resize event on the event channel."""
        event = Resize() if request.kind == "resize" else Input(value=request.value)
        try:
            accepted = app.inject(event)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not accepted:
            raise HTTPException(
                status_code=503, detail="Event channel is full or closed"
            )
        return {"status": "ok", "kind": event.kind}

    return router
