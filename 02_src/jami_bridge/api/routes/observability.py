"""Observability API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import IApplication
from ...models import EVENT_TYPES

EVENT_KINDS = {event_type.kind for event_type in EVENT_TYPES}


class EventResponse(BaseModel):
    """Response model for a consumed event."""

    kind: str
    data: dict[str, Any]


def create_observability_router(app: IApplication) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/events", response_model=list[EventResponse])
    async def get_events(
        limit: int = Query(100, ge=1, le=1000),
        kind: str | None = Query(None, description="Filter by event kind"),
    ) -> list[dict]:
        """Most recently consumed events, oldest first."""
        if kind is not None and kind not in EVENT_KINDS:
            raise HTTPException(status_code=400, detail=f"Unknown event kind: {kind}")

        try:
            events = app.recent_events(limit=limit, kind=kind)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        response = []
        for event in events:
            data = event.as_dict()
            data.pop("kind")
            # bytes are not JSON serializable
            for key, value in data.items():
                if isinstance(value, (bytes, bytearray)):
                    data[key] = value.hex()
            response.append({"kind": event.kind, "data": data})
        return response

    return router
