from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str
    version: str = "0.1.0"
    dispatcher_running: bool = False


@router.get("/", response_model=HealthCheckResponse)
async def health_check(request: Request) -> HealthCheckResponse:
    """
    Health check endpoint for uptime monitors.
    """
    dispatcher = getattr(request.app.state, "dispatcher", None)
    return HealthCheckResponse(
        status="healthy",
        dispatcher_running=dispatcher is not None and dispatcher.running,
    )
