from fastapi import APIRouter

from .schemas import HealthResponse

router = APIRouter(tags=["misc"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Light-weight health check used by deployment environments."""
    return HealthResponse(status="ok")
