from pydantic import BaseModel

__all__ = [
    "HealthResponse",
    "StatusResponse",
]


class HealthResponse(BaseModel):
    status: str


class StatusResponse(BaseModel):
    ready: bool
    guilds: int
    latency_ms: float | None
    uptime_seconds: int
    afk_users: int
    blacklisted_guilds: int
