import math

from fastapi import APIRouter, Request

from .schemas import StatusResponse

router = APIRouter(tags=["misc"])


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    """Gateway connection and flat-file summary."""

    bot = request.app.state.bot
    latency = bot.latency
    return StatusResponse(
        ready=bot.is_ready(),
        guilds=len(bot.guilds),
        latency_ms=None if math.isnan(latency) or math.isinf(latency) else round(latency * 1000, 2),
        uptime_seconds=int(bot.uptime.total_seconds()),
        afk_users=len(bot.stores.afk.load().users),
        blacklisted_guilds=len(bot.stores.blacklist.all()),
    )
