from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from registry import channel_registry
from schemas.channels import HealthResponse

health_router = APIRouter(tags=["health"])


@health_router.get("/", response_class=PlainTextResponse)
async def ping():
    return "pong"


@health_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    bot = getattr(request.app.state, "bot", None)
    bot_connected = bot is not None and bot.is_ready() and not bot.is_closed()
    return HealthResponse(
        status="ok",
        bot_connected=bot_connected,
        tracked_channels=len(channel_registry),
    )
