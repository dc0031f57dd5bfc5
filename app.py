import asyncio
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bot import PrivateVoiceBot
from constants import TOKEN
from logging_config import get_logger, setup_logging
from routers.channels import channels_router
from routers.health import health_router

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


async def run_bot(bot: PrivateVoiceBot, token: str):
    """Keep the Discord client running; a crash here must not take the probe down."""
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(f"Discord client stopped with an error: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.bot = None
    bot_task = None
    if TOKEN:
        bot = PrivateVoiceBot()
        app.state.bot = bot
        bot_task = asyncio.create_task(run_bot(bot, TOKEN), name="privatevoice.bot")
        logger.info("Discord client starting")
    else:
        logger.warning("TOKEN is not set, serving the liveness probe only")

    yield

    logger.info("Shutting down bot.")
    if app.state.bot is not None:
        # close() stops the sweep before the gateway connection
        await app.state.bot.close()
    if bot_task is not None:
        bot_task.cancel()
        try:
            await bot_task
        except asyncio.CancelledError:
            pass


app = FastAPI(lifespan=lifespan)

app.include_router(health_router)
app.include_router(channels_router)

logger.info("FastAPI application initialized")
