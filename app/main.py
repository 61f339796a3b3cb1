import asyncio
import contextlib
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.config import settings
from app.routes import webhook
from app.services.dispatcher import dispatcher
from app.services.llm_service import llm_service
from app.services.poller import UpdatePoller
from app.services.telegram import telegram_service
from app.utils.logger import logger
from app.utils.rate_limit import rate_limiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Bot started successfully")
    logger.info(f"Rate limit: {settings.RATE_LIMIT_MAX_REQUESTS} requests per {settings.RATE_LIMIT_WINDOW_MS}ms")
    logger.info(f"Max message length: {settings.MAX_MESSAGE_LENGTH} characters")

    poll_task = None
    poller = None
    if settings.TELEGRAM_MODE == "polling":
        # getUpdates is refused while a webhook is set
        await telegram_service.delete_webhook()
        poller = UpdatePoller(telegram_service, dispatcher, poll_timeout=settings.TELEGRAM_POLL_TIMEOUT)
        poll_task = asyncio.create_task(poller.run())
    elif settings.TELEGRAM_WEBHOOK_URL:
        await telegram_service.set_webhook(settings.TELEGRAM_WEBHOOK_URL)
    else:
        logger.warning("Webhook mode without TELEGRAM_WEBHOOK_URL; assuming the webhook is registered already.")

    yield

    logger.info("Shutting down bot...")
    if poll_task:
        poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poll_task
        await poller.drain()
    await dispatcher.drain()
    await llm_service.close()


app = FastAPI(
    title="Telegram AI Relay",
    description="Relays Telegram messages to a chat-completion API with per-user rate limiting",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(webhook.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "mode": settings.TELEGRAM_MODE,
        "tracked_users": rate_limiter.tracked_users,
    }


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
