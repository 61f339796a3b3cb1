from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Header, Request

from app.models import InboundMessage
from app.services.dispatcher import dispatcher
from app.services.telegram import telegram_service
from app.utils.logger import logger

router = APIRouter()


@router.post("/webhook")
async def handle_telegram_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    """Receives Telegram updates. Always acknowledges quickly; the relay runs in the background."""
    telegram_service.verify_webhook(x_telegram_bot_api_secret_token)

    try:
        body = await request.json()
    except Exception as e:
        logger.error(f"Error handling webhook: {str(e)}")
        return {"status": "ok"}

    message = InboundMessage.from_update(body)
    if message is None:
        return {"status": "ok"}

    background_tasks.add_task(dispatch_safely, message)
    return {"status": "ok"}


async def dispatch_safely(message: InboundMessage):
    try:
        await dispatcher.dispatch(message)
    except Exception as e:
        logger.error(f"Error processing message: {str(e)}")
