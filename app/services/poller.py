import asyncio
from typing import Any, Dict, Optional, Set

from app.models import InboundMessage
from app.services.dispatcher import Dispatcher
from app.services.telegram import TelegramAPIError, TelegramService
from app.utils.logger import logger

POLL_ERROR_BACKOFF_SECONDS = 5.0


class UpdatePoller:
    """Long-polls getUpdates and hands each message to the dispatcher in its own task."""

    def __init__(
        self,
        transport: TelegramService,
        dispatcher: Dispatcher,
        poll_timeout: int = 30,
        backoff_seconds: float = POLL_ERROR_BACKOFF_SECONDS,
    ):
        self.transport = transport
        self.dispatcher = dispatcher
        self.poll_timeout = poll_timeout
        self.backoff_seconds = backoff_seconds
        self.offset: Optional[int] = None
        self._in_flight: Set[asyncio.Task] = set()

    def handle_update(self, update: Dict[str, Any]) -> Optional[asyncio.Task]:
        """Acknowledges the update and schedules its dispatch. Returns the task, if any."""
        update_id = update.get("update_id")
        if isinstance(update_id, int):
            self.offset = update_id + 1

        message = InboundMessage.from_update(update)
        if message is None:
            return None

        task = asyncio.create_task(self._dispatch(message))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _dispatch(self, message: InboundMessage):
        try:
            await self.dispatcher.dispatch(message)
        except Exception as e:
            logger.error(f"Error processing message: {str(e)}")

    async def poll_once(self) -> int:
        updates = await self.transport.get_updates(offset=self.offset, timeout=self.poll_timeout)
        for update in updates:
            self.handle_update(update)
        return len(updates)

    async def run(self):
        logger.info("Polling Telegram for updates...")
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                logger.info("Polling stopped.")
                raise
            except TelegramAPIError as e:
                logger.error(f"Polling error: {e.description}")
                await asyncio.sleep(self.backoff_seconds)
            except Exception as e:
                logger.error(f"Polling error: {str(e)}")
                await asyncio.sleep(self.backoff_seconds)

    async def drain(self):
        """Waits for in-flight dispatches to finish."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
