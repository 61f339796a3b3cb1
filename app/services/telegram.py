import httpx
from fastapi import HTTPException
from typing import Any, Dict, Hashable, List, Optional

from app.config import settings
from app.utils.logger import logger
from app.utils.security import mask_user, verify_webhook_secret

# Telegram rejects texts over 4096 UTF-16 code units
MAX_CHUNK_LENGTH = 4000


def utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def split_message(text: str, limit: int = MAX_CHUNK_LENGTH) -> List[str]:
    """Splits text into chunks of at most `limit` UTF-16 code units, never inside a character."""
    chunks: List[str] = []
    current: List[str] = []
    size = 0
    for char in text:
        width = utf16_length(char)
        if size + width > limit:
            chunks.append("".join(current))
            current, size = [], 0
        current.append(char)
        size += width
    if current or not chunks:
        chunks.append("".join(current))
    return chunks


class TelegramAPIError(Exception):
    """Telegram answered with ok=false or an HTTP error."""
    def __init__(self, method: str, description: str, error_code: Optional[int] = None):
        super().__init__(f"{method} failed: {description}")
        self.method = method
        self.description = description
        self.error_code = error_code


class TelegramService:
    def __init__(
        self,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        webhook_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = f"{api_base.rstrip('/')}/bot{bot_token}"
        self.webhook_secret = webhook_secret
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport)

    def verify_webhook(self, secret_header: Optional[str]) -> None:
        """Verifies the secret token Telegram attaches to webhook calls."""
        if not verify_webhook_secret(secret_header, self.webhook_secret):
            logger.error("Rejected webhook call with invalid secret token!")
            raise HTTPException(status_code=403, detail="Invalid secret token")

    async def _call(
        self, client: httpx.AsyncClient, method: str, payload: Dict[str, Any], timeout: float = 10.0
    ) -> Any:
        """POSTs a Bot API method and returns its `result`."""
        try:
            response = await client.post(f"{self.base_url}/{method}", json=payload, timeout=timeout)
        except httpx.HTTPError as e:
            raise TelegramAPIError(method, f"{type(e).__name__}: {str(e)}") from e

        try:
            data = response.json()
        except ValueError:
            raise TelegramAPIError(method, f"non-JSON response (HTTP {response.status_code})", response.status_code)

        if not isinstance(data, dict):
            raise TelegramAPIError(method, f"unexpected response body (HTTP {response.status_code})", response.status_code)

        if response.status_code >= 400 or not data.get("ok"):
            raise TelegramAPIError(method, data.get("description", "unknown error"), data.get("error_code", response.status_code))
        return data.get("result")

    async def send_message(self, chat_id: Hashable, text: str, rich: bool = False) -> bool:
        """Sends a text message, chunking if needed. Best-effort: returns False on failure."""
        chunks = split_message(text)

        async with self._client() as client:
            for chunk in chunks:
                payload: Dict[str, Any] = {"chat_id": chat_id, "text": chunk}
                if rich:
                    payload["parse_mode"] = "HTML"
                try:
                    await self._call(client, "sendMessage", payload)
                except TelegramAPIError as e:
                    logger.error(f"DeliveryFailed: sendMessage to chat {mask_user(chat_id)}: {e.description}")
                    return False
        logger.info(f"Message sent to chat {mask_user(chat_id)}")
        return True

    async def send_typing(self, chat_id: Hashable) -> bool:
        """Shows the "typing..." indicator. Best-effort: returns False on failure."""
        async with self._client() as client:
            try:
                await self._call(client, "sendChatAction", {"chat_id": chat_id, "action": "typing"}, timeout=5.0)
                return True
            except TelegramAPIError as e:
                logger.error(f"DeliveryFailed: typing indicator for chat {mask_user(chat_id)}: {e.description}")
                return False

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> List[Dict[str, Any]]:
        """Long-polls for new updates. Raises TelegramAPIError on failure."""
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        async with self._client() as client:
            # The HTTP timeout must outlast the long poll itself
            return await self._call(client, "getUpdates", payload, timeout=timeout + 10.0) or []

    async def set_webhook(self, url: str) -> bool:
        payload: Dict[str, Any] = {"url": url, "allowed_updates": ["message"]}
        if self.webhook_secret:
            payload["secret_token"] = self.webhook_secret
        async with self._client() as client:
            try:
                await self._call(client, "setWebhook", payload)
                logger.info("Telegram webhook registered successfully!")
                return True
            except TelegramAPIError as e:
                logger.error(f"Failed to register Telegram webhook: {e.description}")
                return False

    async def delete_webhook(self) -> bool:
        async with self._client() as client:
            try:
                await self._call(client, "deleteWebhook", {"drop_pending_updates": False})
                return True
            except TelegramAPIError as e:
                logger.error(f"Failed to delete Telegram webhook: {e.description}")
                return False


telegram_service = TelegramService(
    bot_token=settings.TELEGRAM_BOT_TOKEN,
    api_base=settings.TELEGRAM_API_BASE,
    webhook_secret=settings.TELEGRAM_WEBHOOK_SECRET,
)
