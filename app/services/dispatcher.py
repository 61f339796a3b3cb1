"""
Per-message relay pipeline: validate, rate-limit, call the provider, reply.

Every inbound message ends in exactly one DispatchState. All states except
DROPPED produce exactly one outbound reply. Outbound sends are best-effort:
a failed delivery is logged and reported in the result, never raised.
"""
import asyncio
from typing import Dict, Hashable, Optional, Set

from app.config import settings
from app.models import (
    CompletionFailure,
    CompletionOutcome,
    CompletionSuccess,
    DispatchResult,
    DispatchState,
    ErrorKind,
    InboundMessage,
    MessageKind,
)
from app.prompts.templates import UNKNOWN_COMMAND_MESSAGE, error_messages, help_message, welcome_message
from app.services.error_classifier import CompletionErrorClassifier, error_classifier
from app.services.llm_service import LLMService, llm_service
from app.services.telegram import TelegramService, telegram_service
from app.services.validator import MessageValidator, message_validator
from app.utils.logger import logger
from app.utils.rate_limit import RateLimiter, rate_limiter
from app.utils.security import mask_user, preview


class Dispatcher:
    def __init__(
        self,
        transport: TelegramService,
        provider: LLMService,
        limiter: RateLimiter,
        validator: MessageValidator,
        classifier: CompletionErrorClassifier,
        commands: Dict[str, str],
        error_texts: Dict[ErrorKind, str],
    ):
        self.transport = transport
        self.provider = provider
        self.limiter = limiter
        self.validator = validator
        self.classifier = classifier
        self.commands = commands
        self.error_texts = error_texts
        self._background: Set[asyncio.Task] = set()

    async def dispatch(self, message: InboundMessage, now: Optional[float] = None) -> DispatchResult:
        kind = self.validator.classify(message)

        if kind == MessageKind.EMPTY:
            return DispatchResult(state=DispatchState.DROPPED, message_kind=kind)

        if kind == MessageKind.COMMAND:
            return await self._handle_command(message)

        logger.info(f"Received message from user {mask_user(message.user_id)}: {preview(message.text)}")

        if kind == MessageKind.TOO_LONG:
            return await self._reply_error(message, kind, DispatchState.TOO_LONG, ErrorKind.TOO_LONG)

        # Admission check and append complete before the first await below
        if not self.limiter.admit(message.user_id, now):
            logger.warning(f"Rate limit exceeded for user {mask_user(message.user_id)}")
            return await self._reply_error(message, kind, DispatchState.RATE_LIMITED, ErrorKind.RATE_LIMITED)

        self._start_typing(message.chat_id)

        outcome = await self._complete(message.text)
        if isinstance(outcome, CompletionFailure):
            logger.error(
                f"Completion failed for user {mask_user(message.user_id)} "
                f"({outcome.kind.value}): {outcome.raw_detail}"
            )
            return await self._reply_error(message, kind, DispatchState.FAILED, outcome.kind)

        delivered = await self.transport.send_message(message.chat_id, outcome.text)
        if delivered:
            logger.info(f"Successfully responded to user {mask_user(message.user_id)}")
        return DispatchResult(
            state=DispatchState.REPLIED, message_kind=kind, reply=outcome.text, delivered=delivered
        )

    def _start_typing(self, chat_id: Hashable):
        """Fires the typing indicator without holding up the provider call."""
        task = asyncio.create_task(self._send_typing(chat_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send_typing(self, chat_id: Hashable):
        try:
            await self.transport.send_typing(chat_id)
        except Exception as e:
            logger.error(f"DeliveryFailed: typing indicator for chat {mask_user(chat_id)}: {str(e)}")

    async def drain(self):
        """Waits for outstanding typing indicators."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _complete(self, text: str) -> CompletionOutcome:
        request = self.provider.build_request(text)
        try:
            reply = await self.provider.complete(request)
        except Exception as e:
            return CompletionFailure(kind=self.classifier.classify(e), raw_detail=f"{type(e).__name__}: {str(e)}")

        if not reply or not reply.strip():
            return CompletionFailure(kind=ErrorKind.EMPTY_RESPONSE, raw_detail="Empty response from provider")
        return CompletionSuccess(text=reply)

    async def _handle_command(self, message: InboundMessage) -> DispatchResult:
        command = self._command_name(message.text)
        reply = self.commands.get(command)
        if reply is not None:
            logger.info(f"User {mask_user(message.user_id)} sent {command}")
            delivered = await self.transport.send_message(message.chat_id, reply, rich=True)
        else:
            reply = UNKNOWN_COMMAND_MESSAGE
            delivered = await self.transport.send_message(message.chat_id, reply)
        return DispatchResult(
            state=DispatchState.COMMAND_HANDLED, message_kind=MessageKind.COMMAND, reply=reply, delivered=delivered
        )

    @staticmethod
    def _command_name(text: str) -> str:
        """Strips a trailing bot mention, e.g. /help@MyBot. Arguments make the command unknown."""
        command = text.strip()
        name, _, mention = command.partition("@")
        if mention and " " not in mention:
            return name
        return command

    async def _reply_error(
        self, message: InboundMessage, kind: MessageKind, state: DispatchState, error: ErrorKind
    ) -> DispatchResult:
        text = self.error_texts[error]
        delivered = await self.transport.send_message(message.chat_id, text)
        return DispatchResult(state=state, message_kind=kind, reply=text, error_kind=error, delivered=delivered)


def build_commands() -> Dict[str, str]:
    return {
        "/start": welcome_message(settings.BOT_NAME),
        "/help": help_message(
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_ms=settings.RATE_LIMIT_WINDOW_MS,
            max_length=settings.MAX_MESSAGE_LENGTH,
        ),
    }


dispatcher = Dispatcher(
    transport=telegram_service,
    provider=llm_service,
    limiter=rate_limiter,
    validator=message_validator,
    classifier=error_classifier,
    commands=build_commands(),
    error_texts=error_messages(settings.MAX_MESSAGE_LENGTH),
)
