"""Pytest configuration and shared fixtures for the relay tests."""

import os
from types import SimpleNamespace
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Settings are read at import time and credentials are mandatory
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")
os.environ.setdefault("GROQ_API_KEY", "gsk_test")
os.environ.setdefault("TELEGRAM_MODE", "polling")

from app.models import InboundMessage  # noqa: E402
from app.prompts.templates import error_messages  # noqa: E402
from app.services.dispatcher import Dispatcher  # noqa: E402
from app.services.error_classifier import CompletionErrorClassifier  # noqa: E402
from app.services.llm_service import LLMService  # noqa: E402
from app.services.validator import MessageValidator  # noqa: E402
from app.utils.rate_limit import RateLimiter  # noqa: E402

MAX_LENGTH = 4000


def completion_response(content: Optional[str]) -> Any:
    """Minimal stand-in for a chat completion response object."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def transport() -> MagicMock:
    """Fake Telegram transport whose sends always succeed.

    Returns:
        MagicMock with AsyncMock send_message/send_typing
    """
    fake = MagicMock()
    fake.send_message = AsyncMock(return_value=True)
    fake.send_typing = AsyncMock(return_value=True)
    return fake


@pytest.fixture
def groq_client() -> MagicMock:
    """Fake AsyncGroq client answering every completion with "Hello there"."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion_response("Hello there"))
    client.close = AsyncMock()
    return client


@pytest.fixture
def provider(groq_client: MagicMock) -> LLMService:
    return LLMService(api_key="gsk_test", model="test-model", timeout_seconds=1.0, client=groq_client)


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(max_requests=2, window_ms=60000)


@pytest.fixture
def dispatcher(transport: MagicMock, provider: LLMService, limiter: RateLimiter) -> Dispatcher:
    """Dispatcher wired to fakes: window=60000ms, max=2, max length 4000."""
    return Dispatcher(
        transport=transport,
        provider=provider,
        limiter=limiter,
        validator=MessageValidator(max_message_length=MAX_LENGTH),
        classifier=CompletionErrorClassifier(),
        commands={"/start": "welcome", "/help": "help"},
        error_texts=error_messages(MAX_LENGTH),
    )


@pytest.fixture
def make_message():
    def _make(text: Optional[str], user_id: int = 42, chat_id: int = 4242) -> InboundMessage:
        return InboundMessage(user_id=user_id, chat_id=chat_id, text=text)

    return _make
