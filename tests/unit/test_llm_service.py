"""Unit tests for the completion provider adapter."""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.prompts.templates import BASE_SYSTEM_PROMPT
from app.services.llm_service import LLMService


class TestBuildRequest:
    def test_request_carries_configured_parameters(self, provider: LLMService) -> None:
        request = provider.build_request("Tell me a joke")

        assert request.system_prompt == BASE_SYSTEM_PROMPT
        assert request.user_prompt == "Tell me a joke"
        assert request.model == "test-model"
        assert request.to_messages() == [
            {"role": "system", "content": BASE_SYSTEM_PROMPT},
            {"role": "user", "content": "Tell me a joke"},
        ]

    def test_each_request_is_fresh(self, provider: LLMService) -> None:
        assert provider.build_request("a") is not provider.build_request("a")


class TestComplete:
    @pytest.mark.asyncio
    async def test_returns_first_choice(self, provider: LLMService) -> None:
        assert await provider.complete(provider.build_request("hi")) == "Hello there"

    @pytest.mark.asyncio
    async def test_no_choices_returns_none(self, provider: LLMService, groq_client: MagicMock) -> None:
        groq_client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        assert await provider.complete(provider.build_request("hi")) is None

    @pytest.mark.asyncio
    async def test_errors_propagate(self, provider: LLMService, groq_client: MagicMock) -> None:
        groq_client.chat.completions.create.side_effect = RuntimeError("down")

        with pytest.raises(RuntimeError):
            await provider.complete(provider.build_request("hi"))

    @pytest.mark.asyncio
    async def test_timeout_cancels_the_call(self, groq_client: MagicMock) -> None:
        cancelled = asyncio.Event()

        async def slow(**kwargs):
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        groq_client.chat.completions.create = slow
        provider = LLMService(api_key="k", model="m", timeout_seconds=0.01, client=groq_client)

        with pytest.raises(asyncio.TimeoutError):
            await provider.complete(provider.build_request("hi"))
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_close(self, provider: LLMService, groq_client: MagicMock) -> None:
        await provider.close()

        groq_client.close.assert_awaited_once()

    def test_sdk_retries_disabled(self) -> None:
        provider = LLMService(api_key="gsk_test", model="m")

        assert provider.client.max_retries == 0
