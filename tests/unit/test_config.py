"""Unit tests for settings loading and the static text tables."""

import pytest
from pydantic import ValidationError

from app.config import Settings, load_settings
from app.models import ErrorKind
from app.prompts.templates import API_ERROR_MESSAGE, error_messages, help_message, welcome_message


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("RATE_LIMIT_WINDOW_MS", "RATE_LIMIT_MAX_REQUESTS", "MAX_MESSAGE_LENGTH", "LLM_MAX_TOKENS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.RATE_LIMIT_WINDOW_MS == 60000
        assert settings.RATE_LIMIT_MAX_REQUESTS == 10
        assert settings.MAX_MESSAGE_LENGTH == 4000
        assert settings.LLM_MAX_TOKENS == 1000

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "3")
        monkeypatch.setenv("LLM_TEMPERATURE", "0.2")

        settings = Settings(_env_file=None)

        assert settings.RATE_LIMIT_MAX_REQUESTS == 3
        assert settings.LLM_TEMPERATURE == 0.2

    @pytest.mark.parametrize("missing", ["TELEGRAM_BOT_TOKEN", "GROQ_API_KEY"])
    def test_missing_credentials_are_fatal(self, monkeypatch: pytest.MonkeyPatch, missing: str) -> None:
        monkeypatch.delenv(missing, raising=False)
        monkeypatch.chdir("/")  # no stray .env

        with pytest.raises(SystemExit) as exc_info:
            load_settings()
        assert exc_info.value.code == 1

    def test_blank_credentials_are_fatal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "")
        monkeypatch.setenv("GROQ_API_KEY", "")
        monkeypatch.chdir("/")

        with pytest.raises(SystemExit) as exc_info:
            load_settings()
        assert exc_info.value.code == 1

    def test_blank_credentials_rejected_when_passed_directly(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, TELEGRAM_BOT_TOKEN="", GROQ_API_KEY="")

    def test_invalid_limit_is_fatal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "0")

        with pytest.raises(SystemExit):
            load_settings()


class TestTemplates:
    def test_every_error_kind_has_a_message(self) -> None:
        table = error_messages(4000)

        assert set(table) == set(ErrorKind)
        assert "4000" in table[ErrorKind.TOO_LONG]
        assert table[ErrorKind.EMPTY_RESPONSE] == API_ERROR_MESSAGE
        assert table[ErrorKind.UNKNOWN] == API_ERROR_MESSAGE

    def test_help_mentions_limits(self) -> None:
        text = help_message(max_requests=5, window_ms=60000, max_length=2000)

        assert "Maximum 5 requests per 60 seconds" in text
        assert "up to 2000 characters" in text

    def test_welcome_escapes_bot_name(self) -> None:
        assert "Tom &amp; Jerry" in welcome_message("Tom & Jerry")
