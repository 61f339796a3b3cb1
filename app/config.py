import logging
import sys
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    PORT: int = 8000
    HOST: str = "0.0.0.0"

    # Telegram Bot API Conf
    TELEGRAM_BOT_TOKEN: str = Field(min_length=1)
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    TELEGRAM_MODE: Literal["polling", "webhook"] = "polling"
    TELEGRAM_WEBHOOK_URL: Optional[str] = None
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = None
    TELEGRAM_POLL_TIMEOUT: int = Field(default=30, gt=0)

    # Completion provider Conf (Groq, OpenAI-compatible chat completions)
    GROQ_API_KEY: str = Field(min_length=1)
    LLM_MODEL: str = "llama-3.3-70b-versatile"
    LLM_MAX_TOKENS: int = Field(default=1000, gt=0)
    LLM_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    COMPLETION_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0)

    # Bot behaviour
    BOT_NAME: str = "AI Assistant Bot"
    RATE_LIMIT_WINDOW_MS: int = Field(default=60000, gt=0)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=10, gt=0)
    MAX_MESSAGE_LENGTH: int = Field(default=4000, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore",
        # A blank variable counts as unset, so blank credentials are reported missing
        env_ignore_empty=True,
    )


def load_settings() -> Settings:
    """Reads settings once at startup. Missing credentials are fatal."""
    try:
        return Settings()
    except ValidationError as e:
        # The app logger is configured from settings, so report through a bare one here.
        log = logging.getLogger("telegram_relay.config")
        if not log.handlers:
            log.addHandler(logging.StreamHandler(sys.stderr))
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors() if err["type"] in ("missing", "string_too_short")]
        if missing:
            log.error(f"Missing required environment variables: {', '.join(missing)}")
            log.error("Please check your .env file and ensure all required variables are set.")
        else:
            log.error(f"Invalid configuration: {str(e)}")
        raise SystemExit(1)


settings = load_settings()
