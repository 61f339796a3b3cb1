"""
Maps completion provider failures onto the fixed set of user-facing error kinds.
"""
import asyncio
from typing import Any, Optional, Tuple

import groq

from app.models import ErrorKind

QUOTA_CODE = "insufficient_quota"
RATE_LIMIT_CODE = "rate_limit_exceeded"

PROVIDER_NAME_HINTS: Tuple[str, ...] = ("Groq", "OpenAI")


def extract_error_code(error: BaseException) -> Optional[str]:
    """Pulls a machine-readable error code off an exception, if it carries one.

    Looks at a `code` attribute first, then at the JSON body returned by the
    provider, which is either the error object itself or wrapped in "error".
    """
    code = getattr(error, "code", None)
    if isinstance(code, str) and code:
        return code

    body: Any = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error")
        if isinstance(inner, dict) and isinstance(inner.get("code"), str):
            return inner["code"] or None
        if isinstance(body.get("code"), str):
            return body["code"] or None
    return None


class CompletionErrorClassifier:
    def __init__(self, provider_hints: Tuple[str, ...] = PROVIDER_NAME_HINTS):
        self.provider_hints = provider_hints

    def classify(self, error: BaseException) -> ErrorKind:
        """Returns the error kind for a raw provider failure. Pure, no side effects."""
        code = extract_error_code(error)
        if code is not None:
            if code == QUOTA_CODE:
                return ErrorKind.QUOTA_EXCEEDED
            if code == RATE_LIMIT_CODE:
                return ErrorKind.PROVIDER_RATE_LIMITED
            return ErrorKind.PROVIDER_UNAVAILABLE

        if isinstance(error, groq.RateLimitError):
            return ErrorKind.PROVIDER_RATE_LIMITED
        if isinstance(error, (groq.APIError, asyncio.TimeoutError)):
            return ErrorKind.PROVIDER_UNAVAILABLE

        text = str(error)
        if any(hint in text for hint in self.provider_hints):
            return ErrorKind.PROVIDER_UNAVAILABLE
        return ErrorKind.UNKNOWN


error_classifier = CompletionErrorClassifier()
