"""
Value types flowing through the relay pipeline.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Union

COMMAND_MARKER = "/"


class MessageKind(str, Enum):
    COMMAND = "command"
    EMPTY = "empty"
    TOO_LONG = "too_long"
    ELIGIBLE = "eligible"


class ErrorKind(str, Enum):
    TOO_LONG = "too_long"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    PROVIDER_RATE_LIMITED = "provider_rate_limited"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    EMPTY_RESPONSE = "empty_response"
    UNKNOWN = "unknown"


class DispatchState(str, Enum):
    DROPPED = "dropped"
    COMMAND_HANDLED = "command_handled"
    RATE_LIMITED = "rate_limited"
    TOO_LONG = "too_long"
    REPLIED = "replied"
    FAILED = "failed"


@dataclass(frozen=True)
class InboundMessage:
    user_id: Hashable
    chat_id: Hashable
    text: Optional[str] = None

    @property
    def is_command(self) -> bool:
        return bool(self.text) and self.text.startswith(COMMAND_MARKER)

    @classmethod
    def from_update(cls, update: Dict[str, Any]) -> Optional["InboundMessage"]:
        """Builds a message from a Telegram Update object.

        Returns None for updates that carry no new message (edits, callbacks,
        channel posts) or that lack a sender or chat.
        """
        if not isinstance(update, dict):
            return None
        message = update.get("message")
        if not isinstance(message, dict):
            return None

        sender = message.get("from") or {}
        chat = message.get("chat") or {}
        if "id" not in sender or "id" not in chat:
            return None

        text = message.get("text")
        if not isinstance(text, str):
            text = None
        return cls(user_id=sender["id"], chat_id=chat["id"], text=text)


@dataclass(frozen=True)
class CompletionRequest:
    system_prompt: str
    user_prompt: str
    model: str
    max_tokens: int
    temperature: float

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]


@dataclass(frozen=True)
class CompletionSuccess:
    text: str


@dataclass(frozen=True)
class CompletionFailure:
    kind: ErrorKind
    raw_detail: str = ""


CompletionOutcome = Union[CompletionSuccess, CompletionFailure]


@dataclass(frozen=True)
class DispatchResult:
    """What happened to one inbound message."""
    state: DispatchState
    message_kind: MessageKind
    reply: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    delivered: bool = False
