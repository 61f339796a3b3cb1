from app.config import settings
from app.models import InboundMessage, MessageKind


class MessageValidator:
    """Sorts inbound messages before anything touches the rate limiter."""

    def __init__(self, max_message_length: int = 4000):
        self.max_message_length = max_message_length

    def classify(self, message: InboundMessage) -> MessageKind:
        if message.is_command:
            return MessageKind.COMMAND
        if not message.text:
            return MessageKind.EMPTY
        # Must run before admission so oversized messages never cost quota
        if len(message.text) > self.max_message_length:
            return MessageKind.TOO_LONG
        return MessageKind.ELIGIBLE


message_validator = MessageValidator(max_message_length=settings.MAX_MESSAGE_LENGTH)
