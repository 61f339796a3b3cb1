# app/prompts/templates.py
from typing import Dict

from app.models import ErrorKind

# System Instructions
BASE_SYSTEM_PROMPT = """You are a helpful AI assistant. Respond in a friendly, helpful, and informative manner. Keep responses concise but comprehensive."""

WELCOME_TEMPLATE = """🤖 Welcome to {bot_name}!

I'm here to help you with any questions or conversations you'd like to have. I'm powered by advanced AI language models.

Available commands:
/start - Show this welcome message
/help - Get help and usage information

Just send me a message and I'll do my best to help you!"""

HELP_TEMPLATE = """📚 <b>Help &amp; Usage Information</b>

How to use this bot:
• Simply send me any message or question
• I'll process it using AI and respond
• I can help with various topics including:
  - General questions and conversations
  - Creative writing and brainstorming
  - Problem solving and analysis
  - Educational content and explanations

Commands:
/start - Show welcome message
/help - Show this help message

Rate Limits:
• Maximum {max_requests} requests per {window_seconds} seconds per user
• This helps prevent API abuse and ensures fair usage

Tips:
• Be specific in your questions for better responses
• I can handle messages up to {max_length} characters
• If you encounter any issues, please try again later

Need more help? Just ask me anything!"""

UNKNOWN_COMMAND_MESSAGE = "🤔 I don't know that command. Send /help to see what I can do."

RATE_LIMIT_MESSAGE = "⏰ You're sending messages too quickly. Please wait a moment before trying again."
API_ERROR_MESSAGE = "❌ Sorry, I encountered an error processing your request. Please try again later."
MESSAGE_TOO_LONG_TEMPLATE = "❌ Your message is too long. Please keep it under {max_length} characters."
PROVIDER_ERROR_MESSAGE = "❌ I'm having trouble connecting to the AI service. Please try again later."
QUOTA_EXCEEDED_MESSAGE = "❌ API quota exceeded. Please try again later."
PROVIDER_RATE_LIMIT_MESSAGE = "❌ API rate limit exceeded. Please try again later."


def _window_seconds(window_ms: int) -> str:
    seconds = window_ms / 1000
    return str(int(seconds)) if seconds == int(seconds) else f"{seconds:g}"


def welcome_message(bot_name: str) -> str:
    # HTML parse mode: the bot name is user-configured
    safe_name = bot_name.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return WELCOME_TEMPLATE.format(bot_name=safe_name)


def help_message(max_requests: int, window_ms: int, max_length: int) -> str:
    return HELP_TEMPLATE.format(
        max_requests=max_requests,
        window_seconds=_window_seconds(window_ms),
        max_length=max_length,
    )


def error_messages(max_length: int) -> Dict[ErrorKind, str]:
    """Maps every error kind to the single text the user will see."""
    return {
        ErrorKind.TOO_LONG: MESSAGE_TOO_LONG_TEMPLATE.format(max_length=max_length),
        ErrorKind.RATE_LIMITED: RATE_LIMIT_MESSAGE,
        ErrorKind.QUOTA_EXCEEDED: QUOTA_EXCEEDED_MESSAGE,
        ErrorKind.PROVIDER_RATE_LIMITED: PROVIDER_RATE_LIMIT_MESSAGE,
        ErrorKind.PROVIDER_UNAVAILABLE: PROVIDER_ERROR_MESSAGE,
        ErrorKind.EMPTY_RESPONSE: API_ERROR_MESSAGE,
        ErrorKind.UNKNOWN: API_ERROR_MESSAGE,
    }
