import asyncio
from typing import Optional

from groq import AsyncGroq

from app.config import settings
from app.models import CompletionRequest
from app.prompts.templates import BASE_SYSTEM_PROMPT
from app.utils.logger import logger


class LLMService:
    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout_seconds: float = 60.0,
        client: Optional[AsyncGroq] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        # One attempt per message: the SDK's own retries are switched off
        self.client = client or AsyncGroq(api_key=api_key, max_retries=0)

    def build_request(self, user_text: str) -> CompletionRequest:
        """Fresh request for a single eligible message."""
        return CompletionRequest(
            system_prompt=BASE_SYSTEM_PROMPT,
            user_prompt=user_text,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    async def complete(self, request: CompletionRequest) -> Optional[str]:
        """Runs one chat completion and returns the reply text (None if the provider sent none).

        Provider errors and timeouts propagate to the caller unchanged.
        """
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    messages=request.to_messages(),
                    model=request.model,
                    max_tokens=request.max_tokens,
                    temperature=request.temperature,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"Completion timed out after {self.timeout_seconds}s")
            raise
        except Exception as e:
            logger.error(f"Groq API Error: {str(e)}")
            raise e

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def close(self):
        await self.client.close()


llm_service = LLMService(
    api_key=settings.GROQ_API_KEY,
    model=settings.LLM_MODEL,
    max_tokens=settings.LLM_MAX_TOKENS,
    temperature=settings.LLM_TEMPERATURE,
    timeout_seconds=settings.COMPLETION_TIMEOUT_SECONDS,
)
