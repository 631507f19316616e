"""
Anthropic Classifier Provider

Single-turn completion against the Anthropic Messages API.
"""

import logging

import anthropic
import httpx

from condo_messaging.providers.base import ClassifierProvider, ProviderError

logger = logging.getLogger(__name__)


class AnthropicClassifierProvider(ClassifierProvider):
    """Anthropic Messages API provider."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        timeout: float = 30.0,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=httpx.Timeout(timeout, connect=5.0),
            max_retries=1,
        )

    async def complete(self, prompt: str) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise ProviderError(
                str(e),
                code=type(e).__name__,
                retryable=isinstance(e, (anthropic.APIConnectionError, anthropic.RateLimitError)),
            ) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        logger.debug(
            "Classifier completion received",
            extra={"model": self.model, "stop_reason": response.stop_reason},
        )
        return text
