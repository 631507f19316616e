"""
OpenAI Embedding Provider

Embeds query text for the knowledge-base similarity search.
"""

import httpx
import openai

from condo_messaging.providers.base import EmbeddingProvider, ProviderError


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings API provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        timeout: float = 10.0,
        client: openai.AsyncOpenAI | None = None,
    ):
        self.model = model
        self.client = client or openai.AsyncOpenAI(
            api_key=api_key,
            timeout=httpx.Timeout(timeout, connect=5.0),
            max_retries=1,
        )

    async def embed(self, text: str) -> list[float]:
        try:
            response = await self.client.embeddings.create(model=self.model, input=text)
        except openai.APIError as e:
            raise ProviderError(
                str(e),
                code=type(e).__name__,
                retryable=isinstance(e, (openai.APIConnectionError, openai.RateLimitError)),
            ) from e
        return list(response.data[0].embedding)
