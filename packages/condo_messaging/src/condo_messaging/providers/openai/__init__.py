from condo_messaging.providers.openai.client import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
