from condo_messaging.providers.stub.client import (
    StubClassifierProvider,
    StubEmailProvider,
    StubEmbeddingProvider,
    StubMessagingProvider,
)

__all__ = [
    "StubClassifierProvider",
    "StubEmailProvider",
    "StubEmbeddingProvider",
    "StubMessagingProvider",
]
