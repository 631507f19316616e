from condo_messaging.providers.anthropic.client import AnthropicClassifierProvider

__all__ = ["AnthropicClassifierProvider"]
