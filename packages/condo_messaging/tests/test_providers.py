"""
Tests for provider selection, stub providers, Twilio signatures and Redis claims.
"""

import asyncio

import pytest
import redis
from twilio.request_validator import RequestValidator

from condocore.redis import claim_key, release_claim, try_claim
from condocore.settings import Settings

from condo_messaging.providers import (
    ProviderError,
    build_classifier_provider,
    build_email_provider,
    build_embedding_provider,
    build_messaging_provider,
)
from condo_messaging.providers.stub import StubMessagingProvider
from condo_messaging.providers.twilio import validate_twilio_signature


class TestProviderFactory:
    """Tests for building providers from settings."""

    def test_stub_when_twilio_unconfigured(self):
        settings = Settings(TWILIO_ACCOUNT_SID="", TWILIO_AUTH_TOKEN="")
        assert isinstance(build_messaging_provider(settings), StubMessagingProvider)

    def test_stub_when_selected(self):
        settings = Settings(MESSAGING_PROVIDER="stub", TWILIO_ACCOUNT_SID="AC123", TWILIO_AUTH_TOKEN="token")
        assert isinstance(build_messaging_provider(settings), StubMessagingProvider)

    def test_twilio_when_configured(self):
        from condo_messaging.providers.twilio import TwilioMessagingProvider

        settings = Settings(MESSAGING_PROVIDER="twilio", TWILIO_ACCOUNT_SID="AC123", TWILIO_AUTH_TOKEN="token")
        assert isinstance(build_messaging_provider(settings), TwilioMessagingProvider)

    def test_optional_capabilities_disabled_without_keys(self):
        settings = Settings(ANTHROPIC_API_KEY="", OPENAI_API_KEY="", RESEND_API_KEY="")
        assert build_classifier_provider(settings) is None
        assert build_embedding_provider(settings) is None
        assert build_email_provider(settings) is None

    def test_anthropic_when_configured(self):
        from condo_messaging.providers.anthropic import AnthropicClassifierProvider

        settings = Settings(ANTHROPIC_API_KEY="sk-ant-test")
        assert isinstance(build_classifier_provider(settings), AnthropicClassifierProvider)


class TestStubMessagingProvider:
    def test_records_messages(self):
        provider = StubMessagingProvider()
        response = asyncio.run(provider.send_message("whatsapp:+1555", "whatsapp:+1666", "hola"))

        assert response.success is True
        assert response.message_id.startswith("SMstub")
        assert provider.sent_to("whatsapp:+1555")[0]["body"] == "hola"

        provider.clear_sent_messages()
        assert provider.sent_messages == []

    def test_simulated_failure(self):
        provider = StubMessagingProvider(fail_for={"+1555"})
        with pytest.raises(ProviderError) as exc:
            asyncio.run(provider.send_message("+1555", "+1666", "hola"))
        assert exc.value.code == "STUB_SIMULATED_FAILURE"


class TestTwilioSignature:
    """Tests for Twilio webhook signature validation."""

    url = "https://condo.example.com/webhooks/messaging"
    params = {"MessageSid": "SM123", "From": "whatsapp:+15551110002", "Body": "Hola"}

    def test_valid_signature(self):
        signature = RequestValidator("auth_token").compute_signature(self.url, self.params)
        assert validate_twilio_signature("auth_token", self.url, self.params, signature) is True

    def test_wrong_token(self):
        signature = RequestValidator("other_token").compute_signature(self.url, self.params)
        assert validate_twilio_signature("auth_token", self.url, self.params, signature) is False

    def test_tampered_params(self):
        signature = RequestValidator("auth_token").compute_signature(self.url, self.params)
        tampered = {**self.params, "Body": "Adiós"}
        assert validate_twilio_signature("auth_token", self.url, tampered, signature) is False

    def test_missing_signature(self):
        assert validate_twilio_signature("auth_token", self.url, self.params, "") is False


class FlakyRedis:
    def set(self, *args, **kwargs):
        raise redis.ConnectionError("connection refused")

    def delete(self, *args, **kwargs):
        raise redis.ConnectionError("connection refused")


class RecordingRedis:
    def __init__(self):
        self.calls = []
        self.store = {}

    def set(self, key, value, nx=False, ex=None):
        self.calls.append((key, nx, ex))
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def delete(self, key):
        self.store.pop(key, None)


class TestRedisClaims:
    def test_claim_key(self):
        assert claim_key("inbound:abc", "SM1") == "claim:inbound:abc:SM1"

    def test_first_claim_wins(self):
        client = RecordingRedis()
        assert try_claim(client, "inbound:abc", "SM1", 300) is True
        assert try_claim(client, "inbound:abc", "SM1", 300) is False
        assert client.calls[0] == ("claim:inbound:abc:SM1", True, 300)

    def test_release_allows_reclaim(self):
        client = RecordingRedis()
        try_claim(client, "inbound:abc", "SM1", 300)
        release_claim(client, "inbound:abc", "SM1")
        assert try_claim(client, "inbound:abc", "SM1", 300) is True

    def test_unavailable_redis(self):
        """Test Redis errors report None instead of raising."""
        assert try_claim(FlakyRedis(), "inbound:abc", "SM1", 300) is None
        release_claim(FlakyRedis(), "inbound:abc", "SM1")
