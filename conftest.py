import asyncio

import pytest

from form_relay.clients import VerificationError
from form_relay.config import Settings
from form_relay.models import VerificationResult


class FakeVerifier:
    """Stands in for the reCAPTCHA service; records every token it sees"""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {"success": True, "score": 0.9}
        self.error = error
        self.calls = []

    async def verify(self, token, remote_ip=None):
        self.calls.append((token, remote_ip))
        if self.error is not None:
            raise self.error
        return VerificationResult.from_response(self.response)


class FakeForwarder:
    """Stands in for the downstream endpoint; records every body it receives"""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {"ok": True}
        self.error = error
        self.calls = []

    async def forward(self, form_body):
        self.calls.append(form_body)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings():
    return Settings(
        allowed_origin="https://example.com",
        score_threshold=0.5,
        recaptcha_secret="test-secret",
        endpoint_url="https://forms.example.com/submit",
    )


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def forwarder():
    return FakeForwarder()


@pytest.fixture
def failing_verifier():
    return FakeVerifier(error=VerificationError("Error in ReCAPTCHA verification: 503"))


@pytest.fixture(autouse=True)
def fresh_event_loop():
    """Give each test a current event loop; asyncio.run() in earlier tests leaves none behind"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    asyncio.set_event_loop(None)
    loop.close()
