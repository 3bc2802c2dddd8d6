"""Outbound collaborators: reCAPTCHA verification and form forwarding.

Both speak application/x-www-form-urlencoded over httpx and raise a
CollaboratorError subclass on any transport, status or decoding failure.
Nothing is retried.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple
from urllib.parse import urlencode

import httpx

from .config import DEFAULT_REQUEST_TIMEOUT, RECAPTCHA_VERIFY_URL
from .models import FormValue, VerificationResult

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# ==================== ERRORS ====================

class CollaboratorError(Exception):
    """An outbound call failed and the invocation cannot continue"""


class VerificationError(CollaboratorError):
    pass


class ForwardingError(CollaboratorError):
    pass

# ==================== INTERFACES ====================

class Verifier(Protocol):
    async def verify(self, token: str, remote_ip: Optional[str] = None) -> VerificationResult:
        ...


class Forwarder(Protocol):
    async def forward(self, form_body: str) -> Any:
        ...

# ==================== FORM ENCODING ====================

def _stringify(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_form_data(form_data: Dict[str, FormValue]) -> str:
    """
    Flatten form data into a URL-encoded body

    Scalars become key=value pairs; lists repeat the key once per item.
    Keys and values are percent-encoded, spaces as '+'.
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in form_data.items():
        if isinstance(value, list):
            pairs.extend((key, _stringify(item)) for item in value)
        else:
            pairs.append((key, _stringify(value)))
    return urlencode(pairs)

# ==================== HTTP CLIENTS ====================

class _FormPoster:
    def __init__(self, timeout: float = DEFAULT_REQUEST_TIMEOUT, client: Optional[httpx.AsyncClient] = None):
        self.timeout = timeout
        self._client = client

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, timeout=self.timeout, **kwargs)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            return await client.post(url, **kwargs)


class RecaptchaVerifier(_FormPoster):
    """Checks a reCAPTCHA token against the siteverify endpoint"""

    def __init__(
        self,
        secret: Optional[str],
        verify_url: str = RECAPTCHA_VERIFY_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self.secret = secret
        self.verify_url = verify_url

    async def verify(self, token: str, remote_ip: Optional[str] = None) -> VerificationResult:
        if not self.secret:
            raise VerificationError("RECAPTCHA_SECRET_KEY is not configured")

        data = {"secret": self.secret, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            response = await self._post(self.verify_url, data=data)
        except httpx.HTTPError as e:
            raise VerificationError(f"Error in ReCAPTCHA verification: {e}") from e

        if not response.is_success:
            raise VerificationError(f"Error in ReCAPTCHA verification: {response.status_code}")

        try:
            result = VerificationResult.from_response(response.json())
        except ValueError as e:
            raise VerificationError(f"Invalid ReCAPTCHA verification response: {e}") from e

        logger.debug("reCAPTCHA verification success=%s score=%s", result.success, result.score)
        return result


class FormForwarder(_FormPoster):
    """Posts accepted form bodies to the downstream endpoint"""

    def __init__(
        self,
        endpoint_url: Optional[str],
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self.endpoint_url = endpoint_url

    async def forward(self, form_body: str) -> Any:
        if not self.endpoint_url:
            raise ForwardingError("ENDPOINT_URL is not configured")

        try:
            response = await self._post(
                self.endpoint_url,
                content=form_body,
                headers={"Content-Type": FORM_CONTENT_TYPE},
            )
        except httpx.HTTPError as e:
            raise ForwardingError(f"Error forwarding data: {e}") from e

        if not response.is_success:
            raise ForwardingError(f"Error forwarding data: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ForwardingError(f"Invalid response from endpoint: {e}") from e
