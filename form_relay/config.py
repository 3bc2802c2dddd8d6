import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

logger = logging.getLogger(__name__)

# ==================== CONFIGURATION ====================

DEFAULT_ORIGIN = "*"
DEFAULT_SCORE_THRESHOLD = 0.5
DEFAULT_REQUEST_TIMEOUT = 5.0
RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class Settings(BaseModel):
    """Read-only per-process configuration for the relay"""

    allowed_origin: str = DEFAULT_ORIGIN
    score_threshold: float = DEFAULT_SCORE_THRESHOLD
    recaptcha_secret: Optional[str] = None
    endpoint_url: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    verify_url: str = RECAPTCHA_VERIFY_URL

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables

        - MY_SITE_URL: allowed CORS origin
        - SCORE_THRESHOLD: minimum accepted reCAPTCHA score
        - RECAPTCHA_SECRET_KEY: secret shared with the verification service
        - ENDPOINT_URL: downstream endpoint receiving accepted submissions
        - REQUEST_TIMEOUT: seconds allowed for each outbound call
        - RECAPTCHA_VERIFY_URL: override for the verification endpoint
        """
        return cls(
            allowed_origin=os.getenv("MY_SITE_URL") or DEFAULT_ORIGIN,
            score_threshold=_parse_threshold(os.getenv("SCORE_THRESHOLD")),
            recaptcha_secret=os.getenv("RECAPTCHA_SECRET_KEY") or None,
            endpoint_url=os.getenv("ENDPOINT_URL") or None,
            request_timeout=_parse_timeout(os.getenv("REQUEST_TIMEOUT")),
            verify_url=os.getenv("RECAPTCHA_VERIFY_URL") or RECAPTCHA_VERIFY_URL,
        )


def _parse_threshold(raw: Optional[str]) -> float:
    # Stricter than parseFloat(x) || 0.5: "0" is kept; "0.7abc" and values above 1 fall back to 0.5
    if raw is None or not raw.strip():
        return DEFAULT_SCORE_THRESHOLD
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring unparsable SCORE_THRESHOLD %r", raw)
        return DEFAULT_SCORE_THRESHOLD
    if not 0.0 <= value <= 1.0:
        logger.warning("Ignoring out-of-range SCORE_THRESHOLD %r", raw)
        return DEFAULT_SCORE_THRESHOLD
    return value


def _parse_timeout(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_REQUEST_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring unparsable REQUEST_TIMEOUT %r", raw)
        return DEFAULT_REQUEST_TIMEOUT
    # Timeouts must be positive
    return value if value > 0 else DEFAULT_REQUEST_TIMEOUT
