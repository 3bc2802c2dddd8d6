from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.responses import Response

from . import __version__
from .clients import Forwarder, FormForwarder, RecaptchaVerifier, Verifier
from .config import Settings
from .handler import handle_request
from .models import IncomingRequest

# ==================== CONFIGURATION ====================

app = FastAPI(
    title="reCAPTCHA Form Relay",
    description="Verifies reCAPTCHA v3 tokens and forwards accepted form submissions",
    version=__version__,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# CORS headers come from handle_request on every response, including
# 405 and 500; no CORSMiddleware.

RELAY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

# ==================== DEPENDENCIES ====================

@lru_cache
def get_settings() -> Settings:
    """Settings are read from the environment once per process"""
    return Settings.from_env()


def get_verifier(settings: Settings = Depends(get_settings)) -> Verifier:
    return RecaptchaVerifier(
        settings.recaptcha_secret,
        verify_url=settings.verify_url,
        timeout=settings.request_timeout,
    )


def get_forwarder(settings: Settings = Depends(get_settings)) -> Forwarder:
    return FormForwarder(settings.endpoint_url, timeout=settings.request_timeout)


def client_ip(request: Request):
    """The connecting peer; under Mangum this is the event's source IP"""
    if request.client and request.client.host:
        return request.client.host
    # Proxies append the peer they saw, so only the last entry is trustworthy
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[-1].strip() or None
    return None

# ==================== API ENDPOINTS ====================

@app.api_route("/", methods=RELAY_METHODS)
@app.api_route("/{path:path}", methods=RELAY_METHODS)
async def relay(
    request: Request,
    settings: Settings = Depends(get_settings),
    verifier: Verifier = Depends(get_verifier),
    forwarder: Forwarder = Depends(get_forwarder),
):
    """
    Verify and forward a form submission

    Expects a JSON body {"token": ..., "formData": {...}} on POST.
    Every path is served so the relay works behind any function route.
    """
    raw_body = await request.body()

    result = await handle_request(
        IncomingRequest(
            method=request.method,
            body=raw_body.decode("utf-8", errors="replace") if raw_body else None,
            remote_ip=client_ip(request),
        ),
        settings,
        verifier,
        forwarder,
    )

    return Response(content=result.body, status_code=result.status_code, headers=result.headers)

# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
