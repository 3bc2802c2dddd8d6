"""The relay's request handler.

handle_request is a pure function of the incoming request, the settings and
the two collaborators. It always returns a HandlerResponse; every failure is
turned into a 4xx/5xx response carrying the CORS headers.
"""

import json
import logging
from typing import Dict

from pydantic import BaseModel

from .clients import Forwarder, Verifier, encode_form_data
from .config import Settings
from .models import (
    AcceptedSubmission,
    IncomingRequest,
    InternalError,
    ParseError,
    RejectedSubmission,
    parse_submission,
)

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
PREFLIGHT_MAX_AGE = 86400


class HandlerResponse(BaseModel):
    status_code: int
    headers: Dict[str, str]
    body: str = ""


def cors_headers(settings: Settings) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.allowed_origin,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE),
    }


def _text_response(status_code: int, text: str, settings: Settings) -> HandlerResponse:
    headers = cors_headers(settings)
    headers["Content-Type"] = TEXT_CONTENT_TYPE
    return HandlerResponse(status_code=status_code, headers=headers, body=text)


def _json_response(status_code: int, payload: BaseModel, settings: Settings) -> HandlerResponse:
    headers = cors_headers(settings)
    headers["Content-Type"] = JSON_CONTENT_TYPE
    return HandlerResponse(status_code=status_code, headers=headers, body=json.dumps(payload.model_dump()))


async def handle_request(
    request: IncomingRequest,
    settings: Settings,
    verifier: Verifier,
    forwarder: Forwarder,
) -> HandlerResponse:
    """
    Verify a submission's reCAPTCHA token and forward its form data

    - OPTIONS: 204 preflight answer
    - non-POST: 405
    - bad body or missing token: 400, no outbound call
    - low score or failed verification: 400 with verification details
    - accepted: 200 with the endpoint's JSON reply
    - any collaborator or unexpected failure: 500
    """
    method = request.method.upper()

    if method == "OPTIONS":
        return HandlerResponse(status_code=204, headers=cors_headers(settings))

    if method != "POST":
        return _text_response(405, "Method Not Allowed", settings)

    try:
        submission = parse_submission(request.body)
        if isinstance(submission, ParseError):
            return _text_response(400, submission.message, settings)

        verification = await verifier.verify(submission.token, request.remote_ip)

        if not verification.passes(settings.score_threshold):
            logger.info(
                "Rejected submission: success=%s score=%s threshold=%s",
                verification.success,
                verification.score,
                settings.score_threshold,
            )
            return _json_response(
                400,
                RejectedSubmission(threshold=settings.score_threshold, details=verification.details),
                settings,
            )

        form_response = await forwarder.forward(encode_form_data(submission.form_data))

        return _json_response(
            200,
            AcceptedSubmission(
                formResponse=form_response,
                threshold=settings.score_threshold,
                details=verification.details,
            ),
            settings,
        )

    except Exception as e:
        logger.exception("Server Error")
        return _json_response(500, InternalError(message=str(e)), settings)
