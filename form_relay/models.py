import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr, ValidationError

# ==================== REQUEST MODELS ====================

FormScalar = Union[StrictStr, StrictBool, StrictInt, StrictFloat]
FormValue = Union[FormScalar, List[FormScalar]]


class IncomingRequest(BaseModel):
    method: str
    body: Optional[str] = None
    remote_ip: Optional[str] = None


class SubmissionPayload(BaseModel):
    token: StrictStr
    form_data: Dict[str, FormValue] = Field(default_factory=dict, alias="formData")

    model_config = {"populate_by_name": True}


class ParseError(BaseModel):
    """Why a request body could not become a SubmissionPayload"""
    message: str


def parse_submission(body: Optional[str]) -> Union[SubmissionPayload, ParseError]:
    """
    Parse a raw request body into a SubmissionPayload

    Returns a ParseError instead of raising, so callers can answer
    with a 400 before any collaborator is contacted.
    """
    if body is None or not body.strip():
        return ParseError(message="Request body is required")

    try:
        data = json.loads(body)
    except ValueError as e:
        return ParseError(message=f"Invalid JSON body: {e}")

    if not isinstance(data, dict):
        return ParseError(message="Request body must be a JSON object")

    token = data.get("token")
    if not token:
        return ParseError(message="Token is required")
    if not isinstance(token, str):
        return ParseError(message="Token must be a string")

    form_data = data.get("formData")
    if form_data is None:
        form_data = {}
    if not isinstance(form_data, dict):
        return ParseError(message="formData must be a JSON object")

    try:
        return SubmissionPayload(token=token, formData=form_data)
    except ValidationError:
        return ParseError(
            message="formData values must be strings, numbers, booleans or lists of those"
        )


# ==================== VERIFICATION MODELS ====================

class VerificationResult(BaseModel):
    success: bool = False
    score: Optional[float] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_response(cls, data: Any) -> "VerificationResult":
        """Wrap the verification service's JSON, keeping it verbatim as details"""
        if not isinstance(data, dict):
            raise ValueError("Verification response is not a JSON object")

        score = data.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            score = None

        return cls(success=data.get("success") is True, score=score, details=data)

    def passes(self, threshold: float) -> bool:
        """Accept only an explicit success with a score at or above threshold"""
        return self.success and self.score is not None and self.score >= threshold


# ==================== RESPONSE MODELS ====================

LOW_SCORE_ERROR = "Low ReCAPTCHA score or verification failed"
INTERNAL_ERROR = "Internal Server Error"


class AcceptedSubmission(BaseModel):
    formResponse: Any
    threshold: float
    details: Dict[str, Any]


class RejectedSubmission(BaseModel):
    error: str = LOW_SCORE_ERROR
    threshold: float
    details: Dict[str, Any]


class InternalError(BaseModel):
    error: str = INTERNAL_ERROR
    message: str
