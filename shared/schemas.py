# =============================================================================
# Plant Disease Gateway - Shared API Schemas
# =============================================================================
# Pydantic models defining the JSON envelopes exchanged between the gateway
# and its clients. Every body carries a ``success`` flag; failures carry a
# human-readable ``message`` and, for upstream failures, the underlying
# ``error`` text.
# =============================================================================

from typing import Optional

from pydantic import BaseModel, Field


class PredictResponse(BaseModel):
    """
    Successful diagnosis of an uploaded leaf image.

    Attributes:
        success: Always True.
        result:  Text of Gemini's first candidate.
    """

    success: bool = True
    result: str = Field(..., description="Diagnosis text returned by the model")


class DiagnosticResponse(BaseModel):
    """Successful connectivity probe against the Gemini API."""

    success: bool = True
    message: str
    result: str


class ErrorResponse(BaseModel):
    """
    Uniform failure envelope.

    Attributes:
        success: Always False.
        message: What the server was doing when it failed.
        error:   Underlying error text; omitted for input errors.
    """

    success: bool = False
    message: str
    error: Optional[str] = None
