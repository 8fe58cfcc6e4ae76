# =============================================================================
# Plant Disease Gateway - Gemini Inference
# =============================================================================
# Provides the GeminiInference class that wraps the google-genai async
# client:
#   - Builds a single multimodal request (inline image bytes + the fixed
#     plant-doctor instruction) or a text-only connectivity probe.
#   - Applies the least-restrictive safety policy to every call.
#   - Maps the response onto a result string or a typed InferenceError.
# =============================================================================

import asyncio
import logging
from typing import List, Optional

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

LEAF_PROMPT = """
You are a plant doctor specialized in helping farmers.
Analyze the following image of a plant leaf and provide practical advice.

Please return the response in three clear sections:

1. Disease Name: Name the disease(s) affecting this leaf (if any). Keep it simple and understandable.
2. Causes: Explain in simple terms why this disease may happen.
3. Prevention & Remedies: Provide clear, practical steps a farmer can follow to prevent and treat the disease.

Format your response exactly like this:

Disease Name:
Causes:
Prevention & Remedies:
"""

TEST_PROMPT = "Hello, Gemini!"

# Disable blocking for every adjustable harm category.
SAFETY_SETTINGS = [
    types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
    for category in (
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    )
]


class InferenceError(Exception):
    """Base class for failures interpreting a Gemini call."""


class InferenceBlockedError(InferenceError):
    """The prompt was rejected by Gemini's content moderation."""

    def __init__(self, message: str, block_reason: str):
        super().__init__(message)
        self.block_reason = block_reason


class NoCandidatesError(InferenceError):
    """Gemini answered without any candidate."""


class EmptyResultError(InferenceError):
    """The first candidate carried no text part."""


class InferenceTimeoutError(InferenceError):
    """The Gemini call did not finish within the configured timeout."""


def _reason_name(reason) -> str:
    return str(getattr(reason, "value", reason))


def _describe_contents(contents: List[types.Content]) -> list:
    """Loggable view of a request, with inline data reduced to its size."""
    described = []
    for content in contents:
        parts = []
        for part in content.parts or []:
            if part.inline_data is not None:
                parts.append({
                    "inline_data": {
                        "mime_type": part.inline_data.mime_type,
                        "bytes": len(part.inline_data.data or b""),
                    }
                })
            else:
                parts.append({"text": part.text})
        described.append({"role": content.role, "parts": parts})
    return described


class GeminiInference:
    """
    Async gateway to the Gemini generate-content API.

    One instance is created per server and shared by all requests; it holds
    no per-request state.

    Args:
        api_key:         Google API key used when no client is supplied.
        model_id:        Gemini model identifier.
        timeout_seconds: Upper bound for a single generate-content call.
        client:          Pre-built ``genai.Client`` (or a stand-in exposing
                         ``aio.models.generate_content``).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: str = "gemini-2.5-flash",
        timeout_seconds: float = 60.0,
        client=None,
    ):
        if client is None:
            logger.info("Initializing Gemini client with API key from configuration.")
            client = genai.Client(api_key=api_key)
        self._client = client
        self._model_id = model_id
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config) -> "GeminiInference":
        """Build an instance from a Config object."""
        return cls(
            api_key=config.google_api_key,
            model_id=config.model_id,
            timeout_seconds=config.request_timeout_seconds,
        )

    @property
    def model_id(self) -> str:
        return self._model_id

    async def diagnose_leaf(self, image_bytes: bytes, mime_type: str) -> str:
        """
        Ask Gemini for a three-section diagnosis of a leaf image.

        Args:
            image_bytes: Raw bytes of the uploaded image.
            mime_type:   Declared media type of the upload.

        Returns:
            The text of the first candidate.

        Raises:
            InferenceError: On block, empty answer or timeout.
        """
        # Blob data is sent base64-encoded by the SDK.
        image_part = types.Part(
            inline_data=types.Blob(data=image_bytes, mime_type=mime_type)
        )
        contents = [
            types.Content(role="user", parts=[image_part, types.Part(text=LEAF_PROMPT)])
        ]
        logger.info("Sending multimodal prompt to Gemini (%d bytes, %s)...", len(image_bytes), mime_type)
        text = await self._generate(contents, label="")
        logger.info("Received response from Gemini: %s", text)
        return text

    async def test_connection(self) -> str:
        """Send the fixed text-only probe and return the first candidate's text."""
        contents = [types.Content(role="user", parts=[types.Part(text=TEST_PROMPT)])]
        text = await self._generate(contents, label="test")
        logger.info("Test response from Gemini: %s", text)
        return text

    async def _generate(self, contents: List[types.Content], label: str) -> str:
        config = types.GenerateContentConfig(safety_settings=SAFETY_SETTINGS)
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model_id,
                    contents=contents,
                    config=config,
                ),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise InferenceTimeoutError(
                f"Gemini did not respond within {self._timeout_seconds:g}s."
            ) from None
        return self._extract_text(response, contents, label)

    def _extract_text(self, response, contents: List[types.Content], label: str) -> str:
        prefix = f"{label.capitalize()} c" if label else "C"
        suffix = f" in {label}" if label else ""

        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None)
        if block_reason:
            reason = _reason_name(block_reason)
            logger.error(
                "%s payload: model=%s contents=%s",
                f"{label.capitalize()} request" if label else "Request",
                self._model_id,
                _describe_contents(contents),
            )
            raise InferenceBlockedError(
                f"{prefix}ontent generation blocked: {reason}", block_reason=reason
            )

        candidates = getattr(response, "candidates", None)
        if not candidates:
            raise NoCandidatesError(f"No candidates returned from API{suffix}.")

        content = candidates[0].content
        parts = content.parts if content is not None else None
        if not parts or parts[0].text is None:
            raise EmptyResultError(f"First candidate contained no text{suffix}.")
        return parts[0].text
