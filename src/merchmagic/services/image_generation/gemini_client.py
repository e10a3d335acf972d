"""Gemini API client for mockup generation and editing with error classification."""

import base64
from typing import Any, Optional

import httpx
import structlog
from google import genai
from google.genai import errors, types

from merchmagic.services.exceptions import (
    EmptyResponseError,
    ForbiddenError,
    ImageServiceError,
    InvalidCredentialError,
    InvalidRequestError,
    NoImageReturnedError,
    RateLimitError,
    SafetyBlockedError,
    ServiceNetworkError,
    UpstreamServerError,
)
from merchmagic.services.image_generation.data_uri import (
    decode_data_uri,
    mime_type_of,
    to_data_uri,
)

logger = structlog.get_logger(__name__)

SAFE_PROBABILITIES = ("NEGLIGIBLE", "LOW")
GENERIC_SAFETY_MESSAGE = "The content was flagged by safety filters. Try a more neutral prompt."


def _enum_name(value: Any) -> str:
    """Return the plain name of an SDK enum member or string."""
    if value is None:
        return ""
    return str(getattr(value, "value", value))


def format_harm_category(category: Any) -> str:
    """Turn HARM_CATEGORY_DANGEROUS_CONTENT into 'Dangerous content'."""
    name = _enum_name(category).replace("HARM_CATEGORY_", "").lower().replace("_", " ")
    return name[:1].upper() + name[1:]


def blocked_categories(safety_ratings: Optional[list[Any]]) -> list[str]:
    """Extract categories rated above LOW probability from a safety-rating payload."""
    categories = []
    for rating in safety_ratings or []:
        if _enum_name(getattr(rating, "probability", None)) in SAFE_PROBABILITIES:
            continue
        category = getattr(rating, "category", None)
        if category is None:
            continue
        categories.append(format_harm_category(category))
    return categories


def safety_error(safety_ratings: Optional[list[Any]]) -> SafetyBlockedError:
    """Build a SafetyBlockedError from the service's safety ratings."""
    categories = blocked_categories(safety_ratings)
    if categories:
        message = f"Blocked due to potential issues: {', '.join(categories)}."
    else:
        message = GENERIC_SAFETY_MESSAGE
    return SafetyBlockedError(message, categories=categories)


def classify_error(exception: Exception, context: str) -> ImageServiceError:
    """Classify an exception from the SDK or network layer.

    Args:
        exception: Original exception raised during the call
        context: Operation name used in the fallback message

    Returns:
        Classified ImageServiceError subclass instance

    Classification rules:
        - Already classified errors → returned unchanged
        - 429 → RateLimitError
        - 400 mentioning API_KEY → InvalidCredentialError
        - Other 400 → InvalidRequestError
        - 403 → ForbiddenError
        - >= 500 → UpstreamServerError
        - Timeouts / connection errors → ServiceNetworkError
        - Anything else → ImageServiceError with the original message
    """
    if isinstance(exception, ImageServiceError):
        return exception

    if isinstance(exception, errors.APIError):
        status_code = exception.code
        message = exception.message or str(exception)

        if status_code == 429:
            return RateLimitError(
                "Rate limit exceeded. Please wait a moment before trying again.",
                status_code=status_code,
                details="HTTP 429: Too Many Requests",
            )
        if status_code == 400:
            if "API_KEY" in str(exception) or "api key" in message.lower():
                return InvalidCredentialError(
                    "Invalid or missing API Key. Please check your configuration.",
                    status_code=status_code,
                    details="HTTP 400: Bad Request",
                )
            return InvalidRequestError(
                "The request was invalid. This could be due to an unsupported image format "
                "or an overly complex prompt.",
                status_code=status_code,
                details="HTTP 400: Bad Request",
            )
        if status_code == 403:
            return ForbiddenError(
                "Access forbidden. This might be due to regional restrictions "
                "or API key permissions.",
                status_code=status_code,
                details="HTTP 403: Forbidden",
            )
        if status_code is not None and status_code >= 500:
            return UpstreamServerError(
                "The Gemini server encountered an error. Please try again later.",
                status_code=status_code,
                details=f"HTTP {status_code}: Server Error",
            )
        return ImageServiceError(
            message,
            status_code=status_code,
            details=f"API Status Code: {status_code}" if status_code else None,
        )

    if isinstance(exception, (httpx.TimeoutException, TimeoutError)):
        return ServiceNetworkError(f"Network timeout during {context}.", details=str(exception))

    if isinstance(exception, (httpx.TransportError, ConnectionError)):
        return ServiceNetworkError(f"Network error during {context}.", details=str(exception))

    return ImageServiceError(
        str(exception) or f"An unexpected error occurred during {context}.",
        details=type(exception).__name__,
    )


class GeminiClient:
    """Image service client wrapping the Gemini image model.

    All calls are async and return the rendered image as a PNG data URI.
    """

    def __init__(self, api_key: str, model: str, aspect_ratio: str = "1:1"):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key (from GEMINI_API_KEY env var)
            model: Image-capable model identifier
            aspect_ratio: Output aspect ratio requested for every render
        """
        self.api_key = api_key
        self.model = model
        self.aspect_ratio = aspect_ratio
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise InvalidCredentialError(
                "GEMINI_API_KEY not configured",
                details="Missing API key",
            )
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate_mockup(self, logo: str, prompt: str) -> str:
        """Render the logo onto a product.

        Args:
            logo: Logo image as a data URI (or bare base64)
            prompt: Catalog instruction describing the product scene

        Returns:
            Rendered image as a PNG data URI

        Raises:
            ImageServiceError: Any classified failure (see classify_error)
            SafetyBlockedError: Output refused by safety filters
        """
        return await self._render(
            [self._image_part(logo), types.Part.from_text(text=prompt)],
            context="mockup generation",
            no_image_message=(
                "The AI returned a response without an image. "
                "It might have only returned text feedback."
            ),
        )

    async def edit_mockup(
        self, base_image: str, prompt: str, background_image: Optional[str] = None
    ) -> str:
        """Apply an edit instruction to the current mockup image.

        Args:
            base_image: Current mockup as a data URI
            prompt: Edit instruction
            background_image: Optional secondary reference image (data URI)

        Returns:
            Edited image as a PNG data URI
        """
        parts = [self._image_part(base_image), types.Part.from_text(text=prompt)]
        if background_image:
            parts.append(self._image_part(background_image))

        return await self._render(
            parts,
            context="mockup editing",
            no_image_message="The AI was unable to generate an edited image from your prompt.",
        )

    def _image_part(self, image: str) -> types.Part:
        try:
            data = decode_data_uri(image)
        except ValueError as e:
            raise InvalidRequestError(
                "The request was invalid. This could be due to an unsupported image format "
                "or an overly complex prompt.",
                details=str(e),
            ) from e
        return types.Part.from_bytes(data=data, mime_type=mime_type_of(image))

    async def _render(self, parts: list[types.Part], context: str, no_image_message: str) -> str:
        try:
            client = self._get_client()
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=parts,
                config=types.GenerateContentConfig(
                    image_config=types.ImageConfig(aspect_ratio=self.aspect_ratio),
                ),
            )
            return self._extract_image(response, no_image_message)
        except Exception as e:
            classified = classify_error(e, context)
            logger.error(
                "gemini.request.failed",
                context=context,
                error_type=type(classified).__name__,
                error_message=classified.message,
                status_code=classified.status_code,
            )
            if classified is e:
                raise
            raise classified from e

    @staticmethod
    def _extract_image(response: Any, no_image_message: str) -> str:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            feedback = getattr(response, "prompt_feedback", None)
            if feedback is not None and getattr(feedback, "block_reason", None):
                raise safety_error(getattr(feedback, "safety_ratings", None))
            raise EmptyResponseError("The AI service did not return any results.")

        candidate = candidates[0]
        if _enum_name(getattr(candidate, "finish_reason", None)) == "SAFETY":
            raise safety_error(getattr(candidate, "safety_ratings", None))

        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is None or not inline_data.data:
                continue
            data = inline_data.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            return to_data_uri(data)

        raise NoImageReturnedError(no_image_message)
