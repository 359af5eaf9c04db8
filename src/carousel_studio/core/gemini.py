"""Gemini implementations of the image and text services.

Both services use the async surface of the ``google-genai`` SDK
(``client.aio``) so a running batch never blocks the event loop.  Any SDK
error is converted into :class:`~carousel_studio.core.errors.ServiceError`
with the service's own message, which is what the user sees.

Usage
-----
::

    client = genai.Client(api_key=config.google_api_key)
    images = GeminiImageService(client, model=config.image_model)
    parts = await images.generate_image("a cat on a windowsill")
"""

from __future__ import annotations

import logging

from google import genai
from google.genai import errors, types

from .errors import ServiceError
from .services import ContentPart

logger = logging.getLogger(__name__)


def create_client(api_key: str) -> genai.Client:
    """Create a Gemini client for ``api_key``."""
    return genai.Client(api_key=api_key)


def _service_error(exc: errors.APIError) -> ServiceError:
    return ServiceError(getattr(exc, "message", None) or str(exc))


class GeminiImageService:
    """Image generation through a Gemini image model (Nano Banana)."""

    def __init__(self, client: genai.Client, model: str = "gemini-2.5-flash-image"):
        self.client = client
        self.model = model

    async def generate_image(self, prompt: str) -> list[ContentPart]:
        """Generate an image for ``prompt``.

        Args:
            prompt: Fully composed slide prompt.

        Returns:
            The first candidate's content parts, in response order.  Empty if
            the model returned no candidates.

        Raises:
            ServiceError: If the Gemini API call fails.
        """
        logger.info(f"Requesting image from {self.model} ({len(prompt)} chars)")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                ),
            )
        except errors.APIError as e:
            raise _service_error(e) from e

        if not response.candidates or response.candidates[0].content is None:
            return []

        parts: list[ContentPart] = []
        for part in response.candidates[0].content.parts or []:
            inline = part.inline_data
            parts.append(
                ContentPart(
                    data=inline.data if inline else None,
                    mime_type=inline.mime_type if inline else None,
                    text=part.text,
                )
            )
        return parts


class GeminiTextService:
    """Text generation through a Gemini text model."""

    def __init__(self, client: genai.Client, model: str = "gemini-2.5-flash"):
        self.client = client
        self.model = model

    async def generate_text(self, instruction: str) -> str:
        """Return the model's reply to ``instruction``.

        JSON output is requested from the model; the caller still validates
        the reply.

        Raises:
            ServiceError: If the Gemini API call fails.
        """
        logger.info(f"Requesting text from {self.model}")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=instruction,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                ),
            )
        except errors.APIError as e:
            raise _service_error(e) from e
        return response.text or ""
