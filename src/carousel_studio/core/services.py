"""Interfaces of the external AI services.

The engine only depends on these two protocols.  The Gemini implementations
live in :mod:`carousel_studio.core.gemini`; tests substitute in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ContentPart:
    """One part of an image service response.

    Attributes:
        data: Inline binary payload, or None for text-only parts.
        mime_type: Mime type reported for the payload, if any.
        text: Text carried by the part, if any.
    """

    data: bytes | None = None
    mime_type: str | None = None
    text: str | None = None

    @property
    def has_data(self) -> bool:
        return self.data is not None


class ImageService(Protocol):
    async def generate_image(self, prompt: str) -> list[ContentPart]:
        """Render ``prompt`` and return the response parts in order."""
        ...


class TextService(Protocol):
    async def generate_text(self, instruction: str) -> str:
        """Return the model's free-form reply to ``instruction``."""
        ...
