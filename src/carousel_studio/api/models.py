"""Pydantic request models for the Carousel Studio API.

These models define the JSON schema for every API endpoint that takes a body.
FastAPI uses them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Models
------
ConfigurationUpdate
    Payload for ``PATCH /api/session/config``, a partial update; omitted
    fields keep their current value.
PromptUpdate
    Payload for ``PUT /api/session/prompts/{index}``.
IdeaRequest
    Payload for ``POST /api/ideas/convert``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from carousel_studio.core.models import AspectRatio, PromptLanguage


class ConfigurationUpdate(BaseModel):
    """Request body for the ``PATCH /api/session/config`` endpoint.

    Attributes:
        aspect_ratio: ``"1:1"`` or ``"4:5"``.
        slot_count: Number of active slides (1, 3 or 5).
        style_preset_id: Identifier of a preset from ``GET /api/config``.
            Changing the preset also resets the global prompt to the preset's
            default unless ``global_prompt`` is sent in the same request.
        global_prompt: Modifier applied to every slide.
        prompt_language: ``"en"``, ``"ko"`` or ``"ja"``.
    """

    aspect_ratio: AspectRatio | None = Field(
        default=None,
        description="Aspect ratio: '1:1' (square) or '4:5' (portrait).",
    )
    slot_count: int | None = Field(
        default=None,
        description="Number of active slides (1, 3 or 5).",
    )
    style_preset_id: str | None = Field(
        default=None,
        description="Style preset identifier.",
    )
    global_prompt: str | None = Field(
        default=None,
        description="Global prompt applied to every slide.",
    )
    prompt_language: PromptLanguage | None = Field(
        default=None,
        description="Language for idea-to-prompts conversion.",
    )


class PromptUpdate(BaseModel):
    """Request body for the ``PUT /api/session/prompts/{index}`` endpoint."""

    text: str = Field(
        ...,
        description="New prompt text for the slide (may be empty).",
    )


class IdeaRequest(BaseModel):
    """Request body for the ``POST /api/ideas/convert`` endpoint."""

    idea: str = Field(
        ...,
        description="Free-text idea to turn into one prompt per active slide.",
    )
