"""Carousel Studio — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
- **Session state** lives in one :class:`~carousel_studio.core.session.CarouselSession`
  stored on ``app.state``.  Configuration and prompts are mirrored to the
  SQLite store on every change and reloaded on restart.
- **Image generation** is performed by
  :class:`~carousel_studio.core.orchestrator.GenerationOrchestrator` against
  the Gemini image model.
- **Idea conversion** is performed by
  :class:`~carousel_studio.core.idea_converter.IdeaToPromptsConverter`
  against the Gemini text model.
- **Errors** from the engine are recorded as notifications for the affected
  slot or action and answered with the error's HTTP status.

Endpoints
---------
========  ================================  ==================================
Method    Path                              Purpose
========  ================================  ==================================
GET       ``/api/config``                   Presets, ratios, slot counts
GET       ``/api/session``                  Current session state
PATCH     ``/api/session/config``           Update configuration fields
PUT       ``/api/session/prompts/{index}``  Set one slide prompt
GET       ``/api/slots/{index}/prompt``     Preview the composed prompt
POST      ``/api/slots/{index}/generate``   Generate or regenerate one slide
GET       ``/api/slots/{index}/image``      Raw image bytes of a slide
POST      ``/api/generate``                 Generate every active slide
POST      ``/api/ideas/convert``            Turn an idea into slide prompts
GET       ``/api/export``                   Zip of all generated images
GET       ``/api/notifications``            Pending notifications
DELETE    ``/api/notifications``            Clear notifications
========  ================================  ==================================

Usage
-----
CLI (installed entry point)::

    carousel-studio

Direct invocation::

    python -m carousel_studio.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import ValidationError

from carousel_studio import __version__
from carousel_studio.api.models import ConfigurationUpdate, IdeaRequest, PromptUpdate
from carousel_studio.core.archive import ArchiveExporter
from carousel_studio.core.config import config
from carousel_studio.core.errors import CarouselError, NoImages
from carousel_studio.core.idea_converter import IDEAS_KEY, IdeaToPromptsConverter
from carousel_studio.core.models import (
    ASPECT_DESCRIPTORS,
    LANGUAGE_NAMES,
    MAX_SLOTS,
    SLOT_COUNTS,
    Slot,
)
from carousel_studio.core.notifications import slot_key
from carousel_studio.core.orchestrator import BatchStatus, GenerationOrchestrator
from carousel_studio.core.session import CarouselSession

logger = logging.getLogger(__name__)

EXPORT_KEY = "export"


# ---------------------------------------------------------------------------
# Application lifecycle: session setup.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the carousel session on startup.

    A session already placed on ``app.state`` (for example by tests) is kept
    as is.  Otherwise the session is built from the global configuration:
    presets are loaded, the persisted configuration and prompts are restored,
    and Gemini services are created if an API key is configured.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    if getattr(app.state, "session", None) is None:
        app.state.session = CarouselSession.from_config(config)
    logger.info(f"Session ready: {app.state.session!r}")

    yield  # Application runs here.

    logger.info("Carousel Studio shutting down.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Carousel Studio",
    description="Layered-prompt Instagram carousel generation with Gemini.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so a separately served front end can call the
# API during development.  In production, restrict ``allow_origins``.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _session(request: Request) -> CarouselSession:
    return request.app.state.session


def _slot_view(slot: Slot) -> dict:
    return {
        "index": slot.index,
        "number": slot.number,
        "prompt": slot.prompt,
        "loading": slot.loading,
        "has_image": slot.image is not None,
        "mime_type": slot.image.mime_type if slot.image else None,
        "image": slot.image.data_uri if slot.image else None,
    }


def _session_view(session: CarouselSession) -> dict:
    return {
        "configuration": session.configuration.model_dump(mode="json"),
        "prompts": list(session.prompts),
        "slots": [_slot_view(slot) for slot in session.active_slots()],
        "busy": session.slots.busy,
        "last_run": session.last_run.to_dict() if session.last_run else None,
        "notifications": [n.to_dict() for n in session.notifier.pending()],
    }


def _check_active(session: CarouselSession, index: int) -> None:
    """Reject slide indices outside the active slide count."""
    count = session.configuration.slot_count
    if not 0 <= index < count:
        raise HTTPException(
            status_code=400,
            detail=f"Slide index must be 0-{count - 1}, got {index}",
        )


def _last_error(session: CarouselSession, key: str) -> str | None:
    errors = [n for n in session.notifier.errors() if n.key == key]
    return errors[-1].message if errors else None


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config(request: Request) -> dict:
    """Return the options the front end needs to render its controls.

    Returns:
        Dictionary with ``version``, ``presets``, ``aspect_ratios``,
        ``slot_counts``, ``max_slots``, ``languages`` and
        ``credential_configured``.
    """
    session = _session(request)
    return {
        "version": __version__,
        "presets": [preset.model_dump() for preset in session.registry.all()],
        "aspect_ratios": [
            {"id": ratio.value, "name": ratio.name, "descriptor": descriptor}
            for ratio, descriptor in ASPECT_DESCRIPTORS.items()
        ],
        "slot_counts": list(SLOT_COUNTS),
        "max_slots": MAX_SLOTS,
        "languages": [
            {"id": language.value, "name": name} for language, name in LANGUAGE_NAMES.items()
        ],
        "credential_configured": session.credential_present,
    }


@app.get("/api/session")
async def get_session(request: Request) -> dict:
    """Return configuration, the full prompt array, and the active slides."""
    return _session_view(_session(request))


@app.patch("/api/session/config")
async def update_config(req: ConfigurationUpdate, request: Request) -> dict:
    """Update configuration fields.  Omitted fields are left unchanged.

    Raises:
        HTTPException: 400 for an unknown preset, 422 for a disallowed value
            such as ``slot_count=4``.
    """
    session = _session(request)
    try:
        session.update_configuration(**req.model_dump(exclude_none=True))
    except CarouselError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=[error["msg"] for error in e.errors()],
        ) from e
    return _session_view(session)


@app.put("/api/session/prompts/{index}")
async def set_prompt(index: int, req: PromptUpdate, request: Request) -> dict:
    """Set the prompt of one slide.

    Any of the ``MAX_SLOTS`` prompts can be edited, including ones hidden by a
    smaller slide count.

    Raises:
        HTTPException: 400 if ``index`` is outside ``0..MAX_SLOTS-1``.
    """
    session = _session(request)
    if not 0 <= index < MAX_SLOTS:
        raise HTTPException(
            status_code=400,
            detail=f"Prompt index must be 0-{MAX_SLOTS - 1}, got {index}",
        )
    session.set_prompt(index, req.text)
    return {"success": True, "index": index, "prompts": list(session.prompts)}


@app.get("/api/slots/{index}/prompt")
async def preview_prompt(index: int, request: Request) -> dict:
    """Preview the composed request for a slide without generating it.

    Raises:
        HTTPException: 400 for an inactive slide or a blank prompt.
    """
    session = _session(request)
    _check_active(session, index)
    try:
        composed = session.compose_prompt(index)
    except CarouselError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return {"index": index, "composed_prompt": composed}


@app.post("/api/slots/{index}/generate")
async def generate_slot(index: int, request: Request) -> dict:
    """Generate or regenerate a single slide.

    Failures are reported as a notification for the slide rather than as an
    HTTP error; ``success`` tells the caller which happened.
    """
    session = _session(request)
    _check_active(session, index)
    image = await GenerationOrchestrator(session).generate_slot(index)
    return {
        "success": image is not None,
        "error": None if image is not None else _last_error(session, slot_key(index)),
        "slot": _slot_view(session.slots.slot(index)),
    }


@app.get("/api/slots/{index}/image")
async def get_slot_image(index: int, request: Request) -> Response:
    """Return the raw image bytes of a slide.

    Raises:
        HTTPException: 404 if the slide has no image.
    """
    session = _session(request)
    _check_active(session, index)
    image = session.slots.slot(index).image
    if image is None:
        raise HTTPException(status_code=404, detail=f"Image {index + 1} has not been generated")
    return Response(content=image.data, media_type=image.mime_type)


@app.post("/api/generate")
async def generate_all(request: Request) -> dict:
    """Generate every active slide in order, stopping at the first failure.

    Returns:
        Dictionary with ``success``, ``run`` (the batch state) and ``slots``.

    Raises:
        HTTPException: 409 if a slide is still generating.
    """
    session = _session(request)
    try:
        run = await GenerationOrchestrator(session).generate_all()
    except CarouselError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return {
        "success": run.status == BatchStatus.COMPLETED,
        "run": run.to_dict(),
        "slots": [_slot_view(slot) for slot in session.active_slots()],
    }


@app.post("/api/ideas/convert")
async def convert_idea(req: IdeaRequest, request: Request) -> dict:
    """Replace the active slide prompts with prompts written from an idea.

    Uses the session's slide count, prompt language and aspect ratio.

    Raises:
        HTTPException: with the error's status for a missing key, blank idea,
            service failure, unparseable reply, or wrong prompt count.
    """
    session = _session(request)
    configuration = session.configuration
    try:
        prompts = await IdeaToPromptsConverter(session).convert(
            req.idea,
            configuration.slot_count,
            configuration.prompt_language,
            configuration.aspect_ratio,
        )
    except CarouselError as e:
        session.notifier.error(IDEAS_KEY, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    session.notifier.info(IDEAS_KEY, f"Created {len(prompts)} prompts from your idea.")
    return {"success": True, "prompts": prompts, "all_prompts": list(session.prompts)}


@app.get("/api/export")
async def export_images(request: Request) -> Response:
    """Download every generated image of the active slides as one zip.

    Raises:
        HTTPException: 404 if no active slide has an image.
    """
    session = _session(request)
    try:
        archive = ArchiveExporter().export(session.active_images())
    except NoImages as e:
        session.notifier.error(EXPORT_KEY, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return Response(
        content=archive.data,
        media_type=archive.media_type,
        headers={"Content-Disposition": f'attachment; filename="{archive.filename}"'},
    )


@app.get("/api/notifications")
async def list_notifications(request: Request) -> dict:
    """Return pending notifications, oldest first."""
    session = _session(request)
    return {"notifications": [n.to_dict() for n in session.notifier.pending()]}


@app.delete("/api/notifications")
async def clear_notifications(request: Request) -> dict:
    """Clear pending notifications once the front end has shown them."""
    session = _session(request)
    cleared = session.notifier.drain()
    return {"success": True, "cleared": len(cleared)}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from
    :data:`~carousel_studio.core.config.config` (``CAROUSEL_SERVER_HOST``,
    ``CAROUSEL_SERVER_PORT``, ``CAROUSEL_LOG_LEVEL``).  Defaults to
    ``0.0.0.0:7860``.

    This function is registered as the ``carousel-studio`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "carousel_studio.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
