"""Shared pytest fixtures for Carousel Studio tests."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from carousel_studio.core.config import DEFAULT_PRESETS_PATH
from carousel_studio.core.kv_store import KeyValueStore
from carousel_studio.core.persistence import SessionPersistence
from carousel_studio.core.presets import PresetRegistry, StylePreset
from carousel_studio.core.services import ContentPart
from carousel_studio.core.session import CarouselSession

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


class FakeImageService:
    """In-memory image service.

    Every call is recorded in ``prompts``.  Responses are taken from
    ``responses`` in order; an Exception instance in that list is raised
    instead of returned.  With no queued response a single PNG part is
    returned.
    """

    def __init__(self, responses: list | None = None):
        self.responses = list(responses or [])
        self.prompts: list[str] = []

    async def generate_image(self, prompt: str) -> list[ContentPart]:
        self.prompts.append(prompt)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return [ContentPart(data=PNG_BYTES, mime_type="image/png")]


class FakeTextService:
    """In-memory text service returning a fixed reply."""

    def __init__(self, reply: str = '{"prompts": []}', error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.instructions: list[str] = []

    async def generate_text(self, instruction: str) -> str:
        self.instructions.append(instruction)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def registry() -> PresetRegistry:
    """The packaged preset registry."""
    return PresetRegistry.load(DEFAULT_PRESETS_PATH)


@pytest.fixture
def small_registry() -> PresetRegistry:
    """A two-preset registry with predictable text for composition tests."""
    return PresetRegistry(
        [
            StylePreset(
                id="plain",
                display_name="Plain",
                base_prompt="BASE STYLE",
                footer_template="footer {slide}",
                default_global_prompt="plain default",
            ),
            StylePreset(
                id="loud",
                display_name="Loud",
                base_prompt="LOUD STYLE",
                footer_template="[{slide}]",
                default_global_prompt="loud default",
            ),
        ]
    )


@pytest.fixture
def store(temp_dir: Path) -> KeyValueStore:
    return KeyValueStore(temp_dir / "session.db")


@pytest.fixture
def persistence(store: KeyValueStore, small_registry: PresetRegistry) -> SessionPersistence:
    return SessionPersistence(store, small_registry, snapshot_history=3)


@pytest.fixture
def image_service() -> FakeImageService:
    return FakeImageService()


@pytest.fixture
def text_service() -> FakeTextService:
    return FakeTextService()


@pytest.fixture
def session(
    small_registry: PresetRegistry,
    persistence: SessionPersistence,
    image_service: FakeImageService,
    text_service: FakeTextService,
) -> CarouselSession:
    """A session with fake services and a configured credential."""
    return CarouselSession(
        small_registry,
        persistence,
        image_service=image_service,
        text_service=text_service,
        credential_present=True,
    )


@pytest.fixture
def offline_session(small_registry: PresetRegistry, persistence: SessionPersistence) -> CarouselSession:
    """A session started without an API key."""
    return CarouselSession(small_registry, persistence)


@pytest.fixture
def test_client(session: CarouselSession):
    """FastAPI TestClient bound to the fake-service session.

    Yields:
        TestClient instance for the application
    """
    from fastapi.testclient import TestClient

    from carousel_studio.api.main import app

    app.state.session = session
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.state.session = None
