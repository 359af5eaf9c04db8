"""Carousel session: configuration, slot state, and their mutations.

A :class:`CarouselSession` is the single owner of the user's working state.
The orchestrator and idea converter read and write through it, and every
configuration or prompt mutation is mirrored to persistence immediately.

Slot state is replaced, never edited: each mutation reads the *current*
:class:`SlotState`, derives a new one, and assigns it back with no ``await``
in between.  Code that awaits a service call must therefore re-read
``session.slots`` afterwards instead of holding on to an older copy.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import CarouselConfig
from .errors import UnknownPreset
from .kv_store import KeyValueStore
from .models import MAX_SLOTS, Configuration, ImageResult, Slot, SlotState
from .notifications import Notifier
from .persistence import CONFIG_KEYS, SessionPersistence
from .presets import PresetRegistry
from .prompt_composer import compose
from .services import ImageService, TextService

logger = logging.getLogger(__name__)


class CarouselSession:
    """Working state of one carousel.

    Attributes:
        registry: Style presets available to the configuration.
        persistence: Mirror of configuration and prompts.
        notifier: Pending user-facing notifications.
        image_service: Image collaborator, or None without a credential.
        text_service: Text collaborator, or None without a credential.
        credential_present: Whether an API key was configured at startup.
        last_run: Most recent batch run (``BatchRun``), if any.
    """

    def __init__(
        self,
        registry: PresetRegistry,
        persistence: SessionPersistence,
        *,
        image_service: ImageService | None = None,
        text_service: TextService | None = None,
        credential_present: bool = False,
        notifier: Notifier | None = None,
    ):
        self.registry = registry
        self.persistence = persistence
        self.notifier = notifier or Notifier()
        self.image_service = image_service
        self.text_service = text_service
        self.credential_present = credential_present
        self.last_run: Any | None = None

        self.configuration, prompts = persistence.load()
        self.slots = SlotState.from_prompts(prompts)
        logger.info(
            f"Session loaded: preset={self.configuration.style_preset_id}, "
            f"slots={self.configuration.slot_count}, "
            f"ratio={self.configuration.aspect_ratio.value}"
        )

    @classmethod
    def from_config(cls, settings: CarouselConfig) -> CarouselSession:
        """Build a session, its store, and its Gemini services from settings."""
        registry = PresetRegistry.load(settings.resolved_presets_path)
        store = KeyValueStore(settings.resolved_store_path)
        persistence = SessionPersistence(store, registry, settings.snapshot_history)

        image_service = text_service = None
        if settings.has_credential:
            # google-genai is only needed once a credential is configured
            from .gemini import GeminiImageService, GeminiTextService, create_client

            client = create_client(settings.google_api_key)
            image_service = GeminiImageService(client, model=settings.image_model)
            text_service = GeminiTextService(client, model=settings.text_model)
        else:
            logger.warning("No Google API key configured; generation is disabled")

        return cls(
            registry,
            persistence,
            image_service=image_service,
            text_service=text_service,
            credential_present=settings.has_credential,
        )

    # -- Reads ------------------------------------------------------------

    @property
    def prompts(self) -> tuple[str, ...]:
        return self.slots.prompts

    def active_slots(self) -> list[Slot]:
        return self.slots.slots(self.configuration.slot_count)

    def active_images(self) -> list[ImageResult | None]:
        return list(self.slots.images[: self.configuration.slot_count])

    def compose_prompt(self, index: int, configuration: Configuration | None = None) -> str:
        """Compose the request the image service would receive for ``index``.

        Args:
            index: 0-based slide index.
            configuration: Settings to compose with.  A batch passes the
                configuration captured when it started; defaults to the
                current configuration.
        """
        configuration = configuration or self.configuration
        preset = self.registry.get(configuration.style_preset_id)
        return compose(preset, configuration, self.slots.slot(index))

    # -- Configuration mutations -------------------------------------------

    def update_configuration(self, **changes: Any) -> Configuration:
        """Apply validated configuration changes and persist the changed fields.

        Selecting a different preset also resets the global prompt to that
        preset's default, unless ``global_prompt`` is part of the same update.

        Raises:
            UnknownPreset: If ``style_preset_id`` is not in the registry.
            pydantic.ValidationError: If a value is not allowed.
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        unknown = set(changes) - set(CONFIG_KEYS)
        if unknown:
            raise KeyError(f"Unknown configuration fields: {sorted(unknown)}")

        preset_id = changes.get("style_preset_id")
        if preset_id is not None:
            if preset_id not in self.registry:
                raise UnknownPreset(preset_id)
            if preset_id != self.configuration.style_preset_id and "global_prompt" not in changes:
                changes["global_prompt"] = self.registry.get(preset_id).default_global_prompt

        updated = self.configuration.with_changes(**changes)
        changed = [
            name for name in CONFIG_KEYS
            if getattr(updated, name) != getattr(self.configuration, name)
        ]
        self.configuration = updated
        self.persistence.save_configuration(updated, changed)
        if changed:
            logger.info(f"Configuration updated: {', '.join(changed)}")
        return updated

    # -- Slot mutations ----------------------------------------------------

    def set_prompt(self, index: int, text: str) -> None:
        """Replace the prompt at ``index`` (any of the ``MAX_SLOTS`` slots)."""
        self.slots = self.slots.with_prompt(index, text)
        self.persistence.save_prompts(self.slots.prompts)

    def set_prompts(self, start: int, values: list[str]) -> None:
        """Overwrite consecutive prompts starting at ``start``."""
        self.slots = self.slots.with_prompts(start, values)
        self.persistence.save_prompts(self.slots.prompts)

    def set_image(self, index: int, image: ImageResult) -> None:
        self.slots = self.slots.with_image(index, image)

    def set_loading(self, index: int, flag: bool) -> None:
        self.slots = self.slots.with_loading(index, flag)

    def __repr__(self) -> str:
        return (
            f"CarouselSession(preset={self.configuration.style_preset_id}, "
            f"slots={self.configuration.slot_count}/{MAX_SLOTS}, "
            f"busy={self.slots.busy})"
        )
