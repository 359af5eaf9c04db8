"""Data models for Carousel Studio session state.

The session is made of two parts:

- :class:`Configuration`: the user's choices that apply to every slide
  (aspect ratio, slide count, style preset, global prompt, prompt language).
  It is an immutable, validated pydantic model.
- :class:`SlotState`: the per-slide prompts, generated images, and loading
  flags.  It is an immutable aggregate: every change produces a new instance,
  and callers swap the new instance in place of the old one.  Because nothing
  mutates a SlotState in place, an update to one slot's loading flag can never
  overwrite a prompt edited elsewhere in the meantime, as long as the update
  starts from the *current* state.

The three SlotState arrays are always ``MAX_SLOTS`` long, whatever the
configured slide count, so hidden prompts survive switching the count down and
back up.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

# Size of the backing prompt/image/loading arrays.
MAX_SLOTS = 5

# Slide counts offered to the user.
SLOT_COUNTS = (1, 3, 5)

DEFAULT_MIME_TYPE = "image/png"


class AspectRatio(str, Enum):
    """Output aspect ratio for every slide in the carousel."""

    SQUARE = "1:1"
    PORTRAIT = "4:5"

    @property
    def descriptor(self) -> str:
        """Text appended to each composed prompt to request this ratio."""
        return ASPECT_DESCRIPTORS[self]


ASPECT_DESCRIPTORS = {
    AspectRatio.SQUARE: "1:1 square ratio",
    AspectRatio.PORTRAIT: "4:5 vertical ratio for Instagram post",
}


class PromptLanguage(str, Enum):
    """Language the idea converter writes prompts in."""

    EN = "en"
    KO = "ko"
    JA = "ja"

    @property
    def display_name(self) -> str:
        return LANGUAGE_NAMES[self]


LANGUAGE_NAMES = {
    PromptLanguage.EN: "English",
    PromptLanguage.KO: "Korean",
    PromptLanguage.JA: "Japanese",
}


class Configuration(BaseModel):
    """Settings shared by every slide in a carousel.

    Attributes:
        aspect_ratio: Output ratio, square or 4:5 portrait.
        slot_count: Number of active slides (1, 3 or 5).
        style_preset_id: Identifier of the selected style preset.
        global_prompt: Modifier text applied to every slide (may be empty).
        prompt_language: Language used when converting an idea into prompts.
    """

    model_config = ConfigDict(frozen=True)

    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    slot_count: int = MAX_SLOTS
    style_preset_id: str
    global_prompt: str = ""
    prompt_language: PromptLanguage = PromptLanguage.EN

    @field_validator("slot_count")
    @classmethod
    def _check_slot_count(cls, value: int) -> int:
        if value not in SLOT_COUNTS:
            raise ValueError(f"slot_count must be one of {SLOT_COUNTS}, got {value}")
        return value

    def with_changes(self, **changes: Any) -> Configuration:
        """Return a re-validated copy with ``changes`` applied."""
        return Configuration.model_validate({**self.model_dump(), **changes})


@dataclass(frozen=True)
class ImageResult:
    """A generated image: raw bytes plus the mime type the service reported."""

    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    @property
    def data_uri(self) -> str:
        """The image as a ``data:`` URI suitable for an ``<img src>``."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class Slot:
    """Read-only view of one slide."""

    index: int
    prompt: str = ""
    image: ImageResult | None = None
    loading: bool = False

    @property
    def number(self) -> int:
        """1-based slide number shown to the user."""
        return self.index + 1

    def is_blank(self) -> bool:
        return not self.prompt.strip()


def _fixed(values, fill) -> tuple:
    values = list(values)[:MAX_SLOTS]
    return tuple(values + [fill] * (MAX_SLOTS - len(values)))


@dataclass(frozen=True)
class SlotState:
    """Immutable per-slide state, always sized to ``MAX_SLOTS``.

    Use the ``with_*`` methods to derive a changed copy.
    """

    prompts: tuple[str, ...] = ("",) * MAX_SLOTS
    images: tuple[ImageResult | None, ...] = (None,) * MAX_SLOTS
    loading: tuple[bool, ...] = (False,) * MAX_SLOTS

    def __post_init__(self) -> None:
        object.__setattr__(self, "prompts", _fixed(self.prompts, ""))
        object.__setattr__(self, "images", _fixed(self.images, None))
        object.__setattr__(self, "loading", _fixed(self.loading, False))

    @classmethod
    def from_prompts(cls, prompts) -> SlotState:
        return cls(prompts=tuple(prompts))

    def slot(self, index: int) -> Slot:
        _check_index(index)
        return Slot(
            index=index,
            prompt=self.prompts[index],
            image=self.images[index],
            loading=self.loading[index],
        )

    def slots(self, count: int = MAX_SLOTS) -> list[Slot]:
        return [self.slot(i) for i in range(count)]

    @property
    def busy(self) -> bool:
        """True while any slot has a request in flight."""
        return any(self.loading)

    def with_prompt(self, index: int, text: str) -> SlotState:
        _check_index(index)
        prompts = list(self.prompts)
        prompts[index] = text
        return replace(self, prompts=tuple(prompts))

    def with_prompts(self, start: int, values) -> SlotState:
        """Overwrite prompts from ``start`` onwards with ``values``."""
        values = list(values)
        if values:
            _check_index(start)
            _check_index(start + len(values) - 1)
        prompts = list(self.prompts)
        prompts[start:start + len(values)] = values
        return replace(self, prompts=tuple(prompts))

    def with_image(self, index: int, image: ImageResult | None) -> SlotState:
        _check_index(index)
        images = list(self.images)
        images[index] = image
        return replace(self, images=tuple(images))

    def with_loading(self, index: int, flag: bool) -> SlotState:
        _check_index(index)
        loading = list(self.loading)
        loading[index] = flag
        return replace(self, loading=tuple(loading))


def _check_index(index: int) -> None:
    if not 0 <= index < MAX_SLOTS:
        raise IndexError(f"Slot index must be 0-{MAX_SLOTS - 1}, got {index}")


@dataclass(frozen=True)
class SessionSnapshot:
    """Configuration and prompts captured right before a batch run."""

    configuration: Configuration
    prompts: tuple[str, ...]
    created_at: datetime = field(default_factory=datetime.now)

    def to_record(self) -> dict:
        return {
            "created_at": self.created_at.isoformat(),
            "configuration": self.configuration.model_dump(mode="json"),
            "prompts": list(self.prompts),
        }
