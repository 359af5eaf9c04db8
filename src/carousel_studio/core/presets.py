"""Style preset registry.

A style preset is the shared look of a carousel: base style text, a footer
template carrying the slide number, and the global prompt the user starts from.
Presets are data, not code.  They are read from a JSON file at startup
(``data/presets.json`` inside the package by default) with this shape::

    {
      "presets": [
        {
          "id": "clean-minimal",
          "display_name": "Clean Minimal",
          "description": "...",
          "base_prompt": "...",
          "footer_template": "... {slide} ...",
          "default_global_prompt": "..."
        }
      ]
    }

The first preset in the file is the default.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import UnknownPreset

logger = logging.getLogger(__name__)

# Token in ``footer_template`` replaced by the "NN/MM" slide number.
SLIDE_TOKEN = "{slide}"


class StylePreset(BaseModel):
    """One named style bundle applied to every slide of a run."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    display_name: str
    description: str = ""
    base_prompt: str = Field(..., min_length=1)
    footer_template: str
    default_global_prompt: str = ""

    @field_validator("base_prompt")
    @classmethod
    def _base_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("base_prompt must not be blank")
        return value

    @field_validator("footer_template")
    @classmethod
    def _footer_has_token(cls, value: str) -> str:
        if SLIDE_TOKEN not in value:
            raise ValueError(f"footer_template must contain {SLIDE_TOKEN}")
        return value

    def render_footer(self, slide_label: str) -> str:
        return self.footer_template.replace(SLIDE_TOKEN, slide_label)


class PresetRegistry:
    """Ordered id → :class:`StylePreset` lookup."""

    def __init__(self, presets: list[StylePreset]):
        if not presets:
            raise ValueError("A preset registry needs at least one preset")
        self._presets: dict[str, StylePreset] = {}
        for preset in presets:
            if preset.id in self._presets:
                raise ValueError(f"Duplicate preset id: {preset.id}")
            self._presets[preset.id] = preset

    @classmethod
    def load(cls, path: Path) -> PresetRegistry:
        """Read and validate a preset file.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ValueError: If the file is not valid JSON or a preset is malformed.
        """
        with open(path, encoding="utf-8") as handle:
            raw = json.load(handle)

        records = raw.get("presets", []) if isinstance(raw, dict) else raw
        registry = cls([StylePreset.model_validate(record) for record in records])
        logger.info(f"Loaded {len(registry)} style presets from {path}")
        return registry

    def __len__(self) -> int:
        return len(self._presets)

    def __contains__(self, preset_id: object) -> bool:
        return preset_id in self._presets

    @property
    def default(self) -> StylePreset:
        return next(iter(self._presets.values()))

    def get(self, preset_id: str) -> StylePreset:
        try:
            return self._presets[preset_id]
        except KeyError:
            raise UnknownPreset(preset_id) from None

    def all(self) -> list[StylePreset]:
        return list(self._presets.values())
