"""Tests for carousel_studio.core.models — configuration and slot state.

Tests cover:
- Configuration defaults and slot_count validation.
- Configuration immutability and with_changes().
- ImageResult data URI encoding.
- SlotState sizing, copy-on-write updates, and index checks.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from carousel_studio.core.models import (
    MAX_SLOTS,
    AspectRatio,
    Configuration,
    ImageResult,
    PromptLanguage,
    SessionSnapshot,
    SlotState,
)


class TestConfiguration:
    """Test the Configuration model."""

    def test_defaults(self):
        cfg = Configuration(style_preset_id="plain")
        assert cfg.aspect_ratio == AspectRatio.SQUARE
        assert cfg.slot_count == 5
        assert cfg.global_prompt == ""
        assert cfg.prompt_language == PromptLanguage.EN

    @pytest.mark.parametrize("count", [0, 2, 4, 6])
    def test_rejects_unsupported_slot_counts(self, count):
        with pytest.raises(ValidationError):
            Configuration(style_preset_id="plain", slot_count=count)

    def test_is_frozen(self):
        cfg = Configuration(style_preset_id="plain")
        with pytest.raises(ValidationError):
            cfg.slot_count = 3

    def test_with_changes_returns_validated_copy(self):
        cfg = Configuration(style_preset_id="plain")
        changed = cfg.with_changes(slot_count=3, aspect_ratio="4:5")
        assert changed.slot_count == 3
        assert changed.aspect_ratio == AspectRatio.PORTRAIT
        assert cfg.slot_count == 5

    def test_with_changes_validates(self):
        cfg = Configuration(style_preset_id="plain")
        with pytest.raises(ValidationError):
            cfg.with_changes(slot_count=4)

    def test_aspect_descriptors(self):
        assert AspectRatio.SQUARE.descriptor == "1:1 square ratio"
        assert AspectRatio.PORTRAIT.descriptor == "4:5 vertical ratio for Instagram post"


class TestImageResult:
    """Test ImageResult data URIs."""

    def test_data_uri(self):
        image = ImageResult(data=b"abc", mime_type="image/jpeg")
        assert image.data_uri == "data:image/jpeg;base64,YWJj"


class TestSlotState:
    """Test the immutable SlotState aggregate."""

    def test_always_max_slots_long(self):
        state = SlotState.from_prompts(["a", "b"])
        assert len(state.prompts) == MAX_SLOTS
        assert state.prompts == ("a", "b", "", "", "")
        assert state.images == (None,) * MAX_SLOTS

    def test_truncates_extra_prompts(self):
        state = SlotState.from_prompts(["1", "2", "3", "4", "5", "6"])
        assert state.prompts == ("1", "2", "3", "4", "5")

    def test_with_prompt_leaves_original_untouched(self):
        state = SlotState.from_prompts(["a", "b", "c"])
        updated = state.with_prompt(1, "B")
        assert updated.prompts[1] == "B"
        assert state.prompts[1] == "b"

    def test_with_loading_keeps_other_prompts(self):
        """Updating a loading flag carries forward prompts edited in between."""
        state = SlotState.from_prompts(["a", "b", "c"])
        state = state.with_prompt(2, "edited")
        state = state.with_loading(0, True)
        assert state.prompts[2] == "edited"
        assert state.busy

    def test_with_prompts_overwrites_range(self):
        state = SlotState.from_prompts(["1", "2", "3", "4", "5"])
        updated = state.with_prompts(0, ["A", "B", "C"])
        assert updated.prompts == ("A", "B", "C", "4", "5")

    def test_with_prompts_rejects_overflow(self):
        state = SlotState()
        with pytest.raises(IndexError):
            state.with_prompts(3, ["a", "b", "c"])

    def test_slot_view(self):
        image = ImageResult(data=b"x")
        state = SlotState.from_prompts(["a"]).with_image(0, image)
        slot = state.slot(0)
        assert slot.number == 1
        assert slot.image is image
        assert not slot.is_blank()
        assert state.slot(1).is_blank()

    @pytest.mark.parametrize("index", [-1, MAX_SLOTS])
    def test_index_out_of_range(self, index):
        with pytest.raises(IndexError):
            SlotState().slot(index)


class TestSessionSnapshot:
    def test_to_record(self):
        cfg = Configuration(style_preset_id="plain", slot_count=3)
        record = SessionSnapshot(configuration=cfg, prompts=("a", "", "c", "", "")).to_record()
        assert record["configuration"]["slot_count"] == 3
        assert record["configuration"]["aspect_ratio"] == "1:1"
        assert record["prompts"] == ["a", "", "c", "", ""]
        assert "created_at" in record
