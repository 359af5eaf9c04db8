"""Tests for carousel_studio.core.session and notifications.

Tests cover:
- Session restore from persistence.
- Configuration updates: validation, unknown presets, preset reset rule.
- Prompt mutations are persisted; images and loading flags are not.
- Notifier keys, levels and draining.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from carousel_studio.core.errors import UnknownPreset
from carousel_studio.core.models import AspectRatio, ImageResult
from carousel_studio.core.notifications import Notifier, slot_key
from carousel_studio.core.session import CarouselSession


class TestSessionRestore:
    def test_restores_persisted_state(self, session, small_registry, persistence):
        session.update_configuration(slot_count=3, aspect_ratio=AspectRatio.PORTRAIT)
        session.set_prompt(1, "remember me")

        restored = CarouselSession(small_registry, persistence)
        assert restored.configuration.slot_count == 3
        assert restored.configuration.aspect_ratio == AspectRatio.PORTRAIT
        assert restored.prompts[1] == "remember me"

    def test_images_are_not_restored(self, session, small_registry, persistence):
        session.set_prompt(0, "a")
        session.set_image(0, ImageResult(data=b"x"))
        restored = CarouselSession(small_registry, persistence)
        assert restored.slots.images == (None,) * 5


class TestUpdateConfiguration:
    """Test CarouselSession.update_configuration()."""

    def test_changing_preset_resets_global_prompt(self, session):
        session.update_configuration(global_prompt="custom")
        session.update_configuration(style_preset_id="loud")
        assert session.configuration.global_prompt == "loud default"

    def test_explicit_global_prompt_wins_over_reset(self, session):
        session.update_configuration(style_preset_id="loud", global_prompt="mine")
        assert session.configuration.global_prompt == "mine"

    def test_same_preset_keeps_global_prompt(self, session):
        session.update_configuration(global_prompt="custom")
        session.update_configuration(style_preset_id="plain")
        assert session.configuration.global_prompt == "custom"

    def test_unknown_preset(self, session):
        with pytest.raises(UnknownPreset):
            session.update_configuration(style_preset_id="missing")
        assert session.configuration.style_preset_id == "plain"

    def test_invalid_value(self, session):
        with pytest.raises(ValidationError):
            session.update_configuration(slot_count=4)
        assert session.configuration.slot_count == 5

    def test_unknown_field(self, session):
        with pytest.raises(KeyError):
            session.update_configuration(colour="red")

    def test_only_changed_fields_are_written(self, session, store):
        session.update_configuration(slot_count=3)
        assert store.get("slot_count") == "3"
        assert store.get("aspect_ratio") is None

    def test_hidden_prompts_survive_count_changes(self, session):
        session.set_prompts(0, ["1", "2", "3", "4", "5"])
        session.update_configuration(slot_count=1)
        assert [s.prompt for s in session.active_slots()] == ["1"]
        session.update_configuration(slot_count=5)
        assert [s.prompt for s in session.active_slots()] == ["1", "2", "3", "4", "5"]


class TestSlotMutations:
    def test_active_images_follow_slot_count(self, session):
        session.update_configuration(slot_count=3)
        session.set_image(4, ImageResult(data=b"hidden"))
        assert session.active_images() == [None, None, None]

    def test_compose_prompt_uses_current_preset(self, session):
        session.set_prompt(0, "a fox")
        session.update_configuration(style_preset_id="loud")
        assert session.compose_prompt(0).startswith("LOUD STYLE [01/05]")


class TestNotifier:
    """Test the in-memory Notifier."""

    def test_slot_key_is_one_based(self):
        assert slot_key(0) == "slot-1"

    def test_errors_and_drain(self):
        notifier = Notifier()
        notifier.info("ideas", "done")
        notifier.error("slot-2", "failed")
        assert [n.key for n in notifier.errors()] == ["slot-2"]
        assert len(notifier.pending()) == 2

        drained = notifier.drain()
        assert [n.level for n in drained] == ["info", "error"]
        assert notifier.pending() == []

    def test_to_dict(self):
        note = Notifier().error("export", "nothing to export")
        data = note.to_dict()
        assert data["key"] == "export"
        assert data["level"] == "error"
        assert isinstance(data["created_at"], str)
