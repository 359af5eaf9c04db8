"""Tests for carousel_studio.core.persistence and kv_store — session mirror.

Tests cover:
- KeyValueStore get/set round trip and replacement.
- Field-by-field configuration mirroring and reload.
- Forgiving loads: invalid values, unknown presets, corrupt prompts.
- Preset default global prompt on reload.
- Snapshot history append and cap.
"""

from __future__ import annotations

import json

from carousel_studio.core.kv_store import KeyValueStore
from carousel_studio.core.models import AspectRatio, Configuration, PromptLanguage
from carousel_studio.core.persistence import PROMPTS_KEY, SNAPSHOTS_KEY, SessionPersistence


class TestKeyValueStore:
    """Test the SQLite key-value store."""

    def test_missing_key_is_none(self, store):
        assert store.get("absent") is None

    def test_set_replaces_value(self, store):
        store.set("k", "one")
        store.set("k", "two")
        assert store.get("k") == "two"

    def test_values_survive_reopen(self, temp_dir):
        KeyValueStore(temp_dir / "s.db").set("k", "v")
        assert KeyValueStore(temp_dir / "s.db").get("k") == "v"

    def test_creates_parent_directory(self, temp_dir):
        store = KeyValueStore(temp_dir / "nested" / "dir" / "s.db")
        store.set("k", "v")
        assert (temp_dir / "nested" / "dir" / "s.db").exists()


class TestLoadDefaults:
    def test_empty_store_uses_default_preset(self, persistence):
        configuration, prompts = persistence.load()
        assert configuration.style_preset_id == "plain"
        assert configuration.global_prompt == "plain default"
        assert configuration.slot_count == 5
        assert prompts == ["", "", "", "", ""]


class TestMirror:
    """Test saving and reloading the live session."""

    def test_configuration_round_trip(self, persistence):
        cfg = Configuration(
            style_preset_id="loud",
            slot_count=3,
            aspect_ratio=AspectRatio.PORTRAIT,
            global_prompt="neon",
            prompt_language=PromptLanguage.KO,
        )
        persistence.save_configuration(cfg)
        loaded, _ = persistence.load()
        assert loaded == cfg

    def test_fields_are_stored_as_plain_strings(self, persistence, store):
        cfg = Configuration(style_preset_id="loud", slot_count=3)
        persistence.save_configuration(cfg)
        assert store.get("slot_count") == "3"
        assert store.get("aspect_ratio") == "1:1"
        assert store.get("style_preset_id") == "loud"

    def test_prompts_round_trip_unicode(self, persistence, store):
        persistence.save_prompts(["고양이", "", "猫", "", ""])
        assert "고양이" in store.get(PROMPTS_KEY)
        _, prompts = persistence.load()
        assert prompts == ["고양이", "", "猫", "", ""]

    def test_stored_preset_without_global_uses_preset_default(self, persistence, store):
        store.set("style_preset_id", "loud")
        configuration, _ = persistence.load()
        assert configuration.global_prompt == "loud default"

    def test_stored_global_prompt_wins(self, persistence, store):
        store.set("style_preset_id", "loud")
        store.set("global_prompt", "")
        configuration, _ = persistence.load()
        assert configuration.global_prompt == ""


class TestForgivingLoad:
    """Invalid persisted values fall back field by field."""

    def test_invalid_slot_count_falls_back(self, persistence, store):
        store.set("slot_count", "4")
        store.set("aspect_ratio", "4:5")
        configuration, _ = persistence.load()
        assert configuration.slot_count == 5
        assert configuration.aspect_ratio == AspectRatio.PORTRAIT

    def test_unknown_preset_falls_back(self, persistence, store):
        store.set("style_preset_id", "retired")
        configuration, _ = persistence.load()
        assert configuration.style_preset_id == "plain"
        assert configuration.global_prompt == "plain default"

    def test_corrupt_prompts_become_empty(self, persistence, store):
        store.set(PROMPTS_KEY, "{not json")
        _, prompts = persistence.load()
        assert prompts == [""] * 5

    def test_non_list_prompts_become_empty(self, persistence, store):
        store.set(PROMPTS_KEY, json.dumps({"a": 1}))
        _, prompts = persistence.load()
        assert prompts == [""] * 5

    def test_short_prompt_list_is_padded(self, persistence, store):
        store.set(PROMPTS_KEY, json.dumps(["a", 7]))
        _, prompts = persistence.load()
        assert prompts == ["a", "", "", "", ""]


class TestSnapshots:
    """Test the pre-batch snapshot history."""

    def test_snapshot_is_appended(self, persistence):
        cfg = Configuration(style_preset_id="plain", slot_count=3)
        snap = persistence.snapshot(cfg, ("a", "b", "c", "", ""))
        history = persistence.load_snapshots()
        assert len(history) == 1
        assert history[0]["prompts"] == ["a", "b", "c", "", ""]
        assert snap.configuration == cfg

    def test_history_is_capped(self, persistence):
        cfg = Configuration(style_preset_id="plain")
        for i in range(5):
            persistence.snapshot(cfg, (str(i), "", "", "", ""))
        history = persistence.load_snapshots()
        assert [record["prompts"][0] for record in history] == ["2", "3", "4"]

    def test_corrupt_history_restarts(self, persistence, store):
        store.set(SNAPSHOTS_KEY, "garbage")
        assert persistence.load_snapshots() == []

    def test_snapshots_do_not_change_live_state(self, persistence, store, small_registry):
        persistence.snapshot(Configuration(style_preset_id="loud", slot_count=1), ("x",) * 5)
        configuration, prompts = SessionPersistence(store, small_registry).load()
        assert configuration.style_preset_id == "plain"
        assert prompts == [""] * 5
