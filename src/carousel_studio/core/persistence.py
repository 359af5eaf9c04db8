"""Session persistence on top of the key-value store.

Live state is mirrored field by field: each configuration field has its own
key and is written on its own when it changes, and the prompt array is stored
JSON-encoded under ``prompts``.  A restart reads these keys back through
:meth:`SessionPersistence.load`.

Separately, :meth:`SessionPersistence.snapshot` appends a composite record to
``session_snapshots`` right before each batch run.  Snapshots are an audit
trail of what was sent to the image service; they are never read back into
the live session.

Loading is intentionally forgiving, field by field:

- a missing key falls back to its default
- a value that fails validation (unknown ratio, slot count 4, ...) falls back
  to its default and is logged
- a corrupt or non-list ``prompts`` value becomes empty prompts
- a prompt list of the wrong length is padded or truncated to ``MAX_SLOTS``

Generated images are not persisted; they live only in the running session.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from .kv_store import KeyValueStore
from .models import MAX_SLOTS, Configuration, SessionSnapshot
from .presets import PresetRegistry

logger = logging.getLogger(__name__)

# Configuration fields mirrored as individual keys.
CONFIG_KEYS = (
    "aspect_ratio",
    "slot_count",
    "style_preset_id",
    "global_prompt",
    "prompt_language",
)
PROMPTS_KEY = "prompts"
SNAPSHOTS_KEY = "session_snapshots"


def default_configuration(registry: PresetRegistry) -> Configuration:
    """Configuration used when nothing has been persisted yet."""
    preset = registry.default
    return Configuration(
        style_preset_id=preset.id,
        global_prompt=preset.default_global_prompt,
    )


class SessionPersistence:
    """Mirror configuration and prompts into a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore, registry: PresetRegistry, snapshot_history: int = 20):
        self.store = store
        self.registry = registry
        self.snapshot_history = snapshot_history

    # -- Live mirror --------------------------------------------------------

    def save_field(self, name: str, configuration: Configuration) -> None:
        """Persist one configuration field as a plain string value."""
        if name not in CONFIG_KEYS:
            raise KeyError(f"Not a persisted configuration field: {name}")
        value = configuration.model_dump(mode="json")[name]
        self.store.set(name, str(value))

    def save_configuration(self, configuration: Configuration, fields=CONFIG_KEYS) -> None:
        for name in fields:
            self.save_field(name, configuration)

    def save_prompts(self, prompts) -> None:
        self.store.set(PROMPTS_KEY, json.dumps(list(prompts), ensure_ascii=False))

    def load(self) -> tuple[Configuration, list[str]]:
        """Read the live session back, defaulting anything missing or invalid.

        Returns:
            Tuple of ``(configuration, prompts)`` where ``prompts`` always has
            ``MAX_SLOTS`` entries.
        """
        configuration = default_configuration(self.registry)
        preset_loaded = False

        for name in CONFIG_KEYS:
            raw = self.store.get(name)
            if raw is None:
                continue
            try:
                candidate = configuration.with_changes(**{name: raw})
            except ValidationError:
                logger.warning(f"Ignoring invalid persisted value for {name}: {raw!r}")
                continue
            if name == "style_preset_id" and raw not in self.registry:
                logger.warning(f"Persisted preset {raw!r} no longer exists, using default")
                continue
            if name == "style_preset_id":
                preset_loaded = True
            configuration = candidate

        # A stored preset without a stored global prompt starts from that
        # preset's default text.
        if preset_loaded and self.store.get("global_prompt") is None:
            preset = self.registry.get(configuration.style_preset_id)
            configuration = configuration.with_changes(global_prompt=preset.default_global_prompt)

        return configuration, self._load_prompts()

    def _load_prompts(self) -> list[str]:
        raw = self.store.get(PROMPTS_KEY)
        prompts: list = []
        if raw is not None:
            try:
                prompts = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Persisted prompts are not valid JSON, starting empty")
                prompts = []
        if not isinstance(prompts, list):
            prompts = []

        cleaned = [p if isinstance(p, str) else "" for p in prompts[:MAX_SLOTS]]
        return cleaned + [""] * (MAX_SLOTS - len(cleaned))

    # -- Pre-batch audit trail ---------------------------------------------

    def snapshot(self, configuration: Configuration, prompts) -> SessionSnapshot:
        """Record configuration and prompts as they are right before a batch.

        The newest ``snapshot_history`` records are kept, oldest first.
        """
        snap = SessionSnapshot(configuration=configuration, prompts=tuple(prompts))
        history = self.load_snapshots()
        history.append(snap.to_record())
        history = history[-self.snapshot_history:]
        self.store.set(SNAPSHOTS_KEY, json.dumps(history, ensure_ascii=False))
        logger.info(f"Saved session snapshot ({len(history)} kept)")
        return snap

    def load_snapshots(self) -> list[dict]:
        raw = self.store.get(SNAPSHOTS_KEY)
        if raw is None:
            return []
        try:
            history = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Snapshot history is not valid JSON, starting a new one")
            return []
        return history if isinstance(history, list) else []
