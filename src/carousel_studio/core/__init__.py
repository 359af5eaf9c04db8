"""Core generation engine for Carousel Studio.

Architecture Overview
---------------------
The core module is layered from pure data up to the orchestration logic:

1. **Configuration Layer** (config.py):
   - Environment-based settings using Pydantic Settings (CAROUSEL_ prefix)

2. **Data Layer** (models.py, presets.py, errors.py):
   - Configuration, immutable SlotState, ImageResult, SessionSnapshot
   - Data-driven style preset registry
   - User-facing error taxonomy

3. **Storage Layer** (kv_store.py, persistence.py):
   - SQLite key-value store
   - Per-field session mirror and pre-batch snapshots

4. **Engine Layer** (prompt_composer.py, orchestrator.py, idea_converter.py, archive.py):
   - Layered prompt composition
   - Sequential, fail-fast batch generation
   - Idea-to-prompts conversion with strict reply validation
   - Zip export of generated images

5. **Service Layer** (services.py, gemini.py):
   - Protocols for the image and text services and their Gemini implementations

Usage Example
-------------
    from carousel_studio.core import CarouselSession, GenerationOrchestrator, config

    session = CarouselSession.from_config(config)
    session.set_prompt(0, "A cup of coffee on a desk")
    run = await GenerationOrchestrator(session).generate_all()
"""

from carousel_studio.core.archive import ArchiveExporter
from carousel_studio.core.config import CarouselConfig, config
from carousel_studio.core.idea_converter import IdeaToPromptsConverter
from carousel_studio.core.orchestrator import BatchRun, BatchStatus, GenerationOrchestrator
from carousel_studio.core.prompt_composer import compose
from carousel_studio.core.session import CarouselSession

__all__ = [
    "ArchiveExporter",
    "BatchRun",
    "BatchStatus",
    "CarouselConfig",
    "CarouselSession",
    "GenerationOrchestrator",
    "IdeaToPromptsConverter",
    "compose",
    "config",
]
