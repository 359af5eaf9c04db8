"""Slide generation against the image service.

:class:`GenerationOrchestrator` drives one slide (``generate_slot``) or the
whole carousel (``generate_all``).

Batch Semantics
---------------
A batch walks the active slides left to right and awaits each request before
issuing the next, so at most one image request is in flight per batch.
Slides with a blank prompt are skipped without an error.  The first failing
slide aborts the batch: slides that already finished keep their images,
exactly one error is reported, and no later slide is attempted.
Every slide of a batch is composed from the configuration captured when the
batch started, so configuration edits made mid-run apply to the next run.

The run is tracked as an explicit state machine::

    IDLE ──start──▶ RUNNING(current_index) ──┬──abort──▶ ABORTED(failed_index, error)
                                             └─complete─▶ COMPLETED

Loading Flags
-------------
A slot's loading flag is raised just before its request and lowered in a
``finally`` block, so it is cleared on success, on a reported failure, and
when the failure is re-raised to abort a batch.

Concurrency
-----------
A batch refuses to start while any slot is loading.  A single-slot regenerate
is not checked against a running batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .errors import CarouselError, CredentialMissing, GenerationBusy, ServiceError
from .models import DEFAULT_MIME_TYPE, Configuration, ImageResult, SessionSnapshot
from .notifications import slot_key
from .services import ContentPart
from .session import CarouselSession

logger = logging.getLogger(__name__)

BATCH_KEY = "batch"


class BatchStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    ABORTED = "aborted"
    COMPLETED = "completed"


@dataclass
class BatchRun:
    """State of one batch run.

    Attributes:
        slot_count: Number of active slides when the run started.
        status: Current state of the run.
        current_index: Slide being generated while RUNNING.
        failed_index: Slide that aborted the run, if ABORTED.
        error: Message of the aborting error, if ABORTED.
        generated: Slides that received an image, in completion order.
        skipped: Slides skipped for having a blank prompt.
        snapshot: Session snapshot taken before the run.
    """

    slot_count: int
    status: BatchStatus = BatchStatus.IDLE
    current_index: int | None = None
    failed_index: int | None = None
    error: str | None = None
    generated: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    snapshot: SessionSnapshot | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def _require(self, *allowed: BatchStatus) -> None:
        if self.status not in allowed:
            raise RuntimeError(f"Invalid batch transition from {self.status.value}")

    def start(self) -> None:
        self._require(BatchStatus.IDLE)
        self.status = BatchStatus.RUNNING
        self.started_at = datetime.now()

    def advance(self, index: int) -> None:
        self._require(BatchStatus.RUNNING)
        self.current_index = index

    def skip(self, index: int) -> None:
        self._require(BatchStatus.RUNNING)
        self.skipped.append(index)

    def mark_generated(self, index: int) -> None:
        self._require(BatchStatus.RUNNING)
        self.generated.append(index)

    def abort(self, index: int, error: str) -> None:
        self._require(BatchStatus.RUNNING)
        self.status = BatchStatus.ABORTED
        self.failed_index = index
        self.error = error
        self.current_index = None
        self.finished_at = datetime.now()

    def complete(self) -> None:
        self._require(BatchStatus.RUNNING)
        self.status = BatchStatus.COMPLETED
        self.current_index = None
        self.finished_at = datetime.now()

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "slot_count": self.slot_count,
            "current_index": self.current_index,
            "failed_index": self.failed_index,
            "error": self.error,
            "generated": list(self.generated),
            "skipped": list(self.skipped),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


def first_image(parts: list[ContentPart]) -> ImageResult:
    """Return the first part carrying inline data as an ImageResult.

    Later data-bearing parts are ignored.

    Raises:
        ServiceError: If no part carries data.
    """
    for part in parts:
        if part.has_data:
            return ImageResult(data=part.data, mime_type=part.mime_type or DEFAULT_MIME_TYPE)
    raise ServiceError("The image service returned no image data.")


class GenerationOrchestrator:
    """Generate slide images for a :class:`CarouselSession`."""

    def __init__(self, session: CarouselSession):
        self.session = session

    def _check_credential(self) -> None:
        if not self.session.credential_present or self.session.image_service is None:
            raise CredentialMissing()

    async def _request_image(self, prompt: str) -> ImageResult:
        try:
            parts = await self.session.image_service.generate_image(prompt)
        except ServiceError:
            raise
        except Exception as e:
            logger.error(f"Image service call failed: {e}", exc_info=True)
            raise ServiceError(str(e)) from e
        return first_image(parts)

    async def generate_slot(
        self,
        index: int,
        raise_on_failure: bool = False,
        configuration: Configuration | None = None,
    ) -> ImageResult | None:
        """Generate (or regenerate) the image for one slide.

        Args:
            index: 0-based slide index.
            raise_on_failure: Re-raise after reporting instead of returning None.
            configuration: Settings to compose with; defaults to the current
                configuration.

        Returns:
            The new image, or None if the slide failed and the error was only
            reported.

        Raises:
            CarouselError: Only when ``raise_on_failure`` is True.
        """
        key = slot_key(index)
        try:
            self._check_credential()
            prompt = self.session.compose_prompt(index, configuration)
        except CarouselError as e:
            self.session.notifier.error(key, e.message)
            if raise_on_failure:
                raise
            return None

        logger.info(f"Generating image {index + 1}")
        self.session.set_loading(index, True)
        try:
            image = await self._request_image(prompt)
            # Re-read the session state after the await; prompts may have changed.
            self.session.set_image(index, image)
            logger.info(f"Image {index + 1} complete ({image.mime_type}, {len(image.data)} bytes)")
            return image
        except CarouselError as e:
            self.session.notifier.error(key, e.message)
            if raise_on_failure:
                raise
            return None
        finally:
            self.session.set_loading(index, False)

    async def generate_all(self) -> BatchRun:
        """Generate every active slide in order, stopping at the first failure.

        Returns:
            The finished :class:`BatchRun` (COMPLETED or ABORTED).

        Raises:
            GenerationBusy: If a slot is still loading when the batch is requested.
        """
        if self.session.slots.busy:
            error = GenerationBusy()
            self.session.notifier.error(BATCH_KEY, error.message)
            raise error

        configuration = self.session.configuration
        run = BatchRun(slot_count=configuration.slot_count)
        run.snapshot = self.session.persistence.snapshot(configuration, self.session.prompts)
        run.start()
        self.session.last_run = run
        logger.info(f"Batch started for {run.slot_count} slides")

        for index in range(run.slot_count):
            if self.session.slots.slot(index).is_blank():
                run.skip(index)
                continue

            run.advance(index)
            try:
                await self.generate_slot(index, raise_on_failure=True, configuration=configuration)
            except CarouselError as e:
                run.abort(index, e.message)
                logger.warning(f"Batch aborted at image {index + 1}: {e.message}")
                return run
            run.mark_generated(index)

        run.complete()
        logger.info(f"Batch complete: generated={run.generated}, skipped={run.skipped}")
        return run
