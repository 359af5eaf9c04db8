"""Turn a free-text idea into one prompt per slide.

The text service is asked for a JSON object ``{"prompts": [...]}`` with exactly
as many entries as there are active slides.  The reply is handled in two
steps:

1. **Extraction**: the substring from the first ``{`` to the last ``}`` is
   parsed as JSON.  No brace pair, or a substring that is not one valid JSON
   document (for example two separate objects in one reply), is a
   :class:`ParseError`.
2. **Validation**: the parsed value must match :class:`PromptsPayload`
   strictly: an object whose ``prompts`` is a list of strings, with exactly
   ``slot_count`` entries.  Anything else is :class:`InvalidFormat`.

Only after both steps succeed are the active prompts overwritten.  Prompts
beyond the active slide count and all generated images are left alone.
Nothing is retried.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from .errors import (
    CredentialMissing,
    EmptyInput,
    InvalidFormat,
    InvalidSlotCount,
    ParseError,
    ServiceError,
)
from .models import SLOT_COUNTS, AspectRatio, PromptLanguage
from .session import CarouselSession

logger = logging.getLogger(__name__)

IDEAS_KEY = "ideas"

INSTRUCTION_TEMPLATE = """\
You write prompts for an AI image generator that creates Instagram carousel slides.
Turn the idea below into exactly {count} image prompts, one per slide, in order.
Write every prompt in {language}.
The images will use a {ratio}; describe compositions that suit it.
Do not describe the overall visual style or slide numbers; those are added separately.

Respond with only a JSON object of this form, with exactly {count} strings:
{{"prompts": ["prompt for slide 1", "..."]}}

Idea:
{idea}
"""


class PromptsPayload(BaseModel):
    """Expected shape of the text service reply."""

    model_config = ConfigDict(extra="ignore", strict=True)

    prompts: list[StrictStr]


def build_instruction(idea: str, slot_count: int, language: PromptLanguage, aspect_ratio: AspectRatio) -> str:
    return INSTRUCTION_TEMPLATE.format(
        count=slot_count,
        language=language.display_name,
        ratio=aspect_ratio.descriptor,
        idea=idea.strip(),
    )


def extract_json(reply: str) -> object:
    """Parse the span from the first ``{`` to the last ``}`` of ``reply``.

    Raises:
        ParseError: If there is no such span or it is not valid JSON.
    """
    start = reply.find("{")
    end = reply.rfind("}")
    if start == -1 or end < start:
        raise ParseError("The AI response did not contain a JSON object.", raw_output=reply)
    try:
        return json.loads(reply[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"The AI response was not valid JSON: {e.msg}", raw_output=reply) from e


def parse_prompts(reply: str, slot_count: int) -> list[str]:
    """Extract and validate exactly ``slot_count`` prompts from ``reply``.

    Raises:
        ParseError: If no JSON object can be parsed.
        InvalidFormat: If the object does not match the prompts contract.
    """
    data = extract_json(reply)
    try:
        payload = PromptsPayload.model_validate(data)
    except ValidationError as e:
        raise InvalidFormat(
            'The AI response must be an object with a "prompts" list of strings.'
        ) from e

    if len(payload.prompts) != slot_count:
        raise InvalidFormat(
            f"Expected {slot_count} prompts but the AI returned {len(payload.prompts)}."
        )
    return payload.prompts


class IdeaToPromptsConverter:
    """Rewrite the active slide prompts from an idea."""

    def __init__(self, session: CarouselSession):
        self.session = session

    async def convert(
        self,
        idea: str,
        slot_count: int,
        language: PromptLanguage,
        aspect_ratio: AspectRatio,
    ) -> list[str]:
        """Ask the text service for prompts and write them into the session.

        Args:
            idea: Free-text idea for the whole carousel.
            slot_count: Number of prompts to request and overwrite.
            language: Language the prompts are written in.
            aspect_ratio: Ratio mentioned to the model as context.

        Returns:
            The new prompts, one per active slide.

        Raises:
            CredentialMissing: If no API key is configured.
            EmptyInput: If ``idea`` is blank.
            InvalidSlotCount: If ``slot_count`` is not a supported slide count.
            ServiceError: If the text service fails.
            ParseError: If the reply contains no parseable JSON object.
            InvalidFormat: If the JSON does not match the prompts contract.
        """
        if not self.session.credential_present or self.session.text_service is None:
            raise CredentialMissing()
        if not idea or not idea.strip():
            raise EmptyInput()
        if slot_count not in SLOT_COUNTS:
            raise InvalidSlotCount(slot_count, SLOT_COUNTS)

        instruction = build_instruction(idea, slot_count, language, aspect_ratio)
        logger.info(f"Converting idea into {slot_count} prompts ({language.value})")
        try:
            reply = await self.session.text_service.generate_text(instruction)
        except ServiceError:
            raise
        except Exception as e:
            logger.error(f"Text service call failed: {e}", exc_info=True)
            raise ServiceError(str(e)) from e

        prompts = parse_prompts(reply, slot_count)
        # Re-read session state after the await before overwriting
        self.session.set_prompts(0, prompts)
        logger.info(f"Overwrote prompts 1-{slot_count} from idea")
        return prompts
