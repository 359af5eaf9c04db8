"""Layered prompt composition for carousel slides.

The request sent to the image service for one slide is composed from five
parts in a fixed order.  The order is not interchangeable: the shared style
always leads and the ratio directive always trails.

Composition Order
-----------------
::

    [Preset base style]
    [Preset footer with "NN/MM" slide number]
    [Global prompt, omitted when blank]
    [Slide prompt]
    [Aspect ratio descriptor]

Each part is stripped and the parts are joined with single spaces.  Every
slide in a run shares the style and global text verbatim; only the footer
number and the slide prompt differ.

Usage
-----
::

    composed = compose(preset, configuration, session.slots.slot(1))
"""

from __future__ import annotations

from .errors import EmptyPrompt
from .models import Configuration, Slot
from .presets import StylePreset


def slide_label(index: int, slot_count: int) -> str:
    """Return the zero-padded ``NN/MM`` label for the slide at ``index``.

    Args:
        index: 0-based slide index.
        slot_count: Number of active slides in the run.

    Returns:
        Label such as ``"02/05"`` for index 1 of 5.
    """
    return f"{index + 1:02d}/{slot_count:02d}"


def compose(preset: StylePreset, configuration: Configuration, slot: Slot) -> str:
    """Compose the final image request for one slide.

    Args:
        preset: Style preset selected in the configuration.
        configuration: Shared carousel settings (global prompt, slot count,
            aspect ratio).
        slot: The slide being generated.

    Returns:
        The composed prompt string.

    Raises:
        EmptyPrompt: If the slide's own prompt is blank.
    """
    if slot.is_blank():
        raise EmptyPrompt(slot.index)

    parts: list[str] = [
        preset.base_prompt.strip(),
        preset.render_footer(slide_label(slot.index, configuration.slot_count)).strip(),
    ]

    global_prompt = configuration.global_prompt.strip()
    if global_prompt:
        parts.append(global_prompt)

    parts.append(slot.prompt.strip())
    parts.append(configuration.aspect_ratio.descriptor)

    composed = " ".join(part for part in parts if part)
    if not composed.strip():
        raise EmptyPrompt(slot.index)
    return composed
