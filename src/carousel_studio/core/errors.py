"""Error taxonomy for Carousel Studio.

Every error raised by the generation engine derives from
:class:`CarouselError`.  The message is written for the user and is shown
verbatim in notifications and API responses; ``status_code`` tells the API
layer which HTTP status to answer with.
"""


class CarouselError(Exception):
    """User-facing error raised by the generation engine.

    The message is intended to be displayed directly to the user.
    """

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CredentialMissing(CarouselError):
    """No Google API key was configured for this process."""

    def __init__(self, message: str = "Google API key is not configured. Set CAROUSEL_GOOGLE_API_KEY in .env."):
        super().__init__(message)


class EmptyPrompt(CarouselError):
    """The prompt for a slot is blank."""

    def __init__(self, index: int):
        super().__init__(f"Enter a prompt for image {index + 1}.")
        self.index = index


class EmptyInput(CarouselError):
    """The idea text handed to the converter is blank."""

    def __init__(self, message: str = "Enter an idea to turn into prompts."):
        super().__init__(message)


class ServiceError(CarouselError):
    """An external AI service failed; the message is passed through verbatim."""

    status_code = 502


class ParseError(CarouselError):
    """The text service reply did not contain a parseable JSON object."""

    status_code = 502

    def __init__(self, message: str, raw_output: str = ""):
        super().__init__(message)
        self.raw_output = raw_output


class InvalidFormat(CarouselError):
    """The text service reply parsed but did not match the prompts contract."""

    status_code = 502


class NoImages(CarouselError):
    """Export was requested but no slot has an image."""

    status_code = 404

    def __init__(self, message: str = "There are no generated images to download."):
        super().__init__(message)


class GenerationBusy(CarouselError):
    """A batch run was requested while a slot is still generating."""

    status_code = 409

    def __init__(self, message: str = "Images are still being generated."):
        super().__init__(message)


class UnknownPreset(CarouselError):
    """The requested style preset is not in the registry."""

    def __init__(self, preset_id: str):
        super().__init__(f"Unknown style preset: {preset_id}")
        self.preset_id = preset_id


class InvalidSlotCount(CarouselError):
    """A slide count outside the supported choices was requested."""

    def __init__(self, slot_count: int, allowed: tuple[int, ...]):
        super().__init__(
            f"Slide count must be one of {', '.join(map(str, allowed))}, got {slot_count}."
        )
        self.slot_count = slot_count
