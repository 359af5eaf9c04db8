"""Carousel Studio - layered-prompt Instagram carousel generation with Gemini."""

__version__ = "0.1.0"

from carousel_studio.core.config import CarouselConfig, config

__all__ = [
    "CarouselConfig",
    "config",
]
