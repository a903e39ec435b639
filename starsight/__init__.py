"""
STARSIGHT - Star Detection and Frame Quality Engine

Analyses raw monochrome astrophotography frames: locates stars, measures
their shape and brightness, and reports focus and frame quality.

Architecture:
    - starsight: core package (exceptions, logging, shared types)
    - services.image_analysis: the six-stage analysis pipeline
"""

__version__ = "0.1.0"
__author__ = "STARSIGHT contributors"

# Version tuple for programmatic comparison
VERSION_INFO = (0, 1, 0)

from starsight.exceptions import (
    StarsightError,
    ConfigurationError,
    InvalidInputError,
)

__all__ = [
    "StarsightError",
    "ConfigurationError",
    "InvalidInputError",
    "__version__",
    "VERSION_INFO",
]
