from __future__ import annotations


class WavprintError(Exception):
    """Base class for every failure of a render run.

    ``stage`` names the pipeline stage that failed so front ends can
    report it without inspecting the exception type.
    """
    stage: str = "render"


class ConfigError(WavprintError):
    """Raised when configuration validation fails."""
    stage = "config"


class DecodeError(WavprintError):
    """Input file missing, unreadable, or not a valid audio container."""
    stage = "decode"


class InsufficientSignalError(WavprintError):
    """Signal too short for the requested window / pixel configuration."""
    stage = "plan"


class TransformFailure(WavprintError):
    """A worker failed while transforming or reducing its window."""
    stage = "transform"

    def __init__(self, message: str, index: int | None = None):
        super().__init__(message)
        self.index = index


class IncompleteImageError(WavprintError):
    """The assembler could not fill every grid cell exactly once."""
    stage = "assemble"


class EncodeError(WavprintError):
    """Resizing, encoding, or writing the output image failed."""
    stage = "encode"
