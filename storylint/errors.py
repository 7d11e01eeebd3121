"""Exception types raised by the validation core."""

from __future__ import annotations


class StoryLintError(RuntimeError):
    """Base class for failures raised by storylint itself."""


class BodyUnavailableError(StoryLintError):
    """Raised when body-derived metadata is requested for a streamed file."""

    def __init__(self, path: str, size: int | None = None, threshold: int | None = None) -> None:
        message = f"Body extraction unavailable for {path}"
        if size is not None and threshold is not None:
            message += f": {size} bytes exceeds the {threshold} byte whole-file threshold"
        super().__init__(message)
        self.path = path
        self.size = size
        self.threshold = threshold


class FrontMatterError(StoryLintError):
    """Raised when a document header is not valid YAML."""


class ConfigError(StoryLintError):
    """Raised when the configuration cannot be parsed or has the wrong shape."""


class PluginError(StoryLintError):
    """Raised when a validator plugin cannot be loaded or instantiated."""


__all__ = [
    "BodyUnavailableError",
    "ConfigError",
    "FrontMatterError",
    "PluginError",
    "StoryLintError",
]
