"""Narrative consistency validation for collections of story documents."""

from .config import StoryLintConfig, ValidatorConfig, load_config
from .errors import BodyUnavailableError, ConfigError, FrontMatterError, PluginError, StoryLintError
from .models import (
    ExtractedMetadata,
    Issue,
    ParsedFile,
    Severity,
    ValidationResult,
    ValidatorResult,
)
from .orchestrator import ValidationOptions, ValidationOrchestrator

__version__ = "0.1.0"

__all__ = [
    "BodyUnavailableError",
    "ConfigError",
    "ExtractedMetadata",
    "FrontMatterError",
    "Issue",
    "ParsedFile",
    "PluginError",
    "Severity",
    "StoryLintConfig",
    "StoryLintError",
    "ValidationOptions",
    "ValidationOrchestrator",
    "ValidationResult",
    "ValidatorConfig",
    "ValidatorResult",
    "load_config",
]
