"""Validator plugin interface, registry and built-in analyses."""

from .base import BaseValidator, MetadataMap, ValidatorContext, ValidatorPlugin
from .characters import CharacterValidator, extract_character_data
from .link_graph import LinkGraphValidator
from .registry import ENTRY_POINT_GROUP, PluginRegistry, discover_plugins

__all__ = [
    "BaseValidator",
    "CharacterValidator",
    "ENTRY_POINT_GROUP",
    "LinkGraphValidator",
    "MetadataMap",
    "PluginRegistry",
    "ValidatorContext",
    "ValidatorPlugin",
    "discover_plugins",
    "extract_character_data",
]
