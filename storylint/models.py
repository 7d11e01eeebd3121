"""Core data models shared across storylint components."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class Location:
    """Position of a match inside a document body."""

    line: int
    column: int
    offset: int


@dataclass
class Heading:
    level: int
    text: str
    location: Location


@dataclass
class Link:
    text: str
    target: str
    location: Location


_BASE_KEYS = (
    "title",
    "author",
    "date",
    "tags",
    "word_count",
    "headings",
    "links",
    "body_available",
)


@dataclass
class ExtractedMetadata:
    """Per-file metadata: header fields, body fields and plugin extensions.

    ``body_available`` is False when the file was read with the streaming
    strategy, in which case ``word_count``, ``headings`` and ``links`` are left
    empty. Plugin extractor output lives in ``extensions`` and is reachable
    through mapping-style access alongside the base fields.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    date: Any = None
    tags: List[str] = field(default_factory=list)
    word_count: int = 0
    headings: List[Heading] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    body_available: bool = True
    extensions: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        if key in _BASE_KEYS:
            return getattr(self, key)
        return self.extensions[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in _BASE_KEYS:
            setattr(self, key, value)
        else:
            self.extensions[key] = value

    def __contains__(self, key: object) -> bool:
        return key in _BASE_KEYS or key in self.extensions

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def keys(self) -> Iterator[str]:
        yield from _BASE_KEYS
        yield from self.extensions

    def copy(self) -> "ExtractedMetadata":
        values = {item.name: getattr(self, item.name) for item in fields(self)}
        values["tags"] = list(self.tags)
        values["headings"] = list(self.headings)
        values["links"] = list(self.links)
        values["extensions"] = dict(self.extensions)
        return ExtractedMetadata(**values)


@dataclass
class FileInfo:
    """Raw result of reading one file.

    ``header_lines`` and ``header_length`` count the lines and characters that
    precede ``content`` in the file, so body positions map back to file
    positions.
    """

    path: str
    size: int
    modified: datetime
    front_matter: Dict[str, Any] = field(default_factory=dict)
    content: Optional[str] = None
    header_lines: int = 0
    header_length: int = 0


@dataclass
class ParsedFile:
    """A file ready for validation; ``content`` only for whole-file reads."""

    path: str
    metadata: ExtractedMetadata
    content: Optional[str] = None
    header_lines: int = 0
    header_length: int = 0


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Issue:
    """Single validation finding; ``code`` is namespaced ``<validator>:<RULE>``."""

    code: str
    message: str
    severity: Severity
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None


@dataclass
class ValidatorResult:
    """Findings produced by one validator plugin."""

    validator: str
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)
    info: List[Issue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class ValidationResult:
    """Aggregate outcome of a validation run."""

    valid: bool
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)
    info: List[Issue] = field(default_factory=list)


__all__ = [
    "ExtractedMetadata",
    "FileInfo",
    "Heading",
    "Issue",
    "Link",
    "Location",
    "ParsedFile",
    "Severity",
    "ValidationResult",
    "ValidatorResult",
]
