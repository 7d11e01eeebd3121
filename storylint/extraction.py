"""Metadata extraction: base body fields and the plugin extractor pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence

from .errors import BodyUnavailableError
from .logging import get_logger
from .models import ExtractedMetadata, Heading, Link, Location, ParsedFile

_HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


@dataclass(frozen=True)
class ExtractionContext:
    """Information handed to every extractor alongside the file body.

    ``header_lines`` and ``header_length`` describe the front matter stripped
    from the body; extractors add them to body positions to report file
    positions.
    """

    file_path: str
    header_lines: int = 0
    header_length: int = 0


MetadataExtractor = Callable[[str, ExtractionContext], Any]


def count_words(content: str) -> int:
    return len(content.split())


def extract_headings(content: str, *, header_lines: int = 0, header_length: int = 0) -> List[Heading]:
    headings: List[Heading] = []
    offset = 0
    for index, line in enumerate(content.split("\n")):
        match = _HEADING_PATTERN.match(line)
        if match:
            headings.append(
                Heading(
                    level=len(match.group(1)),
                    text=match.group(2).strip(),
                    location=Location(
                        line=header_lines + index + 1,
                        column=1,
                        offset=header_length + offset,
                    ),
                )
            )
        offset += len(line) + 1
    return headings


def extract_links(content: str, *, header_lines: int = 0, header_length: int = 0) -> List[Link]:
    return [
        Link(
            text=match.group(1),
            target=match.group(2).strip(),
            location=location_from_offset(
                content, match.start(), header_lines=header_lines, header_length=header_length
            ),
        )
        for match in _LINK_PATTERN.finditer(content)
    ]


def location_from_offset(
    content: str, offset: int, *, header_lines: int = 0, header_length: int = 0
) -> Location:
    """Convert a body offset into a 1-based file line/column location."""
    preceding = content[:offset]
    line_start = preceding.rfind("\n") + 1
    return Location(
        line=header_lines + preceding.count("\n") + 1,
        column=offset - line_start + 1,
        offset=header_length + offset,
    )


def populate_body_fields(
    metadata: ExtractedMetadata, content: str, *, header_lines: int = 0, header_length: int = 0
) -> None:
    metadata.word_count = count_words(content)
    metadata.headings = extract_headings(
        content, header_lines=header_lines, header_length=header_length
    )
    metadata.links = extract_links(content, header_lines=header_lines, header_length=header_length)
    metadata.body_available = True


def run_extractors(
    content: str,
    file_path: str,
    extractors: Mapping[str, MetadataExtractor],
    metadata: ExtractedMetadata,
    *,
    header_lines: int = 0,
    header_length: int = 0,
) -> None:
    """Run every extractor over ``content`` and store results on ``metadata``."""
    context = ExtractionContext(
        file_path=file_path, header_lines=header_lines, header_length=header_length
    )
    for key, extractor in extractors.items():
        metadata[key] = extractor(content, context)


class MetadataPipeline:
    """Applies plugin-contributed extractors to every parsed file.

    Extractors run in the order given, file by file. An exception raised by an
    extractor is not caught: it aborts the whole pass.
    """

    def __init__(self) -> None:
        self.logger = get_logger("extraction")

    def extract_from_files(
        self,
        files: Sequence[ParsedFile],
        extractors: Mapping[str, MetadataExtractor],
    ) -> Dict[str, ExtractedMetadata]:
        results: Dict[str, ExtractedMetadata] = {}
        for parsed in files:
            if extractors:
                if parsed.content is None:
                    raise BodyUnavailableError(parsed.path)
                run_extractors(
                    parsed.content,
                    parsed.path,
                    extractors,
                    parsed.metadata,
                    header_lines=parsed.header_lines,
                    header_length=parsed.header_length,
                )
            results[parsed.path] = parsed.metadata
        self.logger.debug(
            "Ran %d extractors over %d files", len(extractors), len(files)
        )
        return results


__all__ = [
    "ExtractionContext",
    "MetadataExtractor",
    "MetadataPipeline",
    "count_words",
    "extract_headings",
    "extract_links",
    "location_from_offset",
    "populate_body_fields",
    "run_extractors",
]
