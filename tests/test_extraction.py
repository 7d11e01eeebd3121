"""Tests for storylint.extraction."""

from __future__ import annotations

import pytest

from storylint.errors import BodyUnavailableError
from storylint.extraction import (
    MetadataPipeline,
    count_words,
    extract_headings,
    extract_links,
    location_from_offset,
)
from storylint.models import ExtractedMetadata, ParsedFile
from tests._fixtures.story_builder import parsed_file


def test_extract_headings_levels_and_offsets() -> None:
    content = "# One\ntext\n###### Six\n####### Seven\n#NoSpace\n"

    headings = extract_headings(content)

    assert [(h.level, h.text) for h in headings] == [(1, "One"), (6, "Six")]
    assert headings[1].location.line == 3
    assert headings[1].location.offset == len("# One\ntext\n")
    assert headings[1].location.column == 1


def test_extract_links_locations() -> None:
    content = "Intro line\nSee [the map](maps/harbor.md) and [home](../README.md).\n"

    links = extract_links(content)

    assert [(link.text, link.target) for link in links] == [
        ("the map", "maps/harbor.md"),
        ("home", "../README.md"),
    ]
    assert (links[0].location.line, links[0].location.column) == (2, 5)
    assert links[1].location.offset == content.index("[home]")


def test_locations_shift_by_header_offsets() -> None:
    content = "# Title\n\nSee [gone](./missing.md)\n"

    links = extract_links(content, header_lines=4, header_length=40)
    headings = extract_headings(content, header_lines=4, header_length=40)

    assert (links[0].location.line, links[0].location.column) == (7, 5)
    assert links[0].location.offset == 40 + content.index("[gone]")
    assert (headings[0].location.line, headings[0].location.offset) == (5, 40)


def test_pipeline_passes_header_offsets_to_extractors() -> None:
    parsed = ParsedFile(
        path="/story/a.md",
        metadata=ExtractedMetadata(),
        content="Body.\n",
        header_lines=3,
        header_length=21,
    )
    seen = []

    MetadataPipeline().extract_from_files(
        [parsed], {"where": lambda content, context: seen.append(context)}
    )

    assert [(c.file_path, c.header_lines, c.header_length) for c in seen] == [
        ("/story/a.md", 3, 21)
    ]


def test_count_words_ignores_extra_whitespace() -> None:
    assert count_words("  one\ttwo\n\nthree  ") == 3
    assert count_words("") == 0


def test_location_from_offset_first_line() -> None:
    location = location_from_offset("abc\ndef", 2)

    assert (location.line, location.column, location.offset) == (1, 3, 2)


def test_pipeline_merges_every_extractor_into_metadata() -> None:
    files = [
        parsed_file("/story/a.md", "Alpha beta.\n"),
        parsed_file("/story/b.md", "Gamma.\n"),
    ]
    extractors = {
        "length": lambda content, context: len(content),
        "source": lambda content, context: context.file_path,
    }

    metadata = MetadataPipeline().extract_from_files(files, extractors)

    assert list(metadata) == ["/story/a.md", "/story/b.md"]
    assert metadata["/story/a.md"]["length"] == len("Alpha beta.\n")
    assert metadata["/story/b.md"]["source"] == "/story/b.md"
    assert files[0].metadata.extensions["source"] == "/story/a.md"
    assert metadata["/story/a.md"].word_count == 2


def test_pipeline_extractor_failure_aborts_pass() -> None:
    calls: list[str] = []

    def flaky(content: str, context) -> None:
        calls.append(context.file_path)
        raise ValueError("boom")

    files = [parsed_file("/story/a.md", "A\n"), parsed_file("/story/b.md", "B\n")]

    with pytest.raises(ValueError, match="boom"):
        MetadataPipeline().extract_from_files(files, {"flaky": flaky})
    assert calls == ["/story/a.md"]


def test_pipeline_rejects_streamed_files_when_extractors_requested() -> None:
    streamed = ParsedFile(
        path="/story/epic.md",
        metadata=ExtractedMetadata(title="Epic", body_available=False),
        content=None,
    )

    with pytest.raises(BodyUnavailableError):
        MetadataPipeline().extract_from_files([streamed], {"x": lambda c, ctx: 1})

    result = MetadataPipeline().extract_from_files([streamed], {})
    assert result["/story/epic.md"].title == "Epic"


def test_metadata_mapping_access() -> None:
    metadata = ExtractedMetadata(title="T")
    metadata["characters"] = {"n": 1}

    assert metadata["title"] == "T"
    assert "characters" in metadata
    assert metadata.get("missing") is None
    with pytest.raises(KeyError):
        metadata["missing"]
