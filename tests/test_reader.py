"""Tests for storylint.reader."""

from __future__ import annotations

from pathlib import Path

import pytest

from storylint.errors import BodyUnavailableError, FrontMatterError
from storylint.reader import FileReader, split_front_matter

_CHAPTER = """\
---
title: The Arrival
author: R. Vance
tags: [opening, harbor]
---
# Chapter One

Katherine walked into the harbor office.
She carried the [map](./map.md) and a [letter](letters/first.md).

## Night
"""


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_read_small_file_returns_header_and_body(tmp_path: Path) -> None:
    path = _write(tmp_path / "chapter1.md", _CHAPTER)

    info = FileReader().read_file(path)

    assert info.path == str(path.resolve())
    assert info.size == path.stat().st_size
    assert info.front_matter["title"] == "The Arrival"
    assert info.front_matter["tags"] == ["opening", "harbor"]
    assert info.content is not None
    assert info.content.startswith("# Chapter One")
    assert info.header_lines == 5
    assert info.header_length == _CHAPTER.index("# Chapter One")


def test_read_file_without_header(tmp_path: Path) -> None:
    path = _write(tmp_path / "plain.md", "Just prose.\n")

    info = FileReader().read_file(path)

    assert info.front_matter == {}
    assert info.content == "Just prose.\n"
    assert (info.header_lines, info.header_length) == (0, 0)


def test_large_file_streams_header_only(tmp_path: Path) -> None:
    body = "Katherine walked on.\n" * 50
    path = _write(tmp_path / "epic.md", "---\ntitle: Epic\n---\n" + body)

    reader = FileReader(small_file_threshold=64)
    info = reader.read_file(path)

    assert info.front_matter == {"title": "Epic"}
    assert info.content is None
    assert reader.cached_content(path) is None


def test_extract_metadata_base_fields(tmp_path: Path) -> None:
    path = _write(tmp_path / "chapter1.md", _CHAPTER)

    metadata = FileReader().extract_metadata(path)

    assert metadata.title == "The Arrival"
    assert metadata.author == "R. Vance"
    assert metadata.tags == ["opening", "harbor"]
    assert metadata.body_available is True
    assert metadata.word_count == 18
    assert [(h.level, h.text, h.location.line) for h in metadata.headings] == [
        (1, "Chapter One", 6),
        (2, "Night", 11),
    ]
    assert [(link.text, link.target) for link in metadata.links] == [
        ("map", "./map.md"),
        ("letter", "letters/first.md"),
    ]
    first = metadata.links[0].location
    assert (first.line, first.column) == (9, 17)
    assert first.offset == _CHAPTER.index("[map]")
    assert metadata.headings[0].location.offset == _CHAPTER.index("# Chapter One")


def test_extract_metadata_runs_extractors_with_context(tmp_path: Path) -> None:
    path = _write(tmp_path / "chapter1.md", _CHAPTER)
    seen: list[str] = []

    def shouting(content: str, context) -> int:
        seen.append(context.file_path)
        return content.count("!")

    metadata = FileReader().extract_metadata(path, {"exclamations": shouting})

    assert metadata["exclamations"] == 0
    assert seen == [str(path.resolve())]


def test_large_file_metadata_has_header_fields_only(tmp_path: Path) -> None:
    body = "# Heading\n\n[link](other.md) words words words\n" * 20
    path = _write(tmp_path / "epic.md", "---\ntitle: Epic\ntags: saga\n---\n" + body)

    metadata = FileReader(small_file_threshold=128).extract_metadata(path)

    assert metadata.title == "Epic"
    assert metadata.tags == ["saga"]
    assert metadata.body_available is False
    assert metadata.word_count == 0
    assert metadata.headings == []
    assert metadata.links == []


def test_large_file_with_extractors_is_a_reported_failure(tmp_path: Path) -> None:
    path = _write(tmp_path / "epic.md", "---\ntitle: Epic\n---\n" + "text " * 100)

    reader = FileReader(small_file_threshold=64)

    with pytest.raises(BodyUnavailableError) as excinfo:
        reader.extract_metadata(path, {"noop": lambda content, context: None})
    assert "epic.md" in str(excinfo.value)


def test_metadata_is_cached_per_path(tmp_path: Path) -> None:
    path = _write(tmp_path / "chapter1.md", _CHAPTER)
    reader = FileReader()

    first = reader.extract_metadata(path)
    _write(path, "# Rewritten\n")
    second = reader.extract_metadata(path)

    assert second is first
    assert reader.cached_content(path) is not None


def test_cache_can_be_disabled(tmp_path: Path) -> None:
    path = _write(tmp_path / "chapter1.md", _CHAPTER)
    reader = FileReader(cache_enabled=False)

    first = reader.extract_metadata(path)
    _write(path, "# Rewritten\n")
    second = reader.extract_metadata(path)

    assert second is not first
    assert second.headings[0].text == "Rewritten"
    assert reader.cached_content(path) is None


def test_clear_cache(tmp_path: Path) -> None:
    path = _write(tmp_path / "chapter1.md", _CHAPTER)
    reader = FileReader()
    first = reader.extract_metadata(path)

    reader.clear_cache()

    assert reader.cached_content(path) is None
    assert reader.extract_metadata(path) is not first


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FileReader().read_file(tmp_path / "missing.md")


def test_extractors_see_header_offsets(tmp_path: Path) -> None:
    path = _write(tmp_path / "chapter1.md", _CHAPTER)
    seen: list[tuple[int, int]] = []

    def offsets(content: str, context) -> None:
        seen.append((context.header_lines, context.header_length))

    FileReader().extract_metadata(path, {"offsets": offsets})

    assert seen == [(5, _CHAPTER.index("# Chapter One"))]


def test_split_front_matter_keeps_blank_lines_after_header() -> None:
    text = "---\ntitle: Gap\n---\n\n\n  Indented [start](a.md)\n"

    split = split_front_matter(text)

    assert split.header == {"title": "Gap"}
    assert split.body == "  Indented [start](a.md)\n"
    assert split.header_lines == 5
    assert text[split.header_length :] == split.body


def test_header_only_document_has_empty_body() -> None:
    split = split_front_matter("---\ntitle: Stub\n---\n")

    assert split.header == {"title": "Stub"}
    assert split.body == ""


def test_invalid_header_raises_front_matter_error() -> None:
    with pytest.raises(FrontMatterError):
        split_front_matter("---\ntitle: [unclosed\n---\nbody\n")


def test_unclosed_header_is_treated_as_body() -> None:
    split = split_front_matter("---\ntitle: x\nno closing\n")

    assert split.header == {}
    assert split.body.startswith("---")
    assert split.header_lines == 0


def test_header_must_open_on_first_line() -> None:
    text = "Intro line\n---\ntitle: nope\n---\n"

    split = split_front_matter(text)

    assert split.header == {}
    assert split.body == text
