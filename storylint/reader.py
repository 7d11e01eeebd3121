"""File reading with a size-based whole-file or streaming strategy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from .config import DEFAULT_SMALL_FILE_THRESHOLD
from .errors import BodyUnavailableError, FrontMatterError
from .extraction import MetadataExtractor, populate_body_fields, run_extractors
from .logging import get_logger
from .models import ExtractedMetadata, FileInfo

_HANDLER = YAMLHandler()


@dataclass
class FrontMatterSplit:
    """Header mapping plus the body, which starts at line ``header_lines + 1``."""

    header: Dict[str, Any] = field(default_factory=dict)
    body: str = ""
    header_lines: int = 0
    header_length: int = 0


def split_front_matter(text: str, *, source: str = "<string>") -> FrontMatterSplit:
    """Split a ``---`` delimited YAML header from the body.

    A header must open on the first line. Text without one, or whose header
    never closes, is returned whole as the body. The body keeps its first
    line intact so columns match the file.
    """
    if not _HANDLER.detect(text):
        return FrontMatterSplit(body=text)
    try:
        post = frontmatter.loads(text, handler=_HANDLER)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Invalid front matter in {source}: {exc}") from exc

    content = post.content.strip()
    if content:
        # The stripped body ends where the stripped text does.
        content_start = len(text.rstrip()) - len(content)
        start = text.rfind("\n", 0, content_start) + 1
    else:
        start = len(text)
    return FrontMatterSplit(
        header=dict(post.metadata),
        body=text[start:],
        header_lines=text.count("\n", 0, start),
        header_length=start,
    )


def _as_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return [str(value)]


class FileReader:
    """Reads story files and extracts their metadata.

    Files up to ``small_file_threshold`` bytes are read whole and their body is
    cached. Larger files are streamed only until the header closes, so
    body-derived metadata is unavailable for them. Caches are per path, live
    for the life of the reader and are emptied by :meth:`clear_cache`.
    """

    def __init__(
        self,
        *,
        small_file_threshold: int = DEFAULT_SMALL_FILE_THRESHOLD,
        cache_enabled: bool = True,
    ) -> None:
        self.small_file_threshold = small_file_threshold
        self.cache_enabled = cache_enabled
        self.logger = get_logger("reader")
        self._metadata_cache: Dict[str, ExtractedMetadata] = {}
        self._body_cache: Dict[str, FileInfo] = {}

    def read_file(self, file_path: str | Path) -> FileInfo:
        """Return size, mtime, header and (for small files) the body."""
        resolved = Path(file_path).expanduser().resolve()
        stat_result = resolved.stat()
        info = FileInfo(
            path=str(resolved),
            size=stat_result.st_size,
            modified=datetime.fromtimestamp(stat_result.st_mtime),
        )

        if stat_result.st_size <= self.small_file_threshold:
            text = resolved.read_text(encoding="utf-8")
            split = split_front_matter(text, source=info.path)
            info.front_matter = split.header
            info.content = split.body
            info.header_lines = split.header_lines
            info.header_length = split.header_length
            if self.cache_enabled:
                self._body_cache[info.path] = info
        else:
            self.logger.debug(
                "Streaming header of %s (%d bytes > %d)",
                info.path,
                stat_result.st_size,
                self.small_file_threshold,
            )
            info.front_matter = self._stream_front_matter(resolved)
        return info

    def extract_metadata(
        self,
        file_path: str | Path,
        extractors: Optional[Mapping[str, MetadataExtractor]] = None,
    ) -> ExtractedMetadata:
        """Return header fields, body fields and every extractor's output.

        Raises :class:`BodyUnavailableError` when extractors are supplied for a
        file above the whole-file threshold.
        """
        key = str(Path(file_path).expanduser().resolve())
        if self.cache_enabled:
            cached = self._metadata_cache.get(key)
            if cached is not None:
                return cached

        info = self.read_file(key)
        metadata = ExtractedMetadata(
            title=info.front_matter.get("title"),
            author=info.front_matter.get("author"),
            date=info.front_matter.get("date"),
            tags=_as_tags(info.front_matter.get("tags")),
        )

        if info.content is not None:
            offsets = {"header_lines": info.header_lines, "header_length": info.header_length}
            populate_body_fields(metadata, info.content, **offsets)
            if extractors:
                run_extractors(info.content, info.path, extractors, metadata, **offsets)
        else:
            metadata.body_available = False
            if extractors:
                raise BodyUnavailableError(info.path, info.size, self.small_file_threshold)

        if self.cache_enabled:
            self._metadata_cache[key] = metadata
        return metadata

    def cached_file(self, file_path: str | Path) -> Optional[FileInfo]:
        """Return the cached whole-file read of ``file_path``, if any."""
        return self._body_cache.get(str(Path(file_path).expanduser().resolve()))

    def cached_content(self, file_path: str | Path) -> Optional[str]:
        info = self.cached_file(file_path)
        return info.content if info is not None else None

    def clear_cache(self) -> None:
        self._metadata_cache.clear()
        self._body_cache.clear()

    @staticmethod
    def _stream_front_matter(path: Path) -> Dict[str, Any]:
        # Read only up to the closing boundary; python-frontmatter parses the block.
        lines: List[str] = []
        with path.open("r", encoding="utf-8") as handle:
            first = handle.readline()
            if not _HANDLER.detect(first):
                return {}
            lines.append(first)
            for line in handle:
                lines.append(line)
                if _HANDLER.FM_BOUNDARY.match(line):
                    return split_front_matter("".join(lines), source=str(path)).header
        return {}


__all__ = ["FileReader", "FrontMatterSplit", "split_front_matter"]
