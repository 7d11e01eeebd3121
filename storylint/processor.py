"""Turns explicit paths or discovery patterns into parsed files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Sequence

from .discovery import FileDiscovery
from .logging import get_logger
from .models import ParsedFile
from .reader import FileReader


class FileProcessor:
    """Discovers and reads files, attaching base metadata to each.

    Reader failures are not caught: the first unreadable file aborts the call.
    """

    def __init__(
        self,
        reader: FileReader | None = None,
        discovery: FileDiscovery | None = None,
    ) -> None:
        self.reader = reader or FileReader()
        self.discovery = discovery or FileDiscovery()
        self.logger = get_logger("processor")

    def resolve_paths(
        self,
        files: Optional[Sequence[str]] = None,
        *,
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        base_dir: str | os.PathLike[str] | None = None,
    ) -> List[str]:
        """Use the explicit file list when given, else discover from patterns.

        Relative entries in ``files`` are taken relative to ``base_dir``.
        """
        if files:
            base = Path(base_dir).expanduser() if base_dir is not None else Path.cwd()
            return [str(base / Path(path).expanduser()) for path in files]
        return self.discovery.discover(include, exclude, base_dir)

    def process_paths(self, paths: Sequence[str]) -> List[ParsedFile]:
        parsed_files: List[ParsedFile] = []
        for path in paths:
            resolved = str(Path(path).expanduser().resolve())
            metadata = self.reader.extract_metadata(resolved)
            info = self.reader.cached_file(resolved)
            if info is None and metadata.body_available:
                info = self.reader.read_file(resolved)
            if info is None:
                parsed_files.append(ParsedFile(path=resolved, metadata=metadata))
                continue
            parsed_files.append(
                ParsedFile(
                    path=resolved,
                    metadata=metadata,
                    content=info.content,
                    header_lines=info.header_lines,
                    header_length=info.header_length,
                )
            )
        self.logger.debug("Processed %d files", len(parsed_files))
        return parsed_files

    def process_files(
        self,
        files: Optional[Sequence[str]] = None,
        *,
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        base_dir: str | os.PathLike[str] | None = None,
    ) -> List[ParsedFile]:
        paths = self.resolve_paths(files, include=include, exclude=exclude, base_dir=base_dir)
        return self.process_paths(paths)


__all__ = ["FileProcessor"]
