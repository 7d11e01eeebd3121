"""File discovery: include/exclude globs resolved into an ordered path list."""

from __future__ import annotations

import glob
import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Sequence, Set

from .logging import get_logger

_GLOB_CHARS = set("*?[")


def has_magic(pattern: str) -> bool:
    return any(char in _GLOB_CHARS for char in pattern)


def glob_match(path: str, pattern: str) -> bool:
    """Match a POSIX path the way ignore rules do.

    A pattern without ``/`` is tried against every path segment; one with a
    slash must match the whole path, where ``*`` also crosses ``/``.
    """
    if "/" not in pattern:
        return any(fnmatchcase(part, pattern) for part in path.split("/"))
    if fnmatchcase(path, pattern):
        return True
    # fnmatch requires a separator after "**", so "**/x" would never match a top-level "x".
    if pattern.startswith("**/"):
        return glob_match(path, pattern[3:])
    return False


def _is_excluded(rel_path: str, patterns: Sequence[str]) -> bool:
    # A pattern excludes a file when it matches the file or any parent directory.
    segments = rel_path.split("/")
    candidates = ["/".join(segments[: end]) for end in range(1, len(segments) + 1)]
    return any(glob_match(candidate, pattern) for pattern in patterns for candidate in candidates)


class FileDiscovery:
    """Resolves include/exclude patterns into deduplicated absolute file paths."""

    def __init__(self) -> None:
        self.logger = get_logger("discovery")

    def discover(
        self,
        include: Sequence[str],
        exclude: Sequence[str] = (),
        base_dir: str | os.PathLike[str] | None = None,
    ) -> List[str]:
        """Return matching files, newest modification time first."""
        base = Path(base_dir).expanduser().resolve() if base_dir is not None else Path.cwd()
        found: Set[str] = set()

        for pattern in include:
            matches = 0
            for match in self._expand(pattern, base):
                path = Path(match)
                if not path.is_absolute():
                    path = base / path
                path = path.resolve()
                if not path.is_file():
                    continue
                if exclude and _is_excluded(self._relative(path, base), exclude):
                    continue
                found.add(str(path))
                matches += 1
            self.logger.debug("Pattern %s matched %d files", pattern, matches)

        return self._sort_by_modification_time(found)

    def matches_patterns(self, file_path: str, patterns: Sequence[str]) -> bool:
        """Check ``file_path`` against globs (any path suffix) or plain substrings."""
        absolute = Path(file_path).expanduser().resolve().as_posix()
        for pattern in patterns:
            if has_magic(pattern):
                if glob_match(absolute, pattern):
                    return True
                if not pattern.startswith("/") and glob_match(absolute, f"**/{pattern}"):
                    return True
            elif pattern in absolute:
                return True
        return False

    @staticmethod
    def _expand(pattern: str, base: Path) -> Iterable[str]:
        if not has_magic(pattern):
            candidate = Path(pattern) if os.path.isabs(pattern) else base / pattern
            return [str(candidate)] if candidate.exists() else []
        return glob.glob(pattern, root_dir=base, recursive=True)

    @staticmethod
    def _relative(path: Path, base: Path) -> str:
        try:
            return path.relative_to(base).as_posix()
        except ValueError:
            return path.as_posix().lstrip("/")

    @staticmethod
    def _sort_by_modification_time(paths: Iterable[str]) -> List[str]:
        stamped = [(os.stat(path).st_mtime_ns, path) for path in paths]
        stamped.sort(key=lambda item: (-item[0], item[1]))
        return [path for _, path in stamped]


__all__ = ["FileDiscovery", "glob_match", "has_magic"]
