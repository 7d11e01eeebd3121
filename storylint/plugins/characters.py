"""Character-consistency validator: alias resolution, introduction order, typos."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..config import ValidatorConfig
from ..extraction import ExtractionContext, MetadataExtractor
from ..models import Issue, Location, ParsedFile, ValidatorResult
from .base import BaseValidator, MetadataMap, ValidatorContext

CURRENT = "current"
RETROSPECTIVE = "retrospective"

_NAME = r"[A-Z][a-z]+"
_INTRO_PATTERN = re.compile(rf"^({_NAME}(?:\s+{_NAME})?)\s+(?:walked|entered|appeared|stood)\b")
_RETRO_PATTERN = re.compile(
    rf"(?i:\b(?:remember|remembered|thinking about|recalled|thought of))\s+(?:(?i:when)\s+)?({_NAME})"
)
_MENTION_PATTERN = re.compile(rf"\b({_NAME}(?:\s+{_NAME})?)\b")

COMMON_WORDS = frozenset(
    {
        # structural
        "The", "This", "That", "These", "Those", "Chapter", "Section", "Part",
        "Prologue", "Epilogue", "Book", "Scene",
        # pronouns and sentence starters
        "I", "He", "She", "It", "We", "They", "You", "His", "Her", "Its", "Our",
        "Their", "Your", "A", "An", "And", "But", "Or", "So", "Then", "When",
        "What", "Where", "Why", "How", "If", "Yes", "No",
        # weekdays
        "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
        # months
        "January", "February", "March", "April", "May", "June", "July", "August",
        "September", "October", "November", "December",
    }
)


@dataclass
class CharacterMention:
    name: str
    location: Location
    context: str = CURRENT


@dataclass
class CharacterMetadata:
    """Extractor output for one file."""

    mentions: List[CharacterMention] = field(default_factory=list)
    introductions: List[str] = field(default_factory=list)


@dataclass
class Appearance:
    file: str
    line: int


@dataclass
class MentionRecord:
    file: str
    line: int
    context: str


@dataclass
class CharacterInfo:
    name: str
    aliases: Set[str] = field(default_factory=set)
    first_appearance: Optional[Appearance] = None
    mentions: List[MentionRecord] = field(default_factory=list)


def _trim_common(name: str, stoplist: Set[str]) -> Tuple[str, int]:
    """Drop stoplisted words from a name or name pair.

    Returns the remaining name ("" when nothing is left) and its character
    offset inside the original match.
    """
    words = name.split()
    if len(words) == 2:
        first, second = words
        if first in stoplist:
            if second in stoplist:
                return "", 0
            return second, name.index(second, len(first))
        if second in stoplist:
            return first, 0
    if name in stoplist:
        return "", 0
    return name, 0


def extract_character_data(
    content: str,
    context: ExtractionContext | None = None,
    *,
    stoplist: Iterable[str] = COMMON_WORDS,
) -> CharacterMetadata:
    """Scan ``content`` line by line for introductions and mentions.

    Introductions are a name at line start followed by an entrance verb.
    Retrospective mentions follow a memory phrase. Every other capitalized
    name (or pair of names) outside ``stoplist`` is a current mention.
    Locations include the header offsets carried by ``context``.
    """
    stop = set(stoplist)
    result = CharacterMetadata()
    introduced: Set[str] = set()
    line_base = context.header_lines if context is not None else 0
    offset = context.header_length if context is not None else 0

    for index, line in enumerate(content.split("\n")):
        line_number = line_base + index + 1
        taken: Set[int] = set()

        intro = _INTRO_PATTERN.match(line)
        if intro:
            name, start = _trim_common(intro.group(1), stop)
            if name:
                if name not in introduced:
                    introduced.add(name)
                    result.introductions.append(name)
                result.mentions.append(
                    CharacterMention(
                        name=name,
                        location=Location(line=line_number, column=start + 1, offset=offset + start),
                        context=CURRENT,
                    )
                )
                taken.add(start)

        for retro in _RETRO_PATTERN.finditer(line):
            start = retro.start(1)
            if retro.group(1) in stop or start in taken:
                continue
            result.mentions.append(
                CharacterMention(
                    name=retro.group(1),
                    location=Location(line=line_number, column=start + 1, offset=offset + start),
                    context=RETROSPECTIVE,
                )
            )
            taken.add(start)

        for match in _MENTION_PATTERN.finditer(line):
            name, shift = _trim_common(match.group(1), stop)
            start = match.start(1) + shift
            if not name or start in taken:
                continue
            result.mentions.append(
                CharacterMention(
                    name=name,
                    location=Location(line=line_number, column=start + 1, offset=offset + start),
                    context=CURRENT,
                )
            )
            taken.add(start)

        offset += len(line) + 1

    return result


def is_similar(first: str, second: str) -> bool:
    """Loose typo check: containment, or at most one edit between the names."""
    a = first.lower()
    b = second.lower()
    if a == b:
        return True
    if min(len(a), len(b)) >= 3 and (a in b or b in a):
        return True
    if abs(len(a) - len(b)) > 1:
        return False
    if len(a) == len(b):
        return sum(1 for x, y in zip(a, b) if x != y) <= 1
    shorter, longer = (a, b) if len(a) < len(b) else (b, a)
    for position in range(len(longer)):
        if longer[:position] + longer[position + 1 :] == shorter:
            return True
    return False


class CharacterValidator(BaseValidator):
    """Tracks characters across files and flags naming and ordering problems.

    ``validate`` runs two passes: build global character state from every
    file, then check every file against it. State is reset at the start of
    each call, so overlapping calls on one instance are not supported.

    File order for "mentioned before introduction" checks comes from the
    ``ordering`` option: ``"lexical"`` (default) compares file paths as
    strings, ``"input"`` uses the order files were passed in. Files named in
    the ``sequence`` option always rank first, in the listed order.
    """

    name = "character-consistency"
    version = "0.1.0"

    def __init__(self) -> None:
        super().__init__()
        self.characters: Dict[str, CharacterInfo] = {}
        self._alias_map: Dict[str, str] = {}
        self._configured: Dict[str, Set[str]] = {}
        self._stoplist: frozenset[str] = COMMON_WORDS

    def initialize(self, config: ValidatorConfig, context: Optional[ValidatorContext] = None) -> None:
        super().initialize(config, context)
        self._alias_map = {}
        self._configured = {}
        aliases = config.get("aliases") or {}
        if not isinstance(aliases, Mapping):
            raise TypeError("character-consistency 'aliases' must map names to alias lists")
        for canonical, names in aliases.items():
            canonical = str(canonical)
            alias_list = [names] if isinstance(names, str) else [str(item) for item in names or []]
            self._configured[canonical] = set(alias_list)
            self._alias_map[canonical.lower()] = canonical
            for alias in alias_list:
                self._alias_map[alias.lower()] = canonical
        extra = config.get("ignore_words") or []
        self._stoplist = COMMON_WORDS | frozenset(str(word) for word in extra)

    def get_metadata_extractors(self) -> Dict[str, MetadataExtractor]:
        return {"characters": self._extract}

    def _extract(self, content: str, context: ExtractionContext) -> CharacterMetadata:
        return extract_character_data(content, context, stoplist=self._stoplist)

    def canonical_name(self, name: str) -> str:
        return self._alias_map.get(name.lower(), name)

    def validate(
        self, files: Sequence[ParsedFile], metadata: Optional[MetadataMap] = None
    ) -> ValidatorResult:
        ranks = self._rank_files(files)
        ordered = sorted(files, key=lambda parsed: ranks[parsed.path])

        self._build_state(ordered, metadata)
        errors: List[Issue] = []
        for parsed in ordered:
            errors.extend(self._validate_file(parsed, metadata, ranks))
        self.logger.debug(
            "Tracked %d characters across %d files", len(self.characters), len(files)
        )
        return self.create_result(errors)

    def destroy(self) -> None:
        self.characters = {}

    def _character_data(self, parsed: ParsedFile, metadata: Optional[MetadataMap]) -> Optional[CharacterMetadata]:
        source = metadata.get(parsed.path) if metadata else None
        if source is None:
            source = parsed.metadata
        data = source.get("characters")
        return data if isinstance(data, CharacterMetadata) else None

    def _build_state(self, files: Sequence[ParsedFile], metadata: Optional[MetadataMap]) -> None:
        self.characters = {
            canonical: CharacterInfo(name=canonical, aliases=set(aliases))
            for canonical, aliases in self._configured.items()
        }
        for parsed in files:
            data = self._character_data(parsed, metadata)
            if data is None:
                continue

            for name in data.introductions:
                canonical = self.canonical_name(name)
                character = self.characters.get(canonical)
                if character is None:
                    character = CharacterInfo(name=canonical, aliases={name})
                    self.characters[canonical] = character
                if character.first_appearance is None:
                    line = next(
                        (mention.location.line for mention in data.mentions if mention.name == name),
                        1,
                    )
                    character.first_appearance = Appearance(file=parsed.path, line=line)

            for mention in data.mentions:
                character = self.characters.get(self.canonical_name(mention.name))
                if character is None:
                    continue
                character.mentions.append(
                    MentionRecord(file=parsed.path, line=mention.location.line, context=mention.context)
                )
                if mention.name != character.name:
                    character.aliases.add(mention.name)

    def _validate_file(
        self,
        parsed: ParsedFile,
        metadata: Optional[MetadataMap],
        ranks: Mapping[str, Tuple[int, int, str]],
    ) -> List[Issue]:
        data = self._character_data(parsed, metadata)
        if data is None:
            return []

        errors: List[Issue] = []
        for mention in data.mentions:
            if mention.context == RETROSPECTIVE:
                continue
            character = self.characters.get(self.canonical_name(mention.name))
            line = mention.location.line
            column = mention.location.column

            if character is None:
                similar = self.find_similar(mention.name)
                if similar:
                    errors.append(
                        self.create_error(
                            "CHAR001",
                            f'Inconsistent character name: "{mention.name}" might be "{similar}"',
                            parsed.path,
                            line,
                            column,
                        )
                    )
            elif character.first_appearance is None:
                errors.append(
                    self.create_error(
                        "CHAR002",
                        f'Character "{mention.name}" mentioned but not introduced',
                        parsed.path,
                        line,
                        column,
                    )
                )
            elif self._sorts_before(parsed.path, character.first_appearance.file, ranks):
                errors.append(
                    self.create_error(
                        "CHAR002",
                        f'Character "{mention.name}" mentioned before introduction in '
                        f"{character.first_appearance.file}",
                        parsed.path,
                        line,
                        column,
                    )
                )
        return errors

    def find_similar(self, name: str) -> Optional[str]:
        """Return the canonical name of a known character resembling ``name``."""
        for canonical, character in self.characters.items():
            if is_similar(name, canonical):
                return canonical
            if any(is_similar(name, alias) for alias in character.aliases):
                return canonical
        return None

    @staticmethod
    def _sorts_before(path: str, other: str, ranks: Mapping[str, Tuple[int, int, str]]) -> bool:
        if path not in ranks or other not in ranks:
            return path < other
        return ranks[path] < ranks[other]

    def _rank_files(self, files: Sequence[ParsedFile]) -> Dict[str, Tuple[int, int, str]]:
        ordering = str(self.config.get("ordering", "lexical")).lower()
        if ordering not in {"lexical", "input"}:
            raise ValueError(f"Unknown character ordering '{ordering}'; expected 'lexical' or 'input'")
        sequence = [str(item) for item in self.config.get("sequence") or []]

        ranks: Dict[str, Tuple[int, int, str]] = {}
        for index, parsed in enumerate(files):
            position = _sequence_position(parsed.path, sequence)
            if position is not None:
                ranks[parsed.path] = (0, position, parsed.path)
            elif ordering == "input":
                ranks[parsed.path] = (1, index, parsed.path)
            else:
                ranks[parsed.path] = (1, 0, parsed.path)
        return ranks


def _sequence_position(path: str, sequence: Sequence[str]) -> Optional[int]:
    posix = PurePath(path).as_posix()
    for position, entry in enumerate(sequence):
        entry_posix = PurePath(entry).as_posix()
        if posix == entry_posix or posix.endswith("/" + entry_posix.removeprefix("./")):
            return position
    return None


__all__ = [
    "CharacterInfo",
    "CharacterMention",
    "CharacterMetadata",
    "CharacterValidator",
    "COMMON_WORDS",
    "extract_character_data",
    "is_similar",
]
