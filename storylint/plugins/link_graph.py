"""Link-graph validator: broken links, orphaned documents, bidirectional links."""

from __future__ import annotations

import os
from collections import deque
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

from ..models import Issue, ParsedFile, ValidatorResult
from .base import BaseValidator, MetadataMap

DEFAULT_ENTRY_POINTS = ("README.md", "index.md")
_EXTERNAL_PREFIXES = ("http://", "https://", "//", "mailto:")


@dataclass
class LinkEdge:
    """One link from ``source`` to the resolved ``target`` path."""

    source: str
    target: str
    link_text: str
    line: int
    column: int
    valid: bool = False
    error: Optional[str] = None


@dataclass
class LinkNode:
    filepath: str
    title: Optional[str] = None
    outgoing_links: List[LinkEdge] = field(default_factory=list)
    incoming_links: List[LinkEdge] = field(default_factory=list)


def is_external_link(target: str) -> bool:
    return target.lower().startswith(_EXTERNAL_PREFIXES)


def resolve_link(source_file: str, target: str) -> str:
    """Resolve ``target`` against the directory of ``source_file``.

    Absolute targets are returned unchanged. A ``#fragment`` or ``?query``
    suffix is dropped before resolution.
    """
    cleaned = target.split("#", 1)[0].split("?", 1)[0]
    if cleaned.startswith("/"):
        return cleaned
    source_dir = os.path.dirname(source_file)
    return os.path.normpath(os.path.join(source_dir, cleaned))


class LinkGraphValidator(BaseValidator):
    """Builds a document link graph and checks it for structural problems.

    The graph is private to one ``validate`` call and rebuilt at entry, so
    overlapping calls on the same instance are not supported.
    """

    name = "link-graph"
    version = "0.1.0"

    def __init__(self) -> None:
        super().__init__()
        self.graph: Dict[str, LinkNode] = {}

    @property
    def check_orphans(self) -> bool:
        return bool(self.config.get("check_orphans", True))

    @property
    def entry_points(self) -> List[str]:
        configured = self.config.get("entry_points")
        if configured is None:
            return list(DEFAULT_ENTRY_POINTS)
        if isinstance(configured, str):
            return [configured]
        return [str(item) for item in configured]

    @property
    def skip_external(self) -> bool:
        return bool(self.config.get("skip_external", True))

    @property
    def skip_anchors(self) -> bool:
        return bool(self.config.get("skip_anchors", True))

    def validate(
        self, files: Sequence[ParsedFile], metadata: Optional[MetadataMap] = None
    ) -> ValidatorResult:
        self._build_nodes(files)
        errors = self._process_links(files)
        warnings = self._detect_orphans() if self.check_orphans else []
        info = self._detect_bidirectional_links()
        self.logger.debug(
            "Link graph: %d nodes, %d broken links, %d orphans",
            len(self.graph),
            len(errors),
            len(warnings),
        )
        return self.create_result(errors, warnings, info)

    def destroy(self) -> None:
        self.graph = {}

    def _build_nodes(self, files: Sequence[ParsedFile]) -> None:
        self.graph = {}
        for parsed in files:
            self.graph[parsed.path] = LinkNode(filepath=parsed.path, title=self._title_for(parsed))

    def _process_links(self, files: Sequence[ParsedFile]) -> List[Issue]:
        errors: List[Issue] = []
        for parsed in files:
            node = self.graph[parsed.path]
            for link in parsed.metadata.links:
                if self.skip_external and is_external_link(link.target):
                    continue
                if self.skip_anchors and link.target.startswith("#"):
                    continue

                edge = LinkEdge(
                    source=parsed.path,
                    target=resolve_link(parsed.path, link.target),
                    link_text=link.text,
                    line=link.location.line,
                    column=link.location.column,
                )
                target_node = self.graph.get(edge.target)
                if target_node is not None:
                    edge.valid = True
                    target_node.incoming_links.append(edge)
                else:
                    edge.error = f"Target file not found: {link.target}"
                    errors.append(
                        self.create_error(
                            "LINK001",
                            f'Broken link to "{link.target}"',
                            parsed.path,
                            link.location.line,
                            link.location.column,
                        )
                    )
                node.outgoing_links.append(edge)
        return errors

    def _is_entry_point(self, filepath: str) -> bool:
        return PurePath(filepath).name in self.entry_points

    def _detect_orphans(self) -> List[Issue]:
        reachable: Set[str] = set()
        queue: deque[str] = deque()
        for filepath in self.graph:
            if self._is_entry_point(filepath):
                reachable.add(filepath)
                queue.append(filepath)

        while queue:
            current = queue.popleft()
            for edge in self.graph[current].outgoing_links:
                if edge.valid and edge.target not in reachable:
                    reachable.add(edge.target)
                    queue.append(edge.target)

        return [
            self.create_warning(
                "LINK002",
                "Orphaned document - not reachable from any entry point",
                filepath,
            )
            for filepath in self.graph
            if filepath not in reachable and not self._is_entry_point(filepath)
        ]

    def _detect_bidirectional_links(self) -> List[Issue]:
        info: List[Issue] = []
        reported: Set[FrozenSet[str]] = set()
        for filepath, node in self.graph.items():
            for edge in node.outgoing_links:
                if not edge.valid or edge.target == filepath:
                    continue
                pair = frozenset((filepath, edge.target))
                if pair in reported:
                    continue
                target_node = self.graph[edge.target]
                if any(back.valid and back.target == filepath for back in target_node.outgoing_links):
                    reported.add(pair)
                    info.append(
                        self.create_info(
                            "LINK003",
                            f'Bidirectional link detected between "{PurePath(filepath).name}" '
                            f'and "{PurePath(edge.target).name}"',
                            filepath,
                            edge.line,
                        )
                    )
        return info

    @staticmethod
    def _title_for(parsed: ParsedFile) -> str:
        if parsed.metadata.title:
            return str(parsed.metadata.title)
        if parsed.metadata.headings:
            return parsed.metadata.headings[0].text
        return PurePath(parsed.path).stem


__all__ = ["LinkEdge", "LinkGraphValidator", "LinkNode", "is_external_link", "resolve_link"]
