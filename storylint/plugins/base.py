"""Contract for validator plugins and shared helpers for building findings."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..config import ValidatorConfig
from ..extraction import MetadataExtractor
from ..logging import get_logger, validator_logger
from ..models import ExtractedMetadata, Issue, ParsedFile, Severity, ValidatorResult

MetadataMap = Mapping[str, ExtractedMetadata]


@dataclass
class ValidatorContext:
    """Services the orchestrator shares with plugins during a run."""

    logger: logging.Logger | logging.LoggerAdapter = field(default_factory=lambda: get_logger("plugins"))
    results_lookup: Callable[[str], Optional[ValidatorResult]] = lambda name: None
    metadata_lookup: Callable[[str], Optional[ExtractedMetadata]] = lambda path: None

    def get_results(self, validator_name: str) -> Optional[ValidatorResult]:
        """Return the result of a validator that already ran in this run."""
        return self.results_lookup(validator_name)

    def get_metadata(self, file_path: str) -> Optional[ExtractedMetadata]:
        return self.metadata_lookup(file_path)


@runtime_checkable
class ValidatorPlugin(Protocol):
    """Protocol implemented by every validator, built-in or external."""

    name: str
    version: str

    def initialize(self, config: ValidatorConfig, context: ValidatorContext) -> None:
        """Receive plugin options before a run."""

    def get_metadata_extractors(self) -> Dict[str, MetadataExtractor]:
        """Return named extractors to run over every file body."""

    def validate(
        self, files: Sequence[ParsedFile], metadata: Optional[MetadataMap] = None
    ) -> ValidatorResult:
        """Inspect the parsed files and return findings."""

    def destroy(self) -> None:
        """Release per-run resources."""


class BaseValidator(ABC):
    """Convenience base providing lifecycle defaults and issue builders."""

    name: str = ""
    version: str = "0.1.0"

    def __init__(self) -> None:
        self.config = ValidatorConfig()
        self.context: Optional[ValidatorContext] = None
        self.logger: logging.Logger | logging.LoggerAdapter = (
            validator_logger(self.name) if self.name else get_logger("plugins")
        )

    def initialize(self, config: ValidatorConfig, context: Optional[ValidatorContext] = None) -> None:
        self.config = config
        self.context = context

    def get_metadata_extractors(self) -> Dict[str, MetadataExtractor]:
        return {}

    @abstractmethod
    def validate(
        self, files: Sequence[ParsedFile], metadata: Optional[MetadataMap] = None
    ) -> ValidatorResult:
        """Run validation and return the plugin's findings."""

    def destroy(self) -> None:
        return None

    def create_error(
        self,
        code: str,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> Issue:
        return self._issue(Severity.ERROR, code, message, file, line, column)

    def create_warning(
        self,
        code: str,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> Issue:
        return self._issue(Severity.WARNING, code, message, file, line, column)

    def create_info(
        self,
        code: str,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> Issue:
        return self._issue(Severity.INFO, code, message, file, line, column)

    def create_result(
        self,
        errors: Sequence[Issue] = (),
        warnings: Sequence[Issue] = (),
        info: Sequence[Issue] = (),
    ) -> ValidatorResult:
        return ValidatorResult(
            validator=self.name,
            errors=list(errors),
            warnings=list(warnings),
            info=list(info),
        )

    def _issue(
        self,
        severity: Severity,
        code: str,
        message: str,
        file: Optional[str],
        line: Optional[int],
        column: Optional[int],
    ) -> Issue:
        return Issue(
            code=f"{self.name}:{code}",
            message=message,
            severity=severity,
            file=file,
            line=line,
            column=column,
        )


__all__ = ["BaseValidator", "MetadataMap", "ValidatorContext", "ValidatorPlugin"]
