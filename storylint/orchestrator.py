"""Validation orchestration: discovery, reading, extraction, plugins, teardown."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .aggregator import ResultAggregator
from .config import StoryLintConfig
from .events import (
    FILES_PROCESSED,
    METADATA_EXTRACTED,
    VALIDATION_COMPLETE,
    VALIDATION_ERROR,
    VALIDATION_START,
    VALIDATOR_COMPLETE,
    VALIDATOR_INITIALIZED,
    VALIDATOR_START,
    EventBus,
)
from .extraction import MetadataExtractor, MetadataPipeline
from .logging import get_logger, validator_logger
from .models import ExtractedMetadata, ParsedFile, ValidationResult, ValidatorResult
from .plugins.base import ValidatorContext, ValidatorPlugin
from .plugins.registry import PluginRegistry, discover_plugins
from .processor import FileProcessor
from .reader import FileReader


@dataclass
class ValidationOptions:
    """Inputs for one run: an explicit file list, or patterns plus a base directory.

    Unset pattern fields fall back to the configuration.
    """

    files: List[str] = field(default_factory=list)
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None
    base_dir: str | os.PathLike[str] | None = None


class ValidationOrchestrator:
    """Runs validator plugins over a set of story files.

    Each :meth:`validate` call is sequential: plugins initialize, files are
    read, extractors run, then every enabled plugin validates in registration
    order. A plugin failure aborts the remaining plugins; teardown still runs
    before the failure is re-raised.
    """

    def __init__(
        self,
        config: StoryLintConfig | None = None,
        registry: PluginRegistry | None = None,
        processor: FileProcessor | None = None,
        pipeline: MetadataPipeline | None = None,
        aggregator: ResultAggregator | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.config = config or StoryLintConfig(root=Path.cwd())
        self.registry = registry if registry is not None else PluginRegistry()
        self.processor = processor or FileProcessor(
            reader=FileReader(
                small_file_threshold=self.config.reader.small_file_threshold,
                cache_enabled=self.config.reader.cache_enabled,
            )
        )
        self.pipeline = pipeline or MetadataPipeline()
        self.aggregator = aggregator or ResultAggregator()
        self.events = events or EventBus()
        self.logger = get_logger("orchestrator")
        self._results: Dict[str, ValidatorResult] = {}
        self._metadata: Dict[str, ExtractedMetadata] = {}

    @classmethod
    def with_default_plugins(
        cls,
        config: StoryLintConfig | None = None,
        *,
        enabled: Sequence[str] | None = None,
        **kwargs: object,
    ) -> "ValidationOrchestrator":
        """Build an orchestrator holding the built-in and entry-point plugins."""
        registry = PluginRegistry(discover_plugins(enabled))
        return cls(config=config, registry=registry, **kwargs)  # type: ignore[arg-type]

    def use(self, plugin: ValidatorPlugin) -> None:
        self.registry.register(plugin)

    def active_validators(self) -> List[ValidatorPlugin]:
        return [
            plugin
            for plugin in self.registry
            if self.config.validator_config(plugin.name).enabled
        ]

    def validate(self, options: ValidationOptions | None = None) -> ValidationResult:
        options = options or ValidationOptions()
        self.events.emit(VALIDATION_START, {"options": options})
        self._results = {}
        self._metadata = {}
        active = self.active_validators()
        self.logger.info("Starting validation with %d validators", len(active))

        try:
            self.initialize_validators(active)

            files = self.process_files(options)
            self.events.emit(FILES_PROCESSED, {"count": len(files), "files": [f.path for f in files]})

            extractors = self.collect_extractors(active)
            metadata = self.pipeline.extract_from_files(files, extractors)
            self._metadata = dict(metadata)
            self.events.emit(METADATA_EXTRACTED, {"metadata": metadata})

            results = self.run_validators(active, files, metadata)
            final = self.aggregator.aggregate(results)
        except Exception as exc:
            self.logger.error("Validation failed: %s", exc)
            self._destroy_after_failure(active)
            self.events.emit(VALIDATION_ERROR, {"error": exc})
            raise

        try:
            self.destroy_validators(active)
        except Exception as exc:
            self.events.emit(VALIDATION_ERROR, {"error": exc})
            raise

        self.logger.info(
            "Validation finished: %d errors, %d warnings, %d info",
            len(final.errors),
            len(final.warnings),
            len(final.info),
        )
        self.events.emit(VALIDATION_COMPLETE, {"result": final})
        return final

    def initialize_validators(self, validators: Iterable[ValidatorPlugin]) -> None:
        for plugin in validators:
            plugin.initialize(self.config.validator_config(plugin.name), self._create_context(plugin))
            self.events.emit(VALIDATOR_INITIALIZED, {"validator": plugin.name})

    def process_files(self, options: ValidationOptions) -> List[ParsedFile]:
        include = options.include if options.include is not None else self.config.files.include
        exclude = options.exclude if options.exclude is not None else self.config.files.exclude
        base_dir = options.base_dir if options.base_dir is not None else self.config.root
        return self.processor.process_files(
            options.files, include=include, exclude=exclude, base_dir=base_dir
        )

    def collect_extractors(self, validators: Iterable[ValidatorPlugin]) -> Dict[str, MetadataExtractor]:
        extractors: Dict[str, MetadataExtractor] = {}
        for plugin in validators:
            for key, extractor in plugin.get_metadata_extractors().items():
                if key in extractors:
                    self.logger.warning(
                        "Extractor '%s' from %s replaces an earlier extractor", key, plugin.name
                    )
                extractors[key] = extractor
        return extractors

    def run_validators(
        self,
        validators: Iterable[ValidatorPlugin],
        files: Sequence[ParsedFile],
        metadata: Dict[str, ExtractedMetadata],
    ) -> List[ValidatorResult]:
        results: List[ValidatorResult] = []
        for plugin in validators:
            self.events.emit(VALIDATOR_START, {"validator": plugin.name})
            result = plugin.validate(files, metadata)
            results.append(result)
            self._results[plugin.name] = result
            self.logger.debug(
                "%s reported %d errors, %d warnings, %d info",
                plugin.name,
                len(result.errors),
                len(result.warnings),
                len(result.info),
            )
            self.events.emit(VALIDATOR_COMPLETE, {"validator": plugin.name, "result": result})
        return results

    def destroy_validators(self, validators: Iterable[ValidatorPlugin]) -> None:
        for plugin in validators:
            plugin.destroy()

    def _destroy_after_failure(self, validators: Iterable[ValidatorPlugin]) -> None:
        # Teardown errors must not mask the failure being re-raised.
        for plugin in validators:
            try:
                plugin.destroy()
            except Exception as exc:
                self.logger.error("Teardown of %s failed: %s", plugin.name, exc)

    def _create_context(self, plugin: ValidatorPlugin) -> ValidatorContext:
        return ValidatorContext(
            logger=validator_logger(plugin.name),
            results_lookup=lambda name: self._results.get(name),
            metadata_lookup=lambda path: self._metadata.get(path),
        )


__all__ = ["ValidationOptions", "ValidationOrchestrator"]
