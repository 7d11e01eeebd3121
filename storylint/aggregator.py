"""Merges per-validator findings into one validation result."""

from __future__ import annotations

from typing import Iterable

from .models import ValidationResult, ValidatorResult


class ResultAggregator:
    """Concatenates findings in validator order; no dedupe, no conflict handling."""

    def aggregate(self, results: Iterable[ValidatorResult]) -> ValidationResult:
        merged = ValidationResult(valid=True)
        for result in results:
            merged.errors.extend(result.errors)
            merged.warnings.extend(result.warnings)
            merged.info.extend(result.info)
        merged.valid = not merged.errors
        return merged


__all__ = ["ResultAggregator"]
