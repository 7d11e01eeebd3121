"""Logging helpers for the storylint logger hierarchy."""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "storylint"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the storylint hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ValidatorLogAdapter(logging.LoggerAdapter):
    """Prefixes plugin messages with the validator name.

    Records also carry a ``validator`` attribute so handlers can filter or
    format per plugin.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        validator = self.extra["validator"] if self.extra else ""
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("validator", validator)
        kwargs["extra"] = extra
        return f"[{validator}] {msg}", kwargs


def validator_logger(name: str) -> ValidatorLogAdapter:
    """Return the logger a validator plugin writes through."""
    return ValidatorLogAdapter(get_logger(f"plugins.{name}"), {"validator": name})


__all__ = ["ValidatorLogAdapter", "get_logger", "validator_logger"]
