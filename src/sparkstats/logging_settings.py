"""Helpers for parsing the simple logging settings file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .api.api_logger import ApiLogLevel

_LEVEL_MAP: dict[str, int | None] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "off": None,
}

_DEFAULT_LEVEL = "info"
_DEFAULT_API_LEVEL = ApiLogLevel.BASIC


@dataclass(frozen=True)
class LoggingSettings:
    terminal_level: int | None
    api_level: ApiLogLevel


def _normalize_level(value: str) -> str:
    return value.strip().lower()


def _resolve_level(value: str) -> int | None:
    return _LEVEL_MAP.get(_normalize_level(value), _LEVEL_MAP[_DEFAULT_LEVEL])


def _resolve_api_level(value: str) -> ApiLogLevel:
    normalized = _normalize_level(value)
    if normalized == "off":
        return ApiLogLevel.NONE
    try:
        return ApiLogLevel(normalized)
    except ValueError:
        return _DEFAULT_API_LEVEL


def parse_logging_settings(path: Path) -> LoggingSettings:
    """Parse the human-readable logging settings file.

    Recognised keys are ``terminal`` (debug/info/warning/off) and ``api``
    (none/basic/headers/body/verbose). Unknown keys and malformed lines are
    ignored.
    """

    terminal_level = _LEVEL_MAP[_DEFAULT_LEVEL]
    api_level = _DEFAULT_API_LEVEL

    if path.exists():
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, value = (part.strip() for part in line.split("=", 1))
            normalized_key = key.lower()
            if normalized_key == "terminal":
                terminal_level = _resolve_level(value)
            elif normalized_key == "api":
                api_level = _resolve_api_level(value)

    return LoggingSettings(terminal_level=terminal_level, api_level=api_level)


__all__ = ["LoggingSettings", "parse_logging_settings"]
