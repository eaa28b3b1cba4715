#!/usr/bin/env python3
"""
Formatter configuration.

A JSON config file uses the same keys as the editor integration:

  {
    "space_between_zh_and_en": true,
    "space_between_zh_and_num": true,
    "format_code_block": true,
    "space_between_code_and_text": true,
    "format_math": true,
    "code_formatters": {"rust": "rustfmt", "python": "black", "sql": null}
  }

``code_formatters`` is merged over the defaults; ``null`` removes a language.

Environment overrides (take precedence over the file):
  - MIXDOWN_CONFIG              path of the JSON file
  - MIXDOWN_SPACE_ZH_EN
  - MIXDOWN_SPACE_ZH_NUM
  - MIXDOWN_FORMAT_CODE
  - MIXDOWN_SPACE_CODE_TEXT
  - MIXDOWN_FORMAT_MATH
  - MIXDOWN_MAX_WORKERS
  - MIXDOWN_FORMATTER_TIMEOUT   seconds, per external formatter call
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .constants.languages import DEFAULT_CODE_FORMATTERS, normalize_language

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_BOOL_FIELDS = (
    "space_between_zh_and_en",
    "space_between_zh_and_num",
    "format_code_block",
    "space_between_code_and_text",
    "format_math",
)

_ENV_NAMES = {
    "space_between_zh_and_en": "MIXDOWN_SPACE_ZH_EN",
    "space_between_zh_and_num": "MIXDOWN_SPACE_ZH_NUM",
    "format_code_block": "MIXDOWN_FORMAT_CODE",
    "space_between_code_and_text": "MIXDOWN_SPACE_CODE_TEXT",
    "format_math": "MIXDOWN_FORMAT_MATH",
    "max_workers": "MIXDOWN_MAX_WORKERS",
    "formatter_timeout_s": "MIXDOWN_FORMATTER_TIMEOUT",
}


def _first_env(*names: str) -> str | None:
    for name in names:
        v = os.getenv(name)
        if v and v.strip():
            return v.strip()
    return None


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValueError(f"`{name}` must be a boolean, got {value!r}")


def _parse_max_workers(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        workers = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"`max_workers` must be an integer, got {value!r}") from exc
    if workers < 1:
        raise ValueError(f"`max_workers` must be >= 1, got {workers}")
    return workers


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"`formatter_timeout_s` must be a number, got {value!r}") from exc
    if timeout <= 0:
        raise ValueError(f"`formatter_timeout_s` must be > 0, got {timeout}")
    return timeout


def _language_key(language: str) -> str:
    normalized = normalize_language(str(language))
    return normalized.split(None, 1)[0] if normalized else ""


def _merge_formatters(current: Mapping[str, str], overrides: Any) -> dict[str, str]:
    if not isinstance(overrides, Mapping):
        raise ValueError(f"`code_formatters` must be an object, got {type(overrides).__name__}")
    merged = dict(current)
    for language, tool in overrides.items():
        key = _language_key(language)
        if not key:
            continue
        if tool is None or (isinstance(tool, str) and not tool.strip()):
            merged.pop(key, None)
            continue
        if not isinstance(tool, str):
            raise ValueError(f"Formatter for `{language}` must be a string, got {tool!r}")
        merged[key] = tool.strip()
    return merged


def _load_json_config(path: Path) -> dict:
    path = path.expanduser().resolve()
    if not path.exists():
        raise FileNotFoundError(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    return data


@dataclass(frozen=True)
class FormatterConfig:
    space_between_zh_and_en: bool = True
    space_between_zh_and_num: bool = True
    format_code_block: bool = True
    space_between_code_and_text: bool = True
    format_math: bool = True
    code_formatters: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_CODE_FORMATTERS))
    max_workers: Optional[int] = None
    formatter_timeout_s: Optional[float] = None

    def __post_init__(self):
        normalized = {_language_key(k): v for k, v in self.code_formatters.items() if _language_key(k)}
        object.__setattr__(self, "code_formatters", MappingProxyType(normalized))

    @classmethod
    def default(cls) -> "FormatterConfig":
        return cls()

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        base: Optional["FormatterConfig"] = None,
    ) -> "FormatterConfig":
        base = base if base is not None else cls()
        values: dict[str, Any] = {f.name: getattr(base, f.name) for f in fields(cls)}

        for key, value in data.items():
            if key in _BOOL_FIELDS:
                values[key] = _parse_bool(value, key)
            elif key == "code_formatters":
                values[key] = _merge_formatters(values[key], value)
            elif key == "max_workers":
                values[key] = _parse_max_workers(value)
            elif key == "formatter_timeout_s":
                values[key] = _parse_timeout(value)
            else:
                logger.warning("Ignoring unknown config key: %s", key)

        return cls(**values)

    @classmethod
    def from_file(cls, path: Path | str) -> "FormatterConfig":
        return cls.from_dict(_load_json_config(Path(path)))

    @classmethod
    def resolve(
        cls,
        *,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "FormatterConfig":
        """defaults < JSON file < environment < explicit overrides (None = not set)"""
        config = cls()

        if config_path is None:
            config_path = _first_env("MIXDOWN_CONFIG")
        if config_path:
            config = cls.from_dict(_load_json_config(Path(config_path)), base=config)

        env_values = {}
        for name, env_name in _ENV_NAMES.items():
            value = _first_env(env_name)
            if value is not None:
                env_values[name] = value
        if env_values:
            config = cls.from_dict(env_values, base=config)

        explicit = {k: v for k, v in overrides.items() if v is not None}
        if explicit:
            config = cls.from_dict(explicit, base=config)

        return config

    def to_dict(self) -> dict:
        return {
            "space_between_zh_and_en": self.space_between_zh_and_en,
            "space_between_zh_and_num": self.space_between_zh_and_num,
            "format_code_block": self.format_code_block,
            "space_between_code_and_text": self.space_between_code_and_text,
            "format_math": self.format_math,
            "code_formatters": dict(sorted(self.code_formatters.items())),
            "max_workers": self.max_workers,
            "formatter_timeout_s": self.formatter_timeout_s,
        }
