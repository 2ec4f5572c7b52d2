"""Loading and validation of match rules and run configuration."""
from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .models import MatchRule, ReconciliationConfig


class ConfigurationError(ValueError):
    """Raised when a match rule or run configuration is invalid."""


def validate_match_rule(fields: Iterable[str]) -> None:
    fields = list(fields)
    if not fields:
        raise ConfigurationError("At least one matching field must be specified")

    if any(not isinstance(name, str) or not name.strip() for name in fields):
        raise ConfigurationError("Matching field names cannot be empty or whitespace")

    counts = Counter(name.lower() for name in fields)
    duplicates = [name for name, count in counts.items() if count > 1]
    if duplicates:
        raise ConfigurationError(f"Duplicate matching fields: {', '.join(duplicates)}")


def _lookup(raw: Dict[str, Any], name: str, default: Any) -> Any:
    for key, value in raw.items():
        if key.lower() == name.lower():
            return value
    return default


def parse_match_rule(raw: Dict[str, Any]) -> MatchRule:
    """Build a validated :class:`MatchRule` from a decoded JSON document."""

    if not isinstance(raw, dict):
        raise ConfigurationError("Match rule configuration must be a JSON object")

    fields = _lookup(raw, "matchingFields", [])
    if not isinstance(fields, list):
        raise ConfigurationError("matchingFields must be a list of field names")
    validate_match_rule(fields)

    return MatchRule(
        fields=tuple(fields),
        case_sensitive=_flag(raw, "caseSensitive", False),
        trim=_flag(raw, "trim", True),
    )


def _flag(raw: Dict[str, Any], name: str, default: bool) -> bool:
    value = _lookup(raw, name, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be true or false, got {value!r}")
    return value


def strip_json_extensions(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments and trailing commas outside strings."""

    out: List[str] = []
    pending_comma: List[str] = []
    in_string = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 1
            elif char == '"':
                in_string = False
            i += 1
            continue

        if text.startswith("//", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise ConfigurationError("Unterminated /* comment in configuration")
            i = end + 2
            continue

        if pending_comma:
            if char in "}]":
                # trailing comma: drop it, keep the whitespace after it
                out.extend(pending_comma[1:])
                pending_comma = []
            elif not char.isspace():
                out.extend(pending_comma)
                pending_comma = []
            else:
                pending_comma.append(char)
                i += 1
                continue

        if char == ",":
            pending_comma = [char]
        else:
            out.append(char)
            if char == '"':
                in_string = True
        i += 1

    out.extend(pending_comma)
    return "".join(out)


def load_match_rule(path: Path) -> MatchRule:
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8-sig")
    if not text.strip():
        raise ConfigurationError(f"Configuration file is empty: {path}")

    try:
        raw = json.loads(strip_json_extensions(text))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc

    return parse_match_rule(raw)


def validate_config(config: ReconciliationConfig) -> None:
    validate_match_rule(config.match_rule.fields)

    if len(config.delimiter) != 1 or config.delimiter in {'"', "\r", "\n"}:
        raise ConfigurationError(f"Delimiter must be a single non-quote character, got {config.delimiter!r}")
