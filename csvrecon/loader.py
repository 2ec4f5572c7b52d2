"""Utilities for reading delimited files into records."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterator, List, Optional

from .models import Record
from .tokenizer import tokenize_line

LOGGER = logging.getLogger(__name__)

ENCODING = "utf-8-sig"
DECODE_ERRORS = "replace"


def synthesize_headers(count: int) -> List[str]:
    return [f"Column{index + 1}" for index in range(count)]


def _map_fields(values: List[str], headers: List[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for index, value in enumerate(values):
        name = headers[index] if index < len(headers) else f"Column{index + 1}"
        fields[name] = value
    for name in headers:
        fields.setdefault(name, "")
    return fields


def read_headers(path: Path, delimiter: str = ",", has_header: bool = True) -> List[str]:
    """Return the header names of ``path`` without reading past what is needed.

    Without a header row the names are synthesized from the field count of the
    first non-blank line.
    """

    if not path.is_file():
        LOGGER.warning("File not found: %s", path)
        return []

    with path.open(encoding=ENCODING, errors=DECODE_ERRORS) as handle:
        for raw in handle:
            line = raw.rstrip("\r\n")
            if has_header:
                return tokenize_line(line, delimiter) if line.strip() else []
            if line.strip():
                return synthesize_headers(len(tokenize_line(line, delimiter)))
    return []


def iter_records(
    path: Path,
    delimiter: str = ",",
    has_header: bool = True,
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[Record]:
    """Yield one :class:`Record` per non-blank data line of ``path``.

    Malformed lines are logged and skipped. Iteration stops quietly once
    ``cancel_event`` is set.
    """

    if not path.is_file():
        LOGGER.warning("File not found: %s", path)
        return

    source = str(path)
    headers: List[str] = []
    line_number = 0

    with path.open(encoding=ENCODING, errors=DECODE_ERRORS) as handle:
        if has_header:
            first = handle.readline()
            if first:
                line_number += 1
                header_line = first.rstrip("\r\n")
                headers = tokenize_line(header_line, delimiter) if header_line.strip() else []
                LOGGER.debug("Parsed headers from %s: %s", source, ", ".join(headers))

        for raw in handle:
            if cancel_event is not None and cancel_event.is_set():
                LOGGER.debug("Stopped reading %s at line %d: cancelled", source, line_number)
                return

            line_number += 1
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue

            try:
                values = tokenize_line(line, delimiter, strict=True)
                if not headers:
                    headers = synthesize_headers(len(values))
                record = Record(
                    source_file=source,
                    line_number=line_number,
                    raw_line=line,
                    fields=_map_fields(values, headers),
                )
            except Exception as exc:
                LOGGER.error("Error parsing line %d in %s: %s", line_number, source, exc)
                continue

            yield record
