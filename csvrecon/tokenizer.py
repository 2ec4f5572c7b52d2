"""Single-line tokenizer for delimited text."""
from __future__ import annotations

from typing import List

QUOTE = '"'


class MalformedLineError(ValueError):
    """Raised in strict mode when a quoted field is left open at end of line."""


def tokenize_line(line: str, delimiter: str = ",", *, strict: bool = False) -> List[str]:
    """Split one line into field values.

    A double quote outside a quoted region opens one, the next unescaped quote
    closes it, and ``""`` inside quotes is a literal quote. Delimiters and
    newlines inside quotes belong to the field. The last field is always
    emitted, so an empty line yields ``[""]``.

    An unterminated quote is tolerated and the rest of the line is kept in the
    current field, unless ``strict`` is set, in which case
    :class:`MalformedLineError` is raised.
    """

    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if in_quotes:
            if char == QUOTE:
                if i + 1 < length and line[i + 1] == QUOTE:
                    current.append(QUOTE)
                    i += 1
                else:
                    in_quotes = False
            else:
                current.append(char)
        elif char == QUOTE:
            in_quotes = True
        elif char == delimiter:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    if in_quotes and strict:
        raise MalformedLineError(f"Unterminated quoted field at column {len(fields) + 1}")

    fields.append("".join(current))
    return fields
