"""
Quote-aware CSV line tokenizer.

Lenient: malformed quoting never raises. A quote toggles the in-quotes state, a
comma outside quotes ends the field, and everything else is kept as-is.
"""

import re

_LINE_BREAK = re.compile(r"\r\n|\n|\r")


def split_document(text: str) -> list[str]:
    """
    Split raw CSV text into physical lines.

    Accepts CRLF, LF and CR line endings. Lines that are empty after
    trimming are discarded.

    Args:
        text: Decoded CSV document

    Returns:
        Non-blank lines in document order
    """
    if not text:
        return []
    return [line for line in _LINE_BREAK.split(text) if line.strip()]


def parse_row(line: str) -> list[str]:
    """
    Split one CSV line into trimmed fields.

    Examples:
        '"Bread, Fresh",Bakery'  -> ["Bread, Fresh", "Bakery"]
        'a,b,'                   -> ["a", "b", ""]

    Args:
        line: Single physical line (no line terminator)

    Returns:
        Field values, one per column
    """
    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
            # The raw quote is kept so wrapped fields can be unescaped below
            current.append(char)
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())

    return [_unquote(value) for value in fields]


def _unquote(value: str) -> str:
    """Strip enclosing quotes and collapse doubled quotes; trim either way."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1].replace('""', '"').strip()
    return value.strip()
