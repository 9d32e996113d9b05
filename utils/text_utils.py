"""
Text utilities for uploaded catalog files.

Catalogs are often exported from Portuguese spreadsheets in Latin-1, so
decoding has to keep accents such as "Pão" and "Exposição" intact.
"""

from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_ERROR_DISPLAY_LIMIT = 10


def decode_csv_bytes(data: bytes, encoding: Optional[str] = None) -> str:
    """
    Decode uploaded CSV bytes to text.

    An explicit encoding is used as-is. Otherwise UTF-8 (with or without
    BOM) is tried first and Latin-1 is the fallback; Latin-1 accepts every
    byte so decoding never fails without an explicit encoding.

    Args:
        data: Raw file content
        encoding: Caller-chosen encoding, if known

    Returns:
        Decoded text

    Raises:
        UnicodeDecodeError: If an explicit encoding does not fit the data
        LookupError: If the explicit encoding name is unknown
    """
    if encoding:
        return data.decode(encoding)

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("csv_not_utf8_falling_back_to_latin1", size=len(data))
        return data.decode("latin-1")


def format_validation_errors(
    errors: list,
    limit: int = DEFAULT_ERROR_DISPLAY_LIMIT,
) -> list[str]:
    """
    Truncate an error list for display.

    The importer always keeps the complete list; this is presentation only.

    Examples:
        15 errors, limit 10 -> first 10 messages + "...and 5 more errors"
    """
    messages = [str(e) for e in errors]
    if len(messages) <= limit:
        return messages

    hidden = len(messages) - limit
    return messages[:limit] + [f"...and {hidden} more errors"]
