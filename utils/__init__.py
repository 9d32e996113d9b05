"""
Shared helpers.
"""

from utils.retry_utils import retry_query, is_retryable_error, RETRYABLE_CODES
from utils.text_utils import decode_csv_bytes, format_validation_errors

__all__ = [
    "retry_query",
    "is_retryable_error",
    "RETRYABLE_CODES",
    "decode_csv_bytes",
    "format_validation_errors",
]
