"""
CSV parsers module.
"""

from parsers.csv_tokenizer import split_document, parse_row
from parsers.product_csv_parser import (
    parse_product_csv,
    read_header,
    resolve_columns,
    find_column_index,
    CandidateRecord,
    HeaderMap,
    RowValidationError,
    ProductCSVParseResult,
)

__all__ = [
    "split_document",
    "parse_row",
    "parse_product_csv",
    "read_header",
    "resolve_columns",
    "find_column_index",
    "CandidateRecord",
    "HeaderMap",
    "RowValidationError",
    "ProductCSVParseResult",
]
