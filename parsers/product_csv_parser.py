"""
Product catalog CSV parser.

Resolves loosely named header columns to canonical product fields and turns
data rows into candidate records, collecting per-row validation errors
instead of failing the whole document.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Union
import structlog

from exceptions import ImportConfigurationError
from parsers.csv_tokenizer import split_document, parse_row

logger = structlog.get_logger(__name__)

# Parsing occupies the first half of the 0-100 progress scale
PARSE_PROGRESS_SHARE = 50

DEFAULT_INITIAL_SLICE_ROWS = 100

MIN_NAME_LENGTH = 2

ProgressCallback = Callable[[int], None]


# ===================
# COLUMN MAPPINGS
# ===================

# Canonical field -> accepted header spellings (case-insensitive, first match wins)
PRODUCT_REQUIRED_COLUMNS = {
    "name": ["product name", "product_name", "name", "product"],
    "category": ["category", "type", "product category", "product_category"],
}

PRODUCT_OPTIONAL_COLUMNS = {
    "id": ["#", "id", "product id", "product_id"],
    "unit": ["unit", "units", "measure", "unit_of_measure"],
    "description": ["description", "desc", "notes", "details"],
}

NOT_FOUND = -1


# ===================
# DATA CLASSES
# ===================

@dataclass
class HeaderMap:
    """Column position of each canonical field, or -1 when unresolved."""
    name: int = NOT_FOUND
    category: int = NOT_FOUND
    id: int = NOT_FOUND
    unit: int = NOT_FOUND
    description: int = NOT_FOUND

    def missing_required(self) -> list[str]:
        return [
            name for name in PRODUCT_REQUIRED_COLUMNS
            if getattr(self, name) == NOT_FOUND
        ]


@dataclass
class CandidateRecord:
    """Validated product row, not yet submitted."""
    name: str
    category: str
    row_number: int
    id: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None

    def to_payload(self) -> dict:
        """Shape sent to the create-product capability."""
        return {
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "description": self.description or f"{self.category} - {self.name}",
        }


@dataclass
class RowValidationError:
    """Row rejected during validation. Row numbers exclude the header."""
    row_number: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass
class ProductCSVParseResult:
    """Result of parsing a product catalog CSV."""
    records: list[CandidateRecord] = field(default_factory=list)
    errors: list[RowValidationError] = field(default_factory=list)
    header_map: Optional[HeaderMap] = None
    total_rows: int = 0

    @property
    def success(self) -> bool:
        """True if every data row was accepted."""
        return len(self.errors) == 0

    @property
    def error_messages(self) -> list[str]:
        return [str(e) for e in self.errors]


# ===================
# COLUMN RESOLUTION
# ===================

def find_column_index(headers: list[str], aliases: list[str]) -> int:
    """
    Find the position of the first header matching any alias.

    Aliases are tried in order; matching is exact after lower-casing
    and trimming both sides.

    Args:
        headers: Header row fields
        aliases: Accepted spellings, highest priority first

    Returns:
        Column index, or -1 if nothing matched
    """
    lowered = [(h or "").lower().strip() for h in headers]

    for alias in aliases:
        key = (alias or "").lower().strip()
        if key in lowered:
            return lowered.index(key)

    return NOT_FOUND


def resolve_columns(headers: list[str]) -> HeaderMap:
    """
    Map a header row to canonical field positions.

    Raises:
        ImportConfigurationError: If name or category cannot be resolved
    """
    header_map = HeaderMap(**{
        name: find_column_index(headers, aliases)
        for name, aliases in {**PRODUCT_REQUIRED_COLUMNS, **PRODUCT_OPTIONAL_COLUMNS}.items()
    })

    missing = header_map.missing_required()
    if missing:
        logger.warning("csv_required_columns_missing", missing=missing, headers=headers)
        raise ImportConfigurationError(missing, headers)

    return header_map


def read_header(text: str) -> HeaderMap:
    """
    Resolve columns from the first non-blank line only.

    An empty document has nothing to resolve and returns an empty map.
    """
    lines = split_document(text)
    if not lines:
        return HeaderMap()
    return resolve_columns(parse_row(lines[0]))


# ===================
# MAIN PARSER
# ===================

def parse_product_csv(
    text: str,
    on_progress: Optional[ProgressCallback] = None,
    initial_slice_rows: int = DEFAULT_INITIAL_SLICE_ROWS,
) -> ProductCSVParseResult:
    """
    Parse and validate a product catalog CSV document.

    The first `initial_slice_rows` data rows are validated, then the
    remainder. After every row the progress callback receives
    floor(processed / total * 50).

    Args:
        text: Decoded CSV text (header on the first non-blank line)
        on_progress: Optional callback receiving progress 0-50
        initial_slice_rows: Size of the first validation slice

    Returns:
        ProductCSVParseResult with accepted records and row errors

    Raises:
        ImportConfigurationError: If required columns are missing
    """
    lines = split_document(text)
    result = ProductCSVParseResult()

    if not lines:
        logger.info("product_csv_empty")
        return result

    result.header_map = resolve_columns(parse_row(lines[0]))

    data_lines = lines[1:]
    result.total_rows = len(data_lines)

    logger.info(
        "parsing_product_csv",
        total_rows=result.total_rows,
        columns=vars(result.header_map)
    )

    initial_end = min(initial_slice_rows, len(data_lines))
    _parse_slice(data_lines, 0, initial_end, result, on_progress)

    if len(data_lines) > initial_end:
        _parse_slice(data_lines, initial_end, len(data_lines), result, on_progress)

    logger.info(
        "product_csv_parsed",
        total_rows=result.total_rows,
        valid_count=len(result.records),
        error_count=len(result.errors)
    )

    return result


def _parse_slice(
    data_lines: list[str],
    start: int,
    end: int,
    result: ProductCSVParseResult,
    on_progress: Optional[ProgressCallback],
) -> None:
    """Validate data_lines[start:end] into result."""
    total = len(data_lines)

    for index in range(start, end):
        row_number = index + 1

        try:
            outcome = _validate_row(parse_row(data_lines[index]), result.header_map, row_number)
        except Exception as e:
            outcome = RowValidationError(row_number, f"Error parsing row - {e}")

        if isinstance(outcome, CandidateRecord):
            result.records.append(outcome)
        else:
            result.errors.append(outcome)

        if on_progress is not None:
            on_progress((index + 1) * PARSE_PROGRESS_SHARE // total)


def _validate_row(
    columns: list[str],
    header_map: HeaderMap,
    row_number: int,
) -> Union[CandidateRecord, RowValidationError]:
    """Build a candidate record from one tokenized row, or explain why not."""
    name = _field(columns, header_map.name)
    category = _field(columns, header_map.category)

    if not name:
        return RowValidationError(row_number, "Product name is missing")

    if not category:
        return RowValidationError(row_number, "Category is missing")

    if len(name) < MIN_NAME_LENGTH:
        return RowValidationError(row_number, "Product name must be at least 2 characters")

    return CandidateRecord(
        name=name,
        category=category,
        row_number=row_number,
        id=_field(columns, header_map.id),
        unit=_field(columns, header_map.unit),
        description=_field(columns, header_map.description),
    )


def _field(columns: list[str], index: int) -> Optional[str]:
    """Value at index, or None when unresolved, out of range or empty."""
    if index == NOT_FOUND or index >= len(columns):
        return None
    return columns[index] or None
