"""Unit of measure inference for imported products.

Explicit units from the CSV are normalized through a synonym table. When the
CSV has no unit, the unit is derived from the category and product name by
an ordered rule table: the first rule whose category keyword matches wins,
so rule order is significant and must not be merged or re-sorted.

Rules are plain data and can be swapped per deployment by passing another
tuple to UnitInferenceService.
"""

from dataclasses import dataclass
from typing import Optional, Protocol
import unicodedata
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_UNIT = "piece"

# Lower-cased CSV spelling -> application unit
UNIT_SYNONYMS: dict[str, str] = {
    "unit": "unit",
    "units": "unit",
    "piece": "piece",
    "pieces": "piece",
    "pc": "piece",
    "pcs": "piece",
    "slice": "slice",
    "slices": "slice",
    "cake": "cake",
    "cakes": "cake",
    "loaf": "loaf",
    "loaves": "loaf",
    "kg": "kg",
    "kilograms": "kg",
    "g": "g",
    "gram": "g",
    "grams": "g",
    "dozen": "dozen",
    "box": "box",
    "boxes": "box",
    "pack": "pack",
    "package": "pack",
    "cup": "cup",
    "cups": "cup",
}


class UnitSubject(Protocol):
    """Anything with the fields unit inference reads."""
    name: str
    category: str
    unit: Optional[str]


@dataclass(frozen=True)
class NameRule:
    """Product-name keywords that select a unit."""
    keywords: tuple[str, ...]
    unit: str


@dataclass(frozen=True)
class UnitRule:
    """
    Category rule.

    Matches when the category key contains any of `category_keywords`
    (an empty tuple matches every category). Within a matching rule the
    name rules are evaluated in order, falling back to `default_unit`.
    """
    category_keywords: tuple[str, ...]
    name_rules: tuple[NameRule, ...] = ()
    default_unit: str = DEFAULT_UNIT

    def matches(self, category: str) -> bool:
        if not self.category_keywords:
            return True
        return any(keyword in category for keyword in self.category_keywords)

    def unit_for(self, name: str) -> str:
        for rule in self.name_rules:
            if any(keyword in name for keyword in rule.keywords):
                return rule.unit
        return self.default_unit


DEFAULT_UNIT_RULES: tuple[UnitRule, ...] = (
    UnitRule(
        category_keywords=("refrigerado",),
        name_rules=(
            NameRule(("bolo",), "cake"),
            NameRule(("mousse", "copo"), "cup"),
            NameRule(("torta", "pudim"), "slice"),
        ),
    ),
    UnitRule(
        category_keywords=("embalado",),
        name_rules=(
            NameRule(("bolo",), "cake"),
            NameRule(("pão",), "loaf"),
            NameRule(("biscoito",), "pack"),
        ),
    ),
    UnitRule(category_keywords=("salgados",)),
    UnitRule(
        category_keywords=("exposição", "display"),
        name_rules=(
            NameRule(("bolo",), "slice"),
        ),
    ),
    UnitRule(category_keywords=()),
)


def normalize_unit_token(token: Optional[str]) -> str:
    """
    Map a free-text unit to an application unit.

    Case-insensitive; unknown or empty tokens fall back to "piece".
    """
    if not token:
        return DEFAULT_UNIT
    return UNIT_SYNONYMS.get(token.lower().strip(), DEFAULT_UNIT)


def category_key(category: Optional[str]) -> str:
    """
    Lower-cased category text before the first slash.

    "In Display/Itens em Exposição" -> "in display"
    """
    if not category:
        return ""
    category = unicodedata.normalize("NFC", category)
    return category.split("/", 1)[0].lower().strip()


def determine_unit(
    record: UnitSubject,
    rules: tuple[UnitRule, ...] = DEFAULT_UNIT_RULES,
) -> str:
    """
    Resolve the unit for a record.

    An explicit unit always wins (normalized). Otherwise the first
    category rule that matches decides, using the product name.
    """
    if record.unit:
        return normalize_unit_token(record.unit)

    category = category_key(record.category)
    name = unicodedata.normalize("NFC", record.name or "").lower()

    for rule in rules:
        if rule.matches(category):
            return rule.unit_for(name)

    return DEFAULT_UNIT


class UnitInferenceService:
    """
    Fills in missing units on candidate records.

    Each record's unit is set exactly once, before it reaches the importer.
    """

    def __init__(self, rules: tuple[UnitRule, ...] = DEFAULT_UNIT_RULES):
        self.rules = rules

    def resolve(self, record: UnitSubject) -> str:
        record.unit = determine_unit(record, self.rules)
        return record.unit

    def resolve_all(self, records: list) -> list:
        """Resolve units in place and return the same list."""
        inferred = 0
        for record in records:
            if not record.unit:
                inferred += 1
            self.resolve(record)

        logger.debug(
            "units_resolved",
            count=len(records),
            inferred=inferred
        )
        return records


# Singleton instance for convenience
_unit_inference_service: Optional[UnitInferenceService] = None


def get_unit_inference_service() -> UnitInferenceService:
    """Get or create UnitInferenceService instance."""
    global _unit_inference_service
    if _unit_inference_service is None:
        _unit_inference_service = UnitInferenceService()
    return _unit_inference_service
